from flow_s3upload.errors import TransportError
from flow_s3upload.guard import BucketGuard
from flow_s3upload.models import UploadRequest
from flow_s3upload.models import UploadResult
from flow_s3upload.transfer import BufferedTransfer
from flow_s3upload.transfer import StreamedTransfer

import logging


logger = logging.getLogger(__name__)


def select_strategy(client, settings):
    if settings.streaming:
        return StreamedTransfer(
            client, part_size=settings.part_size, timeout=settings.stream_timeout
        )
    return BufferedTransfer(client)


class UploadOrchestrator:
    """Runs one upload node's requests.

    Every request goes through the bucket guard first; only a confirmed
    bucket is handed to the transfer strategy. The outcome is normalized
    into an UploadResult, or None when nothing was attempted.
    """

    def __init__(self, client, settings, strategy=None):
        self.settings = settings
        self._guard = BucketGuard(client)
        self._strategy = strategy or select_strategy(client, settings)

    def resolve(self, message=None):
        return UploadRequest.resolve(self.settings, message)

    async def upload(self, request):
        try:
            exists = await self._guard.confirm_exists(request.bucket_name)
        except TransportError as e:
            logger.error("Could not check bucket %s: %s", request.bucket_name, e)
            return None
        if not exists:
            logger.warning(
                'Bucket "%s" does not exist. Use a create-bucket node to '
                "create the bucket first.",
                request.bucket_name,
            )
            return None

        try:
            succeeded = await self._strategy.transfer(
                request.bucket_name,
                request.local_path,
                request.object_key,
                request.compress,
            )
        except (TransportError, OSError) as e:
            logger.warning(
                "Upload of %s to %s failed: %s",
                request.local_path,
                request.bucket_name,
                e,
            )
            succeeded = False
        if succeeded:
            logger.info(
                "Uploaded %s to //%s/%s",
                request.local_path,
                request.bucket_name,
                request.object_key,
            )
        return UploadResult(succeeded)

    async def handle(self, message=None):
        return await self.upload(self.resolve(message))

import asyncio
import logging


logger = logging.getLogger(__name__)


class BucketGuard:
    """Confirms a bucket exists before anything is written to it.

    A missing bucket is a normal ``False`` result. Failures of the check
    itself raise ``TransportError``. The guard never creates buckets.
    """

    def __init__(self, client):
        self._client = client

    async def confirm_exists(self, bucket_name):
        if not bucket_name:
            return False
        exists = await asyncio.to_thread(self._client.bucket_exists, bucket_name)
        logger.debug("Bucket %s exists: %s", bucket_name, exists)
        return exists

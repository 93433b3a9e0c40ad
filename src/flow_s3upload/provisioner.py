from flow_s3upload.errors import TransportError

import asyncio
import logging


logger = logging.getLogger(__name__)


class BucketProvisioner:
    """Creates buckets on request.

    There is no existence pre-check; creating a bucket that already exists
    is reported by the store as an error.
    """

    def __init__(self, client):
        self._client = client

    async def create_bucket(self, bucket_name):
        try:
            await asyncio.to_thread(self._client.create_bucket, bucket_name)
        except TransportError as e:
            logger.warning("Could not create bucket %s: %s", bucket_name, e)
            return False
        logger.info("%s was successfully created.", bucket_name)
        return True

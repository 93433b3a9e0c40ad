"""Flow nodes: the boundary between inbound messages and the upload core.

Each node receives message dicts through ``on_input`` and reports outcomes
through the ``emit`` callable it was built with, as ``{"payload": bool}``.
"""

from flow_s3upload.errors import MissingCredentials
from flow_s3upload.models import BucketCreationRequest
from flow_s3upload.orchestrator import UploadOrchestrator
from flow_s3upload.provisioner import BucketProvisioner
from flow_s3upload.s3client import S3Client

import logging


logger = logging.getLogger(__name__)


class UploadNode:
    def __init__(self, name, client, settings, emit, strategy=None):
        self.name = name
        self.orchestrator = UploadOrchestrator(client, settings, strategy)
        self._emit = emit

    def __repr__(self):
        return f"<UploadNode {self.name}>"

    async def on_input(self, message=None):
        result = await self.orchestrator.handle(message)
        if result is not None:
            self._emit(result.as_message())
        return result


class CreateBucketNode:
    """Creates the configured bucket; message content is ignored."""

    def __init__(self, name, client, bucket_name, emit):
        self.name = name
        self.request = BucketCreationRequest(bucket_name)
        self._provisioner = BucketProvisioner(client)
        self._emit = emit

    def __repr__(self):
        return f"<CreateBucketNode {self.name}>"

    async def on_input(self, message=None):
        created = await self._provisioner.create_bucket(self.request.bucket_name)
        self._emit({"payload": created})
        return created


class UnconfiguredNode:
    """Stand-in for a node whose storage credentials are missing."""

    def __init__(self, name, reason):
        self.name = name
        self.reason = reason

    def __repr__(self):
        return f"<UnconfiguredNode {self.name}>"

    async def on_input(self, message=None):
        logger.warning("Node %s is not configured: %s", self.name, self.reason)
        return None


def open_client(storage_config):
    """Return an S3Client, or None with a warning if credentials are missing."""
    try:
        return S3Client.from_config(storage_config)
    except MissingCredentials as e:
        logger.warning("%s", e)
        return None


def open_upload_node(name, client, settings, emit):
    if client is None:
        return UnconfiguredNode(name, "missing storage credentials")
    return UploadNode(name, client, settings, emit)


def open_create_bucket_node(name, client, bucket_name, emit):
    if client is None:
        return UnconfiguredNode(name, "missing storage credentials")
    return CreateBucketNode(name, client, bucket_name, emit)

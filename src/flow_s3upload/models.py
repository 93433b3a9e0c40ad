from dataclasses import dataclass
from typing import Optional

import os


DEFAULT_PART_SIZE = 8 * 1024 * 1024
DEFAULT_STREAM_TIMEOUT = 3600.0


@dataclass(frozen=True)
class StorageConfig:
    """Credentials and endpoint for the object store.

    ``project_id`` names the profile inside the credentials file found at
    ``credentials_path``.
    """

    project_id: str
    credentials_path: str
    endpoint_url: Optional[str] = None
    region_name: Optional[str] = None
    connect_timeout: int = 60
    read_timeout: int = 60

    @property
    def is_complete(self):
        return bool(self.project_id) and bool(self.credentials_path)


@dataclass(frozen=True)
class UploadSettings:
    """Static configuration of one upload node."""

    bucket_name: str = ""
    local_path: str = ""
    destination_path: str = ""
    compress: bool = False
    streaming: bool = False
    part_size: int = DEFAULT_PART_SIZE
    stream_timeout: float = DEFAULT_STREAM_TIMEOUT


@dataclass(frozen=True)
class UploadRequest:
    bucket_name: str
    local_path: str
    destination_path: str
    compress: bool = False

    @classmethod
    def resolve(cls, settings, message=None):
        """Merge node settings with an inbound message.

        A non-empty static value always wins; the message only fills
        fields the node leaves empty.
        """
        message = message or {}
        local_path = settings.local_path or message.get("localfilename") or ""
        destination_path = (
            settings.destination_path or message.get("destinationfilename") or ""
        )
        return cls(
            bucket_name=settings.bucket_name,
            local_path=local_path,
            destination_path=destination_path,
            compress=settings.compress,
        )

    @property
    def object_key(self):
        """Destination key, falling back to the local file name."""
        return self.destination_path or os.path.basename(self.local_path)


@dataclass(frozen=True)
class UploadResult:
    succeeded: bool

    def as_message(self):
        return {"payload": self.succeeded}


@dataclass(frozen=True)
class BucketCreationRequest:
    bucket_name: str

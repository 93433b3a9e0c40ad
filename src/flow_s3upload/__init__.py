from flow_s3upload.errors import MissingCredentials
from flow_s3upload.errors import TransportError
from flow_s3upload.models import BucketCreationRequest
from flow_s3upload.models import StorageConfig
from flow_s3upload.models import UploadRequest
from flow_s3upload.models import UploadResult
from flow_s3upload.models import UploadSettings


__all__ = [
    "BucketCreationRequest",
    "MissingCredentials",
    "StorageConfig",
    "TransportError",
    "UploadRequest",
    "UploadResult",
    "UploadSettings",
]

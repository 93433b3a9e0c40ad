from botocore.exceptions import ClientError

import logging


logger = logging.getLogger(__name__)


class MissingCredentials(Exception):
    """Storage configuration is incomplete; no client can be built."""


class TransportError(Exception):
    """Wraps boto3/botocore errors to avoid leaking AWS infrastructure details."""


def error_code(e):
    """Return the AWS error code of a ClientError, or the exception name."""
    if isinstance(e, ClientError):
        return e.response.get("Error", {}).get("Code", "Unknown")
    return type(e).__name__


def wrap_error(e, operation, target):
    """Wrap a boto error in TransportError, logging the original at DEBUG."""
    logger.debug("S3 %s failed for %s: %s", operation, target, e)
    raise TransportError(
        f"S3 {operation} failed for {target}: {error_code(e)}"
    ) from e

from boto3.exceptions import S3UploadFailedError
from botocore.config import Config
from botocore.exceptions import BotoCoreError
from botocore.exceptions import ClientError
from botocore.exceptions import ProfileNotFound
from flow_s3upload.errors import error_code
from flow_s3upload.errors import MissingCredentials
from flow_s3upload.errors import wrap_error
from flow_s3upload.interfaces import IStorageClient
from flow_s3upload.models import DEFAULT_PART_SIZE
from flow_s3upload.stream import S3WriteStream
from zope.interface import implementer

import boto3
import botocore.session
import contextlib
import gzip
import logging
import os
import shutil
import tempfile


logger = logging.getLogger(__name__)

_MISSING_BUCKET_CODES = frozenset({"404", "NoSuchBucket", "NotFound"})


@implementer(IStorageClient)
class S3Client:
    """Thin boto3 wrapper binding one set of credentials to an endpoint."""

    def __init__(self, config):
        if not config.is_complete:
            raise MissingCredentials(
                "Missing storage credentials: both project-id and "
                "credentials-path must be set"
            )
        self.config = config

        session = botocore.session.Session(profile=config.project_id)
        session.set_config_variable(
            "credentials_file", os.path.expanduser(config.credentials_path)
        )

        boto_config = Config(
            connect_timeout=config.connect_timeout,
            read_timeout=config.read_timeout,
        )
        kwargs = {"config": boto_config}
        if config.endpoint_url:
            kwargs["endpoint_url"] = config.endpoint_url
        if config.region_name:
            kwargs["region_name"] = config.region_name

        try:
            self._client = boto3.session.Session(botocore_session=session).client(
                "s3", **kwargs
            )
        except ProfileNotFound as e:
            raise MissingCredentials(
                f"Profile {config.project_id!r} not found in "
                f"{config.credentials_path}"
            ) from e
        logger.debug("Opened S3 client for profile %s", config.project_id)

    @classmethod
    def from_config(cls, config):
        return cls(config)

    def __repr__(self):
        return f"<S3Client profile={self.config.project_id!r}>"

    def bucket_exists(self, bucket_name):
        try:
            self._client.head_bucket(Bucket=bucket_name)
        except ClientError as e:
            if error_code(e) in _MISSING_BUCKET_CODES:
                return False
            wrap_error(e, "head-bucket", bucket_name)
        except BotoCoreError as e:
            wrap_error(e, "head-bucket", bucket_name)
        return True

    def create_bucket(self, bucket_name):
        kwargs = {"Bucket": bucket_name}
        region = self._client.meta.region_name
        if region and region != "us-east-1":
            kwargs["CreateBucketConfiguration"] = {"LocationConstraint": region}
        try:
            self._client.create_bucket(**kwargs)
        except (ClientError, BotoCoreError) as e:
            wrap_error(e, "create-bucket", bucket_name)

    def upload_file(self, bucket_name, local_path, destination, gzip=False):
        target = f"//{bucket_name}/{destination}"
        if not gzip:
            self._upload(local_path, bucket_name, destination, None, target)
            return

        fd, tmp_path = tempfile.mkstemp(suffix=".gz.tmp")
        try:
            with os.fdopen(fd, "wb") as raw, open(local_path, "rb") as src:
                with _gzip_writer(raw) as dst:
                    shutil.copyfileobj(src, dst)
            self._upload(
                tmp_path,
                bucket_name,
                destination,
                {"ContentEncoding": "gzip"},
                target,
            )
        finally:
            with contextlib.suppress(OSError):
                os.unlink(tmp_path)

    def _upload(self, path, bucket_name, key, extra_args, target):
        try:
            self._client.upload_file(path, bucket_name, key, ExtraArgs=extra_args)
        except (ClientError, BotoCoreError, S3UploadFailedError) as e:
            wrap_error(e, "upload", target)

    def open_write_stream(
        self, bucket_name, key, gzip=False, part_size=DEFAULT_PART_SIZE
    ):
        return S3WriteStream(
            self._client, bucket_name, key, gzip=gzip, part_size=part_size
        )


def _gzip_writer(fileobj):
    return gzip.GzipFile(fileobj=fileobj, mode="wb")

from botocore.exceptions import BotoCoreError
from botocore.exceptions import ClientError
from flow_s3upload.errors import wrap_error
from flow_s3upload.interfaces import IWriteStream
from flow_s3upload.models import DEFAULT_PART_SIZE
from zope.interface import implementer

import logging
import threading
import zlib


logger = logging.getLogger(__name__)

# S3 rejects multipart parts smaller than this, except the last one.
MIN_PART_SIZE = 5 * 1024 * 1024


@implementer(IWriteStream)
class S3WriteStream:
    """Remote write sink for one S3 object.

    Written bytes are buffered until a full part is available, then sent
    as one multipart-upload part; ``write`` returns only after that part
    was accepted, so at most one part is held in memory. Objects that never
    fill a part are stored with a single PUT on ``close``.
    """

    def __init__(
        self, client, bucket_name, key, gzip=False, part_size=DEFAULT_PART_SIZE
    ):
        if part_size < MIN_PART_SIZE:
            raise ValueError(
                f"part-size must be at least {MIN_PART_SIZE} bytes, got {part_size}"
            )
        self._client = client
        self.bucket_name = bucket_name
        self.key = key
        self.part_size = part_size
        self.bytes_sent = 0
        self.closed = False
        self.finished = False
        self.aborted = False
        self._lock = threading.Lock()
        self._buffer = bytearray()
        self._parts = []
        self._upload_id = None
        self._extra_args = {"ContentEncoding": "gzip"} if gzip else {}
        # wbits=31 produces a gzip container rather than a raw zlib stream
        self._compressor = zlib.compressobj(wbits=31) if gzip else None

    def __repr__(self):
        return f"<S3WriteStream //{self.bucket_name}/{self.key}>"

    @property
    def _target(self):
        return f"//{self.bucket_name}/{self.key}"

    def write(self, data):
        with self._lock:
            if self.closed:
                raise ValueError(f"write to closed stream {self._target}")
            if self._compressor is not None:
                data = self._compressor.compress(data)
            self._buffer += data
            while len(self._buffer) >= self.part_size:
                chunk = bytes(self._buffer[: self.part_size])
                del self._buffer[: self.part_size]
                self._send_part(chunk)
            return len(data)

    def close(self):
        with self._lock:
            if self.finished:
                return
            if self.aborted:
                raise ValueError(f"close of aborted stream {self._target}")
            self._finish()
        logger.debug("Finished %s (%d bytes)", self._target, self.bytes_sent)

    def _finish(self):
        if self._compressor is not None:
            self._buffer += self._compressor.flush()
            self._compressor = None
        try:
            if self._upload_id is None:
                self._client.put_object(
                    Bucket=self.bucket_name,
                    Key=self.key,
                    Body=bytes(self._buffer),
                    **self._extra_args,
                )
                self.bytes_sent += len(self._buffer)
            else:
                if self._buffer:
                    self._send_part(bytes(self._buffer))
                    self._buffer.clear()
                self._client.complete_multipart_upload(
                    Bucket=self.bucket_name,
                    Key=self.key,
                    UploadId=self._upload_id,
                    MultipartUpload={"Parts": self._parts},
                )
        except (ClientError, BotoCoreError) as e:
            wrap_error(e, "complete", self._target)
        self._buffer.clear()
        self.finished = self.closed = True

    def abort(self):
        """Discard the object.

        Waits for a write or close running in another thread. If that close
        already stored the object, the object is deleted again.
        """
        with self._lock:
            if self.aborted:
                return
            self.aborted = self.closed = True
            self._buffer.clear()
            try:
                if self.finished:
                    self._client.delete_object(Bucket=self.bucket_name, Key=self.key)
                    logger.info("Removed %s after abort", self._target)
                elif self._upload_id is not None:
                    self._client.abort_multipart_upload(
                        Bucket=self.bucket_name, Key=self.key, UploadId=self._upload_id
                    )
            except (ClientError, BotoCoreError):
                logger.warning("Failed to abort %s", self._target, exc_info=True)

    def _send_part(self, chunk):
        try:
            if self._upload_id is None:
                response = self._client.create_multipart_upload(
                    Bucket=self.bucket_name, Key=self.key, **self._extra_args
                )
                self._upload_id = response["UploadId"]
            part_number = len(self._parts) + 1
            response = self._client.upload_part(
                Bucket=self.bucket_name,
                Key=self.key,
                UploadId=self._upload_id,
                PartNumber=part_number,
                Body=chunk,
            )
        except (ClientError, BotoCoreError) as e:
            wrap_error(e, "upload-part", self._target)
        self._parts.append({"ETag": response["ETag"], "PartNumber": part_number})
        self.bytes_sent += len(chunk)

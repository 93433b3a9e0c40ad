from flow_s3upload.errors import TransportError
from flow_s3upload.interfaces import ITransferStrategy
from flow_s3upload.models import DEFAULT_PART_SIZE
from flow_s3upload.models import DEFAULT_STREAM_TIMEOUT
from zope.interface import implementer

import asyncio
import logging


logger = logging.getLogger(__name__)

READ_CHUNK_SIZE = 64 * 1024


@implementer(ITransferStrategy)
class BufferedTransfer:
    """Hands the whole file to the client in one call."""

    def __init__(self, client):
        self._client = client

    async def transfer(self, bucket_name, local_path, destination_path, compress):
        logger.info(
            'Uploading contents from "%s" to "//%s/%s"',
            local_path,
            bucket_name,
            destination_path,
        )
        await asyncio.to_thread(
            self._client.upload_file,
            bucket_name,
            local_path,
            destination_path,
            gzip=compress,
        )
        return True


class Completion:
    """One-shot outcome of a streamed transfer.

    The first call to ``settle`` wins; later calls are ignored, so the
    callback runs exactly once.
    """

    def __init__(self, callback=None):
        self._future = asyncio.get_running_loop().create_future()
        self._callback = callback

    @property
    def settled(self):
        return self._future.done()

    def settle(self, succeeded):
        if self._future.done():
            return False
        self._future.set_result(succeeded)
        if self._callback is not None:
            self._callback(succeeded)
        return True

    def __await__(self):
        return self._future.__await__()


@implementer(ITransferStrategy)
class StreamedTransfer:
    """Pipes a local file into a remote write stream chunk by chunk.

    The next chunk is read only after the sink accepted the previous one.
    If the transfer has not finished after ``timeout`` seconds it is
    aborted and reported as failed. The abort waits for a sink call still
    running in a worker thread, so an object stored meanwhile is removed.
    """

    def __init__(
        self,
        client,
        part_size=DEFAULT_PART_SIZE,
        timeout=DEFAULT_STREAM_TIMEOUT,
        chunk_size=READ_CHUNK_SIZE,
    ):
        self._client = client
        self.part_size = part_size
        self.timeout = timeout
        self.chunk_size = chunk_size

    async def transfer(
        self, bucket_name, local_path, destination_path, compress, on_complete=None
    ):
        completion = Completion(on_complete)
        logger.info(
            'Uploading contents (streaming) from "%s" to "//%s/%s"',
            local_path,
            bucket_name,
            destination_path,
        )
        try:
            await asyncio.wait_for(
                self._pump(
                    bucket_name, local_path, destination_path, compress, completion
                ),
                self.timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Streaming upload to //%s/%s timed out after %ss",
                bucket_name,
                destination_path,
                self.timeout,
            )
            completion.settle(False)
        return await completion

    async def _pump(
        self, bucket_name, local_path, destination_path, compress, completion
    ):
        sink = None
        try:
            sink = self._client.open_write_stream(
                bucket_name, destination_path, gzip=compress, part_size=self.part_size
            )
            with open(local_path, "rb") as source:
                while True:
                    chunk = await asyncio.to_thread(source.read, self.chunk_size)
                    if not chunk:
                        break
                    await asyncio.to_thread(sink.write, chunk)
            await asyncio.to_thread(sink.close)
        except (TransportError, OSError, ValueError) as e:
            logger.warning(
                "Streaming upload to //%s/%s failed: %s",
                bucket_name,
                destination_path,
                e,
            )
            if sink is not None:
                await asyncio.to_thread(sink.abort)
            completion.settle(False)
        except asyncio.CancelledError:
            if sink is not None:
                await asyncio.to_thread(sink.abort)
            raise
        else:
            logger.info("Write stream complete")
            completion.settle(True)

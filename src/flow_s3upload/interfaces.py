from zope.interface import Attribute
from zope.interface import Interface


class IStorageClient(Interface):
    """Abstraction over S3-compatible object storage."""

    def bucket_exists(bucket_name):
        """Return True if the bucket exists, False if it does not."""

    def create_bucket(bucket_name):
        """Create a bucket."""

    def upload_file(bucket_name, local_path, destination, gzip=False):
        """Upload a whole local file as one object."""

    def open_write_stream(bucket_name, key, gzip=False, part_size=None):
        """Return an IWriteStream writing to the given object."""


class IWriteStream(Interface):
    """Sequential write sink for a single remote object."""

    closed = Attribute("True once the stream finished or was aborted.")

    def write(data):
        """Accept a chunk of bytes; blocks until the chunk is buffered or sent."""

    def close():
        """Flush remaining data and finish the object."""

    def abort():
        """Discard everything written so far.

        Removes the object if a concurrent close already stored it.
        """


class ITransferStrategy(Interface):
    """Moves a local file into a bucket."""

    def transfer(bucket_name, local_path, destination_path, compress):
        """Coroutine returning True on success."""

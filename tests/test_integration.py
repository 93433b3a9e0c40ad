"""End-to-end tests: ZConfig file -> nodes -> moto S3."""

from flow_s3upload.config import load_config_string
from flow_s3upload.config import open_nodes
from moto import mock_aws

import boto3
import gzip
import pytest


CONFIG = """\
<storage>
    project-id test-project
    credentials-path {credentials}
    region us-east-1
</storage>
<create-bucket make-bucket-one>
    bucket-name bucket-one
</create-bucket>
<upload upload-bucket-one>
    bucket-name bucket-one
    destination-path {destination}
</upload>
<upload stream-bucket-one>
    bucket-name bucket-one
    streaming true
    compress true
    part-size 5MB
</upload>
<upload upload-missing>
    bucket-name missing-bucket
</upload>
"""


@pytest.fixture
def credentials_file(tmp_path):
    path = tmp_path / "credentials"
    path.write_text(
        "[test-project]\n"
        "aws_access_key_id = testing\n"
        "aws_secret_access_key = testing\n"
    )
    return str(path)


@pytest.fixture
def s3():
    with mock_aws():
        yield boto3.client("s3", region_name="us-east-1")


@pytest.fixture
def emitted():
    return []


@pytest.fixture
def nodes(s3, credentials_file, emitted):
    config = load_config_string(
        CONFIG.format(credentials=credentials_file, destination="a.txt")
    )
    return open_nodes(config, emitted.append)


@pytest.fixture
def local_file(tmp_path):
    p = tmp_path / "a.txt"
    p.write_bytes(b"integration contents")
    return str(p)


class TestFlow:
    @pytest.mark.asyncio
    async def test_create_then_upload(self, nodes, s3, emitted, local_file):
        await nodes["make-bucket-one"].on_input({})
        await nodes["upload-bucket-one"].on_input(
            {"localfilename": local_file, "destinationfilename": "ignored.txt"}
        )

        assert emitted == [{"payload": True}, {"payload": True}]
        body = s3.get_object(Bucket="bucket-one", Key="a.txt")["Body"].read()
        assert body == b"integration contents"

    @pytest.mark.asyncio
    async def test_upload_before_create_is_refused(
        self, nodes, s3, emitted, local_file, caplog
    ):
        await nodes["upload-bucket-one"].on_input({"localfilename": local_file})

        assert emitted == []
        assert 'Bucket "bucket-one" does not exist' in caplog.text

    @pytest.mark.asyncio
    async def test_create_twice_reports_each_attempt(self, nodes, emitted):
        await nodes["make-bucket-one"].on_input({})
        await nodes["make-bucket-one"].on_input({})

        assert emitted[0] == {"payload": True}
        assert len(emitted) == 2

    @pytest.mark.asyncio
    async def test_streamed_large_file(self, nodes, s3, emitted, tmp_path):
        await nodes["make-bucket-one"].on_input({})
        data = b"streamed line of text\n" * 500_000
        src = tmp_path / "big.log"
        src.write_bytes(data)

        await nodes["stream-bucket-one"].on_input(
            {"localfilename": str(src), "destinationfilename": "logs/big.log.gz"}
        )

        assert emitted[-1] == {"payload": True}
        obj = s3.get_object(Bucket="bucket-one", Key="logs/big.log.gz")
        assert obj["ContentEncoding"] == "gzip"
        assert gzip.decompress(obj["Body"].read()) == data

    @pytest.mark.asyncio
    async def test_missing_bucket_makes_no_request_to_write(
        self, nodes, s3, emitted, local_file
    ):
        await nodes["upload-missing"].on_input({"localfilename": local_file})

        assert emitted == []
        assert s3.list_buckets()["Buckets"] == []

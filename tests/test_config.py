from flow_s3upload.config import load_config
from flow_s3upload.config import load_config_string
from flow_s3upload.config import open_nodes
from flow_s3upload.config import storage_config
from flow_s3upload.config import upload_settings
from flow_s3upload.models import StorageConfig
from flow_s3upload.models import UploadSettings
from flow_s3upload.nodes import CreateBucketNode
from flow_s3upload.nodes import UnconfiguredNode
from flow_s3upload.nodes import UploadNode
from moto import mock_aws

import pytest


FULL_CONFIG = """\
<storage>
    project-id test-project
    credentials-path {credentials}
    endpoint-url http://localhost:9000
    region eu-central-1
    connect-timeout 5
    read-timeout 30
</storage>
<upload nightly>
    bucket-name reports
    local-path /var/reports/today.csv
    destination-path reports/today.csv
    compress true
    streaming true
    part-size 16MB
    stream-timeout 10m
</upload>
<create-bucket make-reports>
    bucket-name reports
</create-bucket>
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


class TestLoadConfig:
    def test_all_options(self, credentials_file):
        config = load_config_string(FULL_CONFIG.format(credentials=credentials_file))

        assert storage_config(config.storage) == StorageConfig(
            project_id="test-project",
            credentials_path=credentials_file,
            endpoint_url="http://localhost:9000",
            region_name="eu-central-1",
            connect_timeout=5,
            read_timeout=30,
        )
        (section,) = config.uploads
        assert section.getSectionName() == "nightly"
        assert upload_settings(section) == UploadSettings(
            bucket_name="reports",
            local_path="/var/reports/today.csv",
            destination_path="reports/today.csv",
            compress=True,
            streaming=True,
            part_size=16 * 1024 * 1024,
            stream_timeout=600,
        )
        (create,) = config.create_buckets
        assert create.bucket_name == "reports"

    def test_default_values(self):
        config = load_config_string(
            """\
            <upload plain>
                bucket-name b1
            </upload>
            """
        )
        settings = upload_settings(config.uploads[0])
        assert settings.local_path == ""
        assert settings.destination_path == ""
        assert settings.compress is False
        assert settings.streaming is False
        assert settings.part_size == 8 * 1024 * 1024
        assert settings.stream_timeout == 3600
        assert config.create_buckets == []

    def test_missing_storage_section(self):
        config = load_config_string(
            "<create-bucket cb>\nbucket-name b\n</create-bucket>\n"
        )
        assert config.storage is None
        assert storage_config(None).is_complete is False

    def test_load_from_file(self, tmp_path, credentials_file):
        path = tmp_path / "flow.conf"
        path.write_text(FULL_CONFIG.format(credentials=credentials_file))
        config = load_config(str(path))
        assert config.uploads[0].bucket_name == "reports"


class TestOpenNodes:
    def test_nodes_share_one_client(self, credentials_file):
        config = load_config_string(FULL_CONFIG.format(credentials=credentials_file))
        with mock_aws():
            nodes = open_nodes(config, lambda message: None)

        assert set(nodes) == {"nightly", "make-reports"}
        assert isinstance(nodes["nightly"], UploadNode)
        assert isinstance(nodes["make-reports"], CreateBucketNode)
        assert (
            nodes["nightly"].orchestrator._guard._client
            is nodes["make-reports"]._provisioner._client
        )

    def test_missing_credentials(self, caplog):
        config = load_config_string(
            """\
            <storage>
                project-id test-project
            </storage>
            <upload up>
                bucket-name b
            </upload>
            """
        )
        nodes = open_nodes(config, lambda message: None)

        assert isinstance(nodes["up"], UnconfiguredNode)
        assert "Missing storage credentials" in caplog.text

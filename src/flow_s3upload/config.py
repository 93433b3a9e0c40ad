from flow_s3upload.models import StorageConfig
from flow_s3upload.models import UploadSettings
from flow_s3upload.nodes import open_client
from flow_s3upload.nodes import open_create_bucket_node
from flow_s3upload.nodes import open_upload_node

import io
import logging
import os
import ZConfig


logger = logging.getLogger(__name__)

SCHEMA_PATH = os.path.join(os.path.dirname(__file__), "schema.xml")

_schema = None


def get_schema():
    global _schema
    if _schema is None:
        with open(SCHEMA_PATH) as f:
            _schema = ZConfig.loadSchemaFile(f)
    return _schema


def load_config(path):
    with open(path) as f:
        config, _handler = ZConfig.loadConfigFile(get_schema(), f)
    return config


def load_config_string(text):
    config, _handler = ZConfig.loadConfigFile(get_schema(), io.StringIO(text))
    return config


def storage_config(section):
    if section is None:
        return StorageConfig(project_id="", credentials_path="")
    return StorageConfig(
        project_id=section.project_id or "",
        credentials_path=section.credentials_path or "",
        endpoint_url=section.endpoint_url,
        region_name=section.region,
        connect_timeout=section.connect_timeout,
        read_timeout=section.read_timeout,
    )


def upload_settings(section):
    return UploadSettings(
        bucket_name=section.bucket_name or "",
        local_path=section.local_path or "",
        destination_path=section.destination_path or "",
        compress=section.compress,
        streaming=section.streaming,
        part_size=section.part_size,
        stream_timeout=section.stream_timeout,
    )


def open_nodes(config, emit):
    """Build every configured node against one shared client.

    Returns a dict mapping section names to nodes. Without usable
    credentials every node is an UnconfiguredNode.
    """
    client = open_client(storage_config(config.storage))
    nodes = {}
    for section in config.uploads:
        name = section.getSectionName()
        nodes[name] = open_upload_node(name, client, upload_settings(section), emit)
    for section in config.create_buckets:
        name = section.getSectionName()
        nodes[name] = open_create_bucket_node(name, client, section.bucket_name, emit)
    logger.debug("Opened %d node(s): %s", len(nodes), ", ".join(sorted(nodes)))
    return nodes

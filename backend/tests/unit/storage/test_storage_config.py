"""Unit tests for storage backend selection"""

import boto3
import pytest
from moto import mock_aws

from paperflow.config import Settings
from paperflow.domain.papers.errors import StorageError
from paperflow.infrastructure.storage.local_storage_adapter import LocalFileStorageAdapter
from paperflow.infrastructure.storage.s3_storage_adapter import S3StorageAdapter
from paperflow.infrastructure.storage.storage_config import (
    StorageConfig,
    create_attachment_storage,
    load_storage_config,
    validate_storage_config,
)


def test_local_backend_selected(tmp_path):
    settings = Settings(STORAGE_BACKEND="LOCAL", UPLOAD_DIR=str(tmp_path / "up"), UPLOAD_URL_PREFIX="/files")
    storage = create_attachment_storage(load_storage_config(settings))

    assert isinstance(storage, LocalFileStorageAdapter)
    assert storage.url_prefix == "/files"
    assert (tmp_path / "up").is_dir()


def test_unknown_backend_rejected():
    with pytest.raises(ValueError, match="Unsupported STORAGE_BACKEND"):
        validate_storage_config(StorageConfig(backend="ftp", upload_dir="x", url_prefix="/x"))


def test_relative_url_prefix_rejected():
    with pytest.raises(ValueError, match="UPLOAD_URL_PREFIX"):
        validate_storage_config(StorageConfig(backend="local", upload_dir="x", url_prefix="x"))


@pytest.mark.parametrize("overrides,message", [
    ({"access_key": ""}, "access_key"),
    ({"secret_key": ""}, "secret_key"),
    ({"bucket_name": ""}, "bucket_name"),
    ({"endpoint_url": "minio:9000"}, "endpoint_url"),
])
def test_s3_config_validation(overrides, message):
    config = StorageConfig(
        backend="s3",
        upload_dir="",
        url_prefix="/uploads/papers",
        endpoint_url="http://localhost:9000",
        access_key="key",
        secret_key="secret",
        bucket_name="bucket",
    )
    for name, value in overrides.items():
        setattr(config, name, value)
    with pytest.raises(ValueError, match=message):
        validate_storage_config(config)


def _s3_config(bucket_name):
    return StorageConfig(
        backend="s3",
        upload_dir="",
        url_prefix="/uploads/papers",
        access_key="test-access-key",
        secret_key="test-secret-key",
        bucket_name=bucket_name,
    )


def test_s3_backend_selected_when_bucket_exists():
    with mock_aws():
        boto3.client("s3", region_name="us-east-1").create_bucket(Bucket="paperflow-attachments")
        storage = create_attachment_storage(_s3_config("paperflow-attachments"))
        assert isinstance(storage, S3StorageAdapter)


def test_s3_backend_with_missing_bucket_fails_fast():
    with mock_aws():
        with pytest.raises(StorageError, match="does not exist"):
            create_attachment_storage(_s3_config("no-such-bucket"))

"""Unit tests for the local filesystem attachment adapter"""

import hashlib
from pathlib import Path

import pytest

from paperflow.domain.papers.errors import StorageError
from paperflow.infrastructure.storage.local_storage_adapter import LocalFileStorageAdapter

CONTENT = b"%PDF-1.4\nlocal storage test\n%%EOF\n"


@pytest.fixture
def adapter(tmp_path):
    return LocalFileStorageAdapter(root_dir=str(tmp_path / "store"), url_prefix="uploads/papers/")


class TestStore:

    def test_store_writes_file_under_relative_key(self, adapter):
        stored = adapter.store(CONTENT, "exam.pdf")

        assert not stored.storage_key.startswith("/")
        assert stored.storage_key.endswith("-exam.pdf")
        assert stored.sha256 == hashlib.sha256(CONTENT).hexdigest()
        assert stored.size_bytes == len(CONTENT)
        assert (adapter.root_dir / stored.storage_key).read_bytes() == CONTENT

    def test_no_temp_files_left_behind(self, adapter):
        stored = adapter.store(CONTENT, "exam.pdf")
        siblings = list((adapter.root_dir / stored.storage_key).parent.iterdir())
        assert [p.name for p in siblings] == [Path(stored.storage_key).name]

    def test_store_twice_gives_two_blobs(self, adapter):
        first = adapter.store(CONTENT, "exam.pdf")
        second = adapter.store(CONTENT, "exam.pdf")
        assert first.storage_key != second.storage_key
        assert adapter.exists(first.storage_key)
        assert adapter.exists(second.storage_key)

    def test_empty_content_rejected(self, adapter):
        with pytest.raises(ValueError):
            adapter.store(b"", "exam.pdf")


class TestRetrieveDelete:

    def test_retrieve_round_trip(self, adapter):
        stored = adapter.store(CONTENT, "exam.pdf")
        assert adapter.retrieve(stored.storage_key) == CONTENT

    def test_retrieve_missing(self, adapter):
        with pytest.raises(FileNotFoundError):
            adapter.retrieve("2026/01/missing.pdf")

    def test_delete_is_idempotent(self, adapter):
        stored = adapter.store(CONTENT, "exam.pdf")
        assert adapter.delete(stored.storage_key) is True
        assert adapter.delete(stored.storage_key) is False
        assert adapter.exists(stored.storage_key) is False

    def test_traversal_rejected(self, adapter):
        with pytest.raises(StorageError):
            adapter.retrieve("../../etc/passwd")
        assert adapter.exists("../outside.pdf") is False

    def test_legacy_url_reference_resolves(self, adapter):
        stored = adapter.store(CONTENT, "exam.pdf")
        legacy = f"/uploads/papers/{stored.storage_key}"
        assert adapter.retrieve(legacy) == CONTENT


class TestPublicUrl:

    def test_url_uses_prefix_not_host_path(self, adapter):
        stored = adapter.store(CONTENT, "exam.pdf")
        url = adapter.public_url(stored.storage_key)

        assert url == f"/uploads/papers/{stored.storage_key}"
        assert str(adapter.root_dir) not in url

    def test_absolute_host_path_under_root_is_converted(self, adapter):
        stored = adapter.store(CONTENT, "exam.pdf")
        host_path = str(adapter.root_dir / stored.storage_key)
        assert adapter.public_url(host_path) == f"/uploads/papers/{stored.storage_key}"

    def test_foreign_absolute_path_rejected(self, adapter):
        with pytest.raises(StorageError):
            adapter.public_url("/etc/passwd")

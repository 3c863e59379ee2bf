"""Local filesystem adapter - Implementation of AttachmentStoragePort.

Blobs live under a configurable root directory; the public URL is the
configured URL prefix plus the relative key, served by a static mount.

Architecture: Hexagonal - Adapter implementation in infrastructure layer
"""

import hashlib
import logging
import os
import tempfile
from pathlib import Path

from ...domain.papers.errors import StorageError
from ...domain.papers.ports.attachment_storage_port import (
    AttachmentStoragePort,
    StoredAttachment,
)
from .storage_keys import generate_storage_key, normalize_storage_key, sanitize_filename

logger = logging.getLogger(__name__)


class LocalFileStorageAdapter(AttachmentStoragePort):
    """Filesystem-backed attachment storage.

    Writes go to a temporary file in the target directory, are fsynced and
    then atomically renamed into place, so a crash never leaves a half
    written blob under a real key.

    Example:
        storage = LocalFileStorageAdapter(root_dir="uploads/papers",
                                          url_prefix="/uploads/papers")
        stored = storage.store(content=b"%PDF-1.4 ...", filename="exam.pdf")
        storage.public_url(stored.storage_key)
        # '/uploads/papers/2026/10/<uuid>-exam.pdf'
    """

    def __init__(self, root_dir: str, url_prefix: str = "/uploads/papers"):
        self.root_dir = Path(root_dir).resolve()
        self.url_prefix = "/" + url_prefix.strip("/")
        self.root_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"Initialized local attachment storage: url_prefix={self.url_prefix}")

    def _key_for(self, storage_key: str) -> str:
        try:
            return normalize_storage_key(storage_key, known_roots=(str(self.root_dir), self.url_prefix))
        except ValueError as e:
            raise StorageError(f"Invalid storage key: {e}")

    def _path_for(self, storage_key: str) -> Path:
        key = self._key_for(storage_key)
        path = (self.root_dir / key).resolve()
        if self.root_dir not in path.parents:
            raise StorageError(f"Storage key escapes storage root: {storage_key}")
        return path

    def store(self, content: bytes, filename: str, mime_type: str = "application/pdf") -> StoredAttachment:
        if not content:
            raise ValueError("Cannot store empty file")

        safe_name = sanitize_filename(filename)
        storage_key = generate_storage_key(safe_name)
        target = self._path_for(storage_key)
        sha256_hex = hashlib.sha256(content).hexdigest()

        tmp_name = None
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=".upload-")
            with os.fdopen(fd, "wb") as handle:
                handle.write(content)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, target)
            tmp_name = None
        except OSError as e:
            logger.error(f"Local store failed: storage_key={storage_key}, error={e}")
            raise StorageError(f"Failed to store attachment: {e}")
        finally:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)

        logger.info(
            f"Stored attachment: storage_key={storage_key}, "
            f"sha256={sha256_hex}, size={len(content)}"
        )
        return StoredAttachment(
            storage_key=storage_key,
            sha256=sha256_hex,
            size_bytes=len(content),
            mime_type=mime_type,
            filename=safe_name,
        )

    def retrieve(self, storage_key: str) -> bytes:
        path = self._path_for(storage_key)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            logger.warning(f"Attachment not found: storage_key={storage_key}")
            raise FileNotFoundError(f"File not found: {storage_key}")
        except OSError as e:
            logger.error(f"Local retrieval failed: storage_key={storage_key}, error={e}")
            raise StorageError(f"Failed to retrieve attachment: {e}")

    def delete(self, storage_key: str) -> bool:
        path = self._path_for(storage_key)
        try:
            path.unlink()
        except FileNotFoundError:
            logger.info(f"Attachment not found for deletion: storage_key={storage_key}")
            return False
        except OSError as e:
            logger.error(f"Local deletion failed: storage_key={storage_key}, error={e}")
            raise StorageError(f"Failed to delete attachment: {e}")

        logger.info(f"Deleted attachment: storage_key={storage_key}")
        return True

    def exists(self, storage_key: str) -> bool:
        try:
            return self._path_for(storage_key).is_file()
        except StorageError:
            return False

    def public_url(self, storage_key: str) -> str:
        return f"{self.url_prefix}/{self._key_for(storage_key)}"

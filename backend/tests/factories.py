"""Plain helpers for building test inputs.

Importable from any test module (``backend/tests`` is on the pytest
pythonpath); fixtures that need a database live in conftest.py.
"""

from typing import Optional

from paperflow.domain.papers.errors import StorageError
from paperflow.papers.attachments import AttachmentUpload
from paperflow.papers.schemas import CreatePaperCommand

COURSE_CODE = "CS101"
OTHER_COURSE_CODE = "MA201"
DEPARTMENT = "Computer Science"


def make_pdf(label: str = "A") -> bytes:
    """Small but well-formed-looking PDF payload, distinct per label."""
    return f"%PDF-1.4\n% paper {label}\n1 0 obj << /Type /Catalog >> endobj\n%%EOF\n".encode()


def make_upload(label: str = "A", filename: Optional[str] = None) -> AttachmentUpload:
    return AttachmentUpload(
        filename=filename or f"exam_{label}.pdf",
        content=make_pdf(label),
        content_type="application/pdf",
    )


def paper_command(course_code: str = COURSE_CODE, **overrides) -> CreatePaperCommand:
    data = {
        "course_code": course_code,
        "course_name": "Introduction to Programming",
        "year": "2026",
        "semester": "1",
        "paper_type": "final",
    }
    data.update(overrides)
    return CreatePaperCommand(**data)


class RecordingSubscriber:
    """Collects delivered events synchronously."""

    def __init__(self):
        self.events = []

    def deliver(self, event):
        self.events.append(event)

    @property
    def names(self):
        return [e.event for e in self.events]


class FailingStorage:
    """Wraps a real storage adapter; individual operations can be made to fail."""

    def __init__(self, inner, fail_store=False, fail_delete=False, fail_url=False):
        self.inner = inner
        self.fail_store = fail_store
        self.fail_delete = fail_delete
        self.fail_url = fail_url
        self.deleted = []

    def store(self, content, filename, mime_type="application/pdf"):
        if self.fail_store:
            raise StorageError("disk full")
        return self.inner.store(content, filename, mime_type)

    def delete(self, storage_key):
        if self.fail_delete:
            raise StorageError("permission denied")
        self.deleted.append(storage_key)
        return self.inner.delete(storage_key)

    def public_url(self, storage_key):
        if self.fail_url:
            raise StorageError("bad key")
        return self.inner.public_url(storage_key)

    def exists(self, storage_key):
        return self.inner.exists(storage_key)

    def retrieve(self, storage_key):
        return self.inner.retrieve(storage_key)

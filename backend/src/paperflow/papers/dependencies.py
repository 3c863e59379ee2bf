"""FastAPI dependency wiring for the papers API.

Tests swap the storage backend or the broadcaster through
``app.dependency_overrides`` on get_storage / get_broadcaster.
"""

from functools import lru_cache

from fastapi import Depends
from sqlalchemy.orm import Session

from ..config import get_settings
from ..database import get_db
from ..domain.papers.ports.attachment_storage_port import AttachmentStoragePort
from ..infrastructure.storage.storage_config import create_attachment_storage, load_storage_config
from ..realtime.hub import Broadcaster, get_broadcaster
from ..realtime.notifier import ChangeNotifier
from .attachments import AttachmentManager
from .queries import PaperQueryService
from .service import PaperWorkflowService


@lru_cache()
def _configured_storage() -> AttachmentStoragePort:
    return create_attachment_storage(load_storage_config(get_settings()))


def get_storage() -> AttachmentStoragePort:
    """Attachment storage selected by STORAGE_BACKEND (one instance per process)."""
    return _configured_storage()


def get_attachment_manager(
    storage: AttachmentStoragePort = Depends(get_storage),
) -> AttachmentManager:
    return AttachmentManager(storage, max_size_bytes=get_settings().MAX_UPLOAD_SIZE_BYTES)


def get_notifier(
    attachments: AttachmentManager = Depends(get_attachment_manager),
    broadcaster: Broadcaster = Depends(get_broadcaster),
) -> ChangeNotifier:
    return ChangeNotifier(broadcaster, url_for=attachments.public_url)


def get_paper_service(
    db: Session = Depends(get_db),
    attachments: AttachmentManager = Depends(get_attachment_manager),
    notifier: ChangeNotifier = Depends(get_notifier),
) -> PaperWorkflowService:
    return PaperWorkflowService(db, attachments, notifier)


def get_query_service(db: Session = Depends(get_db)) -> PaperQueryService:
    return PaperQueryService(db)

"""Pytest fixtures for the PaperFlow test suite.

Provides reusable test fixtures for:
- In-memory SQLite database shared by the test and the app under test
- Local attachment storage in a temporary directory
- Users and principals for every role
- A FastAPI TestClient and per-role Authorization headers

Usage:
    def test_submit(client, auth_headers, draft_paper):
        response = client.patch(f"/api/v1/papers/{draft_paper.id}/submit",
                                headers=auth_headers["lecturer"])
        assert response.status_code == 200
"""

import os
import tempfile

# Set environment variables BEFORE any imports to ensure they take effect
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-jwt-secret-key-256-bits-minimum-length-required")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="paperflow-uploads-"))
os.environ.setdefault("LOG_JSON", "false")
os.environ.setdefault("STORAGE_BACKEND", "local")

from typing import Dict, Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from paperflow.auth.dependencies import principal_from_user
from paperflow.auth.jwt import create_access_token
from paperflow.config import Settings
from paperflow.database import build_engine, get_db
from paperflow.domain.papers.authorization import Principal
from paperflow.infrastructure.storage.local_storage_adapter import LocalFileStorageAdapter
from paperflow.models import Base, User
from paperflow.papers.attachments import AttachmentManager
from paperflow.papers.dependencies import get_storage
from paperflow.papers.service import PaperWorkflowService
from paperflow.realtime.hub import Broadcaster, get_broadcaster
from paperflow.realtime.notifier import ChangeNotifier

from factories import (
    COURSE_CODE,
    DEPARTMENT,
    OTHER_COURSE_CODE,
    RecordingSubscriber,
    make_upload,
    paper_command,
)


# ============================================================================
# Database
# ============================================================================

@pytest.fixture(scope="function")
def engine():
    """Fresh in-memory database per test; one connection shared by all sessions."""
    engine = build_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture(scope="function")
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session(session_factory) -> Generator[Session, None, None]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


# ============================================================================
# Users
# ============================================================================

def _create_user(session: Session, email: str, name: str, role: str, courses=None) -> User:
    user = User(
        email=email,
        name=name,
        role=role,
        department=DEPARTMENT,
        assigned_course_codes=courses or [],
        status="ACTIVE",
    )
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture
def lecturer(db_session) -> User:
    return _create_user(db_session, "lecturer@test.edu", "Lena Lecturer", "lecturer")


@pytest.fixture
def other_lecturer(db_session) -> User:
    return _create_user(db_session, "other.lecturer@test.edu", "Otto Lecturer", "lecturer")


@pytest.fixture
def examiner(db_session) -> User:
    return _create_user(db_session, "examiner@test.edu", "Eli Examiner", "examiner", [COURSE_CODE])


@pytest.fixture
def unassigned_examiner(db_session) -> User:
    return _create_user(
        db_session, "other.examiner@test.edu", "Uma Examiner", "examiner", [OTHER_COURSE_CODE]
    )


@pytest.fixture
def hod(db_session) -> User:
    return _create_user(db_session, "hod@test.edu", "Harper Head", "hod")


@pytest.fixture
def principals(lecturer, other_lecturer, examiner, unassigned_examiner, hod) -> Dict[str, Principal]:
    return {
        "lecturer": principal_from_user(lecturer),
        "other_lecturer": principal_from_user(other_lecturer),
        "examiner": principal_from_user(examiner),
        "unassigned_examiner": principal_from_user(unassigned_examiner),
        "hod": principal_from_user(hod),
    }


# ============================================================================
# Storage, notifier, service
# ============================================================================

@pytest.fixture
def upload_dir(tmp_path):
    return tmp_path / "uploads"


@pytest.fixture
def storage(upload_dir) -> LocalFileStorageAdapter:
    return LocalFileStorageAdapter(root_dir=str(upload_dir), url_prefix="/uploads/papers")


@pytest.fixture
def attachments(storage) -> AttachmentManager:
    return AttachmentManager(storage, max_size_bytes=1024 * 1024)


@pytest.fixture
def broadcaster() -> Broadcaster:
    return Broadcaster()


@pytest.fixture
def recorder(broadcaster) -> RecordingSubscriber:
    subscriber = RecordingSubscriber()
    broadcaster.subscribe(subscriber)
    return subscriber


@pytest.fixture
def notifier(broadcaster, attachments) -> ChangeNotifier:
    return ChangeNotifier(broadcaster, url_for=attachments.public_url)


@pytest.fixture
def service(db_session, attachments, notifier) -> PaperWorkflowService:
    return PaperWorkflowService(db_session, attachments, notifier)


@pytest.fixture
def draft_paper(service, principals):
    return service.create_paper(principals["lecturer"], paper_command(), make_upload("A"))


# ============================================================================
# HTTP
# ============================================================================

@pytest.fixture
def app(session_factory, storage, broadcaster, upload_dir):
    from paperflow.main import create_app

    settings = Settings(UPLOAD_DIR=str(upload_dir), LOG_JSON=False, STORAGE_BACKEND="local")
    application = create_app(settings, create_tables=False)

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    application.dependency_overrides[get_db] = override_get_db
    application.dependency_overrides[get_storage] = lambda: storage
    application.dependency_overrides[get_broadcaster] = lambda: broadcaster
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture
def tokens(lecturer, other_lecturer, examiner, unassigned_examiner, hod) -> Dict[str, str]:
    users = {
        "lecturer": lecturer,
        "other_lecturer": other_lecturer,
        "examiner": examiner,
        "unassigned_examiner": unassigned_examiner,
        "hod": hod,
    }
    return {
        key: create_access_token(user_id=user.id, role=user.role, email=user.email)
        for key, user in users.items()
    }


@pytest.fixture
def auth_headers(tokens) -> Dict[str, Dict[str, str]]:
    return {key: {"Authorization": f"Bearer {token}"} for key, token in tokens.items()}

"""
KNote Backend — Test Configuration (conftest.py)
=================================================

What:  Shared pytest fixtures for the entire test suite.
Why:   Provides reusable test infrastructure (fake stores, API client, sample images).
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── mock_db_session: Mock AsyncSession (no real DB needed)
    ├── fake_object_store: In-memory ObjectStore
    ├── note_store: In-memory NoteStore
    ├── connected_handle / unavailable_handle: StorageHandle in a fixed state
    ├── attachment_service / workflow: services wired to the fakes
    ├── sample_png_bytes: 1KB payload with a PNG signature
    └── test_client: HTTPX AsyncClient with dependencies overridden
"""

import os
import tempfile
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient


# ══════════════════════════════════════════════════════════════════════════
# Environment Setup
# ══════════════════════════════════════════════════════════════════════════

# Override settings BEFORE any knote imports: no Postgres, no MinIO
_tmp_dir = tempfile.mkdtemp(prefix="knote_test_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_tmp_dir}/test.db"
os.environ["MINIO_HOST"] = "minio.test"
os.environ["MINIO_BUCKET"] = "test-bucket"
os.environ["MINIO_RECONNECT_ENABLED"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"

from knote.services.attachment_service import AttachmentService  # noqa: E402
from knote.services.markup import MarkupRenderer  # noqa: E402
from knote.services.note_service import NotePublicationWorkflow  # noqa: E402
from knote.services.storage_bootstrap import StorageHandle  # noqa: E402

from tests.fakes import FakeObjectStore, InMemoryNoteStore  # noqa: E402


# ══════════════════════════════════════════════════════════════════════════
# Function-Scoped Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    Usage:
        mock_db_session.flush.side_effect = SQLAlchemyError("boom")
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def fake_object_store():
    return FakeObjectStore()


@pytest.fixture
def note_store():
    return InMemoryNoteStore()


@pytest.fixture
def connected_handle(fake_object_store):
    handle = StorageHandle(bucket="test-bucket")
    handle.mark_connected(fake_object_store)
    return handle


@pytest.fixture
def unavailable_handle():
    handle = StorageHandle(bucket="test-bucket")
    handle.mark_unavailable("connection refused")
    return handle


@pytest.fixture
def attachment_service(connected_handle):
    return AttachmentService(connected_handle)


@pytest.fixture
def workflow(attachment_service):
    return NotePublicationWorkflow(
        renderer=MarkupRenderer(),
        attachments=attachment_service,
    )


@pytest.fixture
def sample_png_bytes():
    """
    1KB of bytes starting with the PNG signature.

    Not a decodable image; nothing in the pipeline inspects image contents.
    """
    signature = b"\x89PNG\r\n\x1a\n"
    return signature + b"\x00" * (1024 - len(signature))


@pytest_asyncio.fixture
async def test_client(note_store, attachment_service, workflow):
    """
    Provides an async HTTP test client for endpoint testing.

    The lifespan (object store handshake) does not run under ASGITransport;
    stores are replaced through FastAPI dependency overrides instead.

    Usage:
        async def test_index(test_client):
            response = await test_client.get("/")
            assert response.status_code == 200
    """
    from knote.main import app
    from knote.services.attachment_service import get_attachment_service
    from knote.services.note_service import get_publication_workflow
    from knote.services.note_store import get_note_store

    app.dependency_overrides[get_note_store] = lambda: note_store
    app.dependency_overrides[get_attachment_service] = lambda: attachment_service
    app.dependency_overrides[get_publication_workflow] = lambda: workflow

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()

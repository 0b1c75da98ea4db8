"""
Pytest configuration and fixtures for testing.

Provides:
- Database fixtures (in-memory SQLite through aiosqlite, fresh per test)
- Service fixtures wired with test settings
- Mocked MinIO client and a recording webhook transport
- An httpx client bound to the FastAPI app with dependency overrides

Usage:
    pytest src/backend/tests -v
"""

import os

# Settings are read at import time; point them at test resources first.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("MINIO_ENABLED", "false")
os.environ.setdefault("SCHEDULER_ENABLED", "false")
os.environ.setdefault("LOG_ENABLE_FILE_LOGGING", "false")
os.environ.setdefault("NOTIFICATION_WEBHOOK_URL", "")

import json
from typing import AsyncGenerator, List
from unittest.mock import MagicMock

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

import db.models  # noqa: F401  (registers table metadata)
from core.config import (AccommodationSettings, MinIOSettings,
                         NotificationSettings)
from core.database import build_session_factory, get_session
from core.dependencies import (get_attachment_storage,
                               get_notification_dispatcher)
from services.accommodation_service import AccommodationService
from services.minio_service import AttachmentStorage
from services.notification_dispatcher import NotificationDispatcher
from tests.factories import TEST_PRESIGNED_URL, TEST_WEBHOOK_URL


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest_asyncio.fixture
async def test_engine():
    """In-memory SQLite engine with the schema created, one per test."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    """Session factory bound to the test engine."""
    return build_session_factory(test_engine)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh database session for each test."""
    session = session_factory()
    try:
        yield session
    finally:
        await session.close()


# ============================================================================
# Settings / Service Fixtures
# ============================================================================

@pytest.fixture
def policy() -> AccommodationSettings:
    """Accommodation policy with default values."""
    return AccommodationSettings()


@pytest.fixture
def accommodation_service(policy) -> AccommodationService:
    return AccommodationService(policy)


# ============================================================================
# Notification Fixtures
# ============================================================================

class WebhookRecorder:
    """httpx transport handler that records posted JSON bodies."""

    def __init__(self, status_code: int = 200):
        self.status_code = status_code
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json={"ok": self.status_code < 400})

    @property
    def payloads(self) -> List[dict]:
        return [json.loads(request.content) for request in self.requests]


@pytest.fixture
def webhook_recorder() -> WebhookRecorder:
    return WebhookRecorder()


@pytest.fixture
def dispatcher(webhook_recorder) -> NotificationDispatcher:
    """Dispatcher posting to a mock transport."""
    return NotificationDispatcher(
        NotificationSettings(webhook_url=TEST_WEBHOOK_URL, payload_style="text"),
        transport=httpx.MockTransport(webhook_recorder),
    )


# ============================================================================
# Storage Fixtures
# ============================================================================

@pytest.fixture
def mock_minio_client():
    """Mock MinIO client that accepts every call."""
    client = MagicMock()
    client.bucket_exists.return_value = True
    client.presigned_get_object.return_value = TEST_PRESIGNED_URL
    return client


@pytest.fixture
def storage(mock_minio_client) -> AttachmentStorage:
    """Attachment storage backed by the mock client."""
    return AttachmentStorage(
        MinIOSettings(
            enabled=True,
            access_key="test",
            secret_key="test",
            max_retries=3,
            retry_backoff_factor=2,
        ),
        client=mock_minio_client,
    )


@pytest.fixture
def no_sleep(monkeypatch):
    """Skip retry backoff waits, recording the requested delays."""
    delays = []

    async def fake_sleep(seconds):
        delays.append(seconds)

    monkeypatch.setattr("services.minio_service.asyncio.sleep", fake_sleep)
    return delays


# ============================================================================
# HTTP Client Fixtures
# ============================================================================

@pytest.fixture
def app(session_factory, dispatcher, storage):
    """FastAPI app with the database, dispatcher and storage overridden."""
    from app.factory import create_app

    application = create_app()

    async def override_get_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                if session.in_transaction():
                    await session.commit()
            except Exception:
                await session.rollback()
                raise

    application.dependency_overrides[get_session] = override_get_session
    application.dependency_overrides[get_notification_dispatcher] = lambda: dispatcher
    application.dependency_overrides[get_attachment_storage] = lambda: storage
    return application


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[httpx.AsyncClient, None]:
    """HTTP client talking to the app in-process (lifespan not run)."""
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client

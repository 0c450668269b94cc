"""Shared test fixtures."""

import pytest
from httpx import ASGITransport, AsyncClient

from src.main import app
from tests.fakes import FakeSessionFactory, RecordingNotifier


@pytest.fixture
async def client() -> AsyncClient:
    """Async HTTP client for testing FastAPI endpoints (lifespan not run)."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def session_factory() -> FakeSessionFactory:
    return FakeSessionFactory()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()

"""Pytest configuration and fixtures."""

import os

# Keep the application engine off the working directory during tests
os.environ.setdefault("DATABASE_URL", "sqlite://")

from typing import Any, Dict, Generator, List, Optional, Tuple

import httpx
import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from taquero.client.storage import MemoryBucketStorage
from taquero.client.transport import SheetTransport, SheetTransportError
from taquero.db.base import Base
from taquero.db.session import get_db
from taquero.main import app
# Import all models to ensure they're registered with Base.metadata
from taquero.models import *  # noqa: F401,F403

# Use in-memory SQLite for tests
TEST_DATABASE_URL = "sqlite:///:memory:"


@pytest.fixture(scope="function")
def db_engine():
    """Create a test database engine."""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session(db_engine) -> Generator[Session, None, None]:
    """Create a test database session."""
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def _override_db(db_session: Session):
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(scope="function")
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """Create a test client with database override."""
    _override_db(db_session)
    # Disable the rate limiter during tests to avoid flaky failures
    from taquero.core.rate_limit import limiter
    limiter.enabled = False
    # Don't raise server exceptions so we can test error status codes
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
    limiter.enabled = True
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def asgi_client(db_session: Session):
    """An httpx AsyncClient wired straight to the app, for driving the client stores end to end."""
    _override_db(db_session)
    from taquero.core.rate_limit import limiter
    limiter.enabled = False
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client
    limiter.enabled = True
    app.dependency_overrides.clear()


class FakeSheetTransport(SheetTransport):
    """Scripted transport. Queue responses or errors; every call is recorded."""

    def __init__(self):
        self.calls: List[Tuple[str, str, Optional[Dict[str, Any]]]] = []
        self.get_responses: List[Any] = []
        self.post_responses: List[Any] = []

    @staticmethod
    def _next(queue: List[Any], default: Dict[str, Any]) -> Dict[str, Any]:
        response = queue.pop(0) if queue else default
        if isinstance(response, Exception):
            raise response
        return response

    async def get(self, url: str) -> Dict[str, Any]:
        self.calls.append(("GET", url, None))
        return self._next(self.get_responses, {"success": True, "data": [], "count": 0})

    async def post(self, url: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        self.calls.append(("POST", url, payload))
        return self._next(self.post_responses, {"success": True, "message": "Record saved successfully"})

    def fail_next_get(self, message: str = "Connection refused") -> None:
        self.get_responses.append(SheetTransportError(message))


@pytest.fixture
def fake_transport() -> FakeSheetTransport:
    return FakeSheetTransport()


@pytest.fixture
def bucket_storage() -> MemoryBucketStorage:
    return MemoryBucketStorage()

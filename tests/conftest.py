"""
Pytest Configuration and Fixtures.
Shared test fixtures for all test modules.

Settings are read from the environment at import time, so the variables
below are set before anything from `claimportal` is imported.
"""

import os

os.environ["ENVIRONMENT"] = "testing"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ.setdefault("SECRET_KEY", "test-secret-key-0123456789abcdefghijklmnop")
os.environ.setdefault("JWT_SECRET_KEY", "test-jwt-secret-0123456789abcdefghijklmnop")
os.environ.setdefault("POSTGRES_PASSWORD", "test-password")
os.environ.setdefault("MINIO_SECRET_KEY", "test-minio-secret")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from collections.abc import Iterator  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.ext.asyncio import create_async_engine  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402
from sqlalchemy.pool import NullPool  # noqa: E402

from claimportal.api.main import app  # noqa: E402
from claimportal.core.enums import UserRole  # noqa: E402
from claimportal.db.connection import build_session_maker, get_session  # noqa: E402
from claimportal.models import Base, User  # noqa: E402
from claimportal.services.storage import get_storage  # noqa: E402
from tests.fixtures.factories import FakeStorage, add_user  # noqa: E402


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "portal.db"


@pytest.fixture
def sync_engine(db_path):
    """Schema is created synchronously; the app reads the same file through aiosqlite."""
    engine = create_engine(f"sqlite:///{db_path}")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(sync_engine) -> Iterator[Session]:
    """Session used by tests to seed rows."""
    with Session(sync_engine, expire_on_commit=False) as session:
        yield session


@pytest.fixture
def storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture
def client(db_path, sync_engine, storage) -> Iterator[TestClient]:
    """TestClient wired to the per-test database and the storage fake."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}", poolclass=NullPool)
    session_maker = build_session_maker(engine)

    async def override_get_session():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_storage] = lambda: storage

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# =============================================================================
# Users, one per role plus spares for ownership checks
# =============================================================================


@pytest.fixture
def patient(db) -> User:
    return add_user(db, UserRole.PATIENT, "Pat Patient")


@pytest.fixture
def other_patient(db) -> User:
    return add_user(db, UserRole.PATIENT, "Olive Other")


@pytest.fixture
def doctor(db) -> User:
    return add_user(db, UserRole.DOCTOR, "Dana Doctor")


@pytest.fixture
def other_doctor(db) -> User:
    return add_user(db, UserRole.DOCTOR, "Drew Doctor")


@pytest.fixture
def insurer(db) -> User:
    return add_user(db, UserRole.INSURANCE, "Ira Insurer")


@pytest.fixture
def banker(db) -> User:
    return add_user(db, UserRole.BANK, "Bea Banker")


# Configure pytest markers
def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "api: mark test as an API test")

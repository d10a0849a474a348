"""
Pytest configuration and fixtures for Astra Health Backend tests
"""

import os

# Must be set before config.config is imported anywhere
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import uuid
from typing import AsyncGenerator
from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from astra.database.models import Base
from astra.utils.hashing import create_user_hash


# Test database URL (in-memory SQLite for testing)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture(scope="function")
async def test_db_engine():
    """
    Create test database engine
    """
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture(scope="function")
def session_maker(test_db_engine):
    return async_sessionmaker(test_db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture(scope="function")
async def db_session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    """
    Create test database session
    """
    async with session_maker() as session:
        yield session
        await session.rollback()


@pytest.fixture
def make_user(db_session):
    """Factory: insert a user and return it"""
    from astra.database.crud import add_user

    async def _make_user(**fields):
        user_id = fields.pop("user_id", None) or str(uuid.uuid4())
        fields.setdefault("user_hash", create_user_hash(user_id))
        user = await add_user(db_session, user_id=user_id, **fields)
        await db_session.commit()
        return user

    return _make_user


@pytest.fixture
def proof_verifier():
    """Verifier double; tests set verify.return_value / side_effect"""
    verifier = AsyncMock()
    return verifier


@pytest.fixture
async def api_client(session_maker, proof_verifier) -> AsyncGenerator[AsyncClient, None]:
    """
    HTTP client against the FastAPI app with the test database
    """
    from api_server import app
    from astra.api.deps import get_proof_verifier
    from astra.database.engine import get_session

    async def override_get_session():
        async with session_maker() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_proof_verifier] = lambda: proof_verifier

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()

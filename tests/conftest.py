"""
Pytest configuration and fixtures for tests.
Provides reusable test fixtures for database, users, and data setup.
"""
import os

# Must be set before the app (and its settings) are imported
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET", "test-secret-key-that-is-long-enough-0123456789")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from typing import AsyncGenerator, Callable
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool
from httpx import AsyncClient, ASGITransport

from app.main import fastapi_app
from app.core.database import get_db
from app.core.security import create_access_token
from app.models.base import Base


# In-memory SQLite shared by every connection of the test engine
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture(scope="function")
async def test_engine():
    """Create test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture(scope="function")
def session_factory(test_engine):
    """Session factory bound to the test engine."""
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


@pytest.fixture(scope="function")
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """
    HTTP client against the FastAPI app.

    Only the database is overridden; authentication runs for real, so
    requests carry tokens from ``auth_headers``.
    """
    async def override_get_db():
        yield db_session

    fastapi_app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=fastapi_app), base_url="http://test") as ac:
        yield ac

    fastapi_app.dependency_overrides.clear()


async def _create_user(db_session: AsyncSession, username: str):
    from app.models.user import User

    user = User(
        email=f"{username}@example.com",
        username=username,
        password_hash="not-a-real-hash",
        profile_pic=f"https://example.com/{username}.png"
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture
async def user_a(db_session: AsyncSession):
    """First chat participant."""
    return await _create_user(db_session, "alice")


@pytest.fixture
async def user_b(db_session: AsyncSession):
    """Second chat participant."""
    return await _create_user(db_session, "bob")


@pytest.fixture
async def outsider(db_session: AsyncSession):
    """User who is not a participant of ``test_chat``."""
    return await _create_user(db_session, "mallory")


@pytest.fixture
async def test_chat(db_session: AsyncSession, user_a, user_b):
    """Direct chat between user_a and user_b."""
    from app.repositories.chat_repo import ChatRepository

    chat = await ChatRepository(db_session).create_with_participants(
        creator_id=user_a.id,
        participant_ids=[user_b.id],
    )
    await db_session.commit()
    return chat


@pytest.fixture
def auth_headers() -> Callable[[object], dict]:
    """Build an Authorization header for a user."""
    def _headers(user) -> dict:
        token = create_access_token(data={"sub": user.id})
        return {"Authorization": f"Bearer {token}"}
    return _headers


@pytest.fixture(autouse=True)
def mock_websocket_manager(mocker):
    """Mock WebSocket connection manager for all service tests."""
    mock_manager = mocker.AsyncMock()
    mock_manager.broadcast_new_message = mocker.AsyncMock()
    mock_manager.broadcast_message_edited = mocker.AsyncMock()
    mock_manager.broadcast_message_deleted = mocker.AsyncMock()
    mock_manager.broadcast_message_delivered = mocker.AsyncMock()
    mock_manager.broadcast_message_seen = mocker.AsyncMock()

    mocker.patch("app.services.message_service.connection_manager", mock_manager)
    mocker.patch("app.services.read_tracking_service.connection_manager", mock_manager)
    mocker.patch("app.services.delivery_service.connection_manager", mock_manager)

    return mock_manager

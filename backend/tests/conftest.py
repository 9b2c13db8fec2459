"""
Pytest configuration and shared fixtures for backend tests.
"""

import os
import sys
from pathlib import Path

# Add backend directory to path for imports
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

# Tests never touch a server database
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "testing")

import pytest
from typing import AsyncGenerator
from unittest.mock import AsyncMock, Mock
from uuid import uuid4

from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Import after path is set
from core.domain.content import Content, ContentStatus, Sector
from core.domain.user import Actor, UserRole
from core.interfaces.repositories import ContentRepository
from infrastructure.database.connection import get_db
from infrastructure.database.content_repository import SqlContentRepository
from infrastructure.database.models import Base, User
from services.event_bus import EventBus


# Database URL for testing (in-memory SQLite)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def db_engine():
    """Create a test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Drop all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async_session = async_sessionmaker(
        db_engine, class_=AsyncSession, expire_on_commit=False
    )

    async with async_session() as session:
        yield session
        await session.rollback()


async def _make_user(db_session: AsyncSession, role: UserRole, name: str) -> User:
    user = User(
        id=str(uuid4()),
        email=f"{name.lower().replace(' ', '.')}@example.com",
        name=name,
        role=role.value,
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture
async def editor_user(db_session: AsyncSession) -> User:
    """Create an editor who authors drafts."""
    return await _make_user(db_session, UserRole.EDITOR, "Editor One")


@pytest.fixture
async def other_editor_user(db_session: AsyncSession) -> User:
    """Create a second editor who does not own the first editor's drafts."""
    return await _make_user(db_session, UserRole.EDITOR, "Editor Two")


@pytest.fixture
async def reviewer_user(db_session: AsyncSession) -> User:
    return await _make_user(db_session, UserRole.REVIEWER, "Reviewer One")


@pytest.fixture
async def admin_user(db_session: AsyncSession) -> User:
    return await _make_user(db_session, UserRole.ADMIN, "Admin One")


@pytest.fixture
def headers_for():
    """Identity headers the API resolves to an Actor."""

    def _headers(user: User) -> dict:
        return {"X-User-Id": user.id}

    return _headers


@pytest.fixture
def content_repository(db_session: AsyncSession) -> SqlContentRepository:
    return SqlContentRepository(db_session)


@pytest.fixture
def event_bus() -> EventBus:
    """A fresh bus per test so subscribers never leak between tests."""
    return EventBus()


@pytest.fixture
def recording_publisher() -> Mock:
    """Publisher double that records every publish call."""
    return Mock(spec=["publish"])


@pytest.fixture
def mock_repository() -> AsyncMock:
    """Store double with every ContentRepository method as an AsyncMock."""
    return AsyncMock(spec=ContentRepository)


@pytest.fixture
def editor() -> Actor:
    return Actor(id="editor-1", role=UserRole.EDITOR, name="Editor One")


@pytest.fixture
def other_editor() -> Actor:
    return Actor(id="editor-2", role=UserRole.EDITOR, name="Editor Two")


@pytest.fixture
def reviewer() -> Actor:
    return Actor(id="reviewer-1", role=UserRole.REVIEWER, name="Reviewer One")


@pytest.fixture
def admin() -> Actor:
    return Actor(id="admin-1", role=UserRole.ADMIN, name="Admin One")


@pytest.fixture
def make_content():
    """Factory building Content entities as the store would return them."""

    def _make(
        status: ContentStatus = ContentStatus.DRAFT,
        created_by: str = "editor-1",
        **overrides,
    ) -> Content:
        fields = {
            "id": str(uuid4()),
            "title": "Quarterly outlook",
            "body": "Markets were calm this quarter.",
            "sector": Sector.FINANCE,
            "status": status,
            "created_by": created_by,
        }
        fields.update(overrides)
        return Content(**fields)

    return _make


@pytest.fixture
async def async_client(
    db_session: AsyncSession, event_bus: EventBus
) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client for testing."""
    # Import app here to avoid circular imports
    from api.dependencies import get_event_bus
    from main import app

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_event_bus] = lambda: event_bus

    # Reset rate limiter state between tests to prevent cross-test 429s
    if hasattr(app.state, "limiter"):
        app.state.limiter.reset()

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()

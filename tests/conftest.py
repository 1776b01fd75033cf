"""Pytest configuration and fixtures for Library API tests.

Database Handling:
- Uses TEST_DATABASE_URL when set (e.g. a PostgreSQL asyncpg URL)
- Otherwise uses a throwaway SQLite file per test via aiosqlite
"""

import os
import tempfile
import uuid
from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool

# Set test environment variables before importing app modules
_TEST_DIR = Path(tempfile.mkdtemp(prefix="library_api_tests_"))
os.environ["JWT_SECRET_KEY"] = "k3Y-f0r-T3sts-0nly-9f8e7d6c5b4a3210zyxw"
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{_TEST_DIR / 'app.db'}")
os.environ["LOGIN_MAX_ATTEMPTS"] = "5"
os.environ["LOGIN_WINDOW_SECONDS"] = "60"
os.environ["DEBUG"] = "false"

# Test credentials; satisfy the password complexity rules
TEST_PASSWORD = "Passw0rd!"
NEW_PASSWORD = "N3wPassw0rd!"


def _test_database_url() -> str:
    explicit_url = os.environ.get("TEST_DATABASE_URL")
    if explicit_url:
        return explicit_url
    return f"sqlite+aiosqlite:///{_TEST_DIR / f'test_{uuid.uuid4().hex}.db'}"


# --- Login Limiter Reset Fixture ---


@pytest.fixture(autouse=True)
def reset_login_limiter():
    """Forget failed login attempts so tests never see each other's 429s."""
    from library_api.api.auth import reset_login_attempts

    reset_login_attempts()
    yield
    reset_login_attempts()


# --- Database Fixtures ---


@pytest_asyncio.fixture(scope="function")
async def db_engine():
    """Create a database engine with all tables for one test."""
    from library_api.core.database import Base, build_engine
    from library_api.models import Book, Category, TokenBlacklist, User  # noqa: F401

    engine = build_engine(_test_database_url(), poolclass=NullPool, echo=False)

    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Drop all tables after test
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for testing."""
    async_session = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture(scope="function")
async def async_client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client with database override."""
    from library_api.core.database import get_db
    from library_api.main import app

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    # Clean up
    app.dependency_overrides.clear()


# --- Token Fixtures ---


@pytest.fixture
def token_service():
    """The application's token service."""
    from library_api.middleware.auth import get_token_service

    return get_token_service()


def bearer(token: str) -> dict[str, str]:
    """Authorization header for a token."""
    return {"Authorization": f"Bearer {token}"}


# --- Test Factories ---


@pytest.fixture
def user_factory(db_session):
    """Factory for creating test User objects."""
    from library_api.models.user import User, UserRole
    from library_api.services.auth import hash_password

    async def _create_user(
        username: str | None = None,
        email: str | None = None,
        password: str = TEST_PASSWORD,
        role: UserRole = UserRole.USER,
    ) -> User:
        suffix = uuid.uuid4().hex[:8]
        user = User(
            username=username or f"user{suffix}",
            email=email or f"user{suffix}@example.com",
            password_hash=hash_password(password),
            role=role,
        )
        db_session.add(user)
        await db_session.commit()
        await db_session.refresh(user)
        return user

    return _create_user


@pytest.fixture
def headers_for(token_service):
    """Build an Authorization header carrying a fresh token for a user."""

    def _headers(user) -> dict[str, str]:
        return bearer(token_service.issue(user.id, user.role, user.token_version))

    return _headers


@pytest_asyncio.fixture
async def admin_user(user_factory):
    from library_api.models.user import UserRole

    return await user_factory(username="libadmin", email="admin@example.com", role=UserRole.ADMIN)


@pytest_asyncio.fixture
async def regular_user(user_factory):
    return await user_factory(username="reader", email="reader@example.com")


@pytest.fixture
def admin_headers(admin_user, headers_for) -> dict[str, str]:
    return headers_for(admin_user)


@pytest.fixture
def user_headers(regular_user, headers_for) -> dict[str, str]:
    return headers_for(regular_user)


@pytest.fixture
def category_factory(db_session):
    """Factory for creating test Category objects."""
    from library_api.models.category import Category

    async def _create_category(name: str = "Fiction", description: str | None = None) -> Category:
        category = Category(name=name, description=description)
        db_session.add(category)
        await db_session.commit()
        await db_session.refresh(category)
        return category

    return _create_category


@pytest.fixture
def book_factory(db_session):
    """Factory for creating test Book objects."""
    from library_api.models.book import Book

    async def _create_book(
        title: str = "Test Book",
        author: str = "Test Author",
        **kwargs,
    ) -> Book:
        kwargs.setdefault("total_copies", 1)
        kwargs.setdefault("available_copies", kwargs["total_copies"])
        book = Book(title=title, author=author, **kwargs)
        db_session.add(book)
        await db_session.commit()
        await db_session.refresh(book)
        return book

    return _create_book

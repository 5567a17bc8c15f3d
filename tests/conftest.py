"""Test configuration and fixtures.

Each test gets its own in-memory SQLite database:
1. A fresh engine (StaticPool, single shared connection) is created per test
2. The schema is created from the model registry
3. The API and the test share one AsyncSession, so data created by
   factories is visible to endpoints and vice versa
4. The engine is disposed after the test, discarding all data
"""

import os
from collections.abc import AsyncGenerator
from datetime import timedelta
from decimal import Decimal
from pathlib import Path

import pytest
import pytest_asyncio
from dotenv import load_dotenv

# Load test environment variables before settings are imported
test_env_path = Path(__file__).parent.parent / ".env.test"
load_dotenv(test_env_path, override=True)

os.environ["TESTING"] = "true"

from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

import stockroom.models  # noqa: E402, F401
from stockroom.database.base import Base, utcnow  # noqa: E402
from stockroom.database.dependencies import get_db_session  # noqa: E402
from stockroom.features.auth.dependencies import get_current_active_user, get_current_user  # noqa: E402
from stockroom.features.items.models import Item  # noqa: E402
from stockroom.features.user.models import User, UserRole, UserStatus  # noqa: E402
from stockroom.main import app  # noqa: E402
from stockroom.shared.audit.audit import clear_current_user, set_current_user  # noqa: E402

DEFAULT_PASSWORD = "TestPass123"


# Database Setup - Function Scope (fresh database per test)


@pytest_asyncio.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine]:
    """Create an in-memory database with the full schema."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session(db_engine: AsyncEngine) -> AsyncGenerator[AsyncSession]:
    """Database session shared by the test and the API."""
    async_session = AsyncSession(bind=db_engine, expire_on_commit=False)
    try:
        yield async_session
    finally:
        await async_session.close()


# Mock Database Initialization


@pytest.fixture(autouse=True)
def mock_db_initialization():
    """Mock init_db and close_db so lifespan doesn't interfere with tests."""
    from stockroom.database import client as db_module

    original_init_db = db_module.init_db
    original_close_db = db_module.close_db

    async def mock_init_db():
        pass

    async def mock_close_db():
        pass

    db_module.init_db = mock_init_db
    db_module.close_db = mock_close_db

    yield

    db_module.init_db = original_init_db
    db_module.close_db = original_close_db


@pytest.fixture(autouse=True)
def reset_audit_actor():
    """Requests served through ASGITransport run in the test's context."""
    clear_current_user()
    yield
    clear_current_user()


# FastAPI Client & Dependency Overrides


@pytest_asyncio.fixture(autouse=True)
async def override_get_db_session(session: AsyncSession):
    """Override the database session dependency with the test session."""

    async def _get_test_session():
        yield session

    app.dependency_overrides[get_db_session] = _get_test_session
    yield
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client() -> AsyncGenerator[AsyncClient]:
    """Unauthenticated async HTTP test client."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


# Factories


@pytest_asyncio.fixture
async def make_user(session: AsyncSession):
    """Factory fixture to create test users.

    Usage:
        user = await make_user()                                  # Employee
        hr = await make_user(role=UserRole.HR)
        locked = await make_user(status=UserStatus.LOCKED, locked_until=...)
    """
    counter = 0

    async def _factory(
        email=None,
        full_name="Test User",
        password=DEFAULT_PASSWORD,
        role=UserRole.EMPLOYEE,
        status=UserStatus.ACTIVE,
        **kwargs,
    ) -> User:
        nonlocal counter
        counter += 1

        if email is None:
            email = f"testuser{counter}@example.com"

        user = User(
            email=email,
            full_name=full_name,
            hashed_password=User.hash_password(password),
            role=role,
            status=status,
            **kwargs,
        )

        session.add(user)
        await session.flush()
        await session.refresh(user)
        return user

    return _factory


@pytest_asyncio.fixture
async def make_item(session: AsyncSession):
    """Factory fixture to create items directly in the database.

    Bypasses request validation, so expired items can be created.
    """
    counter = 0

    async def _factory(name=None, sku=None, category="Tools", quantity=10, **kwargs) -> Item:
        nonlocal counter
        counter += 1

        item = Item(
            name=name or f"Item {counter}",
            sku=sku or f"SKU-{counter:04d}",
            category=category,
            quantity=quantity,
            **kwargs,
        )

        session.add(item)
        await session.flush()
        await session.refresh(item)
        return item

    return _factory


@pytest.fixture
def in_days():
    """Aware UTC datetime ``days`` from now (negative for the past)."""

    def _in_days(days: float):
        return utcnow() + timedelta(days=days)

    return _in_days


@pytest.fixture
def money():
    return Decimal


# Authenticated clients (dependency overrides, no JWT)


def _authenticate_as(user: User) -> None:
    async def override_get_current_user():
        set_current_user(user)
        return user

    app.dependency_overrides[get_current_user] = override_get_current_user
    app.dependency_overrides[get_current_active_user] = override_get_current_user


@pytest_asyncio.fixture
async def login_as(client: AsyncClient, make_user):
    """Authenticate the test client as a new user with the given role.

    Returns:
        Coroutine function ``(role) -> (client, user)``

    """

    async def _login_as(role: UserRole = UserRole.EMPLOYEE, **kwargs):
        user = await make_user(role=role, **kwargs)
        _authenticate_as(user)
        return client, user

    return _login_as


@pytest_asyncio.fixture
async def auth_client(login_as):
    """Authenticated client with an Employee (no privileged capabilities)."""
    return await login_as(UserRole.EMPLOYEE)


@pytest_asyncio.fixture
async def manager_client(login_as):
    """Authenticated client with a WarehouseManager."""
    return await login_as(UserRole.WAREHOUSE_MANAGER)


@pytest_asyncio.fixture
async def hr_client(login_as):
    """Authenticated client with an HR user."""
    return await login_as(UserRole.HR)


@pytest_asyncio.fixture
async def admin_client(login_as):
    """Authenticated client with an Admin."""
    return await login_as(UserRole.ADMIN)

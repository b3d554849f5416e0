from typing import AsyncGenerator, Optional

import pytest
import pytest_asyncio
from fastapi import HTTPException, Request
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from libs.auth.dependencies import get_current_user
from libs.db.base import Base
from libs.db.session import get_async_db
from services.store_service.cache import TTLCache
from services.store_service.payment_gateway import get_payment_gateway
from services.store_service.services.notifications import get_order_notifier
from tests.fakes import (
    ADMIN,
    CUSTOMER,
    OTHER_CUSTOMER,
    SERVICE,
    FakeClock,
    FakeGateway,
    FakeNotifier,
)

TEST_USERS = {
    "customer": CUSTOMER,
    "other": OTHER_CUSTOMER,
    "admin": ADMIN,
    "service": SERVICE,
}


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def test_engine():
    """
    Fresh in-memory SQLite database per test.
    StaticPool keeps the single connection alive so every session sees the same data.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    # Create tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Yield a database session shared by the test and the app under test."""
    session_factory = async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    async with session_factory() as session:
        yield session


# ---------------------------------------------------------------------------
# Collaborators
# ---------------------------------------------------------------------------


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store_cache(clock) -> TTLCache:
    return TTLCache(300, clock=clock)


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def notifier() -> FakeNotifier:
    return FakeNotifier()


# ---------------------------------------------------------------------------
# API clients
# ---------------------------------------------------------------------------


async def _current_user_from_header(request: Request):
    user = TEST_USERS.get(request.headers.get("X-Test-User", ""))
    if user is None:
        raise HTTPException(status_code=401, detail="Could not validate credentials")
    return user


@pytest_asyncio.fixture
async def store_app(db_session, gateway, notifier, store_cache):
    """Store Service app with DB, auth, gateway and notifier overridden."""
    from services.store_service.app.main import create_app

    app = create_app()
    app.state.store_cache = store_cache
    app.dependency_overrides[get_async_db] = lambda: db_session
    app.dependency_overrides[get_current_user] = _current_user_from_header
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    app.dependency_overrides[get_order_notifier] = lambda: notifier

    yield app

    app.dependency_overrides.clear()


def _client(app, user_key: Optional[str] = None) -> AsyncClient:
    headers = {"X-Test-User": user_key} if user_key else {}
    return AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test", headers=headers
    )


@pytest_asyncio.fixture
async def anon_client(store_app) -> AsyncGenerator[AsyncClient, None]:
    async with _client(store_app) as ac:
        yield ac


@pytest_asyncio.fixture
async def customer_client(store_app) -> AsyncGenerator[AsyncClient, None]:
    async with _client(store_app, "customer") as ac:
        yield ac


@pytest_asyncio.fixture
async def other_customer_client(store_app) -> AsyncGenerator[AsyncClient, None]:
    async with _client(store_app, "other") as ac:
        yield ac


@pytest_asyncio.fixture
async def admin_client(store_app) -> AsyncGenerator[AsyncClient, None]:
    async with _client(store_app, "admin") as ac:
        yield ac


@pytest_asyncio.fixture
async def service_client(store_app) -> AsyncGenerator[AsyncClient, None]:
    async with _client(store_app, "service") as ac:
        yield ac

"""Shared test fixtures."""

import os

os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy import update  # noqa: E402
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from taskmanager.core.database import get_db  # noqa: E402
from taskmanager.main import app  # noqa: E402
from taskmanager.models import Base, User  # noqa: E402


@pytest.fixture
async def session_factory():
    """A fresh in-memory SQLite database per test."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, expire_on_commit=False)

    await engine.dispose()


@pytest.fixture
async def client(session_factory):
    """Async test client for the FastAPI app, bound to the test database."""

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
    app.dependency_overrides.clear()


async def register_user(client, name="Alice Martin", email="alice@example.com", password="secret123"):
    """Register through the API and return (user payload, auth headers)."""
    response = await client.post(
        "/api/users",
        json={"name": name, "email": email, "password": password},
    )
    assert response.status_code == 201, response.text
    # keep requests explicit: tests authenticate with headers, not the cookie jar
    client.cookies.clear()
    data = response.json()
    return data, {"Authorization": f"Bearer {data['token']}"}


async def make_admin(session_factory, user_id: int) -> None:
    async with session_factory() as session:
        await session.execute(update(User).where(User.id == user_id).values(is_admin=True))
        await session.commit()


@pytest.fixture
async def alice(client):
    return await register_user(client)


@pytest.fixture
async def bob(client):
    return await register_user(client, name="Bob Builder", email="bob@example.com")


@pytest.fixture
async def auth_headers(alice):
    return alice[1]


@pytest.fixture
async def admin_headers(client, session_factory):
    user, headers = await register_user(client, name="Ada Admin", email="admin@example.com")
    await make_admin(session_factory, user["id"])
    return headers

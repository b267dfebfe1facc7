"""
Pytest fixtures da Marcenaria API.

Provides:
- Banco SQLite em memória (aiosqlite + StaticPool) recriado a cada teste
- Cliente HTTP (httpx.AsyncClient sobre ASGITransport) com get_db sobrescrito
- Dois salões (tenants) com usuário e token JWT
"""
import os

os.environ.setdefault("SQLITE_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401
from app.core import create_access_token, get_password_hash
from app.database import Base, get_db
from app.main import app as fastapi_app
from app.api.auth import limiter
from app.models import Salon, User


@pytest_asyncio.fixture
async def engine():
    test_engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    fastapi_app.dependency_overrides[get_db] = override_get_db
    limiter.enabled = False

    transport = ASGITransport(app=fastapi_app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as http:
        yield http

    fastapi_app.dependency_overrides.clear()
    limiter.enabled = True


async def _create_tenant(session_factory, name: str, email: str) -> dict:
    async with session_factory() as session:
        salon = Salon(name=name, phone="11999990000")
        session.add(salon)
        await session.flush()

        user = User(
            name=f"Dono {name}",
            email=email,
            hashed_password=get_password_hash("senha123"),
            salon_id=salon.id,
        )
        session.add(user)
        await session.commit()

        token = create_access_token(data={"sub": user.id, "salon_id": salon.id})
        return {
            "salon_id": salon.id,
            "user_id": user.id,
            "headers": {"Authorization": f"Bearer {token}"},
        }


@pytest_asyncio.fixture
async def tenant(session_factory):
    return await _create_tenant(session_factory, "Marcenaria Alfa", "alfa@example.com")


@pytest_asyncio.fixture
async def other_tenant(session_factory):
    return await _create_tenant(session_factory, "Marcenaria Beta", "beta@example.com")


@pytest.fixture
def auth(tenant):
    return tenant["headers"]


@pytest_asyncio.fixture
async def customer(client, auth):
    response = await client.post(
        "/api/clients",
        json={"name": "Maria Souza", "phone": "(11) 98888-7777"},
        headers=auth,
    )
    assert response.status_code == 201, response.text
    return response.json()["client"]


@pytest_asyncio.fixture
async def supplier(client, auth):
    response = await client.post(
        "/api/clients",
        json={"name": "Madeireira Central", "phone": "1133334444", "type": "FORNECEDOR"},
        headers=auth,
    )
    assert response.status_code == 201, response.text
    return response.json()["client"]


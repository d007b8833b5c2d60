"""
Shared fixtures.

Every test gets a fresh in-memory SQLite database with the reference data
seeded, an httpx client bound to the ASGI app, and helpers for users/tokens.
"""
import os

# Must be set before anything imports kol360.config
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["ENVIRONMENT"] = "test"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["RATE_LIMIT_PER_MINUTE"] = "0"
os.environ["EMAIL_MOCK_MODE"] = "true"
os.environ["SEND_EXTERNAL_EMAIL"] = "false"
os.environ["APP_URL"] = "http://localhost:3000"

import pytest
from httpx import ASGITransport, AsyncClient

from kol360.constants import UserRole
from kol360.database import engine, Base, async_session
from kol360.main import app
from kol360.services.seed_service import seed_reference_data
from tests.factories import make_client, make_user, auth_headers


@pytest.fixture(autouse=True)
async def database():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    async with async_session() as session:
        await seed_reference_data(session)
        await session.commit()
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def db():
    async with async_session() as session:
        yield session


@pytest.fixture
async def client():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http:
        yield http


# =============================================================================
# Principals
# =============================================================================


@pytest.fixture
async def tenant(db):
    return await make_client(db, "Acme Pharma")


@pytest.fixture
async def other_tenant(db):
    return await make_client(db, "Other Bio")


@pytest.fixture
async def platform_admin(db):
    return await make_user(db, UserRole.PLATFORM_ADMIN, email="admin@example.com")


@pytest.fixture
async def client_admin(db, tenant):
    return await make_user(db, UserRole.CLIENT_ADMIN, client_id=tenant.id, email="ca@acme.example.com")


@pytest.fixture
async def team_member(db, tenant):
    return await make_user(db, UserRole.TEAM_MEMBER, client_id=tenant.id, email="tm@acme.example.com")


@pytest.fixture
def admin_headers(platform_admin):
    return auth_headers(platform_admin)


@pytest.fixture
def client_admin_headers(client_admin):
    return auth_headers(client_admin)

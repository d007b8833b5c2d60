"""Login, signup, token checks and role/tenant enforcement."""
import pytest
from sqlalchemy import select

from kol360.auth import hash_password, decode_token, UserPrincipal
from kol360.constants import UserRole, UserStatus
from kol360.database import async_session
from kol360.models.user import User
from tests.factories import make_user, auth_headers


class TestLogin:
    async def test_login_returns_token_for_active_user(self, client, db):
        user = await make_user(db, UserRole.PLATFORM_ADMIN, email="owner@example.com")
        user.password_hash = hash_password("correct-horse")
        await db.commit()

        response = await client.post("/api/v1/auth/login",
                                     json={"email": "Owner@Example.com", "password": "correct-horse"})

        assert response.status_code == 200
        data = response.json()
        assert data["token_type"] == "bearer"
        principal = decode_token(data["access_token"])
        assert principal.sub == user.id
        assert principal.role == UserRole.PLATFORM_ADMIN

    async def test_wrong_password_is_401(self, client, db):
        user = await make_user(db, UserRole.PLATFORM_ADMIN, email="owner@example.com")
        user.password_hash = hash_password("correct-horse")
        await db.commit()

        response = await client.post("/api/v1/auth/login",
                                     json={"email": "owner@example.com", "password": "wrong"})

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid email or password"

    async def test_pending_user_cannot_login(self, client, db):
        user = await make_user(db, UserRole.TEAM_MEMBER, email="new@example.com",
                               status=UserStatus.PENDING_APPROVAL)
        user.password_hash = hash_password("correct-horse")
        await db.commit()

        response = await client.post("/api/v1/auth/login",
                                     json={"email": "new@example.com", "password": "correct-horse"})

        assert response.status_code == 401
        assert response.json()["message"] == "Account is not active"


class TestSignup:
    async def test_signup_creates_pending_team_member(self, client):
        response = await client.post("/api/v1/auth/signup", json={
            "email": "jane@example.com", "password": "longenough1", "first_name": "Jane", "last_name": "Doe",
        })

        assert response.status_code == 201
        assert response.json()["status"] == UserStatus.PENDING_APPROVAL
        async with async_session() as session:
            user = await session.scalar(select(User).where(User.email == "jane@example.com"))
        assert user.role == UserRole.TEAM_MEMBER

    async def test_duplicate_email_is_409(self, client, db):
        await make_user(db, UserRole.TEAM_MEMBER, email="jane@example.com")

        response = await client.post("/api/v1/auth/signup", json={
            "email": "jane@example.com", "password": "longenough1", "first_name": "Jane", "last_name": "Doe",
        })

        assert response.status_code == 409


class TestTokenChecks:
    async def test_missing_token_is_401(self, client):
        response = await client.get("/api/v1/campaigns")

        assert response.status_code == 401
        assert response.json()["error"] == "Unauthorized"

    async def test_garbage_token_is_401(self, client):
        response = await client.get("/api/v1/campaigns", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401

    async def test_me_returns_principal(self, client, client_admin, client_admin_headers):
        response = await client.get("/api/v1/auth/me", headers=client_admin_headers)

        assert response.status_code == 200
        assert response.json() == {
            "sub": client_admin.id,
            "email": client_admin.email,
            "role": UserRole.CLIENT_ADMIN,
            "tenant_id": client_admin.client_id,
        }

    async def test_disease_areas_open_to_any_authenticated_user(self, client, team_member):
        response = await client.get("/api/v1/disease-areas", headers=auth_headers(team_member))

        assert response.status_code == 200
        codes = {d["code"] for d in response.json()["items"]}
        assert codes == {"RETINA", "DRY_EYE", "GLAUCOMA", "CORNEA"}

    async def test_team_member_cannot_reach_admin_routes(self, client, team_member):
        response = await client.get("/api/v1/hcps", headers=auth_headers(team_member))
        assert response.status_code == 403

    async def test_client_admin_cannot_change_settings(self, client, client_admin_headers):
        response = await client.get("/api/v1/settings", headers=client_admin_headers)
        assert response.status_code == 403


class TestTenantScope:
    def test_platform_admin_has_no_tenant_filter(self):
        principal = UserPrincipal(sub="u1", email="a@example.com", role=UserRole.PLATFORM_ADMIN)
        assert principal.tenant_filter() is None
        assert principal.can_access_tenant("any-client")

    def test_client_admin_is_limited_to_own_tenant(self):
        principal = UserPrincipal(sub="u1", email="a@example.com", role=UserRole.CLIENT_ADMIN, tenant_id="c1")
        assert principal.tenant_filter() == "c1"
        assert principal.can_access_tenant("c1")
        assert not principal.can_access_tenant("c2")
        assert not principal.can_access_tenant(None)

    async def test_client_list_only_shows_own_tenant(self, client, tenant, other_tenant, client_admin_headers):
        response = await client.get("/api/v1/clients", headers=client_admin_headers)

        assert response.status_code == 200
        assert [c["id"] for c in response.json()["items"]] == [tenant.id]

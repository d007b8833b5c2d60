"""User administration and client management."""
from kol360.constants import UserRole, UserStatus
from tests.factories import make_user, auth_headers


class TestUsers:
    async def test_client_admin_sees_own_tenant_only(self, client, db, tenant, other_tenant, client_admin_headers):
        await make_user(db, UserRole.TEAM_MEMBER, client_id=tenant.id, email="mine@acme.example.com")
        await make_user(db, UserRole.TEAM_MEMBER, client_id=other_tenant.id, email="theirs@other.example.com")

        response = await client.get("/api/v1/users", headers=client_admin_headers)

        emails = {u["email"] for u in response.json()["items"]}
        assert emails == {"ca@acme.example.com", "mine@acme.example.com"}

    async def test_system_user_is_hidden(self, client, admin_headers):
        response = await client.get("/api/v1/users", headers=admin_headers)

        assert [u["email"] for u in response.json()["items"]] == ["admin@example.com"]

    async def test_invite_into_own_tenant(self, client, tenant, other_tenant, client_admin_headers):
        response = await client.post("/api/v1/users/invite", json={
            "email": "New.Person@Acme.example.com", "role": "TEAM_MEMBER", "client_id": other_tenant.id,
        }, headers=client_admin_headers)

        assert response.status_code == 201
        body = response.json()
        assert body["email"] == "new.person@acme.example.com"
        assert body["client_id"] == tenant.id
        assert body["status"] == UserStatus.PENDING_VERIFICATION

    async def test_client_admin_cannot_grant_platform_admin(self, client, client_admin_headers):
        response = await client.post("/api/v1/users/invite", json={
            "email": "boss@example.com", "role": "PLATFORM_ADMIN",
        }, headers=client_admin_headers)

        assert response.status_code == 403

    async def test_platform_admin_must_pick_client_for_client_users(self, client, admin_headers):
        response = await client.post("/api/v1/users/invite", json={
            "email": "someone@example.com", "role": "CLIENT_ADMIN",
        }, headers=admin_headers)

        assert response.json()["message"] == "client_id is required for client users"

    async def test_duplicate_invite(self, client, admin_headers, client_admin, tenant):
        response = await client.post("/api/v1/users/invite", json={
            "email": "CA@acme.example.com", "role": "TEAM_MEMBER", "client_id": tenant.id,
        }, headers=admin_headers)

        assert response.status_code == 409

    async def test_approve_then_disable_then_enable(self, client, db, tenant, admin_headers):
        user = await make_user(db, UserRole.TEAM_MEMBER, client_id=tenant.id, email="p@acme.example.com",
                               status=UserStatus.PENDING_APPROVAL)
        base = f"/api/v1/users/{user.id}"

        approved = await client.post(f"{base}/approve", headers=admin_headers)
        again = await client.post(f"{base}/approve", headers=admin_headers)
        disabled = await client.post(f"{base}/disable", headers=admin_headers)
        enabled = await client.post(f"{base}/enable", headers=admin_headers)

        assert approved.json()["status"] == UserStatus.ACTIVE
        assert again.json()["message"] == "Cannot approve a user with status ACTIVE"
        assert disabled.json()["status"] == UserStatus.DISABLED
        assert enabled.json()["status"] == UserStatus.ACTIVE

    async def test_approve_is_platform_admin_only(self, client, db, tenant, client_admin_headers):
        user = await make_user(db, UserRole.TEAM_MEMBER, client_id=tenant.id, email="p@acme.example.com",
                               status=UserStatus.PENDING_APPROVAL)

        response = await client.post(f"/api/v1/users/{user.id}/approve", headers=client_admin_headers)

        assert response.status_code == 403

    async def test_cannot_disable_self(self, client, client_admin, client_admin_headers):
        response = await client.post(f"/api/v1/users/{client_admin.id}/disable", headers=client_admin_headers)

        assert response.json()["message"] == "You cannot disable your own account"

    async def test_update_other_tenant_user_forbidden(self, client, db, other_tenant, client_admin_headers):
        user = await make_user(db, UserRole.TEAM_MEMBER, client_id=other_tenant.id, email="x@other.example.com")

        response = await client.put(f"/api/v1/users/{user.id}", json={"first_name": "Hacked"},
                                    headers=client_admin_headers)

        assert response.status_code == 403


class TestClients:
    async def test_create_lite_client(self, client, admin_headers):
        response = await client.post("/api/v1/clients", json={"name": "Lite Co", "type": "LITE"},
                                     headers=admin_headers)

        assert response.status_code == 201
        assert response.json()["is_lite"] is True
        assert response.json()["primary_color"] == "#0066CC"

    async def test_invalid_colour(self, client, admin_headers):
        response = await client.post("/api/v1/clients", json={"name": "Bad", "primary_color": "blue"},
                                     headers=admin_headers)

        assert response.status_code == 422

    async def test_client_admin_cannot_create(self, client, client_admin_headers):
        response = await client.post("/api/v1/clients", json={"name": "Nope Co"}, headers=client_admin_headers)

        assert response.status_code == 403

    async def test_deactivate_hides_from_default_list(self, client, tenant, other_tenant, admin_headers):
        await client.delete(f"/api/v1/clients/{other_tenant.id}", headers=admin_headers)

        active = await client.get("/api/v1/clients", headers=admin_headers)
        everything = await client.get("/api/v1/clients", params={"include_inactive": True}, headers=admin_headers)

        assert [c["name"] for c in active.json()["items"]] == ["Acme Pharma"]
        assert len(everything.json()["items"]) == 2

    async def test_update_type_syncs_lite_flag(self, client, tenant, admin_headers):
        response = await client.put(f"/api/v1/clients/{tenant.id}", json={"type": "LITE"}, headers=admin_headers)

        assert response.json()["type"] == "LITE"
        assert response.json()["is_lite"] is True

    async def test_other_tenant_client_forbidden(self, client, other_tenant, client_admin_headers):
        response = await client.get(f"/api/v1/clients/{other_tenant.id}", headers=client_admin_headers)

        assert response.status_code == 403

"""Platform settings: masking, persistence and auditing."""
from sqlalchemy import select

from kol360.database import async_session
from kol360.models.audit_log import AuditLog
from kol360.services.settings_service import mask_secret


def test_mask_secret():
    assert mask_secret(None) == ""
    assert mask_secret("") == ""
    assert mask_secret("abcd") == "****"
    assert mask_secret("supersecret1234") == "****1234"


async def test_defaults_come_from_environment(client, admin_headers):
    response = await client.get("/api/v1/settings", headers=admin_headers)

    body = response.json()
    assert body["email"]["email_mock_mode"] is True
    assert body["email"]["send_external_email"] is False
    assert body["security"]["health_check_token"] == ""
    assert body["system"] == {"app_url": "http://localhost:3000", "environment": "test"}


async def test_update_persists_and_masks(client, admin_headers, platform_admin):
    payload = {
        "email": {"send_external_email": True, "ses_from_name": "KOL360 Surveys"},
        "security": {"health_check_token": "token-abcdef-9876"},
    }

    updated = await client.put("/api/v1/settings", json=payload, headers=admin_headers)
    fetched = await client.get("/api/v1/settings", headers=admin_headers)

    assert updated.json() == fetched.json()
    body = fetched.json()
    assert body["email"]["send_external_email"] is True
    assert body["email"]["ses_from_name"] == "KOL360 Surveys"
    assert body["security"]["health_check_token"] == "****9876"

    async with async_session() as session:
        entry = await session.scalar(select(AuditLog).where(AuditLog.action == "settings.updated"))
    assert entry.user_id == platform_admin.id
    assert entry.new_values["health_check_token"] == "****"
    assert entry.new_values["send_external_email"] is True


async def test_invalid_from_email(client, admin_headers):
    response = await client.put("/api/v1/settings", json={"email": {"ses_from_email": "not-an-email"}},
                                headers=admin_headers)

    assert response.status_code == 422


async def test_platform_admin_only(client, client_admin_headers):
    response = await client.get("/api/v1/settings", headers=client_admin_headers)

    assert response.status_code == 403

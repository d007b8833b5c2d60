"""Health endpoints."""
import hmac

import pytest

from kol360.config import get_settings


async def test_liveness(client):
    for path in ("/health", "/health/live"):
        response = await client.get(path)
        assert response.status_code == 200
        assert response.json()["status"] == "ok"


async def test_readiness(client):
    response = await client.get("/health/ready")

    assert response.json() == {"status": "ok", "checks": {"database": "ok"}}


async def test_full_outside_production(client):
    response = await client.get("/health/full")

    body = response.json()
    assert response.status_code == 200
    assert body["checks"]["database"]["status"] == "ok"
    assert body["version"] == get_settings().app_version
    assert body["memory"]["max_rss_mb"] > 0


@pytest.fixture
def production(monkeypatch):
    monkeypatch.setattr(get_settings(), "environment", "production")


async def test_full_needs_configured_token(client, production):
    response = await client.get("/health/full")

    assert response.status_code == 503
    assert response.json()["message"] == "Health check token not configured"


async def test_full_checks_token(client, production, monkeypatch):
    monkeypatch.setattr(get_settings(), "health_check_token", "s3cret-token")

    denied = await client.get("/health/full", headers={"x-health-token": "wrong"})
    allowed = await client.get("/health/full", headers={"x-health-token": "s3cret-token"})
    bearer = await client.get("/health/full", headers={"Authorization": "Bearer s3cret-token"})

    assert denied.status_code == 401
    assert allowed.status_code == 200
    assert bearer.status_code == 200


async def test_full_token_compared_in_constant_time(client, production, monkeypatch):
    monkeypatch.setattr(get_settings(), "health_check_token", "s3cret-token")
    compared = []
    real_compare = hmac.compare_digest

    def compare_digest(a, b):
        compared.append((a, b))
        return real_compare(a, b)

    monkeypatch.setattr(hmac, "compare_digest", compare_digest)

    missing = await client.get("/health/full")
    prefix = await client.get("/health/full", headers={"x-health-token": "s3cret"})

    assert missing.status_code == 401
    assert prefix.status_code == 401
    assert compared == [(b"", b"s3cret-token"), (b"s3cret", b"s3cret-token")]

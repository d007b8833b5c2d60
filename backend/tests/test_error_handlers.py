"""Exception handlers render every failure as the standard error body."""
import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError

from kol360.error_handlers import register_exception_handlers
from kol360.exceptions import ApiError, BadRequestError, ForbiddenError, NotFoundError, UnauthorizedError


class Payload(BaseModel):
    name: str


@pytest.fixture
def app_with_handlers():
    app = FastAPI()
    register_exception_handlers(app)
    return app


@pytest.fixture
async def http(app_with_handlers):
    transport = ASGITransport(app=app_with_handlers, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


class TestApiErrors:
    async def test_not_found(self, app_with_handlers, http):
        @app_with_handlers.get("/missing")
        async def missing():
            raise NotFoundError("Campaign", "abc123")

        response = await http.get("/missing")

        assert response.status_code == 404
        assert response.json() == {
            "error": "Not Found",
            "message": "Campaign abc123 not found",
            "status_code": 404,
            "trace_id": "",
        }

    @pytest.mark.parametrize("exc,status", [
        (BadRequestError("bad"), 400),
        (UnauthorizedError(), 401),
        (ForbiddenError(), 403),
        (ApiError("Health check token not configured", 503, "Service Unavailable"), 503),
    ])
    async def test_status_codes(self, app_with_handlers, http, exc, status):
        @app_with_handlers.get("/boom")
        async def boom():
            raise exc

        response = await http.get("/boom")

        assert response.status_code == status
        assert response.json()["message"] == exc.message


class TestFrameworkErrors:
    async def test_validation_details(self, app_with_handlers, http):
        @app_with_handlers.post("/items")
        async def create(payload: Payload):
            return payload

        response = await http.post("/items", json={})

        assert response.status_code == 422
        body = response.json()
        assert body["message"] == "Validation failed"
        assert body["details"][0]["field"] == "name"

    async def test_unknown_route(self, http):
        response = await http.get("/nowhere")

        assert response.status_code == 404
        assert response.json()["error"] == "Not Found"

    async def test_integrity_error_is_conflict(self, app_with_handlers, http):
        @app_with_handlers.get("/dup")
        async def dup():
            raise IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed"))

        response = await http.get("/dup")

        assert response.status_code == 409
        assert response.json()["message"] == "This record already exists."

    async def test_unhandled_error_outside_production(self, app_with_handlers, http):
        @app_with_handlers.get("/crash")
        async def crash():
            raise RuntimeError("kaboom")

        response = await http.get("/crash")

        assert response.status_code == 500
        assert response.json()["message"] == "RuntimeError: kaboom"

"""
Shared test configuration for YUTHUB API unit tests.

Provides an app with extra /api routes standing in for the
application's state-changing endpoints, and resets rate-limit storage so
tests never see each other's hits.
"""
import pytest
from fastapi import APIRouter, FastAPI, Request
from httpx import AsyncClient, ASGITransport

from yuthub.main import create_app, limiter
from yuthub.routers import csrf as csrf_router
from yuthub.services.csrf import CsrfTokenGenerator

VALID_TOKEN = "ab" * 32
OTHER_TOKEN = "cd" * 32


@pytest.fixture(autouse=True)
def reset_rate_limits():
    limiter.reset()
    csrf_router.limiter.reset()
    yield
    limiter.reset()
    csrf_router.limiter.reset()


@pytest.fixture(autouse=True)
def development_env(monkeypatch):
    """Tests run as development unless they opt into production."""
    monkeypatch.delenv("APP_ENV", raising=False)
    monkeypatch.delenv("NODE_ENV", raising=False)


def build_test_app(generator: CsrfTokenGenerator | None = None) -> FastAPI:
    app = create_app(token_generator=generator)

    residents = APIRouter(prefix="/api")

    @residents.post("/residents")
    async def create_resident(request: Request) -> dict:
        return {"created": True}

    @residents.post("/residents/echo")
    async def echo_resident(request: Request) -> dict:
        if request.headers.get("content-type", "").startswith("application/json"):
            return {"body": await request.json()}
        form = await request.form()
        return {"body": dict(form)}

    @residents.delete("/residents/{resident_id}")
    async def delete_resident(resident_id: str) -> dict:
        return {"deleted": resident_id}

    app.include_router(residents)
    return app


@pytest.fixture
def app() -> FastAPI:
    return build_test_app()


@pytest.fixture
async def client(app):
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac

"""Unit tests for the JSON error bodies of unhandled failures."""

from types import SimpleNamespace

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from libs.common import error_handler


def _failing_app() -> FastAPI:
    app = FastAPI()
    error_handler.add_exception_handlers(app)

    @app.get("/boom")
    async def boom():
        raise RuntimeError("connection string postgresql://store:secret@db")

    return app


async def _get_boom():
    # Starlette re-raises after the 500 is sent; keep the response instead.
    transport = ASGITransport(app=_failing_app(), raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        return await client.get("/boom")


@pytest.mark.asyncio
@pytest.mark.unit
async def test_unhandled_error_hides_details_in_production(monkeypatch):
    monkeypatch.setattr(
        error_handler, "get_settings", lambda: SimpleNamespace(ENVIRONMENT="production")
    )

    response = await _get_boom()

    assert response.status_code == 500
    assert response.json() == {"error": "Internal Server Error"}


@pytest.mark.asyncio
@pytest.mark.unit
@pytest.mark.parametrize("environment", ["local", "development", "test"])
async def test_unhandled_error_shows_details_while_developing(monkeypatch, environment):
    monkeypatch.setattr(
        error_handler, "get_settings", lambda: SimpleNamespace(ENVIRONMENT=environment)
    )

    response = await _get_boom()

    assert response.status_code == 500
    assert response.json() == {
        "error": "Internal Server Error",
        "details": "connection string postgresql://store:secret@db",
    }

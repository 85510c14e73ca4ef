"""
Tests for the global exception handlers.

A throwaway FastAPI app registers the handlers so each error type can be
raised directly from a route.
"""
import pytest
from fastapi import FastAPI, HTTPException
from fastapi.testclient import TestClient

from app.core.middleware import TraceIDMiddleware
from app.exception_handlers import register_exception_handlers
from app.services.ai.errors import BUSY_MESSAGE, ConfigurationError, ProviderError


@pytest.fixture
def client():
    app = FastAPI()
    app.add_middleware(TraceIDMiddleware)
    register_exception_handlers(app)

    @app.get("/http")
    async def http_error():
        raise HTTPException(status_code=404, detail="Not here")

    @app.get("/capacity")
    async def capacity():
        raise ProviderError("Resource exhausted", status_code=429)

    @app.get("/unauthorized")
    async def unauthorized():
        raise ProviderError("API key not valid", status_code=401)

    @app.get("/config")
    async def config():
        raise ConfigurationError("No AI provider credential configured.")

    @app.get("/boom")
    async def boom():
        raise RuntimeError("boom")

    return TestClient(app, raise_server_exceptions=False)


def test_http_exception_body(client):
    response = client.get("/http", headers={"X-Trace-ID": "trace-404"})

    assert response.status_code == 404
    assert response.json() == {"detail": "Not here", "status_code": 404, "trace_id": "trace-404"}


def test_capacity_error_maps_to_busy(client):
    response = client.get("/capacity")

    assert response.status_code == 503
    assert response.json()["detail"] == BUSY_MESSAGE


def test_provider_401_passes_through(client):
    assert client.get("/unauthorized").status_code == 401


def test_configuration_error_is_500(client):
    response = client.get("/config")

    assert response.status_code == 500
    assert "credential" in response.json()["detail"]


def test_unhandled_exception_is_generic_500(client):
    response = client.get("/boom")

    assert response.status_code == 500
    assert response.json()["detail"] == "Internal server error"
    assert "boom" not in response.text

"""Health check and system endpoint tests."""

import json

import pytest
from starlette.requests import Request

from taskmanager.main import unhandled_exception_handler


@pytest.mark.asyncio
async def test_health_check(client):
    response = await client.get("/api/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"


@pytest.mark.asyncio
async def test_api_index_lists_resources(client):
    response = await client.get("/api")
    assert response.status_code == 200
    endpoints = response.json()["endpoints"]
    assert endpoints["tasks"] == "/api/tasks"
    assert endpoints["categories"] == "/api/categories"
    assert endpoints["users"] == "/api/users"


@pytest.mark.asyncio
async def test_request_id_is_echoed(client):
    response = await client.get("/api/health", headers={"X-Request-ID": "abc123"})
    assert response.headers["X-Request-ID"] == "abc123"


@pytest.mark.asyncio
async def test_unhandled_error_hides_details():
    request = Request({"type": "http", "method": "GET", "path": "/api/boom", "headers": []})
    response = await unhandled_exception_handler(request, RuntimeError("db password is hunter2"))
    assert response.status_code == 500
    assert json.loads(response.body) == {"detail": "Internal server error"}

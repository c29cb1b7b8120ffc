"""
Tests for the root and health endpoints.
"""

from unittest.mock import AsyncMock, patch

import pytest


@pytest.mark.asyncio
async def test_root(client):
    response = await client.get("/")

    assert response.status_code == 200
    assert response.json()["status"] == "running"


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


@pytest.mark.asyncio
async def test_ready_reports_database_and_redis(client):
    with patch("lms_api.main.init_db", AsyncMock(return_value=None)):
        response = await client.get("/ready")

    assert response.status_code == 200
    assert response.json() == {
        "status": "ready",
        "database": "connected",
        "redis": "unavailable",
    }


@pytest.mark.asyncio
async def test_ready_fails_without_database(client):
    with patch("lms_api.main.init_db", AsyncMock(side_effect=ConnectionError("db down"))):
        response = await client.get("/ready")

    assert response.status_code == 503
    assert response.json()["detail"]["error"] == "NOT_READY"

"""Tests for the application shell: root, health and metrics"""

import pytest
from httpx import AsyncClient
from fastapi import status


@pytest.mark.asyncio
class TestAppShell:
    async def test_root(self, async_client: AsyncClient):
        response = await async_client.get("/")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["status"] == "running"

    async def test_basic_health(self, async_client: AsyncClient):
        response = await async_client.get("/health")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["status"] == "healthy"

    async def test_metrics_exposed(self, async_client: AsyncClient):
        await async_client.get("/health")

        response = await async_client.get("/metrics")

        assert response.status_code == status.HTTP_200_OK
        assert response.headers["content-type"].startswith("text/plain")

    async def test_unknown_route_is_problem_details(self, async_client: AsyncClient):
        response = await async_client.get("/api/v1/nope")

        assert response.status_code == status.HTTP_404_NOT_FOUND

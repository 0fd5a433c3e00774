"""Tests for the health endpoint."""

import pytest
from aiohttp import test_utils

from sns_relay.config import HealthConfig
from sns_relay.services.health import HealthServer


async def request(server: HealthServer, path: str):
    async with test_utils.TestClient(test_utils.TestServer(server.build_app())) as client:
        resp = await client.get(path)
        return resp.status, await resp.text()


@pytest.mark.asyncio
async def test_healthy():
    assert await request(HealthServer(HealthConfig(), lambda: True), "/v1/health") == (200, "OK")


@pytest.mark.asyncio
async def test_unhealthy():
    assert await request(HealthServer(HealthConfig(), lambda: False), "/v1/health") == (500, "NOT OK")


@pytest.mark.asyncio
async def test_index():
    assert await request(HealthServer(HealthConfig(), lambda: True), "/") == (200, "sns-relay")

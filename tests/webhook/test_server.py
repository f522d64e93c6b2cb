"""Tests for the webhook HTTP receiver (aiohttp)."""

from __future__ import annotations

import asyncio
import json
from collections.abc import AsyncIterator
from typing import Any
from unittest.mock import AsyncMock

import pytest
from aiohttp.test_utils import TestClient, TestServer

from swipeflow_connector.config import ReceiverConfig
from swipeflow_connector.webhook.server import WebhookServer

_JSON = {"Content-Type": "application/json"}


@pytest.fixture
def dispatch_mock() -> AsyncMock:
    return AsyncMock(return_value=None)


@pytest.fixture
async def server_client(dispatch_mock: AsyncMock) -> AsyncIterator[TestClient[Any, Any]]:
    """Create a test client with a real WebhookServer app."""
    server = WebhookServer(ReceiverConfig(path="/swipeflow/"))
    server.set_dispatch_handler(dispatch_mock)
    client = TestClient(TestServer(server.build_app()))
    await client.start_server()
    yield client
    await client.close()


async def _drain() -> None:
    # let background dispatch tasks run
    for _ in range(3):
        await asyncio.sleep(0)


class TestHealthEndpoint:
    async def test_health_returns_ok(self, server_client: TestClient[Any, Any]) -> None:
        resp = await server_client.get("/health")
        assert resp.status == 200
        assert (await resp.json())["status"] == "ok"


class TestRejections:
    async def test_non_json_content_type_415(self, server_client: TestClient[Any, Any]) -> None:
        resp = await server_client.post(
            "/swipeflow", headers={"Content-Type": "text/plain"}, data="hello"
        )
        assert resp.status == 415

    async def test_invalid_json_400(self, server_client: TestClient[Any, Any]) -> None:
        resp = await server_client.post("/swipeflow", headers=_JSON, data="not json{{{")
        assert resp.status == 400
        assert (await resp.json())["error"] == "invalid_json"

    async def test_invalid_payload_400(
        self, server_client: TestClient[Any, Any], dispatch_mock: AsyncMock
    ) -> None:
        resp = await server_client.post("/swipeflow", headers=_JSON, data=json.dumps({}))
        assert resp.status == 400
        assert (await resp.json())["error"] == "invalid_payload"
        await _drain()
        dispatch_mock.assert_not_awaited()

    async def test_unsupported_event_422(self, server_client: TestClient[Any, Any]) -> None:
        resp = await server_client.post(
            "/swipeflow",
            headers=_JSON,
            data=json.dumps({"event": "unknown.kind", "data": {}}),
        )
        assert resp.status == 422
        body = await resp.json()
        assert body == {"error": "unsupported_event", "event": "unknown.kind"}

    async def test_wrong_path_404(self, server_client: TestClient[Any, Any]) -> None:
        resp = await server_client.post("/elsewhere", headers=_JSON, data="{}")
        assert resp.status == 404


class TestDelivery:
    async def test_item_event_dispatched(
        self, server_client: TestClient[Any, Any], dispatch_mock: AsyncMock
    ) -> None:
        payload = {
            "event": "item.approved",
            "timestamp": "2025-03-01T12:00:00Z",
            "data": {"item": {"id": "x", "metadata": '{"k": 1}'}},
        }
        resp = await server_client.post("/swipeflow", headers=_JSON, data=json.dumps(payload))

        assert resp.status == 200
        assert await resp.json() == {"received": True, "event": "item.approved"}
        await _drain()
        dispatch_mock.assert_awaited_once_with(
            {
                "event": "item.approved",
                "timestamp": "2025-03-01T12:00:00Z",
                "item": {"id": "x", "metadata": {"k": 1}},
            }
        )

    async def test_dispatch_error_does_not_fail_response(
        self, server_client: TestClient[Any, Any], dispatch_mock: AsyncMock
    ) -> None:
        dispatch_mock.side_effect = RuntimeError("workflow exploded")
        payload = {"event": "project.trigger", "data": {"projectId": "p1"}}
        resp = await server_client.post("/swipeflow", headers=_JSON, data=json.dumps(payload))
        assert resp.status == 200
        await _drain()
        dispatch_mock.assert_awaited_once()

    async def test_without_handler_still_accepts(self) -> None:
        server = WebhookServer(ReceiverConfig())
        client = TestClient(TestServer(server.build_app()))
        await client.start_server()
        try:
            payload = {"event": "item.created", "data": {"item": {"id": "1"}}}
            resp = await client.post("/swipeflow", headers=_JSON, data=json.dumps(payload))
            assert resp.status == 200
        finally:
            await client.close()


class TestLifecycle:
    async def test_start_and_stop(self, unused_tcp_port: int) -> None:
        server = WebhookServer(ReceiverConfig(port=unused_tcp_port))
        await server.start()
        await server.stop()
        assert server.route == "/swipeflow"

"""Webhook HTTP receiver: aiohttp ingress for SwipeFlow deliveries."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

from aiohttp import web

from swipeflow_connector.errors import InvalidPayload, UnsupportedEvent
from swipeflow_connector.log_context import set_log_context
from swipeflow_connector.webhook.normalizer import normalize

if TYPE_CHECKING:
    from swipeflow_connector.config import ReceiverConfig

logger = logging.getLogger(__name__)

RecordCallback = Callable[[dict[str, Any]], Awaitable[None]]


class WebhookServer:
    """HTTP server accepting SwipeFlow deliveries and dispatching canonical records.

    Routes:
    - ``GET  /health``  -- Health check for tunnel/proxy monitoring.
    - ``POST /<path>``  -- Delivery endpoint (``receiver.path`` in config).
    """

    def __init__(self, config: ReceiverConfig) -> None:
        self._config = config
        self._dispatch: RecordCallback | None = None
        self._runner: web.AppRunner | None = None
        self._background_tasks: set[asyncio.Task[None]] = set()

    @property
    def route(self) -> str:
        return "/" + self._config.path.strip("/")

    def set_dispatch_handler(self, handler: RecordCallback) -> None:
        """Set the callback invoked with each canonical record."""
        self._dispatch = handler

    def build_app(self) -> web.Application:
        app = web.Application(client_max_size=self._config.max_body_bytes)
        app.router.add_get("/health", self._handle_health)
        app.router.add_post(self.route, self._handle_delivery)
        return app

    async def start(self) -> None:
        """Create the aiohttp app and start listening."""
        self._runner = web.AppRunner(self.build_app(), access_log=None)
        await self._runner.setup()
        site = web.TCPSite(self._runner, self._config.host, self._config.port)
        await site.start()
        logger.info(
            "Webhook receiver listening on %s:%d%s",
            self._config.host,
            self._config.port,
            self.route,
        )

    async def stop(self) -> None:
        """Shut down the server."""
        if self._runner:
            await self._runner.cleanup()
            self._runner = None
        logger.info("Webhook receiver stopped")

    # -- Handlers --

    async def _handle_health(self, _request: web.Request) -> web.Response:
        return web.json_response({"status": "ok"})

    async def _handle_delivery(self, request: web.Request) -> web.Response:
        set_log_context(operation="wh")

        if request.content_type != "application/json":
            logger.warning("Delivery rejected: bad content-type %s", request.content_type)
            return web.json_response({"error": "content_type_must_be_json"}, status=415)

        raw_body = await request.read()
        try:
            payload: Any = json.loads(raw_body)
        except (json.JSONDecodeError, ValueError):
            logger.warning("Delivery rejected: invalid JSON")
            return web.json_response({"error": "invalid_json"}, status=400)

        try:
            record = normalize(payload)
        except InvalidPayload as exc:
            logger.warning("Delivery rejected: %s", exc)
            return web.json_response({"error": "invalid_payload", "detail": str(exc)}, status=400)
        except UnsupportedEvent as exc:
            logger.warning("Delivery rejected: %s", exc)
            return web.json_response(
                {"error": "unsupported_event", "event": exc.event}, status=422
            )

        if self._dispatch:
            task = asyncio.create_task(self._safe_dispatch(record))
            self._background_tasks.add(task)
            task.add_done_callback(self._background_tasks.discard)

        return web.json_response({"received": True, "event": record["event"]})

    async def _safe_dispatch(self, record: dict[str, Any]) -> None:
        """Run dispatch in a task with exception protection."""
        if self._dispatch is None:
            return
        try:
            await self._dispatch(record)
        except Exception:
            logger.exception("Dispatch error for event=%s", record.get("event"))

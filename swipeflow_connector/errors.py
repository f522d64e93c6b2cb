"""Project-level exception hierarchy."""

from __future__ import annotations

from typing import Any


class SwipeFlowError(Exception):
    """Base for all swipeflow-connector exceptions."""


class ConfigError(SwipeFlowError):
    """Configuration could not be loaded or validated."""


class RemoteRequestError(SwipeFlowError):
    """A request to the SwipeFlow API failed (transport, auth or non-2xx)."""

    def __init__(
        self,
        message: str,
        *,
        status: int | None = None,
        method: str = "",
        path: str = "",
        body: Any = None,
    ) -> None:
        super().__init__(message)
        self.status = status
        self.method = method
        self.path = path
        self.body = body


class OperationError(SwipeFlowError):
    """An action was called with an unknown operation or invalid parameters."""


class WebhookError(SwipeFlowError):
    """Inbound webhook delivery could not be handled."""


class InvalidPayload(WebhookError):  # noqa: N818
    """Delivery body is missing required structure."""


class UnsupportedEvent(WebhookError):  # noqa: N818
    """Delivery carries an event kind this connector does not know."""

    def __init__(self, event: str) -> None:
        super().__init__(f"Unsupported event type: {event}")
        self.event = event

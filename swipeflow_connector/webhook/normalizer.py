"""Inbound webhook normalization: raw delivery body -> canonical record."""

from __future__ import annotations

import json
import logging
from typing import Any

from swipeflow_connector.errors import InvalidPayload, UnsupportedEvent
from swipeflow_connector.webhook.models import (
    ABSENT,
    EventKind,
    InboundEvent,
    ItemEvent,
    ProjectTriggerEvent,
)

logger = logging.getLogger(__name__)


def parse_event(body: Any) -> InboundEvent:
    """Validate a delivery body and decode it into an `InboundEvent`.

    Raises `InvalidPayload` when the body, ``event`` or ``data`` is missing and
    `UnsupportedEvent` for an unknown ``event`` value.
    """
    if not body or not isinstance(body, dict):
        msg = "Invalid webhook payload"
        raise InvalidPayload(msg)

    event = body.get("event")
    data = body.get("data")
    if _absent(event) or _absent(data):
        msg = "Missing event or data in webhook payload"
        raise InvalidPayload(msg)

    try:
        kind = EventKind(event)
    except ValueError:
        raise UnsupportedEvent(str(event)) from None

    timestamp = body.get("timestamp")
    logger.debug("Received webhook event: %s", kind)

    if not isinstance(data, dict):
        msg = f"Webhook data for {kind} must be an object"
        raise InvalidPayload(msg)

    if kind.is_item_event:
        item = data.get("item")
        if not isinstance(item, dict):
            msg = f"Missing item in {kind} payload"
            raise InvalidPayload(msg)
        return ItemEvent(kind=kind, item=_decode_metadata(item), timestamp=timestamp)

    return ProjectTriggerEvent(
        project_id=data.get("projectId", ABSENT),
        trigger_name=data.get("triggerName", ABSENT),
        trigger_event=data.get("triggerEvent", ABSENT),
        triggered_by=data.get("triggeredBy", ABSENT),
        timestamp=timestamp,
    )


def normalize(body: Any) -> dict[str, Any]:
    """Return the canonical workflow record for one delivery."""
    return parse_event(body).to_record()


def _absent(value: Any) -> bool:
    """Missing or empty scalar; an empty object still counts as present."""
    if isinstance(value, dict | list):
        return False
    return not value


def _decode_metadata(item: dict[str, Any]) -> dict[str, Any]:
    """Copy *item*, parsing a JSON-string ``metadata`` field when possible.

    Unparseable metadata is left as the original string.
    """
    metadata = item.get("metadata")
    if not metadata or not isinstance(metadata, str):
        return dict(item)
    try:
        parsed = json.loads(metadata)
    except json.JSONDecodeError:
        logger.warning("Failed to parse metadata as JSON item=%s", item.get("id"))
        return dict(item)
    return {**item, "metadata": parsed}

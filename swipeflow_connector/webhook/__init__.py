"""Webhook system: remote subscription lifecycle and inbound event normalization."""

from swipeflow_connector.webhook.models import (
    EventKind,
    ItemEvent,
    ProjectTriggerEvent,
    Subscription,
    SubscriptionRecord,
    SubscriptionRequest,
)
from swipeflow_connector.webhook.normalizer import normalize, parse_event
from swipeflow_connector.webhook.registrar import WebhookRegistrar
from swipeflow_connector.webhook.store import (
    JsonSubscriptionStore,
    MemorySubscriptionStore,
    SubscriptionStore,
)

__all__ = [
    "EventKind",
    "ItemEvent",
    "JsonSubscriptionStore",
    "MemorySubscriptionStore",
    "ProjectTriggerEvent",
    "Subscription",
    "SubscriptionRecord",
    "SubscriptionRequest",
    "SubscriptionStore",
    "WebhookRegistrar",
    "normalize",
    "parse_event",
]

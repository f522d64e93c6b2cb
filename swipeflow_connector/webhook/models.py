"""Webhook data models: remote subscriptions, local records and inbound events."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum, unique
from typing import Any

WEBHOOK_TYPE = "dynamic"
WEBHOOK_INTEGRATION_PROVIDER = "n8n"
DEFAULT_SUBSCRIPTION_NAME = "Project Webhook"
DEFAULT_EVENTS: tuple[str, ...] = ("item.approved", "item.rejected")

# field missing from a delivery, as opposed to an explicit null
ABSENT: Any = object()


@unique
class EventKind(StrEnum):
    """Event kinds SwipeFlow delivers to webhook subscriptions."""

    ITEM_CREATED = "item.created"
    ITEM_UPDATED = "item.updated"
    ITEM_DELETED = "item.deleted"
    ITEM_APPROVED = "item.approved"
    ITEM_REJECTED = "item.rejected"
    PROJECT_TRIGGER = "project.trigger"

    @property
    def is_item_event(self) -> bool:
        return self is not EventKind.PROJECT_TRIGGER


@dataclass
class Subscription:
    """A webhook subscription held by the SwipeFlow API."""

    id: str
    url: str
    events: list[str] = field(default_factory=list)
    name: str = ""
    type: str = ""
    integration_provider: str = ""
    integration_link: str = ""

    @property
    def is_ours(self) -> bool:
        """True when the subscription carries this connector's integration tag."""
        return (
            self.type == WEBHOOK_TYPE
            and self.integration_provider == WEBHOOK_INTEGRATION_PROVIDER
        )

    def matches(self, url: str, events: list[str]) -> bool:
        """Content match: same tag, same callback URL, same event set.

        A subscription without an ID never matches.
        """
        return (
            bool(self.id)
            and self.is_ours
            and self.url == url
            and set(self.events) == set(events)
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Subscription:
        events = data.get("events")
        return cls(
            id=str(sub_id) if (sub_id := data.get("id")) is not None else "",
            url=data.get("url", ""),
            events=list(events) if isinstance(events, list) else [],
            name=data.get("name", ""),
            type=data.get("type", ""),
            integration_provider=data.get("integrationProvider", ""),
            integration_link=data.get("integrationLink", ""),
        )


@dataclass(frozen=True, slots=True)
class SubscriptionRequest:
    """Body of a subscription creation request."""

    url: str
    events: list[str]
    name: str = DEFAULT_SUBSCRIPTION_NAME
    integration_link: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "name": self.name.strip() or DEFAULT_SUBSCRIPTION_NAME,
            "events": list(self.events),
            "type": WEBHOOK_TYPE,
            "integrationProvider": WEBHOOK_INTEGRATION_PROVIDER,
            "integrationLink": self.integration_link,
        }


@dataclass
class SubscriptionRecord:
    """What one workflow remembers about its remote subscription.

    A cache hint only: the remote subscription list stays the source of truth.
    """

    subscription_id: str | None = None
    project_id: str | None = None

    @property
    def is_set(self) -> bool:
        return bool(self.subscription_id)

    def to_dict(self) -> dict[str, Any]:
        return {"webhookId": self.subscription_id, "projectId": self.project_id}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SubscriptionRecord:
        sub_id = data.get("webhookId")
        project_id = data.get("projectId")
        return cls(
            subscription_id=str(sub_id) if sub_id else None,
            project_id=str(project_id) if project_id else None,
        )


@dataclass(frozen=True, slots=True)
class ItemEvent:
    """Item lifecycle delivery (created, updated, deleted, approved, rejected)."""

    kind: EventKind
    item: dict[str, Any]
    timestamp: str | None = None

    def to_record(self) -> dict[str, Any]:
        return {"event": str(self.kind), "timestamp": self.timestamp, "item": self.item}


@dataclass(frozen=True, slots=True)
class ProjectTriggerEvent:
    """Manual or rule-based project trigger delivery."""

    project_id: Any = ABSENT
    trigger_name: Any = ABSENT
    trigger_event: Any = ABSENT
    triggered_by: Any = ABSENT
    timestamp: str | None = None

    @property
    def kind(self) -> EventKind:
        return EventKind.PROJECT_TRIGGER

    def to_record(self) -> dict[str, Any]:
        record: dict[str, Any] = {"event": str(self.kind), "timestamp": self.timestamp}
        fields = {
            "projectId": self.project_id,
            "triggerName": self.trigger_name,
            "triggerEvent": self.trigger_event,
            "triggeredBy": self.triggered_by,
        }
        record.update({key: value for key, value in fields.items() if value is not ABSENT})
        return record


InboundEvent = ItemEvent | ProjectTriggerEvent

"""SwipeFlow trigger: activation lifecycle the host drives for one workflow."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from swipeflow_connector.log_context import set_log_context
from swipeflow_connector.webhook.models import DEFAULT_EVENTS, DEFAULT_SUBSCRIPTION_NAME
from swipeflow_connector.webhook.normalizer import normalize
from swipeflow_connector.webhook.registrar import SubscriptionClient, WebhookRegistrar

if TYPE_CHECKING:
    from swipeflow_connector.webhook.store import SubscriptionStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class TriggerSettings:
    """Per-workflow trigger parameters supplied by the host."""

    project_id: str
    callback_url: str
    workflow_id: str
    events: list[str] = field(default_factory=lambda: list(DEFAULT_EVENTS))
    workflow_name: str = ""
    instance_base_url: str = ""

    @property
    def integration_link(self) -> str:
        """Deep link back to the owning workflow in the host UI."""
        return f"{self.instance_base_url.rstrip('/')}/workflow/{self.workflow_id}"


class SwipeFlowTrigger:
    """Activate, deactivate and feed deliveries for one workflow trigger."""

    def __init__(
        self,
        client: SubscriptionClient,
        store: SubscriptionStore,
        settings: TriggerSettings,
    ) -> None:
        self._store = store
        self._settings = settings
        self._registrar = WebhookRegistrar(client, store)

    @property
    def settings(self) -> TriggerSettings:
        return self._settings

    async def activate(self) -> bool:
        """Make sure the subscription exists. Returns True if one was created."""
        s = self._settings
        set_log_context(operation="sub", project_id=s.project_id, workflow_id=s.workflow_id)
        if await self._registrar.check_subscribed(s.project_id, s.callback_url, s.events):
            return False
        await self._registrar.subscribe(
            s.project_id,
            s.callback_url,
            s.events,
            s.workflow_name or DEFAULT_SUBSCRIPTION_NAME,
            s.integration_link,
        )
        return True

    async def deactivate(self) -> None:
        """Delete the remembered subscription and forget it."""
        set_log_context(operation="sub", workflow_id=self._settings.workflow_id)
        await self._registrar.teardown()
        self._store.clear()
        logger.info("Trigger deactivated")

    def handle(self, body: Any) -> dict[str, Any]:
        """Normalize one delivery for this workflow."""
        return normalize(body)

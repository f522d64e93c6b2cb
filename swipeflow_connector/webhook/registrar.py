"""Webhook registrar: reconcile the remote subscription for one workflow trigger.

The remote subscription list is the source of truth. A subscription is found
by content (integration tag, callback URL, event set), never by the remembered
ID alone, so re-activation after losing local state reuses the existing
subscription instead of creating a duplicate.

Two workflows targeting the same project are not coordinated: both may see
"not found" and create a subscription each.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol

from swipeflow_connector.errors import RemoteRequestError
from swipeflow_connector.log_context import set_log_context
from swipeflow_connector.webhook.models import (
    DEFAULT_SUBSCRIPTION_NAME,
    Subscription,
    SubscriptionRecord,
    SubscriptionRequest,
)

if TYPE_CHECKING:
    from swipeflow_connector.webhook.store import SubscriptionStore

logger = logging.getLogger(__name__)


class SubscriptionClient(Protocol):
    """The part of the remote client the registrar needs."""

    async def list_subscriptions(self, project_id: str) -> list[Subscription]: ...

    async def create_subscription(
        self, project_id: str, request: SubscriptionRequest
    ) -> Subscription: ...

    async def delete_subscription(self, project_id: str, subscription_id: str) -> None: ...


class WebhookRegistrar:
    """Keeps exactly one matching remote subscription per workflow trigger.

    Callers must run `exists` before `create` and only create when it returned
    False; the registrar itself holds no lock.
    """

    def __init__(self, client: SubscriptionClient, store: SubscriptionStore) -> None:
        self._client = client
        self._store = store

    async def exists(self, project_id: str, callback_url: str, events: list[str]) -> bool:
        """Look for a subscription identical to the one we would create.

        Records the first match in the store. Never mutates remote state.
        """
        set_log_context(operation="sub", project_id=project_id)
        subscriptions = await self._client.list_subscriptions(project_id)
        for subscription in subscriptions:
            if subscription.matches(callback_url, events):
                self._store.save(SubscriptionRecord(subscription.id, project_id))
                logger.info("Reusing webhook subscription %s", subscription.id)
                return True
        logger.debug("No matching subscription among %d", len(subscriptions))
        return False

    async def create(
        self,
        project_id: str,
        callback_url: str,
        events: list[str],
        display_name: str = DEFAULT_SUBSCRIPTION_NAME,
        integration_link: str = "",
    ) -> Subscription:
        """Register a new subscription and remember its ID."""
        set_log_context(operation="sub", project_id=project_id)
        logger.debug(
            "Registering webhook with events %s, url %s", ",".join(events), callback_url
        )
        request = SubscriptionRequest(
            url=callback_url,
            events=list(events),
            name=display_name or DEFAULT_SUBSCRIPTION_NAME,
            integration_link=integration_link,
        )
        subscription = await self._client.create_subscription(project_id, request)
        if not subscription.id:
            msg = "SwipeFlow returned no subscription ID for the new webhook"
            raise RemoteRequestError(msg, method="POST", path=f"/projects/{project_id}/webhooks")
        self._store.save(SubscriptionRecord(subscription.id, project_id))
        logger.info("Webhook subscription %s created", subscription.id)
        return subscription

    async def remove(self) -> None:
        """Delete the remembered subscription; no-op when none is remembered."""
        record = self._store.load()
        if not record.is_set:
            logger.debug("No webhook subscription remembered, nothing to delete")
            return
        project_id = record.project_id or ""
        set_log_context(operation="sub", project_id=project_id)
        await self._client.delete_subscription(project_id, record.subscription_id or "")
        logger.info("Webhook subscription %s deleted", record.subscription_id)

    # -- Host-facing names --

    async def check_subscribed(
        self, project_id: str, callback_url: str, events: list[str]
    ) -> bool:
        return await self.exists(project_id, callback_url, events)

    async def subscribe(
        self,
        project_id: str,
        callback_url: str,
        events: list[str],
        display_name: str = DEFAULT_SUBSCRIPTION_NAME,
        link_url: str = "",
    ) -> None:
        await self.create(project_id, callback_url, events, display_name, link_url)

    async def teardown(self) -> None:
        await self.remove()

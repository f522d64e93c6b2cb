"""Workflow actions: dispatch a resource/operation pair to the SwipeFlow API.

Every call returns host records (JSON objects). A list response fans out into
one record per element, anything else becomes a single record.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ValidationError

from swipeflow_connector.actions.params import (
    ApiRequestParams,
    ItemCreateParams,
    ItemRef,
    ItemReviewParams,
    ProjectRef,
    ProjectUpdateParams,
    ProjectWriteParams,
)
from swipeflow_connector.errors import OperationError
from swipeflow_connector.log_context import set_log_context

if TYPE_CHECKING:
    from swipeflow_connector.api.client import SwipeFlowClient

logger = logging.getLogger(__name__)

ActionHandler = Callable[["SwipeFlowClient", Any], Awaitable[Any]]


@dataclass(frozen=True, slots=True)
class _ActionEntry:
    params: type[BaseModel] | None
    handler: ActionHandler
    list_key: str = ""


async def _item_create(client: SwipeFlowClient, p: ItemCreateParams) -> Any:
    return await client.create_item(p.project_id, p.to_body())


async def _item_fetch_all(client: SwipeFlowClient, p: ProjectRef) -> Any:
    return await client.list_items(p.project_id)


async def _item_get(client: SwipeFlowClient, p: ItemRef) -> Any:
    return await client.get_item(p.item_id)


async def _item_review(client: SwipeFlowClient, p: ItemReviewParams) -> Any:
    return await client.review_item(p.project_id, p.item_id, p.decision, p.comment)


async def _item_delete(client: SwipeFlowClient, p: ItemRef) -> Any:
    return await client.delete_item(p.item_id)


async def _project_list(client: SwipeFlowClient, _p: None) -> Any:
    return await client.request("GET", "/projects")


async def _project_fetch(client: SwipeFlowClient, p: ProjectRef) -> Any:
    return await client.get_project(p.project_id)


async def _project_create(client: SwipeFlowClient, p: ProjectWriteParams) -> Any:
    return await client.create_project(p.name, p.description)


async def _project_update(client: SwipeFlowClient, p: ProjectUpdateParams) -> Any:
    return await client.update_project(p.project_id, p.name, p.description)


async def _project_delete(client: SwipeFlowClient, p: ProjectRef) -> Any:
    return await client.delete_project(p.project_id)


async def _api_request(client: SwipeFlowClient, p: ApiRequestParams) -> Any:
    return await client.request(
        p.method, p.endpoint, body=p.request_body, query=p.request_query
    )


ACTIONS: dict[tuple[str, str], _ActionEntry] = {
    ("item", "create"): _ActionEntry(ItemCreateParams, _item_create),
    ("item", "fetchAll"): _ActionEntry(ProjectRef, _item_fetch_all, list_key="items"),
    ("item", "get"): _ActionEntry(ItemRef, _item_get),
    ("item", "review"): _ActionEntry(ItemReviewParams, _item_review),
    ("item", "delete"): _ActionEntry(ItemRef, _item_delete),
    ("project", "list"): _ActionEntry(None, _project_list, list_key="projects"),
    ("project", "fetch"): _ActionEntry(ProjectRef, _project_fetch),
    ("project", "create"): _ActionEntry(ProjectWriteParams, _project_create),
    ("project", "update"): _ActionEntry(ProjectUpdateParams, _project_update),
    ("project", "delete"): _ActionEntry(ProjectRef, _project_delete),
    ("other", "apiRequest"): _ActionEntry(ApiRequestParams, _api_request),
}


def to_records(response: Any, list_key: str = "") -> list[dict[str, Any]]:
    """Reshape one API response into host records."""
    if list_key and isinstance(response, dict) and isinstance(response.get(list_key), list):
        response = response[list_key]
    if isinstance(response, list):
        return [r if isinstance(r, dict) else {"value": r} for r in response]
    if isinstance(response, dict):
        return [response]
    return [{"value": response}]


async def run_action(
    client: SwipeFlowClient,
    resource: str,
    operation: str,
    params: dict[str, Any],
) -> list[dict[str, Any]]:
    """Run one action for one input item."""
    entry = ACTIONS.get((resource, operation))
    if entry is None:
        msg = f"Unsupported operation '{operation}' for resource '{resource}'"
        raise OperationError(msg)

    parsed: BaseModel | None = None
    if entry.params is not None:
        try:
            parsed = entry.params.model_validate(params)
        except ValidationError as exc:
            msg = f"Invalid parameters for {resource}.{operation}: {exc}"
            raise OperationError(msg) from exc

    project_id = params.get("projectId")
    set_log_context(operation="act", project_id=str(project_id) if project_id else None)
    logger.debug("Running action %s.%s", resource, operation)
    response = await entry.handler(client, parsed)
    return to_records(response, entry.list_key)


async def execute(
    client: SwipeFlowClient,
    resource: str,
    operation: str,
    items: Iterable[dict[str, Any]],
) -> list[dict[str, Any]]:
    """Run an action once per input item and collect all records in order."""
    results: list[dict[str, Any]] = []
    for params in items:
        results.extend(await run_action(client, resource, operation, params))
    return results

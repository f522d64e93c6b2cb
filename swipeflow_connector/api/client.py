"""SwipeFlow REST client (aiohttp), authenticated by a static API key header."""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass
from types import TracebackType
from typing import Any

import aiohttp

from swipeflow_connector.config import BASE_URL
from swipeflow_connector.errors import RemoteRequestError
from swipeflow_connector.webhook.models import Subscription, SubscriptionRequest

logger = logging.getLogger(__name__)

_API_PREFIX = "/v1"
_AUTH_HEADER = "X-API-Key"


@dataclass(frozen=True, slots=True)
class CredentialCheck:
    """Result of a credential test."""

    ok: bool
    message: str


@dataclass(frozen=True, slots=True)
class ProjectOption:
    """One entry of the host's project picker."""

    name: str
    value: str
    description: str = ""


def api_path(path: str) -> str:
    """Root *path* at ``/v1``; ``projects/1`` and ``/v1/projects/1`` are equivalent."""
    path = "/" + path.lstrip("/")
    if path == _API_PREFIX or path.startswith(_API_PREFIX + "/"):
        return path
    return _API_PREFIX + path


def _error_message(status: int, reason: str | None, body: Any) -> str:
    if isinstance(body, dict):
        for key in ("message", "error", "detail"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return f"{status} {value}"
    if isinstance(body, str) and body.strip():
        return f"{status} {body.strip()[:200]}"
    return f"{status} {reason or 'Request failed'}"


def _as_list(response: Any, key: str) -> list[dict[str, Any]]:
    """Accept both a bare list and ``{key: [...]}`` envelopes."""
    if isinstance(response, list):
        return [r for r in response if isinstance(r, dict)]
    if isinstance(response, dict):
        value = response.get(key)
        if isinstance(value, list):
            return [r for r in value if isinstance(r, dict)]
    return []


class SwipeFlowClient:
    """Async client for the SwipeFlow API.

    Use as ``async with SwipeFlowClient(key) as client:``. An injected
    *session* is used as-is and not closed by the client.
    """

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = BASE_URL,
        timeout: float = 30.0,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> SwipeFlowClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
        return self._session

    async def request(
        self,
        method: str,
        path: str,
        *,
        body: dict[str, Any] | None = None,
        query: dict[str, Any] | None = None,
        url: str | None = None,
    ) -> Any:
        """Send one authenticated request and return the decoded JSON body.

        Empty *body* and *query* are omitted. Raises `RemoteRequestError` on
        transport failure, timeout or a non-2xx status.
        """
        method = method.upper()
        target = url or f"{self._base_url}{api_path(path)}"
        kwargs: dict[str, Any] = {"headers": {_AUTH_HEADER: self._api_key}}
        if body:
            kwargs["json"] = body
        if query:
            kwargs["params"] = {k: str(v) for k, v in query.items() if v is not None}

        logger.debug("SwipeFlow request %s %s", method, target)
        try:
            async with self._get_session().request(method, target, **kwargs) as resp:
                raw = await resp.read()
                payload = _decode(_text(raw, resp.charset), resp.content_type)
                if resp.status >= 400:
                    message = _error_message(resp.status, resp.reason, payload)
                    logger.warning("SwipeFlow request failed %s %s: %s", method, path, message)
                    raise RemoteRequestError(
                        message, status=resp.status, method=method, path=path, body=payload
                    )
                return payload
        except (aiohttp.ClientError, TimeoutError) as exc:
            logger.warning("SwipeFlow request error %s %s: %s", method, path, exc)
            msg = f"Request to SwipeFlow failed: {exc or type(exc).__name__}"
            raise RemoteRequestError(msg, method=method, path=path) from exc

    # -- Projects --

    async def list_projects(self, *, page: int = 1, limit: int = 100) -> list[dict[str, Any]]:
        response = await self.request("GET", "/projects", query={"page": page, "limit": limit})
        return _as_list(response, "projects")

    async def iter_projects(self, *, limit: int = 100) -> AsyncIterator[dict[str, Any]]:
        """Yield every project, fetching pages until a short page is returned."""
        page = 1
        while True:
            projects = await self.list_projects(page=page, limit=limit)
            for project in projects:
                yield project
            if len(projects) < limit:
                return
            page += 1

    async def get_project(self, project_id: str) -> Any:
        return await self.request("GET", f"/projects/{project_id}")

    async def create_project(self, name: str, description: str = "") -> Any:
        return await self.request(
            "POST", "/projects", body={"name": name, "description": description}
        )

    async def update_project(self, project_id: str, name: str, description: str = "") -> Any:
        return await self.request(
            "PUT", f"/projects/{project_id}", body={"name": name, "description": description}
        )

    async def delete_project(self, project_id: str) -> Any:
        return await self.request("DELETE", f"/projects/{project_id}")

    async def project_options(self) -> list[ProjectOption]:
        """Projects as picker options (first page, up to 100)."""
        response = await self.request("GET", "/projects", query={"page": 1, "limit": 100})
        projects = response.get("projects") if isinstance(response, dict) else None
        if not isinstance(projects, list):
            return []
        return [
            ProjectOption(
                name=str(p.get("name") or p.get("id") or "Unnamed Project"),
                value=str(p.get("id")),
                description=str(p.get("description") or ""),
            )
            for p in projects
            if isinstance(p, dict)
        ]

    async def check_credentials(self) -> CredentialCheck:
        try:
            await self.request("GET", "/projects", query={"page": 1, "limit": 1})
        except RemoteRequestError as exc:
            return CredentialCheck(ok=False, message=f"Authentication failed: {exc}")
        return CredentialCheck(ok=True, message="Authentication successful")

    # -- Items --

    async def list_items(self, project_id: str) -> Any:
        return await self.request("GET", f"/projects/{project_id}/items")

    async def get_item(self, item_id: str) -> Any:
        return await self.request("GET", f"/items/{item_id}")

    async def create_item(self, project_id: str, draft: dict[str, Any]) -> Any:
        return await self.request("POST", f"/projects/{project_id}/items", body=draft)

    async def review_item(
        self, project_id: str, item_id: str, decision: str, comment: str = ""
    ) -> Any:
        return await self.request(
            "POST",
            f"/projects/{project_id}/items/{item_id}/decisions",
            body={"decision": decision, "comment": comment},
        )

    async def delete_item(self, item_id: str) -> Any:
        return await self.request("DELETE", f"/items/{item_id}")

    # -- Webhook subscriptions --

    async def list_subscriptions(self, project_id: str) -> list[Subscription]:
        response = await self.request("GET", f"/projects/{project_id}/webhooks")
        return [Subscription.from_dict(w) for w in _as_list(response, "webhooks")]

    async def create_subscription(
        self, project_id: str, request: SubscriptionRequest
    ) -> Subscription:
        body = request.to_dict()
        response = await self.request("POST", f"/projects/{project_id}/webhooks", body=body)
        data = response if isinstance(response, dict) else {}
        return Subscription.from_dict({**body, **data})

    async def delete_subscription(self, project_id: str, subscription_id: str) -> None:
        await self.request("DELETE", f"/projects/{project_id}/webhooks/{subscription_id}")


def _text(raw: bytes, charset: str | None) -> str:
    """Decode a response body; undecodable bytes become U+FFFD."""
    try:
        return raw.decode(charset or "utf-8", errors="replace")
    except LookupError:
        return raw.decode("utf-8", errors="replace")


def _decode(text: str, content_type: str) -> Any:
    if not text:
        return {}
    if "json" not in content_type:
        return text
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return text

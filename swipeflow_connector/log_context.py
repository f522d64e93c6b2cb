"""Logging context: ContextVar-based log enrichment for async operations.

Every log record is automatically enriched with a ``[op:project:workflow]``
prefix via a `ContextFilter` attached to the root logger handlers.

Operation codes: ``act`` (action call), ``sub`` (subscription lifecycle),
``wh`` (inbound webhook delivery).
"""

from __future__ import annotations

import logging
from contextvars import ContextVar

ctx_operation: ContextVar[str | None] = ContextVar("ctx_operation", default=None)
ctx_project_id: ContextVar[str | None] = ContextVar("ctx_project_id", default=None)
ctx_workflow_id: ContextVar[str | None] = ContextVar("ctx_workflow_id", default=None)


class ContextFilter(logging.Filter):
    """Inject ContextVar values into every LogRecord as ``record.ctx``."""

    def filter(self, record: logging.LogRecord) -> bool:
        op = ctx_operation.get(None)
        project = ctx_project_id.get(None)
        workflow = ctx_workflow_id.get(None)
        parts: list[str] = []
        if op:
            parts.append(op)
        if project:
            parts.append(project)
        if workflow:
            parts.append(workflow[:8])
        record.ctx = f"[{':'.join(parts)}] " if parts else ""
        return True


def set_log_context(
    *,
    operation: str | None = None,
    project_id: str | None = None,
    workflow_id: str | None = None,
) -> None:
    """Set logging context for the current asyncio task.

    Values propagate to all coroutines called within the same task.
    Each ``asyncio.create_task()`` copies the current context automatically.
    """
    if operation is not None:
        ctx_operation.set(operation)
    if project_id is not None:
        ctx_project_id.set(project_id)
    if workflow_id is not None:
        ctx_workflow_id.set(workflow_id)

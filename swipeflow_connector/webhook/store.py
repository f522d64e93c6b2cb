"""Per-workflow scratch space remembering which remote subscription is ours."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from swipeflow_connector.webhook.models import SubscriptionRecord

logger = logging.getLogger(__name__)


@runtime_checkable
class SubscriptionStore(Protocol):
    """Key/value scratch space owned by one workflow instance."""

    def load(self) -> SubscriptionRecord: ...

    def save(self, record: SubscriptionRecord) -> None: ...

    def clear(self) -> None: ...


class MemorySubscriptionStore:
    """In-process store; state is lost with the process."""

    def __init__(self, record: SubscriptionRecord | None = None) -> None:
        self._record = record or SubscriptionRecord()

    def load(self) -> SubscriptionRecord:
        return SubscriptionRecord(self._record.subscription_id, self._record.project_id)

    def save(self, record: SubscriptionRecord) -> None:
        self._record = SubscriptionRecord(record.subscription_id, record.project_id)

    def clear(self) -> None:
        self._record = SubscriptionRecord()


class JsonSubscriptionStore:
    """JSON-file store shared by many workflows, one entry per *key*.

    File layout: ``{"workflows": {"<key>": {"webhookId": ..., "projectId": ...}}}``.
    """

    def __init__(self, path: Path, key: str) -> None:
        self._path = path
        self._key = key

    def load(self) -> SubscriptionRecord:
        entry = self._read().get(self._key)
        if not isinstance(entry, dict):
            return SubscriptionRecord()
        return SubscriptionRecord.from_dict(entry)

    def save(self, record: SubscriptionRecord) -> None:
        workflows = self._read()
        workflows[self._key] = record.to_dict()
        self._write(workflows)

    def clear(self) -> None:
        workflows = self._read()
        if workflows.pop(self._key, None) is not None:
            self._write(workflows)

    # -- Persistence --

    def _read(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            data = None
        workflows = data.get("workflows", {}) if isinstance(data, dict) else None
        if not isinstance(workflows, dict):
            self._set_aside()
            return {}
        return workflows

    def _set_aside(self) -> None:
        """Rename an unreadable state file so the next write cannot erase it."""
        backup = self._path.with_name(self._path.name + ".corrupt")
        self._path.replace(backup)
        logger.warning("Corrupt subscription state file moved to %s", backup)

    def _write(self, workflows: dict[str, Any]) -> None:
        """Save atomically (temp write + rename)."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        content = json.dumps({"workflows": workflows}, indent=2, ensure_ascii=False) + "\n"
        fd, tmp_path = tempfile.mkstemp(dir=str(self._path.parent), suffix=".tmp")
        tmp = Path(tmp_path)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
            tmp.replace(self._path)
        except BaseException:
            tmp.unlink(missing_ok=True)
            raise

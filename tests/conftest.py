"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from swipeflow_connector.log_context import ctx_operation, ctx_project_id, ctx_workflow_id


@pytest.fixture
def tmp_swipeflow_home(tmp_path: Path) -> Path:
    """Temporary ~/.swipeflow equivalent."""
    home = tmp_path / ".swipeflow"
    home.mkdir()
    return home


@pytest.fixture(autouse=True)
def _reset_log_context() -> None:
    ctx_operation.set(None)
    ctx_project_id.set(None)
    ctx_workflow_id.set(None)

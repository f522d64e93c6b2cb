"""Tests for centralized logging setup."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest
from rich.logging import RichHandler

from swipeflow_connector.log_context import ContextFilter, set_log_context
from swipeflow_connector.logging_config import LOG_FILE, QUIET_LOGGERS, setup_logging


class TestSetupLogging:
    def test_sets_root_level(self) -> None:
        setup_logging(level=logging.WARNING, log_dir=None)
        assert logging.getLogger().level == logging.WARNING

    def test_verbose_sets_debug(self) -> None:
        setup_logging(verbose=True, log_dir=None)
        assert logging.getLogger().level == logging.DEBUG

    def test_file_handler_when_log_dir(self, tmp_path: Path) -> None:
        log_dir = tmp_path / "logs"
        assert setup_logging(log_dir=log_dir) == log_dir / LOG_FILE
        assert log_dir.exists()
        handler_types = [type(h).__name__ for h in logging.getLogger().handlers]
        assert "QueueHandler" in handler_types

    def test_no_log_dir_returns_none(self) -> None:
        assert setup_logging(log_dir=None) is None

    def test_console_goes_through_rich(self) -> None:
        setup_logging(log_dir=None)
        handlers = logging.getLogger().handlers
        assert len(handlers) == 1
        assert isinstance(handlers[0], RichHandler)

    @pytest.mark.parametrize("name", QUIET_LOGGERS)
    def test_aiohttp_loggers_quieted(self, name: str) -> None:
        setup_logging(log_dir=None)
        assert logging.getLogger(name).level >= logging.WARNING

    def test_repeated_calls_no_duplicate_handlers(self, tmp_path: Path) -> None:
        setup_logging(log_dir=tmp_path)
        setup_logging(log_dir=tmp_path)
        assert len(logging.getLogger().handlers) == 2

    def test_file_receives_context_prefix(self, tmp_path: Path) -> None:
        setup_logging(log_dir=tmp_path)
        set_log_context(operation="wh", project_id="p1")
        logging.getLogger("swipeflow_connector.test").info("delivery accepted")
        setup_logging(log_dir=None)
        assert "[wh:p1] delivery accepted" in (tmp_path / LOG_FILE).read_text()


def _record() -> logging.LogRecord:
    return logging.LogRecord("t", logging.INFO, __file__, 1, "msg", None, None)


class TestContextFilter:
    def test_empty_context_gives_empty_prefix(self) -> None:
        record = _record()
        assert ContextFilter().filter(record) is True
        assert record.ctx == ""  # type: ignore[attr-defined]

    def test_prefix_joins_parts(self) -> None:
        set_log_context(operation="sub", project_id="p1", workflow_id="workflow-123456")
        record = _record()
        ContextFilter().filter(record)
        assert record.ctx == "[sub:p1:workflow] "  # type: ignore[attr-defined]

    @pytest.mark.parametrize("operation", ["act", "wh"])
    def test_operation_only(self, operation: str) -> None:
        set_log_context(operation=operation)
        record = _record()
        ContextFilter().filter(record)
        assert record.ctx == f"[{operation}] "  # type: ignore[attr-defined]

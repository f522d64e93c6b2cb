"""Tests for configuration loading."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from swipeflow_connector.config import (
    API_KEY_ENV,
    BASE_URL,
    ConnectorConfig,
    deep_merge_config,
    load_config,
)
from swipeflow_connector.errors import ConfigError


class TestDefaults:
    def test_defaults(self) -> None:
        config = ConnectorConfig()
        assert config.api.base_url == BASE_URL
        assert config.api.api_key == ""
        assert config.receiver.path == "swipeflow"
        assert config.log_level == "INFO"

    def test_state_path_expands_user(self) -> None:
        config = ConnectorConfig(state_path="~/state.json")
        assert "~" not in str(config.resolved_state_path)


class TestDeepMerge:
    def test_adds_missing_keys(self) -> None:
        merged, changed = deep_merge_config({"a": 1}, {"a": 2, "b": 3})
        assert merged == {"a": 1, "b": 3}
        assert changed is True

    def test_nested_merge_preserves_user_values(self) -> None:
        merged, changed = deep_merge_config(
            {"api": {"api_key": "k"}},
            {"api": {"api_key": "", "timeout_seconds": 30.0}},
        )
        assert merged == {"api": {"api_key": "k", "timeout_seconds": 30.0}}
        assert changed is True

    def test_unchanged(self) -> None:
        _, changed = deep_merge_config({"a": 1}, {"a": 2})
        assert changed is False


class TestLoadConfig:
    def test_creates_default_file(
        self, tmp_swipeflow_home: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.delenv(API_KEY_ENV, raising=False)
        path = tmp_swipeflow_home / "config.json"
        config = load_config(path)
        assert path.exists()
        assert config == ConnectorConfig()

    def test_merges_and_persists_new_keys(
        self, tmp_swipeflow_home: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.delenv(API_KEY_ENV, raising=False)
        path = tmp_swipeflow_home / "config.json"
        path.write_text(json.dumps({"api": {"api_key": "secret"}}))

        config = load_config(path)

        assert config.api.api_key == "secret"
        on_disk = json.loads(path.read_text())
        assert on_disk["api"]["api_key"] == "secret"
        assert "receiver" in on_disk

    def test_env_overrides_api_key(
        self, tmp_swipeflow_home: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv(API_KEY_ENV, "from-env")
        path = tmp_swipeflow_home / "config.json"
        path.write_text(json.dumps({"api": {"api_key": "from-file"}}))
        assert load_config(path).api.api_key == "from-env"

    def test_invalid_json_raises(self, tmp_swipeflow_home: Path) -> None:
        path = tmp_swipeflow_home / "config.json"
        path.write_text("{not json")
        with pytest.raises(ConfigError, match="Failed to read config"):
            load_config(path)

    def test_non_object_raises(self, tmp_swipeflow_home: Path) -> None:
        path = tmp_swipeflow_home / "config.json"
        path.write_text("[1, 2]")
        with pytest.raises(ConfigError, match="JSON object"):
            load_config(path)

    def test_invalid_values_raise(self, tmp_swipeflow_home: Path) -> None:
        path = tmp_swipeflow_home / "config.json"
        path.write_text(json.dumps({"receiver": {"port": "not-a-port"}}))
        with pytest.raises(ConfigError, match="Invalid config"):
            load_config(path)

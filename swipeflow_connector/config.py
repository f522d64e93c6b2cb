"""Connector configuration: pydantic models and JSON loader."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from swipeflow_connector.errors import ConfigError

logger = logging.getLogger(__name__)

BASE_URL = "https://api.swipeflow.io"
DOCS_URL = "https://swipeflow.io/docs"
API_KEY_ENV = "SWIPEFLOW_API_KEY"


class ApiConfig(BaseModel):
    """Settings for talking to the SwipeFlow REST API."""

    api_key: str = ""
    base_url: str = BASE_URL
    timeout_seconds: float = 30.0
    page_limit: int = 100


class ReceiverConfig(BaseModel):
    """Settings for the inbound webhook HTTP receiver."""

    host: str = "127.0.0.1"
    port: int = 8743
    path: str = "swipeflow"
    max_body_bytes: int = 262144


class ConnectorConfig(BaseModel):
    """Top-level configuration loaded from config.json."""

    log_level: str = "INFO"
    api: ApiConfig = Field(default_factory=ApiConfig)
    receiver: ReceiverConfig = Field(default_factory=ReceiverConfig)
    instance_base_url: str = ""
    state_path: str = "~/.swipeflow/subscriptions.json"

    @property
    def resolved_state_path(self) -> Path:
        return Path(self.state_path).expanduser()


def deep_merge_config(
    user: dict[str, object],
    defaults: dict[str, object],
) -> tuple[dict[str, object], bool]:
    """Recursively merge *defaults* into *user*, preserving user values.

    Returns ``(merged_dict, changed)`` where *changed* is True when new keys were added.
    """
    result: dict[str, object] = dict(user)
    changed = False
    for key, default_val in defaults.items():
        if key not in result:
            result[key] = default_val
            changed = True
        elif isinstance(default_val, dict) and isinstance(result[key], dict):
            sub_merged, sub_changed = deep_merge_config(
                result[key],  # type: ignore[arg-type]
                default_val,
            )
            result[key] = sub_merged
            changed = changed or sub_changed
    return result, changed


def load_config(config_path: Path) -> ConnectorConfig:
    """Load config.json, writing defaults on first use and merging new default keys.

    ``SWIPEFLOW_API_KEY`` in the environment overrides ``api.api_key``.
    """
    defaults = ConnectorConfig().model_dump(mode="json")

    if not config_path.exists():
        config_path.parent.mkdir(parents=True, exist_ok=True)
        config_path.write_text(
            json.dumps(defaults, indent=2, ensure_ascii=False) + "\n",
            encoding="utf-8",
        )
        logger.info("Created default config at %s", config_path)

    try:
        user_data = json.loads(config_path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as exc:
        msg = f"Failed to read config at {config_path}: {exc}"
        raise ConfigError(msg) from exc
    if not isinstance(user_data, dict):
        msg = f"Config at {config_path} must be a JSON object"
        raise ConfigError(msg)

    merged, changed = deep_merge_config(user_data, defaults)
    if changed:
        config_path.write_text(
            json.dumps(merged, indent=2, ensure_ascii=False) + "\n",
            encoding="utf-8",
        )
        logger.info("Extended config with new default fields")

    try:
        config = ConnectorConfig.model_validate(merged)
    except ValidationError as exc:
        msg = f"Invalid config at {config_path}: {exc}"
        raise ConfigError(msg) from exc

    env_key = os.environ.get(API_KEY_ENV, "").strip()
    if env_key:
        config.api.api_key = env_key
    return config

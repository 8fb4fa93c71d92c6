"""Configuration loader with YAML support and precedence handling.

Precedence order (lowest to highest):
1. Defaults
2. Global config (~/.toolgate/config.yaml)
3. Project config (.toolgate/config.yaml, searched upward from cwd)
4. Environment variables (TOOLGATE_*)
5. Explicit overrides
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from toolgate.config.models import EnvSettings, GateConfig

__all__ = [
    "ConfigError",
    "deep_merge",
    "find_project_config",
    "load_config",
    "load_yaml_config",
]


class ConfigError(Exception):
    """Raised when configuration cannot be read or validated."""


def find_project_config(start: Path | None = None) -> Path | None:
    """Find project config by walking up the directory tree.

    Stops at the first directory containing ``.git``.

    Args:
        start: Directory to start from (default: cwd)

    Returns:
        Path to ``.toolgate/config.yaml``, or None if not found.
    """
    current = (start or Path.cwd()).resolve()

    while True:
        config_path = current / ".toolgate" / "config.yaml"
        if config_path.exists():
            return config_path

        # Don't search beyond git root
        if (current / ".git").exists():
            return None

        parent = current.parent
        if parent == current:
            return None
        current = parent


def load_yaml_config(path: Path) -> dict[str, Any]:
    """Load and parse YAML config file.

    Args:
        path: Path to YAML config file.

    Returns:
        Parsed configuration dictionary, or empty dict if file doesn't exist.

    Raises:
        ConfigError: If the file is unreadable, not YAML, or not a mapping.
    """
    if not path.exists():
        return {}

    try:
        with path.open("r", encoding="utf-8") as f:
            content = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e

    if content is None:
        return {}
    if not isinstance(content, dict):
        raise ConfigError(
            f"Config file must contain a YAML mapping, got {type(content).__name__}"
        )
    return content


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries.

    Nested dicts are merged recursively; lists and other values are replaced.
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_env_config(env_settings: EnvSettings | None = None) -> dict[str, Any]:
    """Convert TOOLGATE_* environment settings into a config dict."""
    if env_settings is None:
        env_settings = EnvSettings()

    env_config: dict[str, Any] = {}
    if env_settings.approval_mode is not None:
        env_config["approval_mode"] = env_settings.approval_mode.value
    if env_settings.audit_log is not None:
        env_config["audit_log"] = str(env_settings.audit_log)
    return env_config


def load_config(
    config_path: Path | None = None,
    overrides: dict[str, Any] | None = None,
    *,
    global_config_path: Path | None = None,
) -> GateConfig:
    """Load and merge configuration from all sources.

    Args:
        config_path: Explicit project config file. If None, searches upward
            from cwd for ``.toolgate/config.yaml``.
        overrides: Highest-precedence overrides (e.g. from CLI flags).
        global_config_path: Global config file. If None, uses
            ``~/.toolgate/config.yaml``.

    Returns:
        Validated GateConfig instance.

    Raises:
        ConfigError: If a config file is invalid or the merged config
            doesn't match the schema.
    """
    if global_config_path is None:
        global_config_path = Path.home() / ".toolgate" / "config.yaml"
    if config_path is None:
        config_path = find_project_config()
    elif not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    try:
        env_config = load_env_config()
    except ValidationError as e:
        raise ConfigError(f"Invalid environment configuration: {e}") from e

    merged: dict[str, Any] = {}
    for layer in (
        load_yaml_config(global_config_path),
        load_yaml_config(config_path) if config_path else {},
        env_config,
        overrides or {},
    ):
        merged = deep_merge(merged, layer)

    try:
        return GateConfig.model_validate(merged)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e

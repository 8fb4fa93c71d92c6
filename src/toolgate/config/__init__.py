"""Configuration for toolgate."""

from toolgate.config.loader import ConfigError, load_config
from toolgate.config.models import (
    ApprovalMode,
    BridgedServerConfig,
    EnvSettings,
    GateConfig,
)

__all__ = [
    "ApprovalMode",
    "BridgedServerConfig",
    "ConfigError",
    "EnvSettings",
    "GateConfig",
    "load_config",
]

"""Configuration helpers."""

from .loader import (
    ConfigError,
    get_default_config_path,
    load_config,
    load_config_with_overloads,
    load_default_config,
)
from .models import CheckConfig, ConsulDriverConfig, GovernanceConfig

__all__ = [
    "CheckConfig",
    "ConfigError",
    "ConsulDriverConfig",
    "GovernanceConfig",
    "get_default_config_path",
    "load_config",
    "load_config_with_overloads",
    "load_default_config",
]

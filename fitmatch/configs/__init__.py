"""Configuration module: YAML loading, validation and engine settings."""

from .loader import (
    load_config,
    validate_config,
    get_config_value,
    setup_logging,
    EngineSettings,
)

__all__ = [
    "load_config",
    "validate_config",
    "get_config_value",
    "setup_logging",
    "EngineSettings",
]

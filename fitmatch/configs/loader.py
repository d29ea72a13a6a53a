"""
Configuration loading and validation.

This module handles loading of YAML configuration files, validates that
required fields are present and in range, and exposes the values the
engine uses as an EngineSettings dataclass.

The compatibility factor weights are deliberately NOT configurable; see
fitmatch.fusion.late_fusion.
"""

import logging
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Dict, Any, List, Optional

import yaml

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(log_level: str = "INFO") -> None:
    """Configure the root logger format and level."""
    level = getattr(logging, log_level.upper(), logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger().setLevel(level)


def load_config(filepath: str) -> Dict[str, Any]:
    """
    Load configuration from YAML file.

    Args:
        filepath: Path to the YAML configuration file

    Returns:
        Configuration dictionary

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If YAML is invalid
    """
    path = Path(filepath)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {filepath}")

    logger.info(f"Loading configuration from {filepath}")
    with open(filepath, "r") as f:
        config = yaml.safe_load(f)

    if config is None:
        raise ValueError(f"Configuration file is empty: {filepath}")

    return config


def validate_config(config: Dict[str, Any]) -> List[str]:
    """
    Validate configuration and return list of warnings/errors.

    Args:
        config: Configuration dictionary

    Returns:
        List of warning/error messages (empty if valid)
    """
    issues = []

    # Check required top-level sections
    required_sections = ["global", "metrics", "matching", "admission"]

    for section in required_sections:
        if section not in config:
            issues.append(f"Missing required section: {section}")

    # Check metric windows
    for key in ("window_days", "overlap_window_days"):
        value = get_config_value(config, f"metrics.{key}")
        if value is not None and (not isinstance(value, int) or value <= 0):
            issues.append(f"metrics.{key} must be a positive integer, got {value}")

    # Check matching defaults
    defaults = get_config_value(config, "matching.defaults", {}) or {}
    min_age = defaults.get("min_age", 18)
    max_age = defaults.get("max_age", 65)
    if min_age > max_age:
        issues.append(f"matching.defaults.min_age ({min_age}) exceeds max_age ({max_age})")
    min_score = defaults.get("min_compatibility_score", 0)
    if not 0 <= min_score <= 100:
        issues.append(f"matching.defaults.min_compatibility_score must be in [0, 100], got {min_score}")

    max_workers = get_config_value(config, "matching.max_workers")
    if max_workers is not None and (not isinstance(max_workers, int) or max_workers < 1):
        issues.append(f"matching.max_workers must be >= 1, got {max_workers}")

    # Check weights are not configured
    if get_config_value(config, "matching.weights") is not None:
        issues.append("matching.weights is ignored: compatibility weights are fixed")

    return issues


def get_config_value(config: Dict[str, Any], path: str, default: Any = None) -> Any:
    """
    Get a nested configuration value using dot notation.

    Args:
        config: Configuration dictionary
        path: Dot-separated path (e.g., "metrics.window_days")
        default: Default value if path doesn't exist

    Returns:
        Configuration value or default
    """
    keys = path.split(".")
    value = config
    for key in keys:
        if isinstance(value, dict) and key in value:
            value = value[key]
        else:
            return default
    return value


@dataclass
class EngineSettings:
    """
    Runtime settings of the engine.

    Attributes:
        log_level: Root logging level
        window_days: Metrics window length in days
        overlap_window_days: Activity window used for type overlap
        default_limit: Default page size for ranked matches
        max_workers: Thread pool size for candidate scoring (1 = sequential)
        preference_defaults: Default matching preference values
        default_threshold: Threshold seeded into an empty log
        history_days: Default lookback for threshold history
        metrics_cache_ttl_seconds: TTL of the optional metrics cache
    """
    log_level: str = "INFO"
    window_days: int = 90
    overlap_window_days: int = 30
    default_limit: int = 20
    max_workers: int = 1
    preference_defaults: Dict[str, Any] = field(default_factory=dict)
    default_threshold: Dict[str, Any] = field(default_factory=dict)
    history_days: int = 30
    metrics_cache_ttl_seconds: float = 300.0

    def validate(self) -> None:
        """Validate configuration values."""
        if self.window_days <= 0:
            raise ValueError(f"window_days must be positive, got {self.window_days}")
        if self.overlap_window_days <= 0:
            raise ValueError(f"overlap_window_days must be positive, got {self.overlap_window_days}")
        if self.default_limit < 0:
            raise ValueError(f"default_limit must be non-negative, got {self.default_limit}")
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {self.max_workers}")
        if self.metrics_cache_ttl_seconds <= 0:
            raise ValueError(
                f"metrics_cache_ttl_seconds must be positive, got {self.metrics_cache_ttl_seconds}"
            )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)

    @classmethod
    def from_config(cls, config: Optional[Dict[str, Any]]) -> "EngineSettings":
        """Create from main config dictionary."""
        config = config or {}
        settings = cls(
            log_level=get_config_value(config, "global.log_level", "INFO"),
            window_days=get_config_value(config, "metrics.window_days", 90),
            overlap_window_days=get_config_value(config, "metrics.overlap_window_days", 30),
            default_limit=get_config_value(config, "matching.default_limit", 20),
            max_workers=get_config_value(config, "matching.max_workers", 1),
            preference_defaults=dict(get_config_value(config, "matching.defaults", {}) or {}),
            default_threshold=dict(get_config_value(config, "admission.default_threshold", {}) or {}),
            history_days=get_config_value(config, "admission.history_days", 30),
            metrics_cache_ttl_seconds=get_config_value(config, "metrics.cache_ttl_seconds", 300.0),
        )
        settings.validate()
        return settings

    @classmethod
    def load(cls, filepath: str) -> "EngineSettings":
        """Load, validate and log issues for a YAML config file."""
        config = load_config(filepath)
        for issue in validate_config(config):
            logger.warning(f"Config issue: {issue}")
        return cls.from_config(config)

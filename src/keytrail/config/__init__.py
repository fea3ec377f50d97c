"""Configuration loading, schema, and defaults."""

from keytrail.config.loader import ConfigError, load_config
from keytrail.config.schema import KeyTrailConfig

__all__ = [
    "ConfigError",
    "KeyTrailConfig",
    "load_config",
]

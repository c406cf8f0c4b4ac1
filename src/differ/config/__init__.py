"""Configuration loading, schema, and defaults."""

from differ.config.loader import ConfigError, load_config
from differ.config.schema import DifferConfig, GitConfig, LogConfig, OutputConfig, RelayConfig

__all__ = [
    "ConfigError",
    "DifferConfig",
    "GitConfig",
    "LogConfig",
    "OutputConfig",
    "RelayConfig",
    "load_config",
]

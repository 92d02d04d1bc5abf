"""Configuration system for backerup.

This module provides TOML-based configuration loading, validation,
and schema definitions for backup jobs.
"""

from .loader import ConfigError, find_config_file, load_config
from .schema import (
    BackupMethod,
    Config,
    GlobalConfig,
    JobConfig,
    RetentionConfig,
)

__all__ = [
    "BackupMethod",
    "GlobalConfig",
    "JobConfig",
    "RetentionConfig",
    "Config",
    "load_config",
    "find_config_file",
    "ConfigError",
]

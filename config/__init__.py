"""
Configuration module for binquery.

This module provides configuration management including
loading settings from YAML files and environment variables.

Example:
    >>> from config import Settings, load_config
    >>>
    >>> # Load default config
    >>> settings = load_config()
    >>>
    >>> # Access settings
    >>> print(settings.scans_enabled)
"""

from .settings import (
    Settings,
    QueryPolicyConfig,
    load_config,
    get_default_config_path,
)

__all__ = [
    "Settings",
    "QueryPolicyConfig",
    "load_config",
    "get_default_config_path",
]

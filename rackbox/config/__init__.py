"""RackBox configuration module.

This module provides TOML-based configuration with environment variable overrides.

Configuration is loaded from the following locations (in order of priority):
1. Environment variables (highest priority)
2. ./config.toml (project root - for development)
3. ~/.config/rackbox/config.toml (user config)
4. /etc/rackbox/config.toml (system config)

Secrets are loaded from secrets.env files in the same directories.
"""

from rackbox.config.schema import (
    AccessConfig,
    DatabaseConfig,
    LedgerConfig,
    RackboxConfig,
    SecretsConfig,
    ServerConfig,
    StorageConfig,
)
from rackbox.config.settings import Settings, get_settings, reset_settings, settings

__all__ = [
    "AccessConfig",
    "DatabaseConfig",
    "LedgerConfig",
    "RackboxConfig",
    "SecretsConfig",
    "ServerConfig",
    "Settings",
    "StorageConfig",
    "get_settings",
    "reset_settings",
    "settings",
]

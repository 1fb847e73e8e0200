"""Global settings instance for RackBox.

This module provides a unified settings object that combines:
- Configuration from config.toml
- Secrets from secrets.env
- Environment variable overrides
"""

import logging
import secrets as secrets_module
from pathlib import Path

from rackbox.config.loader import load_config, load_secrets
from rackbox.config.schema import RackboxConfig, SecretsConfig

logger = logging.getLogger(__name__)


class Settings:
    """Unified settings object combining config and secrets.

    Exposes a flat read-only interface over the structured RackboxConfig
    and SecretsConfig.
    """

    def __init__(
        self,
        config: RackboxConfig | None = None,
        secrets: SecretsConfig | None = None,
    ):
        self._config = config or load_config()
        self._secrets = secrets or load_secrets()

        if not self._secrets.secret_key:
            self._secrets.secret_key = secrets_module.token_urlsafe(32)
            logger.warning(
                "SECURITY WARNING: No secret key configured. "
                "A random secret key has been generated. Layout edit tokens will be "
                "invalidated when the server restarts. Set RACKBOX_SECRET_KEY for production use."
            )

    @property
    def config(self) -> RackboxConfig:
        """Get the full configuration object."""
        return self._config

    @property
    def secrets(self) -> SecretsConfig:
        """Get the secrets configuration object."""
        return self._secrets

    # Application
    @property
    def app_name(self) -> str:
        return self._config.app_name

    @property
    def debug(self) -> bool:
        return self._config.server.debug

    # Server
    @property
    def host(self) -> str:
        return self._config.server.host

    @property
    def port(self) -> int:
        return self._config.server.port

    @property
    def cors_origins(self) -> list[str]:
        return self._config.server.cors_origins

    # Database
    @property
    def database_url(self) -> str:
        return self._config.database.url

    @property
    def database_echo(self) -> bool:
        return self._config.database.echo

    # Storage
    @property
    def data_dir(self) -> Path:
        return self._config.storage.data_dir

    @property
    def image_storage_path(self) -> Path:
        return self._config.storage.images_dir

    @property
    def edit_secret_file(self) -> Path:
        return self._config.storage.edit_secret_file

    @property
    def max_upload_size_bytes(self) -> int:
        return self._config.storage.max_upload_bytes

    # Ledger
    @property
    def require_known_employee(self) -> bool:
        return self._config.ledger.require_known_employee

    # Access
    @property
    def default_edit_secret(self) -> str:
        return self._config.access.default_edit_secret

    @property
    def edit_token_minutes(self) -> int:
        return self._config.access.edit_token_minutes

    # Secrets
    @property
    def secret_key(self) -> str:
        return self._secrets.secret_key or ""


_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the global settings instance, loading it on first use."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings(new_settings: Settings | None = None) -> None:
    """Reset the global settings instance.

    This is primarily useful for testing to reload configuration.
    """
    global _settings
    _settings = new_settings


class _SettingsProxy:
    """Proxy object that lazily loads settings on first access."""

    def __getattr__(self, name: str):
        return getattr(get_settings(), name)

    def __repr__(self) -> str:
        return repr(get_settings())


settings = _SettingsProxy()

"""Pydantic models for RackBox configuration.

These models define the structure of config.toml and secrets.env files.
"""

from pathlib import Path

from pydantic import BaseModel, Field


class ServerConfig(BaseModel):
    """Server configuration."""

    host: str = "127.0.0.1"
    port: int = 8000
    workers: int = 2
    debug: bool = False
    # CORS configuration - empty list means same-origin only
    cors_origins: list[str] = []


class DatabaseConfig(BaseModel):
    """Relational database configuration."""

    url: str = "sqlite+aiosqlite:///./data/rackbox.db"
    echo: bool = False


class StorageConfig(BaseModel):
    """File storage configuration."""

    data_dir: Path = Field(default_factory=lambda: Path("data"))
    log_dir: Path = Field(default_factory=lambda: Path("data/logs"))
    max_upload_mb: int = 10

    @property
    def images_dir(self) -> Path:
        """Get the rack images directory path."""
        return self.data_dir / "images"

    @property
    def edit_secret_file(self) -> Path:
        """Get the path of the shared layout edit secret."""
        return self.data_dir / "edit_secret"

    @property
    def max_upload_bytes(self) -> int:
        """Get max upload size in bytes."""
        return self.max_upload_mb * 1024 * 1024


class LedgerConfig(BaseModel):
    """Inventory ledger policy."""

    require_known_employee: bool = True


class AccessConfig(BaseModel):
    """Layout edit access configuration."""

    default_edit_secret: str = "1234"
    edit_token_minutes: int = 30


class RackboxConfig(BaseModel):
    """Main RackBox configuration loaded from config.toml."""

    app_name: str = "RackBox"
    server: ServerConfig = Field(default_factory=ServerConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    ledger: LedgerConfig = Field(default_factory=LedgerConfig)
    access: AccessConfig = Field(default_factory=AccessConfig)


class SecretsConfig(BaseModel):
    """Secrets loaded from secrets.env file.

    These are sensitive values that should not be stored in config.toml.
    """

    secret_key: str | None = None

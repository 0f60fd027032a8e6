"""Application settings using pydantic-settings.

Settings are loaded from environment variables with sensible defaults
for development. Production deployments should set all values explicitly.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

MIGRATIONS_ROOT = Path(__file__).parent / "migrations"


class DatabaseSettings(BaseSettings):
    """Database connection settings.

    Environment variables:
        TENANTCTL_DB_HOST: Database host (default: localhost)
        TENANTCTL_DB_PORT: Database port (default: 5432)
        TENANTCTL_DB_DATABASE: Database name (default: tenantctl)
        TENANTCTL_DB_USERNAME: Database user (default: postgres)
        TENANTCTL_DB_PASSWORD: Database password (required in production)
        TENANTCTL_DB_POOL_MAX_CONNECTIONS: Size of the connection pool (default: 10)
        TENANTCTL_DB_SSL_ENABLED: Enable TLS for database connections (default: false)
        TENANTCTL_DB_SSL_CERT_PATH: CA bundle used to verify the server (optional)
        TENANTCTL_DB_SSL_REJECT_UNAUTHORIZED: Verify the server certificate (default: true)
    """

    model_config = SettingsConfigDict(
        env_prefix="TENANTCTL_DB_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    host: str = Field(default="localhost", description="Database host")
    port: int = Field(default=5432, description="Database port")
    database: str = Field(default="tenantctl", description="Database name")
    username: str = Field(default="postgres", description="Database username")
    password: SecretStr = Field(
        default=SecretStr(""),
        description="Database password",
    )
    # SQLAlchemy pools open connections lazily, so there is no minimum size
    pool_max_connections: int = Field(
        default=10,
        description="Maximum connections in pool",
        ge=1,
        le=100,
    )
    ssl_enabled: bool = Field(default=False, description="Connect using TLS")
    ssl_cert_path: Path | None = Field(
        default=None,
        description="CA certificate bundle; relative paths resolve against the working directory",
    )
    ssl_reject_unauthorized: bool = Field(
        default=True,
        description="Reject servers whose certificate cannot be verified",
    )

    @property
    def connection_string(self) -> str:
        """Generate a connection string (without password for logging)."""
        return f"postgresql://{self.username}@{self.host}:{self.port}/{self.database}"


class ProvisioningSettings(BaseSettings):
    """Tenant provisioning and migration settings.

    Environment variables:
        TENANTCTL_SHARED_SCHEMA: Schema holding the tenant registry (default: public)
        TENANTCTL_REQUIRED_EXTENSIONS: JSON list of extensions tenant migrations need
        TENANTCTL_MASTER_MIGRATIONS_DIR: Directory of master migration files
        TENANTCTL_TENANT_MIGRATIONS_DIR: Directory of tenant migration files
        TENANTCTL_MASTER_TRACKING_TABLE: Applied-migrations table for the master scope
        TENANTCTL_TENANT_TRACKING_TABLE: Applied-migrations table for tenant scopes
        TENANTCTL_FLEET_CONCURRENCY: Tenants migrated at once by fleet runs (default: 1)
        TENANTCTL_STEP_TIMEOUT_SECONDS: Per-tenant timeout for fleet runs (default: none)
    """

    model_config = SettingsConfigDict(
        env_prefix="TENANTCTL_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    shared_schema: str = Field(default="public", description="Shared schema name")
    required_extensions: list[str] = Field(
        default_factory=lambda: ["vector"],
        description="Extensions installed into the shared schema before tenant migrations",
    )
    master_migrations_dir: Path = Field(
        default=MIGRATIONS_ROOT / "master",
        description="Directory of master migration files",
    )
    tenant_migrations_dir: Path = Field(
        default=MIGRATIONS_ROOT / "tenant",
        description="Directory of tenant migration files",
    )
    master_tracking_table: str = Field(
        default="schema_migrations_master",
        description="Applied-migrations table for the master scope",
    )
    tenant_tracking_table: str = Field(
        default="schema_migrations_tenant",
        description="Applied-migrations table for tenant scopes",
    )
    fleet_concurrency: int = Field(
        default=1,
        description="Maximum tenants processed concurrently by fleet runs",
        ge=1,
        le=32,
    )
    step_timeout_seconds: float | None = Field(
        default=None,
        description="Timeout for a single tenant step during fleet runs",
        gt=0,
    )

    @model_validator(mode="after")
    def validate_tracking_tables(self) -> "ProvisioningSettings":
        """Master and tenant scopes must not share a tracking table."""
        if self.master_tracking_table == self.tenant_tracking_table:
            raise ValueError(
                "master_tracking_table and tenant_tracking_table must differ "
                f"(both are '{self.master_tracking_table}')"
            )
        return self


@lru_cache
def get_database_settings() -> DatabaseSettings:
    """Get cached database settings.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return DatabaseSettings()


@lru_cache
def get_provisioning_settings() -> ProvisioningSettings:
    """Get cached provisioning settings.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return ProvisioningSettings()

"""
Environment-aware configuration settings for the workflow builder.

Supports dev, test, and prod environments with appropriate defaults.
"""

from enum import Enum
from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Supported deployment environments."""

    DEV = "dev"
    TEST = "test"
    PROD = "prod"


class StorageBackend(str, Enum):
    """Where the edited workflow is persisted."""

    MEMORY = "memory"
    FILE = "file"
    REDIS = "redis"


class StorageSettings(BaseSettings):
    """Persistence adapter settings."""

    model_config = SettingsConfigDict(env_prefix="STORAGE_")

    backend: StorageBackend = Field(default=StorageBackend.FILE, description="Persistence backend")
    key: str = Field(default="smoothwork-workflow", description="Namespaced storage key for the workflow")
    directory: str = Field(default="data", description="Directory used by the file backend")


class RedisSettings(BaseSettings):
    """Redis connection settings."""

    model_config = SettingsConfigDict(env_prefix="REDIS_")

    host: str = Field(default="localhost", description="Redis server hostname")
    port: int = Field(default=6379, description="Redis server port")
    db: int = Field(default=0, description="Redis database number")
    password: Optional[str] = Field(default=None, description="Redis password")
    max_connections: int = Field(default=10, description="Maximum connection pool size")
    socket_timeout: float = Field(default=5.0, description="Socket timeout")
    socket_connect_timeout: float = Field(default=5.0, description="Connection timeout")


class EditorSettings(BaseSettings):
    """Editing session behaviour."""

    model_config = SettingsConfigDict(env_prefix="EDITOR_")

    history_capacity: int = Field(default=60, ge=1, description="Maximum undo snapshots kept")
    focus_flash_seconds: float = Field(default=0.7, ge=0.0, description="How long a focused node stays highlighted")
    focus_zoom: float = Field(default=1.35, gt=0.0, description="Camera zoom used when centering a node")
    focus_duration_ms: int = Field(default=450, ge=0, description="Camera animation duration")


class SimulationSettings(BaseSettings):
    """Mock simulator settings."""

    model_config = SettingsConfigDict(env_prefix="SIMULATION_")

    delay_seconds: float = Field(default=0.4, ge=0.0, description="Artificial latency of the mock simulator")


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        case_sensitive=False,  # REDIS_HOST and redis_host both work
        extra="ignore",        # Ignore unknown environment variables
    )

    # Application
    app_name: str = Field(default="Workflow Builder")
    environment: Environment = Field(default=Environment.DEV)
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO")

    # Sub-settings
    storage: StorageSettings = Field(default_factory=StorageSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)
    editor: EditorSettings = Field(default_factory=EditorSettings)
    simulation: SimulationSettings = Field(default_factory=SimulationSettings)

    @field_validator("environment", mode="before")
    @classmethod
    def validate_environment(cls, v: str | Environment) -> Environment:
        """Validate and convert environment string to enum."""
        if isinstance(v, Environment):
            return v
        return Environment(v.lower())

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == Environment.DEV

    @property
    def is_testing(self) -> bool:
        """Check if running in test mode."""
        return self.environment == Environment.TEST

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == Environment.PROD


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()

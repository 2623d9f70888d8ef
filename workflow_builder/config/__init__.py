"""Configuration management."""

from workflow_builder.config.settings import Environment, Settings, StorageBackend, get_settings

__all__ = ["Environment", "Settings", "StorageBackend", "get_settings"]

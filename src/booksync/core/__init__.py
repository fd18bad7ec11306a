"""Core module - Shared configuration."""

from booksync.core.config import ConfigError, SyncConfig

__all__ = [
    "ConfigError",
    "SyncConfig",
]

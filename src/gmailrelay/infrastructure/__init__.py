# src/gmailrelay/infrastructure/__init__.py
"""Infrastructure layer - external services, storage, and configuration."""

from gmailrelay.infrastructure.settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
]

"""Configuration helpers for the branch permission tooling."""

from .settings import (
    DEFAULT_API_BASE_URL,
    DEFAULT_BATCH_SIZE,
    DEFAULT_REQUEST_TIMEOUT,
    Settings,
    SettingsManager,
)

__all__ = [
    "DEFAULT_API_BASE_URL",
    "DEFAULT_BATCH_SIZE",
    "DEFAULT_REQUEST_TIMEOUT",
    "Settings",
    "SettingsManager",
]

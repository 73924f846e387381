"""Configuration package."""

from tabsbot.config.settings import (
    AppSettings,
    MatrixSettings,
    StorageBackend,
    StorageSettings,
)

__all__ = [
    "AppSettings",
    "MatrixSettings",
    "StorageBackend",
    "StorageSettings",
]

"""
Storage Services Package

Provides the abstract tab state interface and its two backends:
a whole-ledger JSON file and per-room Matrix state events.
"""

from tabsbot.services.storage.interface import (
    StateLoadError,
    StatePublishError,
    StorageError,
    TabStateSync,
)
from tabsbot.services.storage.file_store import JsonFileTabStore
from tabsbot.services.storage.room_state import RoomStateTabSync

__all__ = [
    # Interface
    "TabStateSync",
    # Exceptions
    "StateLoadError",
    "StatePublishError",
    "StorageError",
    # Backends
    "JsonFileTabStore",
    "RoomStateTabSync",
]

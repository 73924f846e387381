"""
Abstract Tab State Interface

DESIGN DECISION: The ledger never persists anything itself. After a
command changes a room's tab, the orchestrator hands the new tab to a
TabStateSync backend. This allows us to:
1. Keep state in a local JSON file, or
2. Mirror it into the chat room itself as a state event
3. Use an in-memory backend for testing

A failed publish is reported with StatePublishError; the caller logs it
and keeps the in-memory ledger as it is.
"""

from abc import ABC, abstractmethod
from typing import Iterable

from tabsbot.models.tab import RoomTab


class TabStateSync(ABC):
    """
    Abstract interface for tab state storage.

    Any backend (file, room state, database) must implement these methods.
    """

    #: Short name used in log lines
    backend_name: str = "unknown"

    @abstractmethod
    async def load_tabs(self, room_ids: Iterable[str]) -> dict[str, RoomTab]:
        """
        Load the persisted tabs.

        Args:
            room_ids: Rooms the bot is currently in. Backends that keep
                      every room in one place may ignore this and return
                      everything they hold.

        Returns:
            Mapping of room id to its persisted tab

        Raises:
            StateLoadError: If the stored state cannot be read
        """
        pass

    @abstractmethod
    async def publish(self, room_id: str, tab: RoomTab) -> None:
        """
        Persist the authoritative tab of one room.

        Args:
            room_id: Room the tab belongs to
            tab: The room's full tab after the change

        Raises:
            StatePublishError: If the tab could not be stored
        """
        pass


class StorageError(Exception):
    """Base exception for tab state storage."""
    pass


class StateLoadError(StorageError):
    """Stored tab state could not be read or parsed."""
    pass


class StatePublishError(StorageError):
    """A tab could not be written to the backend."""

    def __init__(self, room_id: str, message: str):
        self.room_id = room_id
        super().__init__(message)

"""
Abstract Chat Transport Interface

The transport is everything between the bot and the chat platform:
logging in, joining rooms, turning platform events into InboundMessages,
sending replies and reading/writing room state.

The orchestrator and the room-state backend only talk to this interface,
so tests can swap in an in-memory transport.
"""

from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Optional

from tabsbot.models.tab import InboundMessage


MessageHandler = Callable[[InboundMessage], Awaitable[object]]
JoinHandler = Callable[[str], Awaitable[None]]


class ChatTransportInterface(ABC):
    """Abstract interface for a chat platform connection."""

    @abstractmethod
    def joined_room_ids(self) -> list[str]:
        """Rooms the bot is currently joined to."""
        pass

    @abstractmethod
    async def send_text(self, room_id: str, text: str) -> None:
        """
        Send a plain text message to a room.

        Raises:
            SendError: If the platform refused or the request failed
        """
        pass

    @abstractmethod
    async def put_room_state(
        self,
        room_id: str,
        event_type: str,
        content: dict,
    ) -> None:
        """
        Set a room-scoped state value (empty state key).

        Raises:
            TransportError: If the platform refused (e.g. missing power level)
        """
        pass

    @abstractmethod
    async def get_room_state(
        self,
        room_id: str,
        event_type: str,
    ) -> Optional[dict]:
        """
        Read a room-scoped state value.

        Returns:
            The state content, or None if the room has none

        Raises:
            TransportError: If the request failed for another reason
        """
        pass


class TransportError(Exception):
    """Base exception for chat transport operations."""
    pass


class LoginError(TransportError):
    """Could not log in to the chat platform."""
    pass


class JoinError(TransportError):
    """Could not join a room."""

    def __init__(self, room_id: str, message: str):
        self.room_id = room_id
        super().__init__(message)


class SendError(TransportError):
    """A message could not be delivered to a room."""

    def __init__(self, room_id: str, message: str):
        self.room_id = room_id
        super().__init__(message)

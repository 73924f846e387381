"""Chat transport package."""

from tabsbot.services.transport.interface import (
    ChatTransportInterface,
    JoinError,
    LoginError,
    SendError,
    TransportError,
)
from tabsbot.services.transport.matrix import (
    MatrixTransport,
    join_attempts,
    normalize_event,
)

__all__ = [
    # Interface
    "ChatTransportInterface",
    # Exceptions
    "JoinError",
    "LoginError",
    "SendError",
    "TransportError",
    # Matrix implementation
    "MatrixTransport",
    "join_attempts",
    "normalize_event",
]

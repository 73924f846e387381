"""Services package."""

from tabsbot.services.storage import (
    JsonFileTabStore,
    RoomStateTabSync,
    StateLoadError,
    StatePublishError,
    StorageError,
    TabStateSync,
)
from tabsbot.services.transport import (
    ChatTransportInterface,
    JoinError,
    LoginError,
    MatrixTransport,
    SendError,
    TransportError,
)

__all__ = [
    # Storage services
    "JsonFileTabStore",
    "RoomStateTabSync",
    "StateLoadError",
    "StatePublishError",
    "StorageError",
    "TabStateSync",
    # Transport services
    "ChatTransportInterface",
    "JoinError",
    "LoginError",
    "MatrixTransport",
    "SendError",
    "TransportError",
]

"""
Data Models Package

Pydantic models shared by the ledger, the command layer and the
collaborators that persist and deliver its output.
"""

from tabsbot.models.tab import (
    InboundMessage,
    LedgerSnapshot,
    RoomTab,
)
from tabsbot.models.activity import (
    ActivityEvent,
    ActivityEventBuilder,
    ActivityEventType,
    ActivitySeverity,
)

__all__ = [
    # Tab models
    "InboundMessage",
    "LedgerSnapshot",
    "RoomTab",
    # Activity models
    "ActivityEvent",
    "ActivityEventBuilder",
    "ActivityEventType",
    "ActivitySeverity",
]

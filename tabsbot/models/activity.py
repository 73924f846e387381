"""
Activity Models for Tabs Bot

Every command the bot handles and every call to a collaborator produces
an ActivityEvent that goes to the structured process log.

DESIGN DECISION: Activity events are log lines, not a history.
They are never stored, so the bot keeps no transaction record beyond
the balances themselves.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class ActivityEventType(str, Enum):
    """Types of events the bot logs."""
    # Commands
    PAYMENT_RECORDED = "payment_recorded"
    TRANSFER_RECORDED = "transfer_recorded"
    TRANSFER_REJECTED = "transfer_rejected"
    BALANCE_REQUESTED = "balance_requested"
    TAB_REBALANCED = "tab_rebalanced"
    USAGE_REJECTED = "usage_rejected"

    # State sync
    LEDGER_RESTORED = "ledger_restored"
    STATE_LOAD_FAILED = "state_load_failed"
    STATE_PUBLISHED = "state_published"
    STATE_PUBLISH_FAILED = "state_publish_failed"

    # Transport
    ROOM_JOINED = "room_joined"
    ROOM_JOIN_FAILED = "room_join_failed"
    REPLY_FAILED = "reply_failed"


class ActivitySeverity(str, Enum):
    """Severity level for activity events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class ActivityEvent(BaseModel):
    """A single thing that happened, ready for the structured log."""

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )
    event_type: ActivityEventType
    severity: ActivitySeverity = ActivitySeverity.INFO

    # Where and who
    room_id: Optional[str] = None
    sender: Optional[str] = None

    # Fixed wording only; user-supplied text belongs in details
    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "room_id": self.room_id,
            "sender": self.sender,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class ActivityEventBuilder:
    """
    Helper class to build activity events with common patterns.

    Usage:
        event = ActivityEventBuilder.payment_recorded(room_id, sender, 1250)
    """

    @staticmethod
    def payment_recorded(room_id: str, sender: str, amount: int) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.PAYMENT_RECORDED,
            room_id=room_id,
            sender=sender,
            description="Payment recorded",
            details={"amount": amount},
        )

    @staticmethod
    def transfer_recorded(
        room_id: str,
        sender: str,
        recipient: str,
        amount: int,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.TRANSFER_RECORDED,
            room_id=room_id,
            sender=sender,
            description="Payment to another user recorded",
            details={"amount": amount, "recipient": recipient},
        )

    @staticmethod
    def transfer_rejected(
        room_id: str,
        sender: str,
        search: str,
        reason: str,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.TRANSFER_REJECTED,
            severity=ActivitySeverity.WARNING,
            room_id=room_id,
            sender=sender,
            description="Could not resolve the payment recipient",
            details={"search": search, "reason": reason},
        )

    @staticmethod
    def balance_requested(room_id: str, sender: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.BALANCE_REQUESTED,
            severity=ActivitySeverity.DEBUG,
            room_id=room_id,
            sender=sender,
            description="Balance requested",
        )

    @staticmethod
    def tab_rebalanced(room_id: str, sender: str, residual: int) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.TAB_REBALANCED,
            room_id=room_id,
            sender=sender,
            description="Tab shifted to zero mean",
            details={"residual": residual},
        )

    @staticmethod
    def usage_rejected(room_id: str, sender: str, command: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.USAGE_REJECTED,
            severity=ActivitySeverity.DEBUG,
            room_id=room_id,
            sender=sender,
            description="Malformed command",
            details={"command": command},
        )

    @staticmethod
    def ledger_restored(source: str, room_count: int) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.LEDGER_RESTORED,
            description=f"Restored {room_count} room tabs from {source}",
            details={"source": source, "room_count": room_count},
        )

    @staticmethod
    def state_load_failed(
        room_id: str,
        backend: str,
        error_message: str,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.STATE_LOAD_FAILED,
            severity=ActivitySeverity.ERROR,
            room_id=room_id,
            description=f"Failed to read tab state from {backend}",
            details={"backend": backend},
            error_message=error_message,
        )

    @staticmethod
    def state_published(room_id: str, backend: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.STATE_PUBLISHED,
            severity=ActivitySeverity.DEBUG,
            room_id=room_id,
            description=f"Tab state published to {backend}",
            details={"backend": backend},
        )

    @staticmethod
    def state_publish_failed(
        room_id: str,
        backend: str,
        error_message: str,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.STATE_PUBLISH_FAILED,
            severity=ActivitySeverity.ERROR,
            room_id=room_id,
            description=f"Failed to update tab state on {backend}",
            details={"backend": backend},
            error_message=error_message,
        )

    @staticmethod
    def room_joined(room_id: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.ROOM_JOINED,
            room_id=room_id,
            description="Successfully joined room",
        )

    @staticmethod
    def room_join_failed(room_id: str, error_message: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.ROOM_JOIN_FAILED,
            severity=ActivitySeverity.ERROR,
            room_id=room_id,
            description="Can't join room",
            error_message=error_message,
        )

    @staticmethod
    def reply_failed(room_id: str, error_message: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.REPLY_FAILED,
            severity=ActivitySeverity.ERROR,
            room_id=room_id,
            description="Failed to send message to room",
            error_message=error_message,
        )

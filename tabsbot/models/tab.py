"""
Core Data Models for Tabs Bot

These models define the shape of everything the ledger stores and
everything that crosses a boundary (file, room state, chat transport).

DESIGN DECISION: Balances are plain ints counting cents.
Pydantic runs in strict mode for balances so a float or a numeric string
read back from storage is rejected instead of silently coerced.
"""

from typing import Annotated

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    RootModel,
    StrictInt,
)


# =============================================================================
# ROOM TAB
# =============================================================================

class RoomTab(BaseModel):
    """
    The running balances of one chat room, in cents.

    Positive balance: the user has paid more than their share.
    Negative balance: the user owes the room.

    A user missing from `users` is at 0.
    """
    model_config = ConfigDict(extra="ignore")

    users: dict[str, StrictInt] = Field(
        default_factory=dict,
        description="User identifier -> balance in cents"
    )

    @property
    def total(self) -> int:
        """Sum of all balances in the room."""
        return sum(self.users.values())

    def find_user(self, search: str) -> list[str]:
        """
        Return every known user whose identifier contains `search`.

        Matching is case-sensitive substring containment on the raw
        identifier, so "bob" matches "@bob:example.org" and "@jimbob:x".
        """
        return [name for name in self.users if search in name]


class LedgerSnapshot(RootModel[dict[str, RoomTab]]):
    """
    Flat-file representation of a whole ledger.

    Serializes as {"<room id>": {"users": {"<user id>": <cents>}}}.
    """
    root: dict[str, RoomTab] = Field(default_factory=dict)


# =============================================================================
# INBOUND MESSAGE
# =============================================================================

class InboundMessage(BaseModel):
    """
    A text message from a joined room, normalized by the transport.

    This is the only shape the command layer ever sees, whatever
    event type the chat platform delivered.
    """
    model_config = ConfigDict(frozen=True)

    room_id: Annotated[str, Field(min_length=1)]
    sender: Annotated[str, Field(min_length=1)]
    body: str = ""

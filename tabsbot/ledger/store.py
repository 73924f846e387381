"""
Ledger: the per-room balance store.

DESIGN DECISION: The ledger is a plain in-memory object with no I/O.
Persisting a tab after a change is the caller's job (see the state sync
services). This keeps every operation here atomic: it either completes
or raises before touching any balance.

The ledger owns all RoomTab values. `get()` and `snapshot()` hand out
deep copies so nobody else can mutate a tab behind its back.
"""

from typing import Iterator, Optional

from tabsbot.ledger.amounts import format_amount
from tabsbot.models.tab import LedgerSnapshot, RoomTab


EMPTY_TAB_MESSAGE = "The tab of this room is currently empty."
BALANCE_HEADER = "Current room balance:"


class UserSearchError(Exception):
    """Base exception for resolving a user from a search fragment."""

    def __init__(self, search: str, message: str):
        self.search = search
        super().__init__(message)


class UserNotFoundError(UserSearchError):
    """No known user in the room matches the search fragment."""

    def __init__(self, search: str):
        super().__init__(search, f"No user matches {search!r}")


class AmbiguousUserError(UserSearchError):
    """Several known users in the room match the search fragment."""

    def __init__(self, search: str, candidates: list[str]):
        self.candidates = candidates
        super().__init__(
            search,
            f"{len(candidates)} users match {search!r}: {', '.join(candidates)}",
        )


class Ledger:
    """
    Balances of every room the bot keeps a tab for.

    Room and user identifiers are opaque strings from the chat platform.
    """

    def __init__(self):
        self._rooms: dict[str, RoomTab] = {}

    @classmethod
    def from_snapshot(cls, snapshot: LedgerSnapshot) -> "Ledger":
        """Rebuild a ledger from its flat-file representation."""
        ledger = cls()
        for room, tab in snapshot.root.items():
            ledger.restore(room, tab)
        return ledger

    def __contains__(self, room: str) -> bool:
        return room in self._rooms

    def __len__(self) -> int:
        return len(self._rooms)

    def rooms(self) -> Iterator[str]:
        """Iterate over the rooms that have a tab."""
        return iter(list(self._rooms))

    def snapshot(self) -> LedgerSnapshot:
        """Export every tab, deep-copied."""
        return LedgerSnapshot(
            {room: tab.model_copy(deep=True) for room, tab in self._rooms.items()}
        )

    def restore(self, room: str, tab: RoomTab) -> None:
        """
        Insert or overwrite the whole tab of a room.

        Only used when reloading persisted state, which is trusted,
        so no validation happens beyond the model's own.
        """
        self._rooms[room] = tab.model_copy(deep=True)

    def get(self, room: str) -> Optional[RoomTab]:
        """Return a copy of the room's tab, or None if it has none."""
        tab = self._rooms.get(room)
        if tab is None:
            return None
        return tab.model_copy(deep=True)

    def pay(self, amount: int, room: str, user: str) -> None:
        """Add `amount` cents to `user`'s balance in `room`."""
        users = self._rooms.setdefault(room, RoomTab()).users
        users[user] = users.get(user, 0) + amount

    def resolve_user(self, room: str, search: str) -> str:
        """
        Find the one known user of `room` whose identifier contains `search`.

        Raises:
            UserNotFoundError: No known user matches `search`
            AmbiguousUserError: Two or more known users match `search`
        """
        tab = self._rooms.get(room)
        candidates = tab.find_user(search) if tab is not None else []

        if not candidates:
            raise UserNotFoundError(search)
        if len(candidates) > 1:
            raise AmbiguousUserError(search, sorted(candidates))
        return candidates[0]

    def pay_to(self, amount: int, room: str, user: str, search: str) -> str:
        """
        Record that `user` paid `amount` cents on behalf of another user.

        The other user is resolved from `search` as in `resolve_user`.
        `user` is credited and the resolved user is debited by the same
        amount, so the room total does not change.

        Returns:
            The resolved user identifier

        Raises:
            UserNotFoundError: No known user matches `search`
            AmbiguousUserError: Two or more known users match `search`
        """
        other = self.resolve_user(room, search)
        users = self._rooms[room].users
        users[user] = users.get(user, 0) + amount
        users[other] = users.get(other, 0) - amount
        return other

    def balance(self, room: str) -> str:
        """
        Format the room's balances, one " - user: amount" line each.

        Users are listed by identifier. A room without a tab gets
        EMPTY_TAB_MESSAGE instead.
        """
        tab = self._rooms.get(room)
        if tab is None:
            return EMPTY_TAB_MESSAGE

        lines = [BALANCE_HEADER]
        for user in sorted(tab.users):
            lines.append(f" - {user}: {format_amount(tab.users[user])}")
        return "\n".join(lines)

    def rebalance(self, room: str) -> None:
        """
        Shift every balance in the room so the mean is 0.

        The mean is truncated toward zero, so the room total afterwards
        can be off by less than the number of users.
        """
        tab = self._rooms.get(room)
        if tab is None or not tab.users:
            return

        total = tab.total
        count = len(tab.users)
        mean = abs(total) // count
        if total < 0:
            mean = -mean

        for user in tab.users:
            tab.users[user] -= mean

"""Ledger package: per-room balances and amount helpers."""

from tabsbot.ledger.amounts import MAX_AMOUNT, format_amount, parse_amount
from tabsbot.ledger.store import (
    BALANCE_HEADER,
    EMPTY_TAB_MESSAGE,
    AmbiguousUserError,
    Ledger,
    UserNotFoundError,
    UserSearchError,
)

__all__ = [
    "BALANCE_HEADER",
    "MAX_AMOUNT",
    "EMPTY_TAB_MESSAGE",
    "AmbiguousUserError",
    "Ledger",
    "UserNotFoundError",
    "UserSearchError",
    "format_amount",
    "parse_amount",
]

"""Chat command package."""

from tabsbot.commands.interpreter import (
    PAID_USAGE,
    PAIDTO_USAGE,
    REBALANCE_NOTICE,
    CommandInterpreter,
    CommandResult,
)

__all__ = [
    "PAID_USAGE",
    "PAIDTO_USAGE",
    "REBALANCE_NOTICE",
    "CommandInterpreter",
    "CommandResult",
]

"""
Command Interpreter

Turns one chat message into at most one ledger operation and the text
replies that go back to the room.

COMMANDS:
- !paid <amount> <description...>
- !paidto <user> <amount> <description...>
- !balance
- !rebalance

Anything else (including an empty message) is ignored: no reply, no
change. Malformed arguments are answered with the usage text before the
ledger is touched.

The interpreter does no I/O. It reports which room's tab changed so
the caller can publish it, and which activity events to log.
"""

from typing import Callable, Optional

from pydantic import BaseModel, Field

from tabsbot.ledger import (
    AmbiguousUserError,
    Ledger,
    UserNotFoundError,
    format_amount,
    parse_amount,
)
from tabsbot.models.activity import ActivityEvent, ActivityEventBuilder
from tabsbot.models.tab import InboundMessage


PAID_USAGE = """Usage: !paid <amount> <Any description you like>
<amount> must be positive, without units, using `.` as cent separator"""

PAIDTO_USAGE = """Usage: !paidto <username> <amount> <Any description you like>
<amount> must be positive, without units, using `.` as cent separator"""

REBALANCE_NOTICE = "Rebalancing accounts to 0 mean."


class CommandResult(BaseModel):
    """What handling one message produced."""
    replies: list[str] = Field(
        default_factory=list,
        description="Texts to send back to the room, in order"
    )
    publish_room: Optional[str] = Field(
        default=None,
        description="Room whose tab changed and must be republished"
    )
    events: list[ActivityEvent] = Field(
        default_factory=list,
        description="Activity to log"
    )

    @property
    def is_ignored(self) -> bool:
        """True when the message was not a command at all."""
        return not self.replies and self.publish_room is None and not self.events


class CommandInterpreter:
    """
    Dispatches bot commands against a ledger.

    The interpreter holds no memory between messages; all state lives
    in the ledger it was given.
    """

    def __init__(self, ledger: Ledger):
        self._ledger = ledger
        self._handlers: dict[str, Callable[[InboundMessage, list[str]], CommandResult]] = {
            "!paid": self._paid,
            "!paidto": self._paidto,
            "!balance": self._balance,
            "!rebalance": self._rebalance,
        }

    @property
    def commands(self) -> list[str]:
        return sorted(self._handlers)

    def handle(self, message: InboundMessage) -> CommandResult:
        """Interpret one message. Unknown first tokens yield an empty result."""
        tokens = message.body.split()
        if not tokens:
            return CommandResult()

        handler = self._handlers.get(tokens[0])
        if handler is None:
            return CommandResult()
        return handler(message, tokens[1:])

    # =========================================================================
    # Handlers
    # =========================================================================

    def _paid(self, message: InboundMessage, args: list[str]) -> CommandResult:
        amount = parse_amount(args[0]) if args else None
        if amount is None:
            return self._usage(message, "!paid", PAID_USAGE)

        # Everything that can fail runs before the ledger changes
        description = " ".join(args[1:])
        result = CommandResult(
            replies=[
                f'{message.sender} paid {format_amount(amount)} for "{description}"'
            ],
            publish_room=message.room_id,
            events=[
                ActivityEventBuilder.payment_recorded(
                    message.room_id, message.sender, amount
                )
            ],
        )
        self._ledger.pay(amount, message.room_id, message.sender)
        return result

    def _paidto(self, message: InboundMessage, args: list[str]) -> CommandResult:
        search = args[0] if args else None
        amount = parse_amount(args[1]) if len(args) > 1 else None
        if search is None or amount is None:
            return self._usage(message, "!paidto", PAIDTO_USAGE)

        try:
            other = self._ledger.resolve_user(message.room_id, search)
        except AmbiguousUserError as e:
            return CommandResult(
                replies=[f'Name "{search}" is ambiguous.'],
                events=[
                    ActivityEventBuilder.transfer_rejected(
                        message.room_id, message.sender, search, str(e)
                    )
                ],
            )
        except UserNotFoundError as e:
            return CommandResult(
                replies=[
                    f'Name "{search}" is unknown.\n'
                    'Tip: they may need to issue a "!paid 0" command for me to know them.'
                ],
                events=[
                    ActivityEventBuilder.transfer_rejected(
                        message.room_id, message.sender, search, str(e)
                    )
                ],
            )

        description = " ".join(args[2:])
        result = CommandResult(
            replies=[
                f"{message.sender} paid {format_amount(amount)} to {other} "
                f'for "{description}"'
            ],
            publish_room=message.room_id,
            events=[
                ActivityEventBuilder.transfer_recorded(
                    message.room_id, message.sender, other, amount
                )
            ],
        )
        self._ledger.pay_to(amount, message.room_id, message.sender, search)
        return result

    def _balance(self, message: InboundMessage, args: list[str]) -> CommandResult:
        return CommandResult(
            replies=[self._ledger.balance(message.room_id)],
            events=[ActivityEventBuilder.balance_requested(message.room_id, message.sender)],
        )

    def _rebalance(self, message: InboundMessage, args: list[str]) -> CommandResult:
        self._ledger.rebalance(message.room_id)
        tab = self._ledger.get(message.room_id)
        if tab is None:
            return CommandResult(
                replies=[REBALANCE_NOTICE, self._ledger.balance(message.room_id)],
            )

        return CommandResult(
            replies=[REBALANCE_NOTICE, self._ledger.balance(message.room_id)],
            publish_room=message.room_id,
            events=[
                ActivityEventBuilder.tab_rebalanced(
                    message.room_id, message.sender, tab.total
                )
            ],
        )

    def _usage(self, message: InboundMessage, command: str, usage: str) -> CommandResult:
        return CommandResult(
            replies=[usage],
            events=[ActivityEventBuilder.usage_rejected(message.room_id, message.sender, command)],
        )

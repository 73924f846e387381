"""
Amount parsing and formatting.

All money in the bot is an int counting minor units (cents).
Users type amounts as "12", "12.5" or "12.50"; the bot prints them
back as "12.50" (or "-3.05" for a debt).

Amounts are capped at MAX_AMOUNT: Matrix canonical JSON only carries
integers in [-(2**53)+1, (2**53)-1], and a larger balance could never
be published to room state.
"""

import re
from typing import Optional


MAX_AMOUNT = 2**53 - 1

_AMOUNT_PATTERN = re.compile(r"(?P<units>[0-9]+)(?:\.(?P<cents>[0-9]{1,2}))?")

# More unit digits than this is over MAX_AMOUNT whatever the digits are
_MAX_UNIT_DIGITS = len(str(MAX_AMOUNT // 100))


def parse_amount(text: str) -> Optional[int]:
    """
    Parse a user-typed amount into cents.

    Accepts "<units>", "<units>.<d>" and "<units>.<dd>". A single
    fractional digit is tenths ("12.5" is 1250).

    Returns None for anything else: signs, more than two fractional
    digits, several dots, empty components, non-digits, or an amount
    above MAX_AMOUNT.
    """
    match = _AMOUNT_PATTERN.fullmatch(text)
    if match is None:
        return None

    units_text = match.group("units").lstrip("0")
    if len(units_text) > _MAX_UNIT_DIGITS:
        return None

    amount = int(units_text or "0") * 100
    cents_text = match.group("cents")
    if cents_text is not None:
        cents = int(cents_text)
        if len(cents_text) == 1:
            cents *= 10
        amount += cents

    if amount > MAX_AMOUNT:
        return None
    return amount


def format_amount(amount: int) -> str:
    """Render cents as "[-]units.cc"."""
    sign = "-" if amount < 0 else ""
    units, cents = divmod(abs(amount), 100)
    return f"{sign}{units}.{cents:02d}"

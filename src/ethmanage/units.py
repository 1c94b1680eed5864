"""
Amount conversion between human-readable decimals and integer base units.

All arithmetic is exact: parsing goes through ``decimal.Decimal`` with a
context wide enough for the input, formatting uses integer division.
"""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation, localcontext

from .errors import InvalidAmount

ETH_DECIMALS = 18
DEFAULT_TOKEN_DECIMALS = 6
MAX_UINT256 = 2**256 - 1

_DECIMAL_TEXT = re.compile(r"^(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)$")


def _check_decimals(decimals: int) -> None:
    if not isinstance(decimals, int) or isinstance(decimals, bool) or decimals < 0:
        raise InvalidAmount(f"Decimals must be a non-negative integer, got {decimals!r}")


def to_base_units(human: str, decimals: int) -> int:
    """
    Convert a decimal string such as ``"0.1"`` to base units.

    Args:
        human: Non-negative decimal text (digits, optional fraction)
        decimals: Number of fractional digits of the unit

    Returns:
        Integer amount in base units

    Raises:
        InvalidAmount: If the text is malformed or would lose precision
    """
    _check_decimals(decimals)
    text = human.strip() if isinstance(human, str) else ""
    if not _DECIMAL_TEXT.match(text):
        raise InvalidAmount(f"Invalid amount: {human!r}")

    with localcontext() as ctx:
        ctx.prec = len(text) + decimals + 2
        try:
            scaled = Decimal(text).scaleb(decimals)
        except InvalidOperation as exc:
            raise InvalidAmount(f"Invalid amount: {human!r}") from exc

        integral = scaled.to_integral_value()
        if scaled != integral:
            raise InvalidAmount(
                f"Amount {text} has more than {decimals} fractional digits"
            )
        return int(integral)


def from_base_units(amount: int, decimals: int) -> str:
    """Format base units with exactly ``decimals`` fractional digits."""
    _check_decimals(decimals)
    if not isinstance(amount, int) or isinstance(amount, bool) or amount < 0:
        raise InvalidAmount(f"Amount must be a non-negative integer, got {amount!r}")
    if decimals == 0:
        return str(amount)
    whole, frac = divmod(amount, 10 ** decimals)
    return f"{whole}.{frac:0{decimals}d}"


def format_ether(wei: int) -> str:
    return from_base_units(wei, ETH_DECIMALS)


def parse_ether(human: str) -> int:
    return to_base_units(human, ETH_DECIMALS)

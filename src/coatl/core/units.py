"""
Coatl unit helpers.

These helpers standardize 18-decimal token and wei amounts, 8-decimal oracle
prices and the time constants used by the sale and vesting schedules, without
relying on floats.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_DOWN
from typing import Any, Final

TOKEN_DECIMALS: Final[int] = 18
WEI_PER_TOKEN: Final[int] = 10**TOKEN_DECIMALS
WEI_PER_ETHER: Final[int] = 10**18

# Oracle answers carry 8 decimals (Chainlink USD pairs)
PRICE_DECIMALS: Final[int] = 8
PRICE_SCALE: Final[int] = 10**PRICE_DECIMALS
# Scale factor lifting an 8-decimal price to 18 decimals
PRICE_TO_WEI_SCALE: Final[int] = 10 ** (TOKEN_DECIMALS - PRICE_DECIMALS)

CENTS_PER_USD: Final[int] = 100

SECONDS_PER_MINUTE: Final[int] = 60
SECONDS_PER_HOUR: Final[int] = 60 * SECONDS_PER_MINUTE
SECONDS_PER_DAY: Final[int] = 24 * SECONDS_PER_HOUR

_QUANTIZER = Decimal(f"1e-{TOKEN_DECIMALS}")


def _to_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, (int, str)):
        return Decimal(str(value))
    if isinstance(value, float):
        raise TypeError("Float not allowed for token amounts; pass str or Decimal")
    raise ValueError("Amount must be int, str, or Decimal")


def quantize_tokens(value: Any) -> Decimal:
    """Convert to a Decimal token amount with 18-decimal precision."""
    try:
        dec = _to_decimal(value)
    except (InvalidOperation, ValueError) as exc:
        raise ValueError(f"Invalid amount value: {value}") from exc

    if dec.is_nan():
        raise ValueError("Amount cannot be NaN")
    if dec.is_infinite():
        raise ValueError("Amount cannot be infinite")

    return dec.quantize(_QUANTIZER, rounding=ROUND_DOWN)


def to_base_units(value: Any) -> int:
    """Convert a whole-token (or whole-ether) amount to 18-decimal base units."""
    dec = quantize_tokens(value)
    if dec < 0:
        raise ValueError("Amount cannot be negative")
    return int((dec * Decimal(WEI_PER_TOKEN)).to_integral_value(rounding=ROUND_DOWN))


# ethers-style aliases used throughout tests and scripts
parse_ether = to_base_units


def to_price_units(usd: Any) -> int:
    """Convert a USD quote such as ``"2000.5"`` to an 8-decimal oracle answer."""
    try:
        dec = _to_decimal(usd)
    except (InvalidOperation, ValueError) as exc:
        raise ValueError(f"Invalid price value: {usd}") from exc
    if dec <= 0:
        raise ValueError("Price must be positive")
    return int((dec * PRICE_SCALE).to_integral_value(rounding=ROUND_DOWN))


def days(count: int) -> int:
    """Number of seconds in ``count`` days."""
    return count * SECONDS_PER_DAY

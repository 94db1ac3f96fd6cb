# SMB Ledger - Receivable/payable ledger & financial statements for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""Currency helpers: every amount is a Decimal rounded half-up to the cent."""

from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Union

from .errors import InvalidRecord

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

Number = Union[Decimal, int, float, str]


def to_decimal(value: Number) -> Decimal:
    """Convert a number to Decimal without binary float artifacts."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        # str() keeps the shortest repr, so 0.1 stays 0.1
        return Decimal(str(value))
    try:
        return Decimal(value)
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise InvalidRecord(f"Invalid numeric value: {value!r}") from exc


def cents(value: Number) -> Decimal:
    """Round an amount half-up to the cent."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def cents_down(value: Number) -> Decimal:
    """Round an amount toward zero to the cent."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_DOWN)


def to_cents_int(value: Number) -> int:
    """Integer number of cents, as stored in the database."""
    return int(cents(value) * 100)


def from_cents_int(value: int) -> Decimal:
    """Decimal amount from an integer number of cents."""
    return cents(Decimal(int(value)) / 100)

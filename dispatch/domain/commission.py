"""
Commission Engine
=================

Formula
-------
platform_commission = round_cents(agreed_fare x COMMISSION_RATE)

* **COMMISSION_RATE** is a flat 12 % across every corridor and driver.
* Amounts are ``Decimal`` throughout.  Floats are converted through
  ``str()`` so binary drift never reaches the per-driver sums.
* Rounding is to the cent, ``ROUND_HALF_UP``, applied per trip.  Statement
  totals add up already-rounded commissions.
* Reported amounts and fares are validated, never rounded: more than two
  decimal places, or a value too large for the money columns, is rejected.

Complexity: O(1) per call.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional, Union

from .errors import ValidationError

COMMISSION_RATE = Decimal("0.12")
CENT = Decimal("0.01")
# Exclusive upper bound of a Numeric(12, 2) column
MAX_AMOUNT = Decimal(10) ** 10

Amount = Union[Decimal, int, float, str]


def to_money(value: Amount) -> Decimal:
    """Quantize *value* to the cent."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def derive_commission(agreed_fare: Optional[Amount]) -> Optional[Decimal]:
    """Return the platform's cut of *agreed_fare*, or ``None`` if unpriced."""
    if agreed_fare is None:
        return None
    return to_money(to_money(agreed_fare) * COMMISSION_RATE)


def parse_amount(value: object, field: str = "amount") -> Decimal:
    """Coerce user input into a money amount, exactly as reported.

    Amounts are never rounded here: more than two decimal places is an
    error, as is anything that does not fit ``Numeric(12, 2)``.
    """
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
        if not amount.is_finite():
            raise ValidationError(f"{field} must be a number")
        if amount < 0:
            raise ValidationError(f"{field} cannot be negative")
        if amount >= MAX_AMOUNT:
            raise ValidationError(f"{field} must be less than {MAX_AMOUNT:,}")
        cents = amount.quantize(CENT)
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be a number") from None
    if cents != amount:
        raise ValidationError(f"{field} cannot have more than two decimal places")
    return cents


def parse_fare(value: object) -> Decimal:
    """An agreed fare must be a positive amount."""
    fare = parse_amount(value, field="agreed_fare")
    if fare <= 0:
        raise ValidationError("agreed_fare must be greater than zero")
    return fare

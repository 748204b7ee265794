"""Utilities for working with monetary values in Grovesmith."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional, Tuple, Union

from .exceptions import ValidationError

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
# columns are Numeric(12, 2)
MAX_AMOUNT = Decimal("9999999999.99")

AmountLike = Union[Decimal, int, float, str]


def to_decimal(value: AmountLike) -> Decimal:
    """Convert ``value`` to a :class:`~decimal.Decimal` with two decimal places."""

    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, bool):
        raise TypeError(f"Unsupported amount type: {type(value)!r}")
    elif isinstance(value, (int, float)):
        result = Decimal(str(value))
    elif isinstance(value, str):
        try:
            result = Decimal(value.strip())
        except InvalidOperation as exc:
            raise ValidationError(f"'{value}' is not a valid amount.") from exc
    else:
        raise TypeError(f"Unsupported amount type: {type(value)!r}")

    if not result.is_finite():
        raise ValidationError("Amount must be a finite number.")
    if abs(result) > MAX_AMOUNT:
        raise ValidationError(f"'{value}' is too large; amounts are limited to {MAX_AMOUNT:,}.")
    return result.quantize(CENT, rounding=ROUND_HALF_UP)


def require_positive(amount: Decimal, *, allow_zero: bool = False, label: str = "Amount") -> Decimal:
    """Ensure ``amount`` is positive (or non-negative when ``allow_zero`` is true)."""

    if allow_zero:
        if amount < ZERO:
            raise ValidationError(f"{label} must be zero or greater.")
    else:
        if amount <= ZERO:
            raise ValidationError(f"{label} must be greater than zero.")
    return amount


def parse_amount(raw: Optional[str], *, default: Optional[Decimal] = None) -> Decimal:
    """Parse a form field such as ``"12.50"`` or ``"$1,200"`` into a Decimal.

    Blank input returns ``default`` when one is given and is rejected otherwise.
    """

    text = (raw or "").strip().replace("$", "").replace(",", "")
    if not text:
        if default is not None:
            return to_decimal(default)
        raise ValidationError("Enter an amount.")
    return to_decimal(text)


def split_evenly(amount: AmountLike) -> Tuple[Decimal, Decimal, Decimal, Decimal]:
    """Split ``amount`` into four parts that add back up to it exactly.

    Leftover cents go to the earlier parts first, so ``$10.03`` becomes
    ``2.51, 2.51, 2.51, 2.50``.
    """

    total = to_decimal(amount)
    require_positive(total, allow_zero=True)
    cents = int(total / CENT)
    base, remainder = divmod(cents, 4)
    parts = [base + (1 if index < remainder else 0) for index in range(4)]
    give, spend, save, invest = (Decimal(part) * CENT for part in parts)
    return give, spend, save, invest


def format_currency(amount: Decimal) -> str:
    """Return ``amount`` as a currency formatted string (e.g. ``$12.34``)."""

    value = amount.quantize(CENT, rounding=ROUND_HALF_UP)
    if value < ZERO:
        return f"-${-value:,.2f}"
    return f"${value:,.2f}"

"""Decimal helpers for converting between display amounts and token units."""

from __future__ import annotations

from decimal import (
    ROUND_DOWN,
    ROUND_HALF_UP,
    Decimal,
    DecimalException,
    InvalidOperation,
    localcontext,
)
from typing import Any, Optional

from ..errors import InvalidAmountError

DISPLAY_PLACES = Decimal("0.01")


def _digits(value: Decimal) -> int:
    return len(value.as_tuple().digits)


def parse_amount(value: Any) -> Optional[Decimal]:
    """Return ``value`` as a finite Decimal, or None when it isn't one."""
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    try:
        amount = Decimal(text)
    except (InvalidOperation, ValueError):
        return None
    if not amount.is_finite():
        return None
    return amount


def format_display(amount: Decimal) -> str:
    # quantize needs room for every integer digit plus the two places
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, amount.adjusted() + 4)
        return str(amount.quantize(DISPLAY_PLACES, rounding=ROUND_HALF_UP))


def derive_amount_out(amount_in: Any, ratio: Optional[Decimal]) -> Optional[str]:
    """amount_in x ratio rounded to two places; None if either side is missing."""
    if ratio is None:
        return None
    parsed = parse_amount(amount_in)
    if parsed is None:
        return None
    ratio = Decimal(ratio)
    try:
        with localcontext() as ctx:
            ctx.prec = max(ctx.prec, _digits(parsed) + _digits(ratio))
            product = parsed * ratio
        return format_display(product)
    except DecimalException:
        return None


def to_smallest_unit(amount: Any, decimals: int) -> str:
    """Scale a human amount to integer base units (truncating excess precision).

    ``to_smallest_unit("10", 6) == "10000000"``
    """
    parsed = parse_amount(amount)
    if parsed is None:
        raise InvalidAmountError(f"Not a number: {amount!r}")
    if parsed <= 0:
        raise InvalidAmountError(f"Amount must be positive: {amount!r}")

    try:
        with localcontext() as ctx:
            ctx.prec = max(ctx.prec, _digits(parsed) + 2)
            scaled = parsed.scaleb(decimals).to_integral_value(rounding=ROUND_DOWN)
    except DecimalException as exc:
        raise InvalidAmountError(f"Amount {amount!r} is out of range") from exc
    if scaled == 0:
        raise InvalidAmountError(f"Amount {amount!r} is below the token's precision")
    return str(int(scaled))


def from_smallest_unit(raw: Any, decimals: int) -> str:
    """Convert integer base units to a two-place display string."""
    try:
        units = Decimal(str(raw))
    except (InvalidOperation, ValueError) as exc:
        raise ValueError(f"Invalid token amount: {raw!r}") from exc
    if not units.is_finite():
        raise ValueError(f"Invalid token amount: {raw!r}")
    try:
        with localcontext() as ctx:
            ctx.prec = max(ctx.prec, _digits(units) + 2)
            scaled = units.scaleb(-decimals)
        return format_display(scaled)
    except DecimalException as exc:
        raise ValueError(f"Token amount out of range: {raw!r}") from exc

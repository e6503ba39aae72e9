"""Integer-cent helpers shared by allocation and splitting."""

from __future__ import annotations

from collections.abc import Sequence
from decimal import ROUND_HALF_UP, Decimal


def round_cents(amount: float) -> int:
    """Round a fractional cent amount to whole cents, half away from zero.

    Args:
        amount: Amount in cents, possibly fractional (e.g. 1361.9)

    Returns:
        Whole cents
    """
    return int(Decimal(repr(amount)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def dollars_to_cents(amount: float | str) -> int:
    """Convert a dollar amount (e.g. 52.55 or "$1,052.55") to cents."""
    if isinstance(amount, str):
        amount = amount.replace("$", "").replace(",", "").strip() or "0"
        value = Decimal(amount)
    else:
        value = Decimal(repr(amount))
    return int((value * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def format_dollars(amount_cents: int) -> str:
    """Format cents as a dollar string, e.g. -5255 -> "-$52.55"."""
    sign = "-" if amount_cents < 0 else ""
    return f"{sign}${abs(amount_cents) // 100}.{abs(amount_cents) % 100:02d}"


def largest_index(values: Sequence[int]) -> int:
    """Index of the value with the largest magnitude (first one wins ties)."""
    if not values:
        raise ValueError("cannot pick the largest of an empty sequence")
    best = 0
    for i, value in enumerate(values):
        if abs(value) > abs(values[best]):
            best = i
    return best


def absorb_remainder(values: Sequence[int], target: int, index: int) -> list[int]:
    """Force values[index] to absorb the rounding gap so the list sums to target.

    Each element is computed independently upstream, so their sum can drift
    from the target by a few cents. The designated element becomes
    ``target - sum(others)``.

    Args:
        values: Naively rounded per-element amounts in cents
        target: Exact total the result must sum to
        index: Element that absorbs the difference

    Returns:
        New list summing exactly to target
    """
    if not values:
        raise ValueError("cannot absorb a remainder into an empty sequence")
    adjusted = list(values)
    others = sum(adjusted) - adjusted[index]
    adjusted[index] = target - others
    return adjusted

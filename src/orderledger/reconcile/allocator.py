"""Pro-rata cost allocation across order items.

When part of an order is paid outside the bank (gift card, points), the bank
transaction covers less than the item list prices. The charged amount is
redistributed with a single ratio:

    multiplier = target / sum(list prices)
    allocated = round(list price * multiplier)

The last item absorbs the rounding gap so allocations sum exactly to target.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from orderledger.reconcile.entities import OrderItem
from orderledger.reconcile.errors import AllocationInputError
from orderledger.reconcile.money import absorb_remainder, round_cents


@dataclass(frozen=True)
class Allocation:
    """Allocated cost for one item."""

    name: str
    list_price_cents: int
    allocated_cents: int
    quantity: int = 1


@dataclass
class AllocationResult:
    multiplier: float
    allocations: list[Allocation] = field(default_factory=list)
    total_allocated_cents: int = 0

    def allocated_for(self, index: int) -> int:
        return self.allocations[index].allocated_cents


def allocate(items: Sequence[OrderItem], target_cents: int) -> AllocationResult:
    """Distribute target_cents across items proportionally to list price.

    Args:
        items: Order items, in order; the last one absorbs rounding
        target_cents: Amount actually charged to the bank

    Returns:
        AllocationResult whose allocations sum exactly to target_cents

    Raises:
        AllocationInputError: No items, a negative list price, or list prices
            summing to zero with a nonzero target
    """
    if not items:
        raise AllocationInputError("no items to allocate")

    for item in items:
        if item.price_cents < 0:
            raise AllocationInputError(
                f"item {item.name!r} has a negative list price "
                f"({item.price_cents} cents)"
            )

    total_list = sum(item.price_cents for item in items)

    if total_list == 0:
        if target_cents != 0:
            raise AllocationInputError(
                f"cannot allocate {target_cents} cents across items with "
                "zero total list price"
            )
        # All items free, nothing to distribute
        return AllocationResult(
            multiplier=0.0,
            allocations=[
                Allocation(item.name, 0, 0, item.quantity) for item in items
            ],
            total_allocated_cents=0,
        )

    multiplier = target_cents / total_list
    naive = [round_cents(item.price_cents * multiplier) for item in items]
    amounts = absorb_remainder(naive, target_cents, len(naive) - 1)

    allocations = [
        Allocation(
            name=item.name,
            list_price_cents=item.price_cents,
            allocated_cents=amount,
            quantity=item.quantity,
        )
        for item, amount in zip(items, amounts, strict=True)
    ]

    return AllocationResult(
        multiplier=multiplier,
        allocations=allocations,
        total_allocated_cents=sum(amounts),
    )

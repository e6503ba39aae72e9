"""Category splits for reconciled ledger transactions.

Items are categorized, grouped by category and turned into splits whose
amounts sum exactly to the transaction amount. Tax (and optionally tip and
fees) is distributed in proportion to each category's subtotal; the largest
split absorbs the rounding gap.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from orderledger.reconcile.allocator import AllocationResult
from orderledger.reconcile.entities import (
    CategorizerItem,
    Category,
    ItemCategorization,
    LedgerTransaction,
    Order,
    OrderItem,
    SplitDetail,
    TransactionSplit,
)
from orderledger.reconcile.errors import (
    CategorizationError,
    InvalidInputError,
    ReconciliationError,
)
from orderledger.reconcile.money import (
    absorb_remainder,
    format_dollars,
    largest_index,
    round_cents,
)
from orderledger.reconcile.protocols import ItemCategorizer

# Notes get an "(N items)" prefix above this many items
NOTES_ITEM_COUNT_THRESHOLD = 3


@dataclass
class _CategoryGroup:
    category_id: str
    category_name: str
    items: list[OrderItem] = field(default_factory=list)
    subtotal_cents: int = 0


def format_item_notes(category_name: str, items: Sequence[OrderItem]) -> str:
    """Build split notes, e.g. "Groceries: Milk ($3.49), Eggs (x2, $5.98)"."""
    details = []
    for item in items:
        price = format_dollars(abs(item.price_cents))
        if item.quantity > 1:
            details.append(f"{item.name} (x{item.quantity}, {price})")
        else:
            details.append(f"{item.name} ({price})")

    content = ", ".join(details)
    if len(items) > NOTES_ITEM_COUNT_THRESHOLD:
        content = f"({len(items)} items) {content}"
    return f"{category_name}: {content}"


class CategorySplitter:
    """Creates ledger splits from categorized order items.

    Categorizations are memoized for the most recent order so that
    ``create_splits`` followed by ``get_single_category_info`` calls the
    categorizer once.
    """

    def __init__(
        self,
        categorizer: ItemCategorizer,
        *,
        distribute_tip_and_fees: bool = False,
    ) -> None:
        self._categorizer = categorizer
        self._distribute_tip_and_fees = distribute_tip_and_fees
        self._memo_key: tuple[str, str, tuple[str, ...]] | None = None
        self._memo: dict[str, ItemCategorization] = {}
        self._last_details: list[SplitDetail] = []

    def create_splits(
        self,
        order: Order,
        transaction: LedgerTransaction,
        categories: Sequence[Category],
        ledger_categories: Sequence[Category] | None = None,
        *,
        allocation: AllocationResult | None = None,
    ) -> list[TransactionSplit] | None:
        """Create splits for a multi-category order.

        Args:
            order: Reconciled order
            transaction: Its ledger transaction (signed amount is the target)
            categories: Categories offered to the categorizer
            ledger_categories: Categories that exist in the ledger; when given,
                any other category id is rejected
            allocation: Per-item allocated costs for orders partly paid
                outside the bank; used instead of list price plus tax

        Returns:
            None when every item lands in one category (the caller should
            update the transaction category instead), else the splits

        Raises:
            InvalidInputError: Order has no items, or allocation does not
                line up with the items
            CategorizationError: Categorizer failed, skipped an item or
                returned a category unknown to the ledger
        """
        if allocation is not None and len(allocation.allocations) != len(order.items):
            raise InvalidInputError(
                f"order {order.order_id}: allocation covers "
                f"{len(allocation.allocations)} items, order has {len(order.items)}"
            )

        self._last_details = []
        groups = self._group_items(order, categories, allocation)
        if ledger_categories is not None:
            _check_ledger_categories(order.order_id, groups, ledger_categories)

        if len(groups) == 1:
            return None

        amounts = self._group_amounts(order, groups, allocation is not None)

        # Match the transaction sign: negative for purchases, positive for returns
        if transaction.amount_cents < 0:
            amounts = [-abs(amount) for amount in amounts]
        else:
            amounts = [abs(amount) for amount in amounts]

        amounts = absorb_remainder(
            amounts, transaction.amount_cents, largest_index(amounts)
        )

        splits: list[TransactionSplit] = []
        for group, amount in zip(groups, amounts, strict=True):
            splits.append(
                TransactionSplit(
                    category_id=group.category_id,
                    amount_cents=amount,
                    notes=format_item_notes(group.category_name, group.items),
                )
            )
            self._last_details.append(
                SplitDetail(
                    category_id=group.category_id,
                    category_name=group.category_name,
                    amount_cents=amount,
                    items=list(group.items),
                )
            )
        return splits

    def get_single_category_info(
        self, order: Order, categories: Sequence[Category]
    ) -> tuple[str, str]:
        """Category id and notes for an order whose items share one category.

        Reuses the categorization from a preceding ``create_splits`` call on
        the same order.

        Returns:
            (category_id, notes)
        """
        categorized = self._categorize(order, categories)
        first = categorized[order.items[0].name]
        return first.category_id, format_item_notes(first.category_name, order.items)

    def get_split_details(self) -> list[SplitDetail]:
        """Details of the last multi-category result (empty otherwise)."""
        return list(self._last_details)

    def _categorize(
        self, order: Order, categories: Sequence[Category]
    ) -> dict[str, ItemCategorization]:
        if not order.items:
            raise InvalidInputError(f"order {order.order_id}: no items to categorize")

        # Order ids are only unique per provider, and a re-fetched order can
        # carry different items
        key = (order.provider, order.order_id, tuple(i.name for i in order.items))
        if self._memo_key == key:
            return self._memo

        # One request entry per distinct name
        distinct: dict[str, CategorizerItem] = {}
        for item in order.items:
            if item.name not in distinct:
                distinct[item.name] = CategorizerItem(
                    name=item.name,
                    price_cents=item.price_cents,
                    quantity=item.quantity,
                )

        try:
            results = self._categorizer.categorize_items(
                list(distinct.values()), list(categories)
            )
        except ReconciliationError:
            raise
        except Exception as exc:
            raise CategorizationError(
                f"order {order.order_id}: categorization failed: {exc}"
            ) from exc

        by_name = {result.item_name: result for result in results}
        missing = [name for name in distinct if name not in by_name]
        if missing:
            raise CategorizationError(
                f"order {order.order_id}: no category returned for {missing}"
            )

        self._memo_key = key
        self._memo = by_name
        return by_name

    def _group_items(
        self,
        order: Order,
        categories: Sequence[Category],
        allocation: AllocationResult | None,
    ) -> list[_CategoryGroup]:
        categorized = self._categorize(order, categories)

        groups: dict[str, _CategoryGroup] = {}
        for i, item in enumerate(order.items):
            result = categorized[item.name]
            group = groups.get(result.category_id)
            if group is None:
                group = _CategoryGroup(
                    category_id=result.category_id,
                    category_name=result.category_name,
                )
                groups[result.category_id] = group
            group.items.append(item)
            if allocation is not None:
                group.subtotal_cents += allocation.allocated_for(i)
            else:
                group.subtotal_cents += item.price_cents

        return list(groups.values())

    def _group_amounts(
        self, order: Order, groups: Sequence[_CategoryGroup], allocated: bool
    ) -> list[int]:
        if allocated:
            # Allocated costs already include tax and discounts
            return [group.subtotal_cents for group in groups]

        overhead = order.tax_cents
        if self._distribute_tip_and_fees:
            overhead += order.tip_cents + order.fees_cents

        order_subtotal = order.subtotal_cents or order.items_subtotal_cents
        amounts = []
        for group in groups:
            share = 0
            if order_subtotal:
                share = round_cents(group.subtotal_cents / order_subtotal * overhead)
            amounts.append(group.subtotal_cents + share)
        return amounts


def _check_ledger_categories(
    order_id: str,
    groups: Sequence[_CategoryGroup],
    ledger_categories: Sequence[Category],
) -> None:
    known = {category.category_id for category in ledger_categories}
    for group in groups:
        if group.category_id not in known:
            raise CategorizationError(
                f"order {order_id}: category {group.category_id!r} "
                f"({group.category_name}) does not exist in the ledger"
            )

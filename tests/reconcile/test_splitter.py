"""Tests for category splits."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from orderledger.reconcile.allocator import allocate
from orderledger.reconcile.errors import CategorizationError, InvalidInputError
from orderledger.reconcile.protocols import ItemCategorizer
from orderledger.reconcile.splitter import CategorySplitter, format_item_notes
from tests.reconcile.fixtures import (
    GROCERIES,
    HOUSEHOLD,
    LEDGER_CATEGORIES,
    TOYS,
    StaticCategorizer,
    create_grocery_household_order,
    create_item,
    create_order,
    create_toy_order,
    create_transaction,
)


def _grocery_household_categorizer() -> StaticCategorizer:
    return StaticCategorizer(
        {"Paper Towels": HOUSEHOLD, "Dish Soap": HOUSEHOLD},
        default=GROCERIES,
    )


def _two_category_order(**kwargs: object):
    return create_order(
        total_cents=11800,
        items=[create_item("Bananas", 5000), create_item("Sponges", 5000)],
        **kwargs,
    )


class TestCreateSplits:
    """Tests for multi-category split creation."""

    def test_grocery_household_order_splits_sum_to_transaction(self) -> None:
        """$150.31 order with $17.32 tax spread by category subtotal."""
        # Input
        order = create_grocery_household_order()
        transaction = create_transaction("t1", -15031)

        # Setup
        splitter = CategorySplitter(_grocery_household_categorizer())

        # Act
        output = splitter.create_splits(order, transaction, LEDGER_CATEGORIES)

        # Assert
        assert output is not None
        assert [s.category_id for s in output] == [
            GROCERIES.category_id,
            HOUSEHOLD.category_id,
        ]
        assert [s.amount_cents for s in output] == [-11819, -3212]
        assert sum(s.amount_cents for s in output) == -15031

    def test_notes_list_items_with_quantities_and_prices(self) -> None:
        """Split notes list items with quantities and prices."""
        # Setup
        splitter = CategorySplitter(_grocery_household_categorizer())

        # Act
        output = splitter.create_splits(
            create_grocery_household_order(),
            create_transaction("t1", -15031),
            LEDGER_CATEGORIES,
        )

        # Assert
        assert output is not None
        assert output[0].notes.startswith(
            "Groceries: (9 items) Whole Milk ($3.49), Eggs (x2, $5.98), "
        )
        assert output[1].notes == (
            "Household: Paper Towels ($18.99), Dish Soap ($9.43)"
        )

    def test_refund_splits_are_positive(self) -> None:
        """Splits follow the sign of a refund transaction."""
        splitter = CategorySplitter(_grocery_household_categorizer())

        output = splitter.create_splits(
            create_grocery_household_order(),
            create_transaction("t1", 15031),
            LEDGER_CATEGORIES,
        )

        assert output is not None
        assert [s.amount_cents for s in output] == [11819, 3212]

    def test_single_category_returns_none(self) -> None:
        """$100 order where every item is a grocery."""
        # Input
        order = create_order(
            total_cents=10000,
            items=[create_item("Milk", 4000), create_item("Bread", 6000)],
        )

        # Setup
        splitter = CategorySplitter(StaticCategorizer(default=GROCERIES))

        # Act
        output = splitter.create_splits(
            order, create_transaction("t1", -10000), LEDGER_CATEGORIES
        )

        # Assert
        assert output is None
        assert splitter.get_split_details() == []

    def test_tip_and_fees_stay_out_by_default(self) -> None:
        """Only tax is spread unless tip and fee distribution is on."""
        # Input
        order = _two_category_order(tax_cents=800, tip_cents=1000)
        categorizer = StaticCategorizer({"Bananas": GROCERIES, "Sponges": HOUSEHOLD})

        # Act
        output = CategorySplitter(categorizer).create_splits(
            order, create_transaction("t1", -11800), LEDGER_CATEGORIES
        )

        # Assert
        assert output is not None
        # Tax only; the largest split absorbs the undistributed tip
        assert [s.amount_cents for s in output] == [-6400, -5400]

    def test_tip_and_fees_distributed_when_enabled(self) -> None:
        """Tip and fees are spread like tax when enabled."""
        # Input
        order = _two_category_order(tax_cents=800, tip_cents=700, fees_cents=300)
        categorizer = StaticCategorizer({"Bananas": GROCERIES, "Sponges": HOUSEHOLD})

        # Act
        output = CategorySplitter(
            categorizer, distribute_tip_and_fees=True
        ).create_splits(order, create_transaction("t1", -11800), LEDGER_CATEGORIES)

        # Assert
        assert output is not None
        assert [s.amount_cents for s in output] == [-5900, -5900]

    def test_allocation_is_used_as_is(self) -> None:
        """Gift-card order: allocated costs replace list price plus tax."""
        # Input
        order = create_toy_order(bank_charged_cents=10000)
        allocation = allocate(order.items, 10000)
        categorizer = StaticCategorizer(
            {"Paw Patrol Stickers": HOUSEHOLD}, default=TOYS
        )

        # Act
        output = CategorySplitter(categorizer).create_splits(
            order,
            create_transaction("t1", -10000),
            LEDGER_CATEGORIES,
            allocation=allocation,
        )

        # Assert
        assert output is not None
        assert [s.amount_cents for s in output] == [-7484, -2516]

    def test_split_details_follow_last_result(self) -> None:
        """Split details describe the most recent split result."""
        # Setup
        splitter = CategorySplitter(_grocery_household_categorizer())

        # Act
        splitter.create_splits(
            create_grocery_household_order(),
            create_transaction("t1", -15031),
            LEDGER_CATEGORIES,
        )
        details = splitter.get_split_details()

        # Assert
        assert [d.category_name for d in details] == ["Groceries", "Household"]
        assert [d.amount_cents for d in details] == [-11819, -3212]
        assert [item.name for item in details[1].items] == [
            "Paper Towels",
            "Dish Soap",
        ]

    def test_duplicate_item_names_categorized_once(self) -> None:
        """Repeated item names are sent to the categorizer once."""
        # Input
        order = create_order(
            total_cents=1000,
            items=[create_item("Milk", 500), create_item("Milk", 500)],
        )
        categorizer = StaticCategorizer(default=GROCERIES)

        # Act
        CategorySplitter(categorizer).create_splits(
            order, create_transaction("t1", -1000), LEDGER_CATEGORIES
        )

        # Assert
        assert categorizer.calls == [["Milk"]]

    def test_item_without_category_raises(self) -> None:
        """An unanswered item is a categorization error."""
        categorizer = StaticCategorizer({"Whole Milk": GROCERIES})

        with pytest.raises(CategorizationError, match="no category returned"):
            CategorySplitter(categorizer).create_splits(
                create_grocery_household_order(),
                create_transaction("t1", -15031),
                LEDGER_CATEGORIES,
            )

    def test_category_missing_from_ledger_raises(self) -> None:
        """Categories unknown to the ledger are rejected."""
        with pytest.raises(CategorizationError, match="does not exist in the ledger"):
            CategorySplitter(_grocery_household_categorizer()).create_splits(
                create_grocery_household_order(),
                create_transaction("t1", -15031),
                LEDGER_CATEGORIES,
                ledger_categories=[GROCERIES],
            )

    def test_categorizer_failure_is_wrapped(self) -> None:
        """Categorizer exceptions surface as CategorizationError."""
        # Setup
        categorizer = MagicMock(spec=ItemCategorizer)
        categorizer.categorize_items.side_effect = RuntimeError("rate limited")

        # Act / Assert
        with pytest.raises(CategorizationError) as exc_info:
            CategorySplitter(categorizer).create_splits(
                create_order(), create_transaction("t1", -10000), LEDGER_CATEGORIES
            )
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    def test_order_without_items_raises(self) -> None:
        """Orders without items cannot be categorized."""
        with pytest.raises(InvalidInputError):
            CategorySplitter(StaticCategorizer()).create_splits(
                create_order(items=[]),
                create_transaction("t1", -10000),
                LEDGER_CATEGORIES,
            )


class TestGetSingleCategoryInfo:
    """Tests for single-category updates."""

    def test_reuses_categorization_from_create_splits(self) -> None:
        """The single-category path reuses the split categorization."""
        # Input
        order = create_order(
            total_cents=10000,
            items=[create_item("Milk", 4000), create_item("Bread", 6000)],
        )
        categorizer = StaticCategorizer(default=GROCERIES)
        splitter = CategorySplitter(categorizer)

        # Act
        splitter.create_splits(
            order, create_transaction("t1", -10000), LEDGER_CATEGORIES
        )
        category_id, notes = splitter.get_single_category_info(
            order, LEDGER_CATEGORIES
        )

        # Assert
        assert category_id == GROCERIES.category_id
        assert notes == "Groceries: Milk ($40.00), Bread ($60.00)"
        assert len(categorizer.calls) == 1

    def test_refetched_order_with_new_items_is_recategorized(self) -> None:
        """Same order id with different items does not reuse stale answers."""
        # Input
        first = create_order("ORDER-9", items=[create_item("Milk", 10000)])
        second = create_order("ORDER-9", items=[create_item("Soap", 10000)])
        categorizer = StaticCategorizer({"Milk": GROCERIES, "Soap": HOUSEHOLD})
        splitter = CategorySplitter(categorizer)

        # Act
        splitter.get_single_category_info(first, LEDGER_CATEGORIES)
        category_id, notes = splitter.get_single_category_info(
            second, LEDGER_CATEGORIES
        )

        # Assert
        assert category_id == HOUSEHOLD.category_id
        assert notes == "Household: Soap ($100.00)"
        assert categorizer.calls == [["Milk"], ["Soap"]]

    def test_categorizes_when_called_first(self) -> None:
        """Called on its own, it categorizes the order."""
        categorizer = StaticCategorizer(default=TOYS)

        category_id, _ = CategorySplitter(categorizer).get_single_category_info(
            create_order(), LEDGER_CATEGORIES
        )

        assert category_id == TOYS.category_id
        assert len(categorizer.calls) == 1


def test_notes_prefix_item_count_above_three_items() -> None:
    """Notes for more than three items are prefixed with the count."""
    items = [create_item(f"Item {i}", 100) for i in range(4)]

    assert format_item_notes("Misc", items).startswith("Misc: (4 items) Item 0")
    assert format_item_notes("Misc", items[:3]) == (
        "Misc: Item 0 ($1.00), Item 1 ($1.00), Item 2 ($1.00)"
    )

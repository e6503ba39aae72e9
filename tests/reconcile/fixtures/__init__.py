"""Fixtures for reconciliation engine tests."""

from tests.reconcile.fixtures.categorizers import (
    GROCERIES,
    HOUSEHOLD,
    LEDGER_CATEGORIES,
    TOYS,
    StaticCategorizer,
)
from tests.reconcile.fixtures.orders import (
    TOY_ORDER_LIST_PRICES,
    create_grocery_household_order,
    create_item,
    create_order,
    create_toy_order,
    create_transaction,
)

__all__ = [
    "GROCERIES",
    "HOUSEHOLD",
    "LEDGER_CATEGORIES",
    "TOYS",
    "StaticCategorizer",
    "TOY_ORDER_LIST_PRICES",
    "create_grocery_household_order",
    "create_item",
    "create_order",
    "create_toy_order",
    "create_transaction",
]

"""Boundary protocols for the collaborators the engine drives.

The engine never talks to a concrete ledger API, categorization service or
database; callers inject implementations of these protocols.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from orderledger.reconcile.entities import (
        CategorizerItem,
        Category,
        ItemCategorization,
        OrderRecord,
        TransactionSplit,
        TransactionUpdate,
    )


@runtime_checkable
class LedgerClient(Protocol):
    """Mutating operations on the budgeting ledger.

    Implementations raise on failure; the engine wraps those errors in
    LedgerError or, for deletions, records them as non-fatal.
    """

    def update_transaction(
        self, transaction_id: str, update: TransactionUpdate
    ) -> None:
        """Apply amount/category/notes changes to one transaction."""
        ...

    def update_splits(
        self, transaction_id: str, splits: list[TransactionSplit]
    ) -> None:
        """Replace the transaction's splits."""
        ...

    def delete_transaction(self, transaction_id: str) -> None:
        """Delete one transaction."""
        ...


@runtime_checkable
class ItemCategorizer(Protocol):
    """Opaque, blocking item categorization service."""

    def categorize_items(
        self, items: list[CategorizerItem], categories: list[Category]
    ) -> list[ItemCategorization]:
        """Pick one category per item.

        Args:
            items: Items to categorize (distinct names)
            categories: Categories to choose from

        Returns:
            One ItemCategorization per input item, keyed by item_name.
        """
        ...


@runtime_checkable
class OrderRecordStore(Protocol):
    """Cross-run idempotency and audit persistence."""

    def is_processed(self, order_id: str) -> bool:
        """True if the order was already applied in a previous live run."""
        ...

    def save_record(self, record: OrderRecord) -> None:
        """Persist the outcome of processing an order."""
        ...

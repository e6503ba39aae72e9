"""JSON snapshots of orders, ledger transactions and categories.

Amounts in snapshots are dollars (numbers or strings such as "$1,052.55");
they are converted to cents on load. Example::

    {
      "orders": [{"order_id": "A1", "order_date": "2024-01-15",
                  "total": 100.0, "subtotal": 92.0, "tax": 8.0,
                  "items": [{"name": "Milk", "price": 3.49}]}],
      "transactions": [{"id": "t1", "amount": -100.0, "date": "2024-01-16"}],
      "categories": [{"id": "c1", "name": "Groceries"}]
    }
"""

from __future__ import annotations

from dataclasses import dataclass
import datetime as dt
from pathlib import Path

from pydantic import BaseModel, Field

from orderledger.reconcile.entities import (
    Category,
    LedgerTransaction,
    Order,
    OrderItem,
    TransactionSplit,
    TransactionUpdate,
)
from orderledger.reconcile.errors import LedgerError
from orderledger.reconcile.money import dollars_to_cents

Dollars = float | str


class SnapshotItem(BaseModel):
    name: str
    price: Dollars
    quantity: int = 1
    unit_price: Dollars | None = None

    def to_item(self) -> OrderItem:
        return OrderItem(
            name=self.name,
            price_cents=dollars_to_cents(self.price),
            quantity=self.quantity,
            unit_price_cents=(
                dollars_to_cents(self.unit_price)
                if self.unit_price is not None
                else None
            ),
        )


class SnapshotOrder(BaseModel):
    order_id: str
    order_date: dt.date
    total: Dollars
    subtotal: Dollars
    tax: Dollars = 0
    tip: Dollars = 0
    fees: Dollars = 0
    provider: str = ""
    items: list[SnapshotItem] = Field(default_factory=list)
    final_charges: list[Dollars] | None = None
    non_bank_amount: Dollars | None = None
    def to_order(self) -> Order:
        return Order(
            order_id=self.order_id,
            order_date=self.order_date,
            total_cents=dollars_to_cents(self.total),
            subtotal_cents=dollars_to_cents(self.subtotal),
            tax_cents=dollars_to_cents(self.tax),
            tip_cents=dollars_to_cents(self.tip),
            fees_cents=dollars_to_cents(self.fees),
            items=[item.to_item() for item in self.items],
            provider=self.provider,
            final_charges_cents=(
                [dollars_to_cents(charge) for charge in self.final_charges]
                if self.final_charges is not None
                else None
            ),
            non_bank_amount_cents=(
                dollars_to_cents(self.non_bank_amount)
                if self.non_bank_amount is not None
                else None
            ),
        )


class SnapshotTransaction(BaseModel):
    id: str
    amount: Dollars
    date: dt.date
    has_splits: bool = False
    notes: str = ""
    category_id: str | None = None
    merchant: str | None = None

    def to_transaction(self) -> LedgerTransaction:
        return LedgerTransaction(
            transaction_id=self.id,
            amount_cents=dollars_to_cents(self.amount),
            posted_at=self.date,
            has_splits=self.has_splits,
            notes=self.notes,
            category_id=self.category_id,
            merchant=self.merchant,
        )


class SnapshotCategory(BaseModel):
    id: str
    name: str

    def to_category(self) -> Category:
        return Category(category_id=self.id, name=self.name)


class SnapshotFile(BaseModel):
    orders: list[SnapshotOrder] = Field(default_factory=list)
    transactions: list[SnapshotTransaction] = Field(default_factory=list)
    categories: list[SnapshotCategory] = Field(default_factory=list)


@dataclass
class Snapshot:
    orders: list[Order]
    transactions: list[LedgerTransaction]
    categories: list[Category]


def parse_snapshot(json_str: str) -> Snapshot:
    """Parse snapshot JSON; raises pydantic.ValidationError on bad input."""
    data = SnapshotFile.model_validate_json(json_str)
    return Snapshot(
        orders=[order.to_order() for order in data.orders],
        transactions=[txn.to_transaction() for txn in data.transactions],
        categories=[category.to_category() for category in data.categories],
    )


def load_snapshot(path: Path) -> Snapshot:
    return parse_snapshot(path.read_text(encoding="utf-8"))


class SnapshotLedger:
    """Ledger client over a snapshot that refuses every mutation."""

    def update_transaction(
        self, transaction_id: str, update: TransactionUpdate
    ) -> None:
        raise LedgerError(f"snapshot ledger is read-only: update {transaction_id}")

    def update_splits(
        self, transaction_id: str, splits: list[TransactionSplit]
    ) -> None:
        raise LedgerError(f"snapshot ledger is read-only: split {transaction_id}")

    def delete_transaction(self, transaction_id: str) -> None:
        raise LedgerError(f"snapshot ledger is read-only: delete {transaction_id}")

"""Domain entities used by matching, consolidation and splitting logic."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum


class OrderKind(Enum):
    """Payment capabilities an order provider exposes."""

    SIMPLE = "simple"
    MULTI_CHARGE = "multi_charge"
    GIFT_CARD_CAPABLE = "gift_card_capable"


@dataclass(frozen=True)
class OrderItem:
    """Item in a retailer order."""

    name: str
    price_cents: int  # Line list price (unit price * quantity), WITHOUT tax
    quantity: int = 1
    unit_price_cents: int | None = None


@dataclass(frozen=True)
class Order:
    """Retailer order, immutable once fetched.

    Providers that expose bank-side payment data set ``final_charges_cents``
    (every posted bank charge for the order) and, when part of the order can
    be paid by gift card, points or rewards, ``non_bank_amount_cents``.
    """

    order_id: str
    order_date: date
    total_cents: int  # Total including tax, tip and fees
    subtotal_cents: int
    tax_cents: int = 0
    tip_cents: int = 0
    fees_cents: int = 0
    items: list[OrderItem] = field(default_factory=list)
    provider: str = ""
    final_charges_cents: list[int] | None = None
    non_bank_amount_cents: int | None = None

    @property
    def kind(self) -> OrderKind:
        """Capability tag derived from which payment accessors are present."""
        if self.non_bank_amount_cents is not None:
            return OrderKind.GIFT_CARD_CAPABLE
        if self.final_charges_cents is not None:
            return OrderKind.MULTI_CHARGE
        return OrderKind.SIMPLE

    def bank_charges(self) -> list[int]:
        """Posted bank charges; the bank-paid part of the total if none posted."""
        if self.final_charges_cents is None:
            return [self.total_cents - self.non_bank_amount()]
        return list(self.final_charges_cents)

    @property
    def is_multi_delivery(self) -> bool:
        """True when fulfillment produced more than one bank charge."""
        return len(self.bank_charges()) > 1

    def non_bank_amount(self) -> int:
        """Portion paid outside the bank (gift card, points), 0 if unknown."""
        return self.non_bank_amount_cents or 0

    @property
    def items_subtotal_cents(self) -> int:
        return sum(item.price_cents for item in self.items)


@dataclass
class LedgerTransaction:
    """Budgeting-ledger record of money moved.

    ``amount_cents`` is signed: negative for expenses, positive for
    refunds and credits.
    """

    transaction_id: str
    amount_cents: int
    posted_at: date
    has_splits: bool = False
    notes: str = ""
    category_id: str | None = None
    merchant: str | None = None


@dataclass(frozen=True)
class TransactionUpdate:
    """Fields to change on a ledger transaction; None leaves a field alone."""

    amount_cents: int | None = None
    category_id: str | None = None
    notes: str | None = None


@dataclass(frozen=True)
class TransactionSplit:
    """Category-tagged portion of a ledger transaction."""

    category_id: str
    amount_cents: int
    notes: str


@dataclass
class SplitDetail:
    """Auditable companion to a TransactionSplit."""

    category_id: str
    category_name: str
    amount_cents: int
    items: list[OrderItem] = field(default_factory=list)


@dataclass(frozen=True)
class Category:
    """Ledger spending category offered to the categorizer."""

    category_id: str
    name: str


@dataclass(frozen=True)
class CategorizerItem:
    """Item as sent to the categorization service."""

    name: str
    price_cents: int
    quantity: int = 1


@dataclass(frozen=True)
class ItemCategorization:
    """Category the categorization service picked for one item."""

    item_name: str
    category_id: str
    category_name: str
    confidence: float = 1.0


class RecordStatus(Enum):
    """Outcome persisted for an order."""

    APPLIED = "applied"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class OrderRecord:
    """Persisted outcome of processing one order."""

    order_id: str
    provider: str
    status: RecordStatus
    reason: str = ""
    transaction_id: str | None = None
    split_count: int = 0
    failed_deletions: list[str] = field(default_factory=list)
    dry_run: bool = False

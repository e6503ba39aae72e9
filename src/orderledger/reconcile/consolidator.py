"""Consolidation of multi-charge orders into one canonical ledger transaction."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field, replace

from orderledger.reconcile.entities import (
    LedgerTransaction,
    Order,
    TransactionUpdate,
)
from orderledger.reconcile.errors import InvalidInputError, LedgerError
from orderledger.reconcile.logger import ConsolidatorLogger
from orderledger.reconcile.money import format_dollars
from orderledger.reconcile.protocols import LedgerClient


@dataclass
class ConsolidationResult:
    """Canonical transaction plus the extras that could not be deleted.

    Failed deletions are non-fatal: the canonical transaction is usable, the
    leftover ids need manual cleanup.
    """

    transaction: LedgerTransaction
    failed_deletions: list[str] = field(default_factory=list)

    @property
    def partial(self) -> bool:
        return bool(self.failed_deletions)


def build_consolidation_note(transactions: Sequence[LedgerTransaction]) -> str:
    """Describe the original per-charge breakdown, e.g. "2 charges: $1, $2"."""
    if not transactions:
        return ""
    charges = ", ".join(format_dollars(abs(t.amount_cents)) for t in transactions)
    return f"Multi-delivery order ({len(transactions)} charges: {charges})"


class TransactionConsolidator:
    """Merges the ledger transactions matched to one multi-charge order.

    The first transaction is kept as canonical: its amount becomes the order
    total and its notes record the original charges. The others are deleted.
    """

    def __init__(
        self,
        ledger: LedgerClient,
        consolidator_logger: ConsolidatorLogger | None = None,
    ) -> None:
        self._ledger = ledger
        self._logger = consolidator_logger or ConsolidatorLogger()

    def consolidate(
        self,
        transactions: Sequence[LedgerTransaction],
        order: Order,
        dry_run: bool = False,
        *,
        total_cents: int | None = None,
    ) -> ConsolidationResult:
        """Consolidate matched transactions into transactions[0].

        Args:
            transactions: Matched transactions, canonical one first
            order: The order they were matched to
            dry_run: Compute the would-be result without ledger calls
            total_cents: Amount for the canonical transaction; defaults to
                the order total. Pass the bank-charged sum when part of the
                order was paid outside the bank.

        Returns:
            ConsolidationResult with the canonical transaction

        Raises:
            InvalidInputError: No transactions given
            LedgerError: The canonical transaction could not be updated
        """
        if not transactions:
            raise InvalidInputError(
                f"order {order.order_id}: no transactions to consolidate"
            )

        if len(transactions) == 1:
            self._logger.single_transaction(transactions[0].transaction_id)
            return ConsolidationResult(transaction=transactions[0])

        self._logger.consolidating(order.order_id, len(transactions), dry_run)

        primary, extras = transactions[0], transactions[1:]
        amount = order.total_cents if total_cents is None else total_cents
        updated = self._update_primary(primary, transactions, amount, dry_run)
        failed = self._delete_extras(extras, dry_run)

        self._logger.complete(updated.transaction_id, len(extras) - len(failed), failed)
        return ConsolidationResult(transaction=updated, failed_deletions=failed)

    def _update_primary(
        self,
        primary: LedgerTransaction,
        transactions: Sequence[LedgerTransaction],
        amount_cents: int,
        dry_run: bool,
    ) -> LedgerTransaction:
        note = build_consolidation_note(transactions)

        # Keep the sign convention of the original transaction
        if primary.amount_cents > 0:
            new_amount = abs(amount_cents)
        else:
            new_amount = -abs(amount_cents)

        if not dry_run:
            try:
                self._ledger.update_transaction(
                    primary.transaction_id,
                    TransactionUpdate(amount_cents=new_amount, notes=note),
                )
            except Exception as exc:
                raise LedgerError(
                    f"failed to update transaction {primary.transaction_id}: {exc}"
                ) from exc

        self._logger.primary_updated(primary.transaction_id, new_amount, dry_run)
        return replace(primary, amount_cents=new_amount, notes=note)

    def _delete_extras(
        self, extras: Sequence[LedgerTransaction], dry_run: bool
    ) -> list[str]:
        failed: list[str] = []

        for txn in extras:
            if txn.has_splits:
                self._logger.delete_refused_split(txn.transaction_id)
                failed.append(txn.transaction_id)
                continue

            if dry_run:
                self._logger.extra_deleted(txn.transaction_id, dry_run=True)
                continue

            try:
                self._ledger.delete_transaction(txn.transaction_id)
            except Exception as exc:
                # Surfaced through failed_deletions for manual cleanup
                self._logger.delete_failed(txn.transaction_id, exc)
                failed.append(txn.transaction_id)
                continue

            self._logger.extra_deleted(txn.transaction_id, dry_run=False)

        return failed

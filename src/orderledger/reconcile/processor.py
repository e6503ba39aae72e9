"""Per-order reconciliation: validate, match, consolidate, allocate, split, apply."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum

from orderledger.reconcile.allocator import AllocationResult, allocate
from orderledger.reconcile.consolidator import TransactionConsolidator
from orderledger.reconcile.entities import (
    Category,
    LedgerTransaction,
    Order,
    OrderKind,
    SplitDetail,
    TransactionSplit,
    TransactionUpdate,
)
from orderledger.reconcile.errors import LedgerError
from orderledger.reconcile.logger import ProcessorLogger
from orderledger.reconcile.matcher import TransactionMatcher
from orderledger.reconcile.protocols import LedgerClient
from orderledger.reconcile.splitter import CategorySplitter
from orderledger.reconcile.validator import ChargeValidation, validate_charges


class OrderOutcome(Enum):
    APPLIED = "applied"
    SKIPPED = "skipped"


class SkipReason(Enum):
    """Why an order was not reconciled in this run."""

    PAYMENT_PENDING = "payment_pending"
    VALIDATION_FAILED = "validation_failed"
    NO_MATCH = "no_match"
    PARTIAL_MULTI_MATCH = "partial_multi_match"
    ALREADY_SPLIT = "already_split"
    ALREADY_PROCESSED = "already_processed"


# Skips that usually resolve by themselves once the bank catches up
_RETRYABLE_REASONS = frozenset(
    {
        SkipReason.PAYMENT_PENDING,
        SkipReason.NO_MATCH,
        SkipReason.PARTIAL_MULTI_MATCH,
    }
)


@dataclass
class ProcessResult:
    """Outcome of processing one order.

    Skips are business outcomes and carry a SkipReason; unexpected problems
    are raised as ReconciliationError instead.
    """

    order_id: str
    outcome: OrderOutcome
    skip_reason: SkipReason | None = None
    message: str = ""
    transaction: LedgerTransaction | None = None
    validation: ChargeValidation | None = None
    allocation: AllocationResult | None = None
    splits: list[TransactionSplit] = field(default_factory=list)
    split_details: list[SplitDetail] = field(default_factory=list)
    category_id: str | None = None
    notes: str = ""
    failed_deletions: list[str] = field(default_factory=list)
    dry_run: bool = False

    @classmethod
    def skipped(
        cls,
        order_id: str,
        reason: SkipReason,
        message: str,
        *,
        dry_run: bool = False,
        validation: ChargeValidation | None = None,
        transaction: LedgerTransaction | None = None,
    ) -> ProcessResult:
        return cls(
            order_id=order_id,
            outcome=OrderOutcome.SKIPPED,
            skip_reason=reason,
            message=message,
            validation=validation,
            transaction=transaction,
            dry_run=dry_run,
        )

    @property
    def processed(self) -> bool:
        return self.outcome is OrderOutcome.APPLIED

    @property
    def retryable(self) -> bool:
        """True when a later run may succeed without manual intervention."""
        if self.skip_reason is SkipReason.VALIDATION_FAILED:
            return self.validation is not None and self.validation.retryable
        return self.skip_reason in _RETRYABLE_REASONS


class OrderProcessor:
    """Runs one order through the reconciliation pipeline.

    Dry run computes everything, including would-be splits, without any
    ledger mutation.
    """

    def __init__(
        self,
        matcher: TransactionMatcher,
        consolidator: TransactionConsolidator,
        splitter: CategorySplitter,
        ledger: LedgerClient,
        processor_logger: ProcessorLogger | None = None,
    ) -> None:
        self._matcher = matcher
        self._consolidator = consolidator
        self._splitter = splitter
        self._ledger = ledger
        self._logger = processor_logger or ProcessorLogger()

    def process_order(
        self,
        order: Order,
        transactions: Sequence[LedgerTransaction],
        used_ids: set[str],
        categories: Sequence[Category],
        ledger_categories: Sequence[Category] | None = None,
        *,
        dry_run: bool = False,
    ) -> ProcessResult:
        """Reconcile one order against the run's ledger transactions.

        Args:
            order: Order to reconcile
            transactions: Candidate ledger transactions for the run
            used_ids: Run-scoped set of claimed transaction ids (mutated)
            categories: Categories offered to the categorizer
            ledger_categories: Categories known to the ledger
            dry_run: Skip every ledger mutation

        Returns:
            ProcessResult, applied or skipped

        Raises:
            ReconciliationError: Collaborator failure or invalid input
        """
        self._logger.processing(order)

        if order.final_charges_cents is not None and not order.final_charges_cents:
            return ProcessResult.skipped(
                order.order_id,
                SkipReason.PAYMENT_PENDING,
                "no bank charges posted yet",
                dry_run=dry_run,
            )

        charges = order.bank_charges()
        validation = validate_charges(
            charges, order.total_cents, order.non_bank_amount()
        )
        if not validation.valid:
            self._logger.validation_failed(order.order_id, validation)
            return ProcessResult.skipped(
                order.order_id,
                SkipReason.VALIDATION_FAILED,
                validation.reason,
                dry_run=dry_run,
                validation=validation,
            )

        if order.is_multi_delivery:
            matched = self._match_multi(
                order, transactions, used_ids, charges, validation, dry_run
            )
        else:
            matched = self._match_single(
                order, transactions, used_ids, charges[0], validation, dry_run
            )
        if isinstance(matched, ProcessResult):
            return matched
        transaction, failed_deletions = matched

        allocation = None
        if order.kind is OrderKind.GIFT_CARD_CAPABLE and order.non_bank_amount() > 0:
            allocation = allocate(order.items, abs(transaction.amount_cents))
            self._logger.allocated(
                order.order_id, allocation.multiplier, allocation.total_allocated_cents
            )

        splits = self._splitter.create_splits(
            order,
            transaction,
            categories,
            ledger_categories,
            allocation=allocation,
        )

        result = ProcessResult(
            order_id=order.order_id,
            outcome=OrderOutcome.APPLIED,
            transaction=transaction,
            validation=validation,
            allocation=allocation,
            failed_deletions=failed_deletions,
            dry_run=dry_run,
        )

        if splits is None:
            category_id, notes = self._splitter.get_single_category_info(
                order, categories
            )
            if transaction.notes:
                # Keep existing notes, e.g. the consolidation breakdown
                notes = f"{notes}\n{transaction.notes}"
            if not dry_run:
                self._mutate(
                    transaction.transaction_id,
                    self._ledger.update_transaction,
                    TransactionUpdate(category_id=category_id, notes=notes),
                )
            self._logger.single_category(
                order.order_id, transaction.transaction_id, category_id, dry_run
            )
            result.category_id = category_id
            result.notes = notes
            result.message = "category updated"
            return result

        if not dry_run:
            self._mutate(transaction.transaction_id, self._ledger.update_splits, splits)
        self._logger.splits_applied(
            order.order_id, transaction.transaction_id, splits, dry_run
        )
        result.splits = splits
        result.split_details = self._splitter.get_split_details()
        result.message = f"{len(splits)} splits applied"
        return result

    def _match_single(
        self,
        order: Order,
        transactions: Sequence[LedgerTransaction],
        used_ids: set[str],
        charge_cents: int,
        validation: ChargeValidation,
        dry_run: bool,
    ) -> tuple[LedgerTransaction, list[str]] | ProcessResult:
        match = self._matcher.find_match(
            order, transactions, used_ids, amount_cents=charge_cents
        )
        if match is None:
            self._logger.no_match(order.order_id, charge_cents)
            return ProcessResult.skipped(
                order.order_id,
                SkipReason.NO_MATCH,
                "no matching transaction found",
                dry_run=dry_run,
                validation=validation,
            )

        transaction = match.transaction
        used_ids.add(transaction.transaction_id)
        self._logger.matched(order.order_id, transaction, match.date_diff_days)

        if transaction.has_splits:
            self._logger.already_split(order.order_id, transaction.transaction_id)
            return ProcessResult.skipped(
                order.order_id,
                SkipReason.ALREADY_SPLIT,
                f"transaction {transaction.transaction_id} already has splits",
                dry_run=dry_run,
                validation=validation,
                transaction=transaction,
            )
        return transaction, []

    def _match_multi(
        self,
        order: Order,
        transactions: Sequence[LedgerTransaction],
        used_ids: set[str],
        charges: list[int],
        validation: ChargeValidation,
        dry_run: bool,
    ) -> tuple[LedgerTransaction, list[str]] | ProcessResult:
        multi = self._matcher.find_multiple_matches(
            order, transactions, used_ids, charges
        )
        if not multi.all_found:
            self._logger.partial_multi_match(
                order.order_id, len(charges), multi.found_count
            )
            reason = (
                SkipReason.PARTIAL_MULTI_MATCH
                if multi.found_count
                else SkipReason.NO_MATCH
            )
            return ProcessResult.skipped(
                order.order_id,
                reason,
                f"found {multi.found_count} of {len(charges)} charge transactions",
                dry_run=dry_run,
                validation=validation,
            )

        primary = multi.transactions[0]
        for match in multi.matches:
            if match is not None:
                self._logger.matched(
                    order.order_id, match.transaction, match.date_diff_days
                )
        if primary.has_splits:
            self._logger.already_split(order.order_id, primary.transaction_id)
            return ProcessResult.skipped(
                order.order_id,
                SkipReason.ALREADY_SPLIT,
                f"transaction {primary.transaction_id} already has splits",
                dry_run=dry_run,
                validation=validation,
                transaction=primary,
            )

        consolidation = self._consolidator.consolidate(
            multi.transactions,
            order,
            dry_run,
            total_cents=validation.bank_charges_sum_cents,
        )
        return consolidation.transaction, consolidation.failed_deletions

    def _mutate(self, transaction_id: str, operation, payload) -> None:
        try:
            operation(transaction_id, payload)
        except Exception as exc:
            raise LedgerError(
                f"failed to update transaction {transaction_id}: {exc}"
            ) from exc

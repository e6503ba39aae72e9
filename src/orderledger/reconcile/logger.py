"""Logging for reconciliation operations.

Keeps log formatting out of the matching, consolidation and splitting logic.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import loguru
from loguru import logger

if TYPE_CHECKING:
    from orderledger.reconcile.entities import (
        LedgerTransaction,
        Order,
        TransactionSplit,
    )
    from orderledger.reconcile.processor import ProcessResult
    from orderledger.reconcile.run import RunSummary
    from orderledger.reconcile.validator import ChargeValidation


def _dry_run_prefix(dry_run: bool) -> str:
    return "[DRY RUN] " if dry_run else ""


class MatcherLogger:
    """Handles all logging for transaction matching."""

    def __init__(self, logger_instance: loguru.Logger = logger) -> None:
        """Initialize logger.

        Args:
            logger_instance: Logger instance to use (defaults to loguru.logger)
        """
        self._logger = logger_instance.bind(component="matcher")

    def charge_matched(
        self, order_id: str, index: int, amount_cents: int, transaction_id: str
    ) -> None:
        self._logger.bind(order_id=order_id, charge_index=index).debug(
            "Order {} charge {} (${:.2f}) -> transaction {}",
            order_id,
            index,
            amount_cents / 100,
            transaction_id,
        )

    def charge_unmatched(self, order_id: str, index: int, amount_cents: int) -> None:
        self._logger.bind(order_id=order_id, charge_index=index).debug(
            "Order {} charge {} (${:.2f}) has no matching transaction",
            order_id,
            index,
            amount_cents / 100,
        )

    def multi_match_complete(self, order_id: str, expected: int, found: int) -> None:
        self._logger.bind(order_id=order_id, expected=expected, found=found).debug(
            "Multi-charge matching for order {}: {}/{} charges found",
            order_id,
            found,
            expected,
        )


class ConsolidatorLogger:
    """Handles all logging for transaction consolidation."""

    def __init__(self, logger_instance: loguru.Logger = logger) -> None:
        self._logger = logger_instance.bind(component="consolidator")

    def single_transaction(self, transaction_id: str) -> None:
        self._logger.bind(transaction_id=transaction_id).warning(
            "Single transaction provided to consolidator (no consolidation needed)"
        )

    def consolidating(self, order_id: str, count: int, dry_run: bool) -> None:
        self._logger.bind(order_id=order_id, count=count, dry_run=dry_run).info(
            "{}Consolidating {} transactions for order {}",
            _dry_run_prefix(dry_run),
            count,
            order_id,
        )

    def primary_updated(
        self, transaction_id: str, amount_cents: int, dry_run: bool
    ) -> None:
        verb = "Would update" if dry_run else "Updated"
        self._logger.bind(
            transaction_id=transaction_id, amount_cents=amount_cents
        ).info(
            "{}{} primary transaction {} to ${:.2f}",
            _dry_run_prefix(dry_run),
            verb,
            transaction_id,
            amount_cents / 100,
        )

    def extra_deleted(self, transaction_id: str, dry_run: bool) -> None:
        verb = "Would delete" if dry_run else "Deleted"
        self._logger.bind(transaction_id=transaction_id).info(
            "{}{} extra transaction {}",
            _dry_run_prefix(dry_run),
            verb,
            transaction_id,
        )

    def delete_refused_split(self, transaction_id: str) -> None:
        self._logger.bind(transaction_id=transaction_id).error(
            "Cannot delete transaction {} with splits", transaction_id
        )

    def delete_failed(self, transaction_id: str, error: Exception) -> None:
        self._logger.bind(transaction_id=transaction_id, error=str(error)).error(
            "Failed to delete transaction {}: {}", transaction_id, error
        )

    def complete(
        self, canonical_id: str, deleted_count: int, failed_deletions: list[str]
    ) -> None:
        if failed_deletions:
            self._logger.bind(
                canonical_id=canonical_id, failed_deletions=failed_deletions
            ).warning(
                "Consolidated into {} with {} failed deletions {} (manual cleanup)",
                canonical_id,
                len(failed_deletions),
                failed_deletions,
            )
            return
        self._logger.bind(canonical_id=canonical_id, deleted=deleted_count).info(
            "Consolidated into {} ({} extra transactions removed)",
            canonical_id,
            deleted_count,
        )


class ProcessorLogger:
    """Handles all logging for per-order processing."""

    def __init__(self, logger_instance: loguru.Logger = logger) -> None:
        self._logger = logger_instance.bind(component="processor")

    def processing(self, order: Order) -> None:
        self._logger.bind(
            order_id=order.order_id,
            kind=order.kind.value,
            items=len(order.items),
        ).debug(
            "Processing order {} ({}, ${:.2f}, {} items)",
            order.order_id,
            order.kind.value,
            order.total_cents / 100,
            len(order.items),
        )

    def validation_failed(self, order_id: str, validation: ChargeValidation) -> None:
        self._logger.bind(
            order_id=order_id,
            bank_sum_cents=validation.bank_charges_sum_cents,
            expected_cents=validation.expected_sum_cents,
            difference_cents=validation.difference_cents,
        ).warning(
            "Charge validation failed for order {}: {}", order_id, validation.reason
        )

    def matched(
        self, order_id: str, transaction: LedgerTransaction, date_diff: int
    ) -> None:
        self._logger.bind(
            order_id=order_id,
            transaction_id=transaction.transaction_id,
            date_diff_days=date_diff,
        ).debug(
            "Matched order {} -> transaction {} (${:.2f}, {} days apart)",
            order_id,
            transaction.transaction_id,
            abs(transaction.amount_cents) / 100,
            date_diff,
        )

    def no_match(self, order_id: str, amount_cents: int) -> None:
        self._logger.bind(order_id=order_id, amount_cents=amount_cents).warning(
            "No matching transaction found for order {} (${:.2f})",
            order_id,
            amount_cents / 100,
        )

    def partial_multi_match(self, order_id: str, expected: int, found: int) -> None:
        self._logger.bind(order_id=order_id, expected=expected, found=found).warning(
            "Not all transactions found for order {}: expected {}, found {}",
            order_id,
            expected,
            found,
        )

    def already_split(self, order_id: str, transaction_id: str) -> None:
        self._logger.bind(order_id=order_id, transaction_id=transaction_id).info(
            "Transaction {} already has splits, skipping order {}",
            transaction_id,
            order_id,
        )

    def allocated(self, order_id: str, multiplier: float, total_cents: int) -> None:
        self._logger.bind(order_id=order_id, multiplier=multiplier).debug(
            "Allocated ${:.2f} across items of order {} (multiplier {:.4f})",
            total_cents / 100,
            order_id,
            multiplier,
        )

    def single_category(
        self, order_id: str, transaction_id: str, category_id: str, dry_run: bool
    ) -> None:
        verb = "Would update" if dry_run else "Updated"
        self._logger.bind(
            order_id=order_id, transaction_id=transaction_id, category_id=category_id
        ).debug(
            "{}{} transaction {} category to {}",
            _dry_run_prefix(dry_run),
            verb,
            transaction_id,
            category_id,
        )

    def splits_applied(
        self,
        order_id: str,
        transaction_id: str,
        splits: list[TransactionSplit],
        dry_run: bool,
    ) -> None:
        verb = "Would apply" if dry_run else "Applied"
        self._logger.bind(
            order_id=order_id, transaction_id=transaction_id, split_count=len(splits)
        ).debug(
            "{}{} {} splits to transaction {}",
            _dry_run_prefix(dry_run),
            verb,
            len(splits),
            transaction_id,
        )
        for i, split in enumerate(splits, start=1):
            self._logger.bind(
                split_index=i, category_id=split.category_id
            ).debug("  split {}: ${:.2f} {}", i, split.amount_cents / 100, split.notes)


class RunLogger:
    """Handles all logging for a reconciliation run."""

    def __init__(self, logger_instance: loguru.Logger = logger) -> None:
        self._logger = logger_instance.bind(component="run")

    def start(self, order_count: int, transaction_count: int, dry_run: bool) -> None:
        self._logger.bind(
            orders=order_count, transactions=transaction_count, dry_run=dry_run
        ).info(
            "{}Reconciling {} orders against {} transactions",
            _dry_run_prefix(dry_run),
            order_count,
            transaction_count,
        )

    def already_processed(self, order_id: str) -> None:
        self._logger.bind(order_id=order_id).debug(
            "Skipping already processed order {}", order_id
        )

    def outcome(self, result: ProcessResult) -> None:
        if result.skip_reason is not None:
            self._logger.bind(
                order_id=result.order_id, reason=result.skip_reason.value
            ).info("Order {} skipped: {}", result.order_id, result.message)
            return
        self._logger.bind(order_id=result.order_id).info(
            "{}Order {} applied", _dry_run_prefix(result.dry_run), result.order_id
        )

    def failed(self, order_id: str, error: Exception) -> None:
        self._logger.bind(order_id=order_id, error=str(error)).error(
            "Order {} failed: {}", order_id, error
        )

    def complete(self, summary: RunSummary) -> None:
        self._logger.bind(
            processed=summary.processed_count,
            skipped=summary.skipped_count,
            failed=summary.failed_count,
        ).info(
            "Reconciliation complete: {} processed, {} skipped, {} failed",
            summary.processed_count,
            summary.skipped_count,
            summary.failed_count,
        )

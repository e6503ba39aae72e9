"""One reconciliation run over a batch of orders."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from orderledger.reconcile.entities import (
    Category,
    LedgerTransaction,
    Order,
    OrderRecord,
    RecordStatus,
)
from orderledger.reconcile.errors import ReconciliationError
from orderledger.reconcile.logger import RunLogger
from orderledger.reconcile.processor import OrderProcessor, ProcessResult, SkipReason
from orderledger.reconcile.protocols import OrderRecordStore


@dataclass
class RunError:
    order_id: str
    error: ReconciliationError


@dataclass
class RunSummary:
    """Results of every order in a run, in input order."""

    results: list[ProcessResult] = field(default_factory=list)
    errors: list[RunError] = field(default_factory=list)
    dry_run: bool = False

    @property
    def processed_count(self) -> int:
        return sum(1 for result in self.results if result.processed)

    @property
    def skipped_count(self) -> int:
        return sum(1 for result in self.results if not result.processed)

    @property
    def failed_count(self) -> int:
        return len(self.errors)


class ReconciliationRun:
    """Processes orders sequentially with a single run-scoped used-id set.

    A failing order is recorded and the run moves on to the next one.
    """

    def __init__(
        self,
        processor: OrderProcessor,
        store: OrderRecordStore,
        run_logger: RunLogger | None = None,
    ) -> None:
        self._processor = processor
        self._store = store
        self._logger = run_logger or RunLogger()

    def run(
        self,
        orders: Sequence[Order],
        transactions: Sequence[LedgerTransaction],
        categories: Sequence[Category],
        ledger_categories: Sequence[Category] | None = None,
        *,
        dry_run: bool = False,
        force: bool = False,
    ) -> RunSummary:
        """Reconcile every order.

        Args:
            orders: Orders to reconcile, processed in order
            transactions: Ledger transactions available to this run
            categories: Categories offered to the categorizer
            ledger_categories: Categories known to the ledger
            dry_run: Compute outcomes without mutating the ledger
            force: Reprocess orders the store already marks as processed

        Returns:
            RunSummary with per-order results and errors
        """
        self._logger.start(len(orders), len(transactions), dry_run)

        used_ids: set[str] = set()
        summary = RunSummary(dry_run=dry_run)

        for order in orders:
            if not force and self._store.is_processed(order.order_id):
                self._logger.already_processed(order.order_id)
                summary.results.append(
                    ProcessResult.skipped(
                        order.order_id,
                        SkipReason.ALREADY_PROCESSED,
                        "already processed in a previous run",
                        dry_run=dry_run,
                    )
                )
                continue

            try:
                result = self._processor.process_order(
                    order,
                    transactions,
                    used_ids,
                    categories,
                    ledger_categories,
                    dry_run=dry_run,
                )
            except ReconciliationError as exc:
                self._logger.failed(order.order_id, exc)
                summary.errors.append(RunError(order_id=order.order_id, error=exc))
                self._store.save_record(
                    OrderRecord(
                        order_id=order.order_id,
                        provider=order.provider,
                        status=RecordStatus.FAILED,
                        reason=str(exc),
                        dry_run=dry_run,
                    )
                )
                continue

            self._logger.outcome(result)
            summary.results.append(result)
            self._store.save_record(_record_for(order, result))

        self._logger.complete(summary)
        return summary


def _record_for(order: Order, result: ProcessResult) -> OrderRecord:
    transaction_id = result.transaction.transaction_id if result.transaction else None
    if result.processed:
        return OrderRecord(
            order_id=order.order_id,
            provider=order.provider,
            status=RecordStatus.APPLIED,
            reason=result.message,
            transaction_id=transaction_id,
            split_count=len(result.splits),
            failed_deletions=list(result.failed_deletions),
            dry_run=result.dry_run,
        )
    return OrderRecord(
        order_id=order.order_id,
        provider=order.provider,
        status=RecordStatus.SKIPPED,
        reason=f"{result.skip_reason.value}: {result.message}",
        transaction_id=transaction_id,
        dry_run=result.dry_run,
    )

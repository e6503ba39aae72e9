"""Tests for reconciliation runs."""

from __future__ import annotations

from unittest.mock import MagicMock

from orderledger.adapters.db.store import InMemoryOrderRecordStore
from orderledger.reconcile.consolidator import TransactionConsolidator
from orderledger.reconcile.entities import OrderRecord, RecordStatus
from orderledger.reconcile.errors import LedgerError
from orderledger.reconcile.matcher import TransactionMatcher
from orderledger.reconcile.processor import OrderProcessor, SkipReason
from orderledger.reconcile.protocols import LedgerClient
from orderledger.reconcile.run import ReconciliationRun
from orderledger.reconcile.splitter import CategorySplitter
from tests.reconcile.fixtures import (
    GROCERIES,
    HOUSEHOLD,
    LEDGER_CATEGORIES,
    StaticCategorizer,
    create_item,
    create_order,
    create_transaction,
)


def _create_run(
    ledger: LedgerClient, store: InMemoryOrderRecordStore
) -> ReconciliationRun:
    processor = OrderProcessor(
        matcher=TransactionMatcher(),
        consolidator=TransactionConsolidator(ledger),
        splitter=CategorySplitter(StaticCategorizer(default=GROCERIES)),
        ledger=ledger,
    )
    return ReconciliationRun(processor, store)


class TestReconciliationRun:
    """Tests for batch processing of orders."""

    def test_processes_orders_and_records_outcomes(self) -> None:
        """Every outcome is counted and recorded."""
        # Input
        orders = [
            create_order("ORDER-001", total_cents=10000),
            create_order("ORDER-002", total_cents=2500),
        ]
        transactions = [create_transaction("t1", -10000)]

        # Setup
        store = InMemoryOrderRecordStore()
        run = _create_run(MagicMock(spec=LedgerClient), store)

        # Act
        summary = run.run(orders, transactions, LEDGER_CATEGORIES)

        # Assert
        assert summary.processed_count == 1
        assert summary.skipped_count == 1
        assert summary.failed_count == 0
        assert store.is_processed("ORDER-001") is True
        assert store.is_processed("ORDER-002") is False
        skipped = store.records_for("ORDER-002")[0]
        assert skipped.status is RecordStatus.SKIPPED
        assert skipped.reason.startswith("no_match")

    def test_used_ids_shared_across_orders(self) -> None:
        """Two identical orders cannot both claim the one transaction."""
        # Input
        orders = [
            create_order("ORDER-001", total_cents=10000),
            create_order("ORDER-002", total_cents=10000),
        ]
        transactions = [create_transaction("t1", -10000)]

        # Act
        summary = _create_run(
            MagicMock(spec=LedgerClient), InMemoryOrderRecordStore()
        ).run(orders, transactions, LEDGER_CATEGORIES)

        # Assert
        assert [r.skip_reason for r in summary.results] == [None, SkipReason.NO_MATCH]

    def test_already_processed_orders_are_skipped(self) -> None:
        """Orders applied in an earlier run are skipped untouched."""
        # Setup
        store = InMemoryOrderRecordStore()
        store.save_record(
            OrderRecord("ORDER-001", "walmart", RecordStatus.APPLIED)
        )
        ledger = MagicMock(spec=LedgerClient)

        # Act
        summary = _create_run(ledger, store).run(
            [create_order("ORDER-001")],
            [create_transaction("t1", -10000)],
            LEDGER_CATEGORIES,
        )

        # Assert
        assert summary.results[0].skip_reason is SkipReason.ALREADY_PROCESSED
        assert ledger.mock_calls == []

    def test_force_reprocesses_orders(self) -> None:
        """Force ignores earlier applied records."""
        # Setup
        store = InMemoryOrderRecordStore()
        store.save_record(
            OrderRecord("ORDER-001", "walmart", RecordStatus.APPLIED)
        )

        # Act
        summary = _create_run(MagicMock(spec=LedgerClient), store).run(
            [create_order("ORDER-001")],
            [create_transaction("t1", -10000)],
            LEDGER_CATEGORIES,
            force=True,
        )

        # Assert
        assert summary.processed_count == 1

    def test_dry_run_records_do_not_mark_orders_processed(self) -> None:
        """A preview run leaves orders eligible for a live run."""
        # Setup
        store = InMemoryOrderRecordStore()

        # Act
        summary = _create_run(MagicMock(spec=LedgerClient), store).run(
            [create_order("ORDER-001")],
            [create_transaction("t1", -10000)],
            LEDGER_CATEGORIES,
            dry_run=True,
        )

        # Assert
        assert summary.processed_count == 1
        assert store.records_for("ORDER-001")[0].dry_run is True
        assert store.is_processed("ORDER-001") is False

    def test_failure_is_recorded_and_run_continues(self) -> None:
        """A failing order is recorded and the next order still runs."""
        # Input
        orders = [
            create_order("ORDER-001", total_cents=10000),
            create_order("ORDER-002", total_cents=2500),
        ]
        transactions = [
            create_transaction("t1", -10000),
            create_transaction("t2", -2500),
        ]

        # Setup
        ledger = MagicMock(spec=LedgerClient)
        ledger.update_transaction.side_effect = [RuntimeError("HTTP 500"), None]
        store = InMemoryOrderRecordStore()

        # Act
        summary = _create_run(ledger, store).run(
            orders, transactions, LEDGER_CATEGORIES
        )

        # Assert
        assert summary.failed_count == 1
        assert summary.errors[0].order_id == "ORDER-001"
        assert isinstance(summary.errors[0].error, LedgerError)
        assert summary.processed_count == 1
        assert store.records_for("ORDER-001")[0].status is RecordStatus.FAILED
        assert store.is_processed("ORDER-002") is True

    def test_same_order_id_from_two_providers_is_categorized_separately(
        self,
    ) -> None:
        """Order ids collide across providers; each order gets its own answer."""
        # Input
        orders = [
            create_order(
                "123",
                total_cents=500,
                items=[create_item("Milk", 500)],
                provider="walmart",
            ),
            create_order(
                "123",
                total_cents=700,
                items=[create_item("Soap", 700)],
                provider="costco",
            ),
        ]
        transactions = [
            create_transaction("t1", -500),
            create_transaction("t2", -700),
        ]

        # Setup
        ledger = MagicMock(spec=LedgerClient)
        processor = OrderProcessor(
            matcher=TransactionMatcher(),
            consolidator=TransactionConsolidator(ledger),
            splitter=CategorySplitter(
                StaticCategorizer({"Milk": GROCERIES, "Soap": HOUSEHOLD})
            ),
            ledger=ledger,
        )

        # Act
        summary = ReconciliationRun(processor, InMemoryOrderRecordStore()).run(
            orders, transactions, LEDGER_CATEGORIES, force=True
        )

        # Assert
        assert summary.failed_count == 0
        assert [r.category_id for r in summary.results] == [
            GROCERIES.category_id,
            HOUSEHOLD.category_id,
        ]

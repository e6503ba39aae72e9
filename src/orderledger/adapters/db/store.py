from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine, select
from sqlalchemy.orm import Session, sessionmaker

from orderledger.adapters.db.models import Base, ProcessedOrder
from orderledger.reconcile.entities import OrderRecord, RecordStatus


def _counts_as_processed(status: RecordStatus, dry_run: bool) -> bool:
    return status is RecordStatus.APPLIED and not dry_run


class SqlOrderRecordStore:
    """Order records in a SQL database."""

    def __init__(self, url: str) -> None:
        """Initialize database connection and create tables.

        Args:
            url: Database URL (e.g., "sqlite:///orderledger.db")
        """
        self._url = url
        self._engine = create_engine(url, echo=False)
        self._session_factory = sessionmaker(bind=self._engine, class_=Session)
        Base.metadata.create_all(self._engine)

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Context manager for database sessions."""
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def is_processed(self, order_id: str) -> bool:
        with self.session() as session:
            stmt = (
                select(ProcessedOrder.record_id)
                .where(ProcessedOrder.order_id == order_id)
                .where(ProcessedOrder.status == RecordStatus.APPLIED.value)
                .where(ProcessedOrder.dry_run.is_(False))
                .limit(1)
            )
            return session.execute(stmt).first() is not None

    def save_record(self, record: OrderRecord) -> None:
        with self.session() as session:
            session.add(
                ProcessedOrder(
                    order_id=record.order_id,
                    provider=record.provider,
                    status=record.status.value,
                    reason=record.reason,
                    transaction_id=record.transaction_id,
                    split_count=record.split_count,
                    failed_deletions=list(record.failed_deletions),
                    dry_run=record.dry_run,
                )
            )

    def records_for(self, order_id: str) -> list[OrderRecord]:
        """All records for an order, oldest first."""
        with self.session() as session:
            rows = session.scalars(
                select(ProcessedOrder)
                .where(ProcessedOrder.order_id == order_id)
                .order_by(ProcessedOrder.record_id)
            ).all()
            return [
                OrderRecord(
                    order_id=row.order_id,
                    provider=row.provider,
                    status=RecordStatus(row.status),
                    reason=row.reason,
                    transaction_id=row.transaction_id,
                    split_count=row.split_count,
                    failed_deletions=list(row.failed_deletions or []),
                    dry_run=row.dry_run,
                )
                for row in rows
            ]


class InMemoryOrderRecordStore:
    """Order records kept in process memory, for previews and tests."""

    def __init__(self) -> None:
        self._records: dict[str, list[OrderRecord]] = {}

    def is_processed(self, order_id: str) -> bool:
        return any(
            _counts_as_processed(record.status, record.dry_run)
            for record in self._records.get(order_id, [])
        )

    def save_record(self, record: OrderRecord) -> None:
        self._records.setdefault(record.order_id, []).append(record)

    def records_for(self, order_id: str) -> list[OrderRecord]:
        """All records for an order, oldest first."""
        return list(self._records.get(order_id, []))

from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, TIMESTAMP, Boolean, Integer, String, Text, text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for SQLAlchemy models."""

    pass


class ProcessedOrder(Base):
    """Outcome of one attempt at reconciling an order.

    Append-only: every run adds a row, so earlier applied records are never
    overwritten by later skipped or dry-run attempts.
    """

    __tablename__ = "processed_orders"

    record_id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    order_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    provider: Mapped[str] = mapped_column(String, nullable=False, default="")
    status: Mapped[str] = mapped_column(String, nullable=False)
    reason: Mapped[str] = mapped_column(Text, nullable=False, default="")
    transaction_id: Mapped[str | None] = mapped_column(String, nullable=True)
    split_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    failed_deletions: Mapped[list[str]] = mapped_column(
        JSON, nullable=False, default=list
    )
    dry_run: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP, nullable=False, server_default=text("CURRENT_TIMESTAMP")
    )

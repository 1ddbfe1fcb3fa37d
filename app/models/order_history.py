"""Append-only change log for orders."""

from datetime import datetime, timezone

from sqlalchemy import JSON, DateTime, Enum, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base

HISTORY_OPERATIONS = ("INSERT", "UPDATE", "DELETE")


class OrderHistory(Base):
    """Stores one immutable change record per tracked order mutation.

    ``order_id`` has no foreign key; rows outlive a deleted order.
    """

    __tablename__ = "order_history"
    __table_args__ = (Index("ix_order_history_order_changed_at", "order_id", "changed_at"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    order_id: Mapped[int] = mapped_column(Integer, nullable=False)
    operation: Mapped[str] = mapped_column(Enum(*HISTORY_OPERATIONS, name="history_operation"), nullable=False)
    changed_by: Mapped[int | None] = mapped_column(Integer, nullable=True)
    changed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )
    schema_version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    summary: Mapped[str | None] = mapped_column(String(500), nullable=True)
    diff: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    snapshot: Mapped[dict] = mapped_column(JSON, nullable=False)

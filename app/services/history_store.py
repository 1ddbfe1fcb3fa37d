"""Append-only persistence of order change records."""

from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.order_history import OrderHistory
from app.schemas.history import ChangeRecord, ConsolidatedDiff, OrderSnapshot
from app.services.order_snapshot import as_utc

logger = logging.getLogger(__name__)


def clamp_page(page: int | None) -> int:
    return max(int(page or 1), 1)


def clamp_limit(limit: int | None) -> int:
    """Clamp a requested page size to ``1..history_max_page_size``."""
    if limit is None:
        limit = settings.history_default_page_size
    return min(max(int(limit), 1), settings.history_max_page_size)


def record_to_row(record: ChangeRecord) -> OrderHistory:
    return OrderHistory(
        order_id=record.order_id,
        operation=record.operation,
        changed_by=record.actor_id,
        changed_at=record.timestamp,
        schema_version=record.snapshot.schema_version,
        summary=record.diff.summary if record.diff is not None else None,
        diff=record.diff.model_dump(mode="json") if record.diff is not None else None,
        snapshot=record.snapshot.model_dump(mode="json"),
    )


def row_to_record(row: OrderHistory) -> ChangeRecord:
    return ChangeRecord(
        id=row.id,
        order_id=row.order_id,
        operation=row.operation,
        actor_id=row.changed_by,
        timestamp=as_utc(row.changed_at),
        diff=ConsolidatedDiff.model_validate(row.diff) if row.diff is not None else None,
        snapshot=OrderSnapshot.model_validate(row.snapshot),
    )


class OrderHistoryStore:
    """Order history log bound to one session.

    Records can only be appended and read; there is no update or delete.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    def append(self, record: ChangeRecord) -> None:
        """Persist ``record`` in a savepoint; failures are logged, never raised."""
        try:
            with self.db.begin_nested():
                self.db.add(record_to_row(record))
                self.db.flush()
        except SQLAlchemyError:
            logger.exception(
                "[HISTORY] Failed to append %s record for order_id=%s",
                record.operation,
                record.order_id,
            )

    def find_by_order_id(self, order_id: int, page: int = 1, limit: int | None = None) -> tuple[list[ChangeRecord], int]:
        """Return one page of ``order_id``'s history, oldest first, and the total count."""
        page = clamp_page(page)
        limit = clamp_limit(limit)
        query = self.db.query(OrderHistory).filter(OrderHistory.order_id == order_id)
        total_count: int = query.count()
        rows: list[OrderHistory] = (
            query.order_by(OrderHistory.changed_at.asc(), OrderHistory.id.asc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return [row_to_record(row) for row in rows], total_count

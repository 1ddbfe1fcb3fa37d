"""Order change tracking: snapshot, diff and append on every mutation."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from app.models.order import Order
from app.schemas.history import ChangeRecord, ConsolidatedDiff, HistoryOperation, HistoryPage, OrderSnapshot
from app.services.history_formatter import ActorDirectory, OrderHistoryFormatter
from app.services.history_store import OrderHistoryStore, clamp_limit, clamp_page
from app.services.order_diff import build_delete_diff, diff_order_snapshots
from app.services.order_snapshot import SnapshotSerializationError, build_order_snapshot
from app.services.user_service import UserDirectory

logger = logging.getLogger(__name__)


def _as_snapshot(state: Order | OrderSnapshot | None) -> OrderSnapshot | None:
    if state is None or isinstance(state, OrderSnapshot):
        return state
    return build_order_snapshot(state)


class OrderChangeTracker:
    """Records and reads order history within the caller's session.

    ``track`` must run inside the same unit of work as the business update it
    describes; it takes no locks of its own.
    """

    def __init__(
        self,
        db: Session,
        store: OrderHistoryStore | None = None,
        formatter: OrderHistoryFormatter | None = None,
        directory: ActorDirectory | None = None,
    ) -> None:
        self.db = db
        self.store = store or OrderHistoryStore(db)
        self.formatter = formatter or OrderHistoryFormatter(directory or UserDirectory(db))

    def capture_previous(self, order: Order) -> OrderSnapshot | None:
        """Snapshot ``order`` before it is mutated; ``None`` if it cannot be serialized."""
        try:
            return build_order_snapshot(order)
        except SnapshotSerializationError:
            logger.exception("[HISTORY] Could not snapshot previous state of order_id=%s", order.id)
            return None

    def track(
        self,
        operation: HistoryOperation,
        current: Order | OrderSnapshot,
        previous: Order | OrderSnapshot | None,
        actor_id: int | None,
    ) -> ChangeRecord | None:
        """Append a change record for one mutation; best-effort, never raises.

        For INSERT and UPDATE ``current`` is the post-mutation aggregate. For
        DELETE it is the last state of the order before removal and
        ``previous`` is ignored. Returns ``None`` when nothing was written.
        """
        try:
            current_snapshot = _as_snapshot(current)
            previous_snapshot = _as_snapshot(previous) if operation == "UPDATE" else None
        except SnapshotSerializationError:
            logger.exception("[HISTORY] Could not snapshot order for %s tracking", operation)
            return None

        diff: ConsolidatedDiff | None
        if operation == "DELETE":
            diff = build_delete_diff(current_snapshot)
        elif operation == "UPDATE":
            if previous_snapshot is None:
                logger.warning("[HISTORY] UPDATE for order_id=%s has no previous state; skipping", current_snapshot.id)
                return None
            diff = diff_order_snapshots(current_snapshot, previous_snapshot)
            if diff is None:
                logger.debug("[HISTORY] No changes detected for order_id=%s; skipping write", current_snapshot.id)
                return None
        else:
            diff = diff_order_snapshots(current_snapshot, None)

        record = ChangeRecord(
            order_id=current_snapshot.id,
            operation=operation,
            actor_id=actor_id,
            timestamp=datetime.now(timezone.utc),
            diff=diff,
            snapshot=current_snapshot,
        )
        self.store.append(record)
        return record

    def get_history(self, order_id: int, page: int = 1, limit: int | None = None) -> HistoryPage:
        """Return an enriched, ascending page of an order's history."""
        page = clamp_page(page)
        limit = clamp_limit(limit)
        records, total_count = self.store.find_by_order_id(order_id, page=page, limit=limit)
        return HistoryPage(
            items=self.formatter.enrich(records),
            total_count=total_count,
            page=page,
            limit=limit,
            has_next_page=page * limit < total_count,
        )

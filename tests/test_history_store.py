"""Order history store tests against a temporary SQLite database."""

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker

from app.core.config import settings
from app.db.base import Base
from app.models.order_history import OrderHistory
from app.models.user import User
from app.schemas.history import ChangeRecord, OrderSnapshot
from app.services import history_store
from app.services.history_store import OrderHistoryStore
from app.services.order_diff import diff_order_snapshots

BASE_TIME = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


def _build_test_engine(db_file: Path) -> Engine:
    return create_engine(
        f"sqlite:///{db_file}",
        connect_args={"check_same_thread": False},
    )


def _session(tmp_path: Path, name: str) -> Session:
    engine = _build_test_engine(tmp_path / name)
    Base.metadata.create_all(bind=engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)()


def _record(order_id: int, minutes: int, notes: str | None = None) -> ChangeRecord:
    snapshot = OrderSnapshot(id=order_id, status="PENDING", order_type="DINE_IN", notes=notes)
    return ChangeRecord(
        order_id=order_id,
        operation="INSERT" if minutes == 0 else "UPDATE",
        actor_id=1,
        timestamp=BASE_TIME + timedelta(minutes=minutes),
        diff=diff_order_snapshots(snapshot, None),
        snapshot=snapshot,
    )


def test_records_are_returned_oldest_first_with_total(tmp_path: Path) -> None:
    db = _session(tmp_path, "history_order.db")
    store = OrderHistoryStore(db)
    for minutes in (20, 0, 10):
        store.append(_record(order_id=1, minutes=minutes, notes=f"n{minutes}"))
    db.commit()

    first_page, total = store.find_by_order_id(1, page=1, limit=2)
    second_page, _ = store.find_by_order_id(1, page=2, limit=2)

    assert total == 3
    assert [record.snapshot.notes for record in first_page] == ["n0", "n10"]
    assert [record.snapshot.notes for record in second_page] == ["n20"]
    assert first_page[0].timestamp == BASE_TIME
    assert first_page[0].diff is not None
    assert first_page[0].diff.fields["notes"].kind == "added"
    db.close()


def test_paging_one_order_ignores_appends_to_another(tmp_path: Path) -> None:
    db = _session(tmp_path, "history_isolation.db")
    store = OrderHistoryStore(db)
    for minutes in range(4):
        store.append(_record(order_id=1, minutes=minutes))
    db.commit()

    first_page, total_before = store.find_by_order_id(1, page=1, limit=2)
    store.append(_record(order_id=2, minutes=1))
    db.commit()
    second_page, total_after = store.find_by_order_id(1, page=2, limit=2)

    assert total_before == total_after == 4
    assert {record.order_id for record in first_page + second_page} == {1}
    assert len({record.id for record in first_page + second_page}) == 4
    db.close()


def test_limit_is_clamped(tmp_path: Path) -> None:
    db = _session(tmp_path, "history_limit.db")
    store = OrderHistoryStore(db)
    for minutes in range(settings.history_max_page_size + 5):
        store.append(_record(order_id=1, minutes=minutes))
    db.commit()

    records, total = store.find_by_order_id(1, page=0, limit=1000)

    assert total == settings.history_max_page_size + 5
    assert len(records) == settings.history_max_page_size
    db.close()


def test_append_failure_is_swallowed_and_keeps_business_changes(tmp_path: Path, monkeypatch) -> None:
    db = _session(tmp_path, "history_append_failure.db")

    def broken_row(record: ChangeRecord) -> OrderHistory:
        return OrderHistory(order_id=None, operation=record.operation, snapshot=None)

    monkeypatch.setattr(history_store, "record_to_row", broken_row)
    db.add(User(username="cajero", role="CASHIER"))
    db.flush()

    OrderHistoryStore(db).append(_record(order_id=1, minutes=0))
    db.commit()

    assert db.query(User).filter(User.username == "cajero").count() == 1
    assert db.query(OrderHistory).count() == 0
    db.close()


def test_read_failure_propagates(tmp_path: Path) -> None:
    db = _session(tmp_path, "history_read_failure.db")
    OrderHistory.__table__.drop(bind=db.get_bind())

    with pytest.raises(OperationalError):
        OrderHistoryStore(db).find_by_order_id(1)
    db.close()


def test_store_exposes_no_mutation_api() -> None:
    assert not hasattr(OrderHistoryStore, "update")
    assert not hasattr(OrderHistoryStore, "delete")

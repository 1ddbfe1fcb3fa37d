"""Order snapshot diff tests."""

from datetime import datetime, timedelta, timezone

from app.schemas.history import (
    AddedField,
    ChangedField,
    DeliveryInfoSnapshot,
    ItemChangeCategory,
    ItemSnapshot,
    OrderSnapshot,
    RemovedField,
)
from app.services.order_diff import (
    build_delete_diff,
    build_field_diff,
    diff_order_snapshots,
    has_structural_changes,
)


def _item(item_id: int, product_name: str = "Pizza", **overrides) -> ItemSnapshot:
    values = {
        "id": item_id,
        "product_id": item_id * 10,
        "product_name": product_name,
        "base_price": 120.0,
        "final_price": 120.0,
        "preparation_status": "PENDING",
    }
    values.update(overrides)
    return ItemSnapshot(**values)


def _order(**overrides) -> OrderSnapshot:
    values = {
        "id": 7,
        "status": "PENDING",
        "order_type": "DELIVERY",
        "notes": None,
        "table_id": None,
        "scheduled_at": datetime(2024, 3, 1, 18, 30, tzinfo=timezone.utc),
        "delivery_info": DeliveryInfoSnapshot(recipient_name="Ana", full_address="Calle 1"),
        "items": [_item(1)],
    }
    values.update(overrides)
    return OrderSnapshot(**values)


def test_diff_of_snapshot_with_itself_is_none() -> None:
    snapshot = _order(items=[_item(1, modifiers=["Extra queso"]), _item(2, "Refresco")])

    assert diff_order_snapshots(snapshot, snapshot) is None
    assert diff_order_snapshots(snapshot, snapshot.model_copy()) is None


def test_insert_diff_adds_every_item_and_populated_field() -> None:
    snapshot = _order(items=[_item(1), _item(2, "Refresco")])

    diff = diff_order_snapshots(snapshot, None)

    assert diff is not None
    assert diff.items is not None
    assert diff.items.added == snapshot.items
    assert diff.fields["status"] == AddedField(after="PENDING")
    assert "notes" not in diff.fields
    assert "table_id" not in diff.fields
    assert diff.delivery_info == {"recipient_name": AddedField(after="Ana"), "full_address": AddedField(after="Calle 1")}
    assert diff.summary == "Nueva orden creada con 2 productos"


def test_field_transitions_are_labelled() -> None:
    added = diff_order_snapshots(_order(notes="v"), _order(notes=""))
    removed = diff_order_snapshots(_order(notes=""), _order(notes="v"))
    changed = diff_order_snapshots(_order(notes="b"), _order(notes="a"))

    assert added is not None and removed is not None and changed is not None
    assert added.fields["notes"] == AddedField(after="v")
    assert removed.fields["notes"] == RemovedField(before="v")
    assert changed.fields["notes"] == ChangedField(before="a", after="b")


def test_empty_values_never_differ() -> None:
    assert build_field_diff(None, "") is None
    assert build_field_diff("  ", None) is None
    assert build_field_diff(False, True) == ChangedField(before=False, after=True)


def test_datetimes_compare_by_instant() -> None:
    utc_value = datetime(2024, 3, 1, 18, 30, tzinfo=timezone.utc)
    same_instant = utc_value.astimezone(timezone(timedelta(hours=-6)))

    assert diff_order_snapshots(_order(scheduled_at=same_instant), _order(scheduled_at=utc_value)) is None


def test_delivery_info_only_reports_changed_subfields() -> None:
    previous = _order()
    current = _order(delivery_info=DeliveryInfoSnapshot(recipient_name="Ana", full_address="Calle 2"))

    diff = diff_order_snapshots(current, previous)

    assert diff is not None
    assert diff.fields == {}
    assert diff.delivery_info == {"full_address": ChangedField(before="Calle 1", after="Calle 2")}
    assert diff.items is None
    assert diff.summary == "Entrega: Dirección"


def test_items_matched_by_id_with_equal_categories_are_excluded() -> None:
    previous = _order(items=[_item(1, modifiers=["A", "B"]), _item(2, "Refresco")])
    current = _order(items=[_item(2, "Refresco"), _item(1, modifiers=["B", "A"])], status="READY")

    diff = diff_order_snapshots(current, previous)

    assert diff is not None
    assert diff.items is None
    assert diff.fields == {"status": ChangedField(before="PENDING", after="READY")}


def test_added_modified_and_removed_items() -> None:
    previous = _order(items=[_item(1), _item(3, "Alitas")])
    current = _order(items=[_item(1, modifiers=["Extra queso"]), _item(2, "Refresco")])

    diff = diff_order_snapshots(current, previous)

    assert diff is not None and diff.items is not None
    assert [item.id for item in diff.items.added] == [2]
    assert [item.id for item in diff.items.removed] == [3]
    modified = diff.items.modified[0]
    assert modified.id == 1
    assert modified.before.modifiers == []
    assert modified.after.modifiers == ["Extra queso"]
    assert modified.changes == [ItemChangeCategory.MODIFIERS]
    assert diff.summary == "Productos: 1 agregados, 1 modificados, 1 eliminados"


def test_delete_diff_removes_everything() -> None:
    snapshot = _order(items=[_item(1)])

    diff = build_delete_diff(snapshot)

    assert diff.items is not None
    assert diff.items.removed == snapshot.items
    assert diff.fields["order_type"] == RemovedField(before="DELIVERY")
    assert diff.summary == "Orden eliminada con 1 producto"


def test_diff_survives_json_round_trip() -> None:
    diff = diff_order_snapshots(_order(notes="Sin cebolla", items=[_item(1), _item(2)]), _order())

    assert diff is not None
    restored = type(diff).model_validate(diff.model_dump(mode="json"))
    assert restored.fields["notes"].kind == "added"
    assert [item.id for item in restored.items.added] == [2]


def test_structural_changes_ignore_status_only_updates() -> None:
    previous = _order()

    assert has_structural_changes(_order(status="READY"), previous) is False
    assert has_structural_changes(_order(notes="Sin cebolla"), previous) is True
    assert has_structural_changes(_order(items=[_item(1, preparation_notes="Bien cocida")]), previous) is True


def test_update_summary_uses_display_labels() -> None:
    diff = diff_order_snapshots(
        _order(scheduled_at=datetime(2024, 3, 1, 20, 0, tzinfo=timezone.utc), notes="Sin cebolla"),
        _order(),
    )

    assert diff is not None
    assert diff.summary == "Orden: Notas, Hora programada"

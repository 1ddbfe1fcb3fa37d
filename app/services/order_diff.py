"""Structured diffs between order snapshots."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from app.schemas.history import (
    AddedField,
    ChangedField,
    ConsolidatedDiff,
    DeliveryInfoSnapshot,
    FieldDiff,
    ItemDiff,
    ItemSnapshot,
    ModifiedItem,
    OrderSnapshot,
    RemovedField,
)
from app.services.item_changes import classify_item_changes, ordered_categories

ORDER_FIELDS: tuple[str, ...] = (
    "status",
    "order_type",
    "notes",
    "table_id",
    "customer_id",
    "scheduled_at",
    "estimated_delivery_time",
    "is_from_whatsapp",
)
DELIVERY_FIELDS: tuple[str, ...] = ("recipient_name", "recipient_phone", "full_address", "delivery_instructions")
FIELD_LABELS: dict[str, str] = {
    "status": "Estado de la orden",
    "order_type": "Tipo de orden",
    "notes": "Notas",
    "table_id": "Mesa",
    "customer_id": "Cliente",
    "scheduled_at": "Hora programada",
    "estimated_delivery_time": "Tiempo estimado de entrega",
    "is_from_whatsapp": "Pedido por WhatsApp",
    "recipient_name": "Nombre del destinatario",
    "recipient_phone": "Teléfono del destinatario",
    "full_address": "Dirección",
    "delivery_instructions": "Instrucciones de entrega",
}
# Fields that change what the kitchen ticket shows.
STRUCTURAL_FIELDS: tuple[str, ...] = ("notes", "scheduled_at", "estimated_delivery_time")


def is_empty_value(value: Any) -> bool:
    """Return whether a field value counts as empty (``False`` does not)."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict)):
        return not value
    return False


def _comparable(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.timestamp()
    return value


def values_differ(before: Any, after: Any) -> bool:
    if is_empty_value(before) and is_empty_value(after):
        return False
    return _comparable(before) != _comparable(after)


def build_field_diff(before: Any, after: Any) -> FieldDiff | None:
    """Label a value transition as added, removed or changed; ``None`` if equal."""
    if not values_differ(before, after):
        return None
    if is_empty_value(before):
        return AddedField(after=after)
    if is_empty_value(after):
        return RemovedField(before=before)
    return ChangedField(before=before, after=after)


def _diff_attributes(current: Any, previous: Any, names: tuple[str, ...]) -> dict[str, FieldDiff]:
    diffs: dict[str, FieldDiff] = {}
    for name in names:
        before = getattr(previous, name) if previous is not None else None
        after = getattr(current, name) if current is not None else None
        field_diff = build_field_diff(before, after)
        if field_diff is not None:
            diffs[name] = field_diff
    return diffs


def diff_delivery_info(
    current: DeliveryInfoSnapshot | None,
    previous: DeliveryInfoSnapshot | None,
) -> dict[str, FieldDiff] | None:
    """Compare delivery sub-fields independently; ``None`` when none differ."""
    if current is None and previous is None:
        return None
    diffs = _diff_attributes(current, previous, DELIVERY_FIELDS)
    return diffs or None


def diff_items(current_items: list[ItemSnapshot], previous_items: list[ItemSnapshot]) -> ItemDiff | None:
    """Match items by id and split them into added, modified and removed."""
    current_by_id: dict[int, ItemSnapshot] = {item.id: item for item in current_items}
    previous_by_id: dict[int, ItemSnapshot] = {item.id: item for item in previous_items}

    added: list[ItemSnapshot] = []
    modified: list[ModifiedItem] = []
    for item_id, current_item in current_by_id.items():
        previous_item = previous_by_id.get(item_id)
        if previous_item is None:
            added.append(current_item)
            continue
        categories = classify_item_changes(previous_item, current_item)
        if categories:
            modified.append(
                ModifiedItem(
                    id=item_id,
                    before=previous_item,
                    after=current_item,
                    changes=ordered_categories(categories),
                )
            )

    removed: list[ItemSnapshot] = [item for item_id, item in previous_by_id.items() if item_id not in current_by_id]

    item_diff = ItemDiff(added=added, modified=modified, removed=removed)
    return None if item_diff.is_empty() else item_diff


def _pluralize_products(count: int) -> str:
    return f"{count} producto{'s' if count != 1 else ''}"


def _field_names(changes: dict[str, FieldDiff]) -> str:
    return ", ".join(FIELD_LABELS.get(field, field) for field in changes)


def _update_summary(
    fields: dict[str, FieldDiff],
    delivery: dict[str, FieldDiff] | None,
    items: ItemDiff | None,
) -> str:
    parts: list[str] = []
    if fields:
        parts.append(f"Orden: {_field_names(fields)}")
    if delivery:
        parts.append(f"Entrega: {_field_names(delivery)}")
    if items is not None:
        item_parts: list[str] = []
        if items.added:
            item_parts.append(f"{len(items.added)} agregados")
        if items.modified:
            item_parts.append(f"{len(items.modified)} modificados")
        if items.removed:
            item_parts.append(f"{len(items.removed)} eliminados")
        parts.append(f"Productos: {', '.join(item_parts)}")
    return " | ".join(parts)


def build_insert_diff(current: OrderSnapshot) -> ConsolidatedDiff:
    """Describe a newly created order: every populated value is ``added``."""
    return ConsolidatedDiff(
        fields=_diff_attributes(current, None, ORDER_FIELDS),
        delivery_info=diff_delivery_info(current.delivery_info, None),
        items=ItemDiff(added=list(current.items)),
        summary=f"Nueva orden creada con {_pluralize_products(len(current.items))}",
    )


def build_delete_diff(previous: OrderSnapshot) -> ConsolidatedDiff:
    """Describe a removed order: every populated value is ``removed``."""
    return ConsolidatedDiff(
        fields=_diff_attributes(None, previous, ORDER_FIELDS),
        delivery_info=diff_delivery_info(None, previous.delivery_info),
        items=ItemDiff(removed=list(previous.items)),
        summary=f"Orden eliminada con {_pluralize_products(len(previous.items))}",
    )


def diff_order_snapshots(current: OrderSnapshot, previous: OrderSnapshot | None) -> ConsolidatedDiff | None:
    """Return the diff from ``previous`` to ``current``, or ``None`` if nothing changed."""
    if previous is None:
        return build_insert_diff(current)

    fields = _diff_attributes(current, previous, ORDER_FIELDS)
    delivery = diff_delivery_info(current.delivery_info, previous.delivery_info)
    items = diff_items(current.items, previous.items)
    if not fields and delivery is None and items is None:
        return None

    return ConsolidatedDiff(
        fields=fields,
        delivery_info=delivery,
        items=items,
        summary=_update_summary(fields, delivery, items),
    )


def has_structural_changes(current: OrderSnapshot, previous: OrderSnapshot) -> bool:
    """Return whether a change affects the preparation ticket.

    Status, type, customer and other bookkeeping fields are ignored; notes,
    schedule, delivery details and any item change count.
    """
    if _diff_attributes(current, previous, STRUCTURAL_FIELDS):
        return True
    if diff_delivery_info(current.delivery_info, previous.delivery_info) is not None:
        return True
    return diff_items(current.items, previous.items) is not None

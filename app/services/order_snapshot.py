"""Build denormalized, JSON-safe snapshots of hydrated order aggregates."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

from app.models.order import DeliveryInfo, Order, OrderItem, SelectedPizzaCustomization
from app.schemas.history import DeliveryInfoSnapshot, ItemSnapshot, OrderSnapshot
from app.services.pizza_customizations import PizzaSelection, format_pizza_customization_list


class SnapshotSerializationError(ValueError):
    """Raised when the order aggregate lacks a relation the snapshot requires."""


def _money(value: Decimal | float | None) -> float:
    if value is None:
        return 0.0
    return round(float(value), 2)


def as_utc(value: datetime | None) -> datetime | None:
    """Return an aware UTC datetime; naive values are treated as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _pizza_selection(selected: SelectedPizzaCustomization) -> PizzaSelection:
    customization = selected.pizza_customization
    if customization is None:
        raise SnapshotSerializationError(
            f"Pizza selection {selected.id} has no pizza customization loaded"
        )
    return PizzaSelection(
        customization_id=customization.id,
        half=selected.half,
        action=selected.action,
        type=customization.type,
        name=customization.name,
    )


def build_item_snapshot(item: OrderItem) -> ItemSnapshot:
    """Snapshot one order item, copying product, variant and modifier names."""
    if item.id is None:
        raise SnapshotSerializationError("Order item has no id; flush the session before snapshotting")
    product = item.product
    if product is None:
        raise SnapshotSerializationError(f"Order item {item.id} has no product loaded")

    variant = item.product_variant
    if item.product_variant_id is not None and variant is None:
        raise SnapshotSerializationError(f"Order item {item.id} references a variant that is not loaded")

    return ItemSnapshot(
        id=item.id,
        product_id=product.id,
        product_name=product.name,
        variant_id=variant.id if variant is not None else None,
        variant_name=variant.name if variant is not None else None,
        base_price=_money(item.base_price),
        final_price=_money(item.final_price),
        preparation_status=item.preparation_status,
        preparation_notes=item.preparation_notes,
        modifiers=[modifier.name for modifier in item.product_modifiers],
        customizations=format_pizza_customization_list(
            _pizza_selection(selected) for selected in item.selected_pizza_customizations
        ),
    )


def _delivery_snapshot(info: DeliveryInfo | None) -> DeliveryInfoSnapshot | None:
    if info is None:
        return None
    return DeliveryInfoSnapshot(
        recipient_name=info.recipient_name,
        recipient_phone=info.recipient_phone,
        full_address=info.full_address,
        delivery_instructions=info.delivery_instructions,
    )


def build_order_snapshot(order: Order) -> OrderSnapshot:
    """Return the post-image of ``order``; no I/O beyond already-loaded relations."""
    if order.id is None:
        raise SnapshotSerializationError("Order has no id; flush the session before snapshotting")

    return OrderSnapshot(
        id=order.id,
        status=order.status,
        order_type=order.order_type,
        notes=order.notes,
        table_id=order.table_id,
        customer_id=order.customer_id,
        scheduled_at=as_utc(order.scheduled_at),
        estimated_delivery_time=as_utc(order.estimated_delivery_time),
        is_from_whatsapp=bool(order.is_from_whatsapp),
        delivery_info=_delivery_snapshot(order.delivery_info),
        items=[build_item_snapshot(item) for item in order.items],
    )

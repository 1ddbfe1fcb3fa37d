"""Order mutations; each one is tracked in the order history within its own transaction."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy.orm import Session, selectinload

from app.models.menu import PizzaCustomization, Product, ProductModifier, ProductVariant
from app.models.order import ORDER_STATUSES, DeliveryInfo, Order, OrderItem, SelectedPizzaCustomization
from app.schemas.order import DeliveryInfoPayload, OrderCreate, OrderItemPayload, OrderUpdate
from app.services.order_change_tracker import OrderChangeTracker

logger = logging.getLogger(__name__)

SCALAR_UPDATE_FIELDS: tuple[str, ...] = (
    "order_type",
    "table_id",
    "customer_id",
    "notes",
    "scheduled_at",
    "estimated_delivery_time",
    "is_from_whatsapp",
)


class OrderNotFoundError(Exception):
    """Raised when the requested order or item does not exist."""


class InvalidOrderPayloadError(Exception):
    """Raised when a payload references unknown or inconsistent catalog data."""


def load_order_aggregate(db: Session, order_id: int) -> Order | None:
    """Return the order with every relation the history snapshot reads."""
    return (
        db.query(Order)
        .options(
            selectinload(Order.delivery_info),
            selectinload(Order.items).selectinload(OrderItem.product),
            selectinload(Order.items).selectinload(OrderItem.product_variant),
            selectinload(Order.items).selectinload(OrderItem.product_modifiers),
            selectinload(Order.items)
            .selectinload(OrderItem.selected_pizza_customizations)
            .selectinload(SelectedPizzaCustomization.pizza_customization),
        )
        .filter(Order.id == order_id)
        .first()
    )


def _get_order_or_raise(db: Session, order_id: int) -> Order:
    order = load_order_aggregate(db, order_id)
    if order is None:
        raise OrderNotFoundError(f"Order {order_id} not found")
    return order


def _resolve_product(db: Session, payload: OrderItemPayload) -> tuple[Product, ProductVariant | None]:
    product: Product | None = db.get(Product, payload.product_id)
    if product is None:
        raise InvalidOrderPayloadError(f"Product {payload.product_id} not found")

    variant: ProductVariant | None = None
    if payload.product_variant_id is not None:
        variant = db.get(ProductVariant, payload.product_variant_id)
        if variant is None or variant.product_id != product.id:
            raise InvalidOrderPayloadError(
                f"Variant {payload.product_variant_id} does not belong to product {product.id}"
            )
    return product, variant


def _resolve_modifiers(db: Session, modifier_ids: list[int]) -> list[ProductModifier]:
    modifiers: list[ProductModifier] = []
    for modifier_id in modifier_ids:
        modifier = db.get(ProductModifier, modifier_id)
        if modifier is None:
            raise InvalidOrderPayloadError(f"Modifier {modifier_id} not found")
        modifiers.append(modifier)
    return modifiers


def _build_pizza_selections(db: Session, payload: OrderItemPayload) -> list[SelectedPizzaCustomization]:
    selections: list[SelectedPizzaCustomization] = []
    for selection in payload.pizza_customizations:
        customization = db.get(PizzaCustomization, selection.pizza_customization_id)
        if customization is None:
            raise InvalidOrderPayloadError(f"Pizza customization {selection.pizza_customization_id} not found")
        selections.append(
            SelectedPizzaCustomization(
                pizza_customization=customization,
                half=selection.half,
                action=selection.action,
            )
        )
    return selections


def _apply_item_payload(db: Session, item: OrderItem, payload: OrderItemPayload) -> None:
    product, variant = _resolve_product(db, payload)
    modifiers = _resolve_modifiers(db, payload.modifier_ids)

    base_price: Decimal = Decimal(variant.price if variant is not None else (product.price or 0))
    modifiers_total: Decimal = sum((Decimal(modifier.price or 0) for modifier in modifiers), Decimal("0.00"))

    item.product = product
    item.product_variant = variant
    item.product_modifiers = modifiers
    item.selected_pizza_customizations = _build_pizza_selections(db, payload)
    item.preparation_notes = payload.preparation_notes
    item.base_price = base_price
    item.final_price = base_price + modifiers_total


def _apply_delivery_info(order: Order, payload: DeliveryInfoPayload | None) -> None:
    if payload is None:
        order.delivery_info = None
        return
    if order.delivery_info is None:
        order.delivery_info = DeliveryInfo()
    for field, value in payload.model_dump().items():
        setattr(order.delivery_info, field, value)


def _replace_items(db: Session, order: Order, payloads: list[OrderItemPayload]) -> None:
    existing: dict[int, OrderItem] = {item.id: item for item in order.items}
    kept: list[OrderItem] = []
    for payload in payloads:
        if payload.id is None:
            item = OrderItem(preparation_status="PENDING")
        else:
            item = existing.get(payload.id)
            if item is None:
                raise InvalidOrderPayloadError(f"Item {payload.id} does not belong to order {order.id}")
        _apply_item_payload(db, item, payload)
        kept.append(item)
    order.items = kept


def _recalculate_totals(order: Order) -> None:
    subtotal: Decimal = sum((Decimal(item.final_price) for item in order.items), Decimal("0.00"))
    order.subtotal = subtotal
    order.total = subtotal


def create_order(db: Session, payload: OrderCreate, actor_id: int | None) -> Order:
    """Create an order and record its INSERT history entry."""
    order = Order(
        status="PENDING",
        order_type=payload.order_type,
        table_id=payload.table_id,
        customer_id=payload.customer_id,
        notes=payload.notes,
        scheduled_at=payload.scheduled_at,
        estimated_delivery_time=payload.estimated_delivery_time,
        is_from_whatsapp=payload.is_from_whatsapp,
        created_by=actor_id,
    )
    if payload.delivery_info is not None:
        _apply_delivery_info(order, payload.delivery_info)
    _replace_items(db, order, payload.items)
    _recalculate_totals(order)
    db.add(order)
    db.flush()

    OrderChangeTracker(db).track("INSERT", order, None, actor_id)
    db.commit()
    logger.info("[ORDERS] Created order_id=%s with %d item(s)", order.id, len(order.items))
    return order


def update_order(db: Session, order_id: int, payload: OrderUpdate, actor_id: int | None) -> Order:
    """Apply a partial update and record the UPDATE diff when anything changed."""
    order = _get_order_or_raise(db, order_id)
    tracker = OrderChangeTracker(db)
    previous = tracker.capture_previous(order)

    provided: set[str] = payload.model_fields_set
    if "status" in provided and payload.status is not None:
        if payload.status not in ORDER_STATUSES:
            raise InvalidOrderPayloadError(f"Unknown order status {payload.status}")
        order.status = payload.status
    for field in SCALAR_UPDATE_FIELDS:
        if field in provided:
            value = getattr(payload, field)
            if field in {"order_type", "is_from_whatsapp"} and value is None:
                continue
            setattr(order, field, value)
    if "delivery_info" in provided:
        _apply_delivery_info(order, payload.delivery_info)
    if payload.items is not None:
        _replace_items(db, order, payload.items)
        _recalculate_totals(order)
    db.flush()

    tracker.track("UPDATE", order, previous, actor_id)
    db.commit()
    return order


def update_item_preparation_status(db: Session, item_id: int, preparation_status: str, actor_id: int | None) -> Order:
    """Move one item to a new preparation status, tracked as an order UPDATE."""
    item: OrderItem | None = db.get(OrderItem, item_id)
    if item is None:
        raise OrderNotFoundError(f"Order item {item_id} not found")
    order = _get_order_or_raise(db, item.order_id)
    tracker = OrderChangeTracker(db)
    previous = tracker.capture_previous(order)

    item.preparation_status = preparation_status
    item.status_changed_at = datetime.now(timezone.utc)
    db.flush()

    tracker.track("UPDATE", order, previous, actor_id)
    db.commit()
    return order


def delete_order(db: Session, order_id: int, actor_id: int | None) -> None:
    """Delete an order; its history survives with a final DELETE record."""
    order = _get_order_or_raise(db, order_id)
    OrderChangeTracker(db).track("DELETE", order, None, actor_id)
    db.delete(order)
    db.commit()
    logger.info("[ORDERS] Deleted order_id=%s", order_id)

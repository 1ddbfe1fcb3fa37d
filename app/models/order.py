"""Order aggregate ORM models: order, delivery info, line items and pizza selections."""

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import Boolean, Column, DateTime, Enum, ForeignKey, Integer, Numeric, String, Table, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base

ORDER_STATUSES = ("PENDING", "IN_PROGRESS", "IN_PREPARATION", "READY", "IN_DELIVERY", "DELIVERED", "COMPLETED", "CANCELLED")
ORDER_TYPES = ("DINE_IN", "TAKE_AWAY", "DELIVERY")
PREPARATION_STATUSES = ("PENDING", "IN_PROGRESS", "READY", "DELIVERED", "CANCELLED")
PIZZA_HALVES = ("FULL", "HALF_1", "HALF_2")
CUSTOMIZATION_ACTIONS = ("ADD", "REMOVE")

order_item_modifiers = Table(
    "order_item_modifiers",
    Base.metadata,
    Column("order_item_id", ForeignKey("order_items.id", ondelete="CASCADE"), primary_key=True),
    Column("product_modifier_id", ForeignKey("product_modifiers.id"), primary_key=True),
)


class Order(Base):
    """Restaurant order; root of the aggregate that history snapshots."""

    __tablename__ = "orders"

    id: Mapped[int] = mapped_column(primary_key=True)
    status: Mapped[str] = mapped_column(Enum(*ORDER_STATUSES, name="order_status"), nullable=False, default="PENDING")
    order_type: Mapped[str] = mapped_column(Enum(*ORDER_TYPES, name="order_type"), nullable=False, default="DINE_IN")
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    table_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    customer_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    scheduled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    estimated_delivery_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    is_from_whatsapp: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    subtotal: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    total: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    created_by: Mapped[int | None] = mapped_column(ForeignKey("users.id"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    delivery_info: Mapped["DeliveryInfo | None"] = relationship(
        back_populates="order", uselist=False, cascade="all, delete-orphan"
    )
    items: Mapped[list["OrderItem"]] = relationship(
        back_populates="order", cascade="all, delete-orphan", order_by="OrderItem.id"
    )


class DeliveryInfo(Base):
    """Recipient and address data for delivery and take-away orders."""

    __tablename__ = "delivery_info"

    id: Mapped[int] = mapped_column(primary_key=True)
    order_id: Mapped[int] = mapped_column(ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, unique=True)
    recipient_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    recipient_phone: Mapped[str | None] = mapped_column(String(32), nullable=True)
    full_address: Mapped[str | None] = mapped_column(Text, nullable=True)
    delivery_instructions: Mapped[str | None] = mapped_column(Text, nullable=True)

    order: Mapped[Order] = relationship(back_populates="delivery_info")


class OrderItem(Base):
    """Single unit of a product inside an order."""

    __tablename__ = "order_items"

    id: Mapped[int] = mapped_column(primary_key=True)
    order_id: Mapped[int] = mapped_column(ForeignKey("orders.id", ondelete="CASCADE"), nullable=False)
    product_id: Mapped[int] = mapped_column(ForeignKey("products.id"), nullable=False)
    product_variant_id: Mapped[int | None] = mapped_column(ForeignKey("product_variants.id"), nullable=True)
    base_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    final_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    preparation_status: Mapped[str] = mapped_column(
        Enum(*PREPARATION_STATUSES, name="preparation_status"), nullable=False, default="PENDING"
    )
    status_changed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    preparation_notes: Mapped[str | None] = mapped_column(String(500), nullable=True)

    order: Mapped[Order] = relationship(back_populates="items")
    product: Mapped["Product"] = relationship()
    product_variant: Mapped["ProductVariant | None"] = relationship()
    product_modifiers: Mapped[list["ProductModifier"]] = relationship(secondary=order_item_modifiers)
    selected_pizza_customizations: Mapped[list["SelectedPizzaCustomization"]] = relationship(
        back_populates="order_item", cascade="all, delete-orphan", order_by="SelectedPizzaCustomization.id"
    )


class SelectedPizzaCustomization(Base):
    """Flavor or ingredient chosen for one half (or the whole) of a pizza item."""

    __tablename__ = "selected_pizza_customizations"

    id: Mapped[int] = mapped_column(primary_key=True)
    order_item_id: Mapped[int] = mapped_column(ForeignKey("order_items.id", ondelete="CASCADE"), nullable=False)
    pizza_customization_id: Mapped[int] = mapped_column(ForeignKey("pizza_customizations.id"), nullable=False)
    half: Mapped[str] = mapped_column(Enum(*PIZZA_HALVES, name="pizza_half"), nullable=False, default="FULL")
    action: Mapped[str] = mapped_column(Enum(*CUSTOMIZATION_ACTIONS, name="customization_action"), nullable=False, default="ADD")

    order_item: Mapped[OrderItem] = relationship(back_populates="selected_pizza_customizations")
    pizza_customization: Mapped["PizzaCustomization"] = relationship()

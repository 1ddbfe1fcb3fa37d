"""Order API schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class PizzaSelectionPayload(BaseModel):
    """One pizza flavor or ingredient choice."""

    pizza_customization_id: int
    half: Literal["FULL", "HALF_1", "HALF_2"] = "FULL"
    action: Literal["ADD", "REMOVE"] = "ADD"


class OrderItemPayload(BaseModel):
    """Order line item; ``id`` refers to an existing item when updating."""

    id: int | None = None
    product_id: int
    product_variant_id: int | None = None
    modifier_ids: list[int] = Field(default_factory=list)
    pizza_customizations: list[PizzaSelectionPayload] = Field(default_factory=list)
    preparation_notes: str | None = None


class DeliveryInfoPayload(BaseModel):
    recipient_name: str | None = None
    recipient_phone: str | None = None
    full_address: str | None = None
    delivery_instructions: str | None = None


class OrderCreate(BaseModel):
    """Create a new order."""

    order_type: Literal["DINE_IN", "TAKE_AWAY", "DELIVERY"] = "DINE_IN"
    table_id: int | None = None
    customer_id: int | None = None
    notes: str | None = None
    scheduled_at: datetime | None = None
    estimated_delivery_time: datetime | None = None
    is_from_whatsapp: bool = False
    delivery_info: DeliveryInfoPayload | None = None
    items: list[OrderItemPayload] = Field(default_factory=list)


class OrderUpdate(BaseModel):
    """Partial order update; ``items`` replaces the whole item list when given."""

    status: str | None = None
    order_type: Literal["DINE_IN", "TAKE_AWAY", "DELIVERY"] | None = None
    table_id: int | None = None
    customer_id: int | None = None
    notes: str | None = None
    scheduled_at: datetime | None = None
    estimated_delivery_time: datetime | None = None
    is_from_whatsapp: bool | None = None
    delivery_info: DeliveryInfoPayload | None = None
    items: list[OrderItemPayload] | None = None


class PreparationStatusUpdate(BaseModel):
    preparation_status: Literal["PENDING", "IN_PROGRESS", "READY", "DELIVERED", "CANCELLED"]


class OrderItemRead(BaseModel):
    """Serialized order item."""

    id: int
    product_id: int
    product_variant_id: int | None
    base_price: Decimal
    final_price: Decimal
    preparation_status: str
    preparation_notes: str | None

    model_config = ConfigDict(from_attributes=True)


class OrderRead(BaseModel):
    """Serialized order."""

    id: int
    status: str
    order_type: str
    table_id: int | None
    customer_id: int | None
    notes: str | None
    scheduled_at: datetime | None
    estimated_delivery_time: datetime | None
    is_from_whatsapp: bool
    total: Decimal
    items: list[OrderItemRead]

    model_config = ConfigDict(from_attributes=True)

"""Schema exports."""

from app.schemas.history import (
    ActorIdentity,
    ChangeRecord,
    ConsolidatedDiff,
    EnrichedChangeRecord,
    HistoryPage,
    ItemDiff,
    ItemSnapshot,
    OrderSnapshot,
)
from app.schemas.order import (
    DeliveryInfoPayload,
    OrderCreate,
    OrderItemPayload,
    OrderItemRead,
    OrderRead,
    OrderUpdate,
    PizzaSelectionPayload,
    PreparationStatusUpdate,
)

__all__ = [
    "ActorIdentity",
    "ChangeRecord",
    "ConsolidatedDiff",
    "EnrichedChangeRecord",
    "HistoryPage",
    "ItemDiff",
    "ItemSnapshot",
    "OrderSnapshot",
    "DeliveryInfoPayload",
    "OrderCreate",
    "OrderItemPayload",
    "OrderItemRead",
    "OrderRead",
    "OrderUpdate",
    "PizzaSelectionPayload",
    "PreparationStatusUpdate",
]

"""Order history schemas: snapshots, diffs and change records.

Every model here is frozen and JSON-safe through ``model_dump(mode="json")``;
that dump is exactly what the ``order_history`` table stores.
"""

from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

SNAPSHOT_SCHEMA_VERSION: int = 1

HistoryOperation = Literal["INSERT", "UPDATE", "DELETE"]
FieldValue = Union[bool, int, float, datetime, str, None]


class ItemChangeCategory(str, Enum):
    """Semantic aspect of an order item that changed between two snapshots."""

    PRODUCT = "product"
    VARIANT = "variant"
    PRICE = "price"
    MODIFIERS = "modifiers"
    CUSTOMIZATIONS = "customizations"
    NOTES = "notes"
    PREPARATION_STATUS = "preparationStatus"


class HistoryModel(BaseModel):
    """Base for immutable history structures."""

    model_config = ConfigDict(frozen=True)


class DeliveryInfoSnapshot(HistoryModel):
    recipient_name: str | None = None
    recipient_phone: str | None = None
    full_address: str | None = None
    delivery_instructions: str | None = None


class ItemSnapshot(HistoryModel):
    """Denormalized order item; names are copied so history survives catalog edits."""

    id: int
    product_id: int
    product_name: str
    variant_id: int | None = None
    variant_name: str | None = None
    base_price: float = 0.0
    final_price: float = 0.0
    preparation_status: str | None = None
    preparation_notes: str | None = None
    modifiers: list[str] = Field(default_factory=list)
    customizations: list[str] = Field(default_factory=list)


class OrderSnapshot(HistoryModel):
    """Post-image of an order aggregate at one instant."""

    schema_version: int = SNAPSHOT_SCHEMA_VERSION
    id: int
    status: str
    order_type: str
    notes: str | None = None
    table_id: int | None = None
    customer_id: int | None = None
    scheduled_at: datetime | None = None
    estimated_delivery_time: datetime | None = None
    is_from_whatsapp: bool = False
    delivery_info: DeliveryInfoSnapshot | None = None
    items: list[ItemSnapshot] = Field(default_factory=list)


class AddedField(HistoryModel):
    """Field went from empty to populated."""

    kind: Literal["added"] = "added"
    before: None = None
    after: FieldValue


class RemovedField(HistoryModel):
    """Field went from populated to empty."""

    kind: Literal["removed"] = "removed"
    before: FieldValue
    after: None = None


class ChangedField(HistoryModel):
    """Field went from one populated value to another."""

    kind: Literal["changed"] = "changed"
    before: FieldValue
    after: FieldValue


FieldDiff = Annotated[Union[AddedField, RemovedField, ChangedField], Field(discriminator="kind")]


class ModifiedItem(HistoryModel):
    """Item present in both snapshots with at least one classified change."""

    id: int
    before: ItemSnapshot
    after: ItemSnapshot
    changes: list[ItemChangeCategory]


class ItemDiff(HistoryModel):
    added: list[ItemSnapshot] = Field(default_factory=list)
    modified: list[ModifiedItem] = Field(default_factory=list)
    removed: list[ItemSnapshot] = Field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.added or self.modified or self.removed)


class ConsolidatedDiff(HistoryModel):
    """Structured difference between two order snapshots (or none and one)."""

    fields: dict[str, FieldDiff] = Field(default_factory=dict)
    delivery_info: dict[str, FieldDiff] | None = None
    items: ItemDiff | None = None
    summary: str = ""


class ChangeRecord(HistoryModel):
    """One immutable entry of an order's history."""

    id: int | None = None
    order_id: int
    operation: HistoryOperation
    actor_id: int | None = None
    timestamp: datetime
    diff: ConsolidatedDiff | None = None
    snapshot: OrderSnapshot


class ActorIdentity(HistoryModel):
    """Display identity of the user attributed to a change."""

    id: int | None = None
    first_name: str | None = None
    last_name: str | None = None
    username: str | None = None
    display_name: str
    is_known: bool = True


class EnrichedChangeRecord(ChangeRecord):
    """Change record with resolved actor and a localized display tree."""

    operation_label: str
    changed_by_user: ActorIdentity
    formatted_changes: dict[str, Any] = Field(default_factory=dict)


class HistoryPage(HistoryModel):
    items: list[EnrichedChangeRecord]
    total_count: int
    page: int
    limit: int
    has_next_page: bool

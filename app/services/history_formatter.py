"""Render order change records into a localized (es-MX) display tree."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime
from typing import Any, Protocol
from zoneinfo import ZoneInfo

from pydantic import TypeAdapter, ValidationError

from app.core.config import settings
from app.schemas.history import (
    ActorIdentity,
    ChangeRecord,
    ConsolidatedDiff,
    EnrichedChangeRecord,
    FieldDiff,
    ItemChangeCategory,
    ItemDiff,
    ItemSnapshot,
    ModifiedItem,
)
from app.services.order_diff import FIELD_LABELS, is_empty_value
from app.services.order_snapshot import as_utc

logger = logging.getLogger(__name__)

UNKNOWN_ACTOR_NAME: str = "Desconocido"
EMPTY_VALUE: str = "-"

OPERATION_LABELS: dict[str, str] = {"INSERT": "Orden creada", "UPDATE": "Orden modificada", "DELETE": "Orden eliminada"}
ORDER_STATUS_LABELS: dict[str, str] = {
    "PENDING": "Pendiente",
    "IN_PROGRESS": "En progreso",
    "IN_PREPARATION": "En preparación",
    "READY": "Lista",
    "IN_DELIVERY": "En reparto",
    "DELIVERED": "Entregada",
    "COMPLETED": "Completada",
    "CANCELLED": "Cancelada",
}
ORDER_TYPE_LABELS: dict[str, str] = {"DINE_IN": "Para comer aquí", "TAKE_AWAY": "Para llevar", "DELIVERY": "Domicilio"}
PREPARATION_STATUS_LABELS: dict[str, str] = {
    "PENDING": "Pendiente",
    "IN_PROGRESS": "En preparación",
    "READY": "Listo",
    "DELIVERED": "Entregado",
    "CANCELLED": "Cancelado",
}
CHANGE_KIND_LABELS: dict[str, str] = {"added": "agregado", "removed": "eliminado", "changed": "modificado"}
ITEM_CHANGE_LABELS: dict[ItemChangeCategory, str] = {
    ItemChangeCategory.PRODUCT: "Producto",
    ItemChangeCategory.VARIANT: "Variante",
    ItemChangeCategory.PRICE: "Precio",
    ItemChangeCategory.MODIFIERS: "Modificadores",
    ItemChangeCategory.CUSTOMIZATIONS: "Personalizaciones",
    ItemChangeCategory.NOTES: "Notas",
    ItemChangeCategory.PREPARATION_STATUS: "Estado de preparación",
}
DATETIME_FIELDS: frozenset[str] = frozenset({"scheduled_at", "estimated_delivery_time"})
DATETIME_ADAPTER: TypeAdapter[datetime] = TypeAdapter(datetime)


class ActorDirectory(Protocol):
    def find_by_ids(self, ids: Iterable[int]) -> list[ActorIdentity]: ...


def operation_label(operation: str) -> str:
    return OPERATION_LABELS.get(operation, operation)


def format_money(value: Any, symbol: str | None = None) -> str:
    """Format ``1234.5`` as ``"$1,234.50"``."""
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return str(value)
    return f"{symbol if symbol is not None else settings.currency_symbol}{amount:,.2f}"


def format_datetime(value: Any, timezone_name: str | None = None) -> str:
    """Show a timestamp as ``dd/mm/YYYY HH:MM`` in the operational timezone."""
    if isinstance(value, str):
        try:
            value = DATETIME_ADAPTER.validate_python(value)
        except ValidationError:
            return value
    if not isinstance(value, datetime):
        return str(value)
    local = as_utc(value).astimezone(ZoneInfo(timezone_name or settings.history_timezone))
    return local.strftime("%d/%m/%Y %H:%M")


def format_boolean(value: Any) -> str:
    return "Sí" if value else "No"


def format_field_value(field: str, value: Any, timezone_name: str | None = None) -> str:
    """Render one scalar order or delivery value for display."""
    if field == "is_from_whatsapp":
        return format_boolean(value)
    if is_empty_value(value):
        return EMPTY_VALUE
    if field == "status":
        return ORDER_STATUS_LABELS.get(str(value), str(value))
    if field == "order_type":
        return ORDER_TYPE_LABELS.get(str(value), str(value))
    if field in DATETIME_FIELDS:
        return format_datetime(value, timezone_name)
    if field == "table_id":
        return f"Mesa {value}"
    return str(value)


def format_item_line(item: ItemSnapshot) -> str:
    """Render ``<variant or product>[ - Modificadores: a, b][ (custom)][ - Notas: …]``."""
    line = item.variant_name or item.product_name
    if item.modifiers:
        line += f" - Modificadores: {', '.join(item.modifiers)}"
    customizations = ", ".join(value for value in item.customizations if value)
    if customizations:
        line += f" ({customizations})"
    if item.preparation_notes:
        line += f" - Notas: {item.preparation_notes}"
    return line


def unknown_actor(actor_id: int | None) -> ActorIdentity:
    return ActorIdentity(id=actor_id, display_name=UNKNOWN_ACTOR_NAME, is_known=False)


class OrderHistoryFormatter:
    """Enriches pages of change records with actor identities and display trees."""

    def __init__(self, directory: ActorDirectory, timezone_name: str | None = None) -> None:
        self.directory = directory
        self.timezone_name = timezone_name or settings.history_timezone

    def enrich(self, records: list[ChangeRecord]) -> list[EnrichedChangeRecord]:
        actors: dict[int, ActorIdentity] = self._resolve_actors(records)
        return [
            EnrichedChangeRecord(
                **dict(record),
                operation_label=operation_label(record.operation),
                changed_by_user=actors.get(record.actor_id) or unknown_actor(record.actor_id),
                formatted_changes=self.format_changes(record.diff) if record.diff is not None else {},
            )
            for record in records
        ]

    def _resolve_actors(self, records: list[ChangeRecord]) -> dict[int, ActorIdentity]:
        actor_ids: set[int] = {record.actor_id for record in records if record.actor_id is not None}
        if not actor_ids:
            return {}
        try:
            identities = self.directory.find_by_ids(sorted(actor_ids))
        except Exception:
            logger.exception("[HISTORY] Actor lookup failed for %d user id(s); showing unknown actors", len(actor_ids))
            return {}

        resolved = {identity.id: identity for identity in identities if identity.id is not None}
        missing = actor_ids - resolved.keys()
        if missing:
            logger.warning("[HISTORY] Unresolved actor ids: %s", sorted(missing))
        return resolved

    def format_field_diff(self, field: str, change: FieldDiff) -> dict[str, str]:
        return {
            "tipo": CHANGE_KIND_LABELS[change.kind],
            "anterior": format_field_value(field, change.before, self.timezone_name),
            "nuevo": format_field_value(field, change.after, self.timezone_name),
        }

    def _format_modified_item(self, entry: ModifiedItem) -> dict[str, Any]:
        formatted: dict[str, Any] = {
            "antes": format_item_line(entry.before),
            "después": format_item_line(entry.after),
            "cambios": [ITEM_CHANGE_LABELS[category] for category in entry.changes],
        }
        if ItemChangeCategory.PRICE in entry.changes:
            formatted["Precio"] = {
                "anterior": format_money(entry.before.final_price),
                "nuevo": format_money(entry.after.final_price),
            }
        if ItemChangeCategory.PREPARATION_STATUS in entry.changes:
            formatted["Estado de preparación"] = {
                "anterior": PREPARATION_STATUS_LABELS.get(entry.before.preparation_status or "", EMPTY_VALUE),
                "nuevo": PREPARATION_STATUS_LABELS.get(entry.after.preparation_status or "", EMPTY_VALUE),
            }
        return formatted

    def format_item_changes(self, items: ItemDiff) -> dict[str, Any]:
        formatted: dict[str, Any] = {}
        if items.added:
            formatted["Productos agregados"] = [format_item_line(item) for item in items.added]
        if items.modified:
            formatted["Productos modificados"] = [self._format_modified_item(entry) for entry in items.modified]
        if items.removed:
            formatted["Productos eliminados"] = [format_item_line(item) for item in items.removed]
        return formatted

    def format_changes(self, diff: ConsolidatedDiff) -> dict[str, Any]:
        """Build the display tree for one diff, keyed by Spanish labels."""
        formatted: dict[str, Any] = {}
        for field, change in diff.fields.items():
            formatted[FIELD_LABELS.get(field, field)] = self.format_field_diff(field, change)

        if diff.delivery_info:
            formatted["Información de entrega"] = {
                FIELD_LABELS.get(field, field): self.format_field_diff(field, change)
                for field, change in diff.delivery_info.items()
            }

        if diff.items is not None:
            item_changes = self.format_item_changes(diff.items)
            if item_changes:
                formatted["Cambios en productos"] = item_changes

        if diff.summary:
            formatted["Resumen"] = diff.summary
        return formatted

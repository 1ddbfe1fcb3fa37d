"""Compact text rendering of pizza half/flavor/ingredient selections."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Protocol

FULL: str = "FULL"
HALF_1: str = "HALF_1"
HALF_2: str = "HALF_2"


class PizzaSelectionLike(Protocol):
    half: str
    action: str
    type: str
    name: str


@dataclass(frozen=True)
class PizzaSelection:
    """Flattened pizza customization choice for one half of one item."""

    customization_id: int | None
    half: str
    action: str
    type: str
    name: str


def _format_half(selections: list[PizzaSelectionLike]) -> str:
    flavors: list[str] = [selection.name for selection in selections if selection.type == "FLAVOR"]
    added: list[str] = [
        selection.name for selection in selections if selection.type == "INGREDIENT" and selection.action == "ADD"
    ]
    removed: list[str] = [
        selection.name for selection in selections if selection.type == "INGREDIENT" and selection.action == "REMOVE"
    ]

    parts: list[str] = []
    if flavors:
        parts.append(", ".join(flavors))
    if added:
        parts.append(f"con {', '.join(added)}")
    if removed:
        parts.append(f"sin {', '.join(removed)}")
    return " - ".join(parts)


def format_pizza_customizations(selections: Iterable[PizzaSelectionLike]) -> str:
    """Render selections as e.g. ``"Hawaiana / Mexicana - con Chile"``.

    A non-empty FULL group is the whole result; otherwise the two halves are
    formatted independently and joined with ``" / "``.
    """
    grouped: dict[str, list[PizzaSelectionLike]] = {FULL: [], HALF_1: [], HALF_2: []}
    for selection in selections:
        grouped.setdefault(selection.half or FULL, []).append(selection)

    if grouped[FULL]:
        return _format_half(grouped[FULL])

    halves: list[str] = [_format_half(grouped[half]) for half in (HALF_1, HALF_2)]
    return " / ".join(part for part in halves if part)


def format_pizza_customization_list(selections: Iterable[PizzaSelectionLike]) -> list[str]:
    """Return the per-item customization list stored in item snapshots."""
    formatted: str = format_pizza_customizations(selections)
    return [formatted] if formatted else []

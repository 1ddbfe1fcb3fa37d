"""Classification of what changed on an order item between two snapshots."""

from __future__ import annotations

from app.schemas.history import ItemChangeCategory, ItemSnapshot

PRICE_EPSILON: float = 0.01


def classify_item_changes(before: ItemSnapshot, after: ItemSnapshot) -> set[ItemChangeCategory]:
    """Return the semantic categories that differ; an empty set means unchanged."""
    categories: set[ItemChangeCategory] = set()

    if before.product_id != after.product_id or before.product_name != after.product_name:
        categories.add(ItemChangeCategory.PRODUCT)
    if before.variant_id != after.variant_id or before.variant_name != after.variant_name:
        categories.add(ItemChangeCategory.VARIANT)
    if abs(after.final_price - before.final_price) > PRICE_EPSILON:
        categories.add(ItemChangeCategory.PRICE)
    if sorted(before.modifiers) != sorted(after.modifiers):
        categories.add(ItemChangeCategory.MODIFIERS)
    if sorted(before.customizations) != sorted(after.customizations):
        categories.add(ItemChangeCategory.CUSTOMIZATIONS)
    if before.preparation_notes != after.preparation_notes:
        categories.add(ItemChangeCategory.NOTES)
    if before.preparation_status != after.preparation_status:
        categories.add(ItemChangeCategory.PREPARATION_STATUS)

    return categories


def ordered_categories(categories: set[ItemChangeCategory]) -> list[ItemChangeCategory]:
    """Return categories in declaration order for stable serialization."""
    return [category for category in ItemChangeCategory if category in categories]

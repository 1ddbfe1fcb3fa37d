"""Application models package."""

from app.models.menu import PizzaCustomization, Product, ProductModifier, ProductVariant
from app.models.order import DeliveryInfo, Order, OrderItem, SelectedPizzaCustomization
from app.models.order_history import OrderHistory
from app.models.user import User

__all__ = [
    "User", "Product", "ProductVariant", "ProductModifier", "PizzaCustomization",
    "Order", "DeliveryInfo", "OrderItem", "SelectedPizzaCustomization", "OrderHistory",
]

# app/models/__init__.py
from .menu import MenuItem
from .chef import Chef, ChefAssignment
from .table import DiningTable
from .order import Order, OrderItem, OrderStatus, OrderType, ACTIVE_STATUSES
from .notification import Notification, NotificationKind

# Export all models
__all__ = [
    "ACTIVE_STATUSES",
    "Chef",
    "ChefAssignment",
    "DiningTable",
    "MenuItem",
    "Notification",
    "NotificationKind",
    "Order",
    "OrderItem",
    "OrderStatus",
    "OrderType",
]

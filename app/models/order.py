from enum import Enum
from tortoise import fields, models
import uuid


class OrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    DONE = "done"
    SERVED = "served"


class OrderType(str, Enum):
    DINE_IN = "dineIn"
    TAKEAWAY = "takeaway"


# Statuses that count against a chef's load
ACTIVE_STATUSES = (OrderStatus.PENDING, OrderStatus.PROCESSING)


class Order(models.Model):
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    order_code = fields.CharField(max_length=64, unique=True) # Human-facing id, e.g. ORD-1700000000000-42
    order_type = fields.CharEnumField(OrderType)
    status = fields.CharEnumField(OrderStatus, default=OrderStatus.PENDING)
    table_number = fields.IntField(null=True)
    customer_name = fields.CharField(max_length=255)
    customer_phone = fields.CharField(max_length=32)
    customer_address = fields.TextField(null=True)
    party_size = fields.IntField(null=True)
    cooking_instructions = fields.TextField(default="")
    chef = fields.ForeignKeyField("models.Chef", related_name="orders", null=True, on_delete=fields.SET_NULL)
    # Fixed at creation from the item snapshots
    total_price = fields.DecimalField(max_digits=14, decimal_places=2)
    total_preparation_time = fields.IntField()
    processing_start_time = fields.DatetimeField(null=True)
    overdue_alerted = fields.BooleanField(default=False)
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "orders"
        indexes = [
            ("status",),                 # Status-based filtering
            ("chef_id", "status"),       # Chef's active orders
            ("table_number",),
            ("created_at",),             # Time-based queries
            ("status", "created_at"),    # Composite: status with time
        ]


class OrderItem(models.Model):
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    order = fields.ForeignKeyField("models.Order", related_name="items", on_delete=fields.CASCADE)
    menu_item = fields.ForeignKeyField("models.MenuItem", related_name="order_items", null=True, on_delete=fields.SET_NULL)
    name = fields.CharField(max_length=255)
    quantity = fields.IntField()
    unit_price = fields.DecimalField(max_digits=12, decimal_places=2)
    preparation_time = fields.IntField()
    line_total = fields.DecimalField(max_digits=14, decimal_places=2)

    class Meta:
        table = "order_items"
        indexes = [
            ("order_id",),              # Order line items
            ("menu_item_id",),          # Menu item popularity
        ]

from tortoise import fields, models
import uuid


class MenuItem(models.Model):
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    name = fields.CharField(max_length=255)
    description = fields.TextField(default="")
    category = fields.CharField(max_length=64, default="")
    price = fields.DecimalField(max_digits=12, decimal_places=2)
    preparation_time = fields.IntField() # Average minutes to prepare one portion
    # Available portions; only ever changed through StockLedger
    stock = fields.IntField(default=0)
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "menu_items"
        indexes = [
            ("category",),
        ]

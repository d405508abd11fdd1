from tortoise import fields, models
import uuid


class DiningTable(models.Model):
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    # Business key used by orders; shifts down when a lower-numbered table is removed
    table_number = fields.IntField(unique=True)
    capacity = fields.IntField()
    name = fields.CharField(max_length=64, default="")
    is_reserved = fields.BooleanField(default=False)
    reserved_by_name = fields.CharField(max_length=255, null=True)
    reserved_by_phone = fields.CharField(max_length=32, null=True)
    reserved_party_size = fields.IntField(null=True)
    reserved_order_code = fields.CharField(max_length=64, null=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "dining_tables"
        indexes = [
            ("is_reserved",),
        ]

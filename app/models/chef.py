from tortoise import fields, models
import uuid


class Chef(models.Model):
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    name = fields.CharField(max_length=255)
    # Mirrors the number of ChefAssignment rows for this chef
    active_order_count = fields.IntField(default=0)
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "chefs"
        indexes = [
            ("active_order_count",),  # Least-loaded lookup
        ]


class ChefAssignment(models.Model):
    """
    One row per (chef, active order). The set of rows for a chef is its assigned
    order set; a row exists only while the order is pending or processing.
    """
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    chef = fields.ForeignKeyField("models.Chef", related_name="assignments", on_delete=fields.CASCADE)
    order = fields.OneToOneField("models.Order", related_name="chef_assignment", on_delete=fields.CASCADE)
    assigned_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "chef_assignments"

from enum import Enum
from tortoise import fields, models
import uuid


class NotificationKind(str, Enum):
    UNASSIGNED_ORDER = "UNASSIGNED_ORDER"
    OVERDUE_ORDER = "OVERDUE_ORDER"


class Notification(models.Model):
    """
    Outbox-style record of an alert raised by the core. The alerting system reads
    these rows; the core never waits on delivery.
    """
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    kind = fields.CharEnumField(NotificationKind)
    order_code = fields.CharField(max_length=64, null=True) # Order that triggered the alert
    payload = fields.JSONField()
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "notifications"
        indexes = [
            ("kind", "created_at"),
        ]

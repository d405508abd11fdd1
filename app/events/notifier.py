import asyncio
import logging
from typing import Any, Dict, Optional

from app.core.config import NOTIFY_TIMEOUT
from app.models.notification import Notification, NotificationKind

log = logging.getLogger("notifier")


async def notify(
    kind: NotificationKind,
    payload: Dict[str, Any],
    order_code: Optional[str] = None,
    timeout: Optional[float] = None,
) -> bool:
    """
    Fire-and-forget alert. Records a Notification row for the alerting system to pick up.

    Never raises: a failed or slow write is logged and reported as False so the
    operation that triggered the alert is not affected.
    """
    try:
        await asyncio.wait_for(
            Notification.create(kind=kind, order_code=order_code, payload=payload),
            timeout=NOTIFY_TIMEOUT if timeout is None else timeout,
        )
    except Exception as e:
        log.error(f"Failed to record {kind.value} notification for order {order_code}: {e!r}")
        return False

    log.warning(f"{kind.value}: order {order_code} {payload}")
    return True

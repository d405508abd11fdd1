import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from app.core.config import OVERDUE_THRESHOLD_MINUTES, SWEEP_INTERVAL
from app.core.errors import AllocationRollbackFailure, InvalidStatusTransitionError, NotFoundError
from app.models.notification import NotificationKind
from app.models.order import ACTIVE_STATUSES, Order, OrderStatus
from app.services.order_service import OrderLifecycleManager, order_manager

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
log = logging.getLogger("completion_scheduler")


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def elapsed_minutes(start: datetime, now: datetime) -> int:
    """Whole minutes between two instants, never negative."""
    seconds = (_as_utc(now) - _as_utc(start)).total_seconds()
    return max(0, int(seconds // 60))


def remaining_time(order: Order, now: Optional[datetime] = None) -> Optional[Dict[str, Any]]:
    """Read-only view of how far a processing order is; None for any other order."""
    if order.status != OrderStatus.PROCESSING or order.processing_start_time is None:
        return None
    now = now or datetime.now(timezone.utc)
    elapsed = elapsed_minutes(order.processing_start_time, now)
    remaining = max(0, order.total_preparation_time - elapsed)
    return {
        "elapsed_time": elapsed,
        "remaining_time": remaining,
        "is_overdue": remaining == 0,
    }


@dataclass
class SweepResult:
    completed: List[str] = field(default_factory=list)
    already_handled: List[str] = field(default_factory=list)
    overdue_alerted: List[str] = field(default_factory=list)


async def complete_elapsed_orders(manager: OrderLifecycleManager, now: datetime, result: SweepResult) -> None:
    """Moves every processing order whose preparation time has run out to 'done'."""
    orders = await Order.filter(status=OrderStatus.PROCESSING)

    for order in orders:
        if order.processing_start_time is None:
            log.warning(f"Order {order.order_code} is processing without a start time; skipped.")
            continue
        if elapsed_minutes(order.processing_start_time, now) < order.total_preparation_time:
            continue

        try:
            # Same path as a manual status change, chef release included
            await manager.update_status(order.order_code, OrderStatus.DONE)
            result.completed.append(order.order_code)
            log.info(f"Order {order.order_code} automatically completed.")
        except (InvalidStatusTransitionError, NotFoundError) as e:
            # Another writer moved or deleted the order first
            result.already_handled.append(order.order_code)
            log.info(f"Order {order.order_code} already handled: {e}")
        except AllocationRollbackFailure:
            # Logged at CRITICAL by the lifecycle manager; keep sweeping the rest
            continue
        except Exception:
            log.exception(f"Failed to auto-complete order {order.order_code}.")


async def alert_overdue_orders(manager: OrderLifecycleManager, now: datetime,
                               threshold: int, result: SweepResult) -> None:
    """
    Raises one OVERDUE_ORDER alert per active order that has been cooking (or, while
    pending, waiting) for at least 'threshold' minutes.
    """
    orders = await Order.filter(status__in=ACTIVE_STATUSES, overdue_alerted=False)

    for order in orders:
        since = order.processing_start_time or order.created_at
        waited = elapsed_minutes(since, now)
        if waited < threshold:
            continue

        # One-way flag so concurrent or later sweeps never alert twice
        claimed = await Order.filter(id=order.id, overdue_alerted=False).update(overdue_alerted=True)
        if not claimed:
            continue
        await manager.notify(
            NotificationKind.OVERDUE_ORDER,
            {"order_id": order.order_code, "status": order.status.value, "wait_time": waited},
            order_code=order.order_code,
        )
        result.overdue_alerted.append(order.order_code)


async def run_sweep(
    manager: OrderLifecycleManager = order_manager,
    now: Optional[datetime] = None,
    overdue_threshold: int = OVERDUE_THRESHOLD_MINUTES,
) -> SweepResult:
    """One pass of the scheduler: complete what is ready, then flag what is late."""
    now = now or datetime.now(timezone.utc)
    result = SweepResult()
    await complete_elapsed_orders(manager, now, result)
    await alert_overdue_orders(manager, now, overdue_threshold, result)

    if result.completed or result.overdue_alerted:
        log.info(
            f"Sweep finished: {len(result.completed)} completed, "
            f"{len(result.overdue_alerted)} overdue alerts."
        )
    return result


async def start_completion_scheduler(
    manager: OrderLifecycleManager = order_manager,
    interval: float = SWEEP_INTERVAL,
):
    """Main loop for the scheduler; runs until cancelled."""
    log.info(f"--- Completion Scheduler Started (every {interval}s) ---")

    while True:
        try:
            await run_sweep(manager)
        except Exception as e:
            log.error(f"Completion sweep failed: {e!r}. Retrying next tick.")

        await asyncio.sleep(interval)

import asyncio
import logging
import uuid
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from functools import partial
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple
from uuid import UUID

from app.core.config import AUTO_START_PROCESSING, STORE_TIMEOUT
from app.core.db import atomic
from app.core.errors import (
    AllocationRollbackFailure,
    InvalidOrderError,
    InvalidStatusTransitionError,
    NoChefsAvailableError,
    NotFoundError,
)
from app.events.notifier import notify
from app.models.chef import Chef
from app.models.menu import MenuItem
from app.models.notification import NotificationKind
from app.models.order import ACTIVE_STATUSES, Order, OrderItem, OrderStatus, OrderType
from app.services.chef_assignment import ChefAssignmentPolicy
from app.services.stock_ledger import StockLedger, StockSnapshot
from app.services.table_ledger import TableReservationLedger

log = logging.getLogger("order_service")

# The only legal moves; anything else is rejected before touching the database
TRANSITIONS: Dict[OrderStatus, Tuple[OrderStatus, ...]] = {
    OrderStatus.PENDING: (OrderStatus.PROCESSING,),
    OrderStatus.PROCESSING: (OrderStatus.DONE,),
    OrderStatus.DONE: (OrderStatus.SERVED,),
    OrderStatus.SERVED: (),
}


def generate_order_code() -> str:
    """Human-referenceable order id derived from the clock plus a random suffix."""
    return f"ORD-{int(time.time() * 1000)}-{uuid.uuid4().hex[:6]}"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


async def _bounded(awaitable: Awaitable[Any], timeout: Optional[float] = None) -> Any:
    return await asyncio.wait_for(awaitable, timeout=STORE_TIMEOUT if timeout is None else timeout)


class _Compensations:
    """Undo actions for the steps of one allocation that already succeeded."""

    def __init__(self, label: str):
        self._label = label
        self._steps: List[Tuple[str, Callable[[], Awaitable[Any]]]] = []

    def push(self, description: str, undo: Callable[[], Awaitable[Any]]) -> None:
        self._steps.append((description, undo))

    async def unwind(self, cause: BaseException) -> None:
        """Runs undo actions newest first; escalates if any of them fails."""
        failed = []
        for description, undo in reversed(self._steps):
            try:
                await _bounded(undo())
            except Exception as e:
                log.critical(f"{self._label}: rollback step '{description}' failed: {e!r}")
                failed.append(description)
        self._steps.clear()

        if failed:
            raise AllocationRollbackFailure(
                f"{self._label} failed ({cause}) and could not be fully rolled back: {', '.join(failed)}",
                original=cause,
                failed_steps=failed,
            ) from cause


@dataclass
class DeletionReceipt:
    """What a delete gave back to the kitchen."""
    order: Order
    chef_released: bool
    table_released: bool
    restored_items: List[Dict[str, Any]] = field(default_factory=list)


class OrderLifecycleManager:
    """
    Owns the order state machine and drives the stock, table and chef ledgers.

    Creation is a sequence of holds (stock per line, then the table, then the order
    row); a failure undoes the completed holds in reverse order. Status changes are
    a compare-and-set on the current status followed by that status' side effect.
    """

    def __init__(
        self,
        stock: Optional[StockLedger] = None,
        tables: Optional[TableReservationLedger] = None,
        chefs: Optional[ChefAssignmentPolicy] = None,
        notifier: Callable[..., Awaitable[bool]] = notify,
    ):
        self.stock = stock or StockLedger()
        self.tables = tables or TableReservationLedger()
        self.chefs = chefs or ChefAssignmentPolicy()
        self.notify = notifier
        self._on_enter: Dict[OrderStatus, Callable[[Order], Awaitable[Any]]] = {
            OrderStatus.DONE: self._release_chef,
            OrderStatus.SERVED: self._release_table,
        }

    # --- Queries ---

    async def get_order(self, order_code: str) -> Order:
        order = await Order.get_or_none(order_code=order_code).prefetch_related("items", "chef")
        if order is None:
            raise NotFoundError(f"Order not found: {order_code}")
        return order

    async def list_orders(self, status: Optional[OrderStatus] = None,
                          order_type: Optional[OrderType] = None) -> List[Order]:
        query = Order.all()
        if status:
            query = query.filter(status=status)
        if order_type:
            query = query.filter(order_type=order_type)
        return await query.order_by("-created_at").prefetch_related("items", "chef")

    async def orders_for_chef(self, chef_id: UUID) -> List[Order]:
        if not await Chef.exists(id=chef_id):
            raise NotFoundError(f"Chef not found: {chef_id}")
        return await Order.filter(chef_id=chef_id, status__in=ACTIVE_STATUSES).order_by(
            "created_at"
        ).prefetch_related("items", "chef")

    async def processing_orders(self) -> List[Order]:
        return await Order.filter(status=OrderStatus.PROCESSING).order_by("created_at").prefetch_related("items", "chef")

    # --- Create ---

    def _validate_request(self, items: List[Dict], order_type: OrderType,
                          customer: Dict[str, Any], table_number: Optional[int]) -> None:
        if not items:
            raise InvalidOrderError("Order must contain items.")
        for it in items:
            if int(it["quantity"]) < 1:
                raise InvalidOrderError(f"Quantity must be at least 1 for menu item {it['menu_item_id']}")
        if not customer.get("name") or not customer.get("phone_number"):
            raise InvalidOrderError("Customer name and phone number are required.")
        if order_type == OrderType.DINE_IN and table_number is None:
            raise InvalidOrderError("Dine-in orders need a table number.")
        if order_type == OrderType.TAKEAWAY and not customer.get("address"):
            raise InvalidOrderError("Takeaway orders need a delivery address.")

    async def place_order(
        self,
        items: List[Dict],
        order_type: OrderType,
        customer: Dict[str, Any],
        table_number: Optional[int] = None,
        cooking_instructions: str = "",
        start_processing: Optional[bool] = None,
    ) -> Order:
        """
        Reserves stock for every line, reserves the table for dine-in, persists the
        order and binds the least-loaded chef. Nothing stays held if it fails.
        """
        order_type = OrderType(order_type)
        if order_type == OrderType.TAKEAWAY:
            table_number = None
        self._validate_request(items, order_type, customer, table_number)
        if start_processing is None:
            start_processing = AUTO_START_PROCESSING

        # Existence check before any hold is taken
        requested = {str(UUID(str(it["menu_item_id"]))) for it in items}
        found = await MenuItem.filter(id__in=list(requested)).values_list("id", flat=True)
        missing = requested - {str(f) for f in found}
        if missing:
            raise NotFoundError(f"Menu item not found: {', '.join(sorted(missing))}")

        order_code = generate_order_code()
        undo = _Compensations(f"Order {order_code} creation")

        try:
            lines: List[Tuple[StockSnapshot, int]] = []
            for it in items:
                menu_item_id = UUID(str(it["menu_item_id"]))
                qty = int(it["quantity"])
                snapshot = await _bounded(self.stock.reserve(menu_item_id, qty))
                undo.push(f"restore stock {menu_item_id} x{qty}", partial(self.stock.restore, menu_item_id, qty))
                lines.append((snapshot, qty))

            total_price = sum((snap.unit_price * qty for snap, qty in lines), Decimal("0"))
            # Items are cooked in parallel, so the order takes as long as its slowest item
            total_preparation_time = max(snap.preparation_time for snap, _ in lines)

            if order_type == OrderType.DINE_IN:
                await _bounded(self.tables.reserve(table_number, customer, holder=order_code))
                undo.push(f"release table {table_number}", partial(self.tables.release, table_number, order_code))

            order = await _bounded(self._persist(
                order_code=order_code,
                order_type=order_type,
                customer=customer,
                table_number=table_number,
                cooking_instructions=cooking_instructions or "",
                lines=lines,
                total_price=total_price,
                total_preparation_time=total_preparation_time,
                start_processing=start_processing,
            ))
            undo.push(f"discard order {order_code}", partial(self._discard, order.id))

            try:
                await _bounded(self.chefs.assign_least_loaded(order.id))
            except NoChefsAvailableError:
                log.warning(f"Order {order_code} created without a chef.")
                await self.notify(
                    NotificationKind.UNASSIGNED_ORDER,
                    {"order_id": order_code, "reason": "no chefs available"},
                    order_code=order_code,
                )
        except (Exception, asyncio.CancelledError) as exc:
            log.error(f"Order {order_code} creation failed, rolling back: {exc!r}")
            # A cancelled caller must not cancel its own rollback
            await asyncio.shield(undo.unwind(exc))
            raise

        log.info(f"Order {order_code} placed: {order_type.value}, total {total_price}, prep {total_preparation_time} min.")
        return await self.get_order(order_code)

    async def _persist(self, order_code: str, order_type: OrderType, customer: Dict[str, Any],
                       table_number: Optional[int], cooking_instructions: str,
                       lines: List[Tuple[StockSnapshot, int]], total_price: Decimal,
                       total_preparation_time: int, start_processing: bool) -> Order:
        async with atomic() as conn:
            order = await Order.create(
                order_code=order_code,
                order_type=order_type,
                status=OrderStatus.PROCESSING if start_processing else OrderStatus.PENDING,
                processing_start_time=utcnow() if start_processing else None,
                table_number=table_number,
                customer_name=customer["name"],
                customer_phone=customer["phone_number"],
                customer_address=customer.get("address"),
                party_size=customer.get("number_of_members"),
                cooking_instructions=cooking_instructions,
                total_price=total_price,
                total_preparation_time=total_preparation_time,
                using_db=conn,
            )
            for snap, qty in lines:
                await OrderItem.create(
                    order=order,
                    menu_item_id=snap.menu_item_id,
                    name=snap.name,
                    quantity=qty,
                    unit_price=snap.unit_price,
                    preparation_time=snap.preparation_time,
                    line_total=snap.unit_price * qty,
                    using_db=conn,
                )
        return order

    async def _discard(self, order_id: UUID) -> None:
        await Order.filter(id=order_id).delete()

    # --- Status changes ---

    async def _release_chef(self, order: Order) -> None:
        await self.chefs.release_order(order.id)

    async def _release_table(self, order: Order) -> None:
        if order.order_type == OrderType.DINE_IN:
            await self.tables.release(order.table_number, holder=order.order_code)

    async def update_status(self, order_code: str, new_status: OrderStatus) -> Order:
        """
        Applies one legal transition. The status column is compared-and-set, so when
        two writers race on the same order exactly one wins; the other gets
        InvalidStatusTransitionError.
        """
        new_status = OrderStatus(new_status)
        order = await Order.get_or_none(order_code=order_code)
        if order is None:
            raise NotFoundError(f"Order not found: {order_code}")

        current = order.status
        if new_status not in TRANSITIONS[current]:
            raise InvalidStatusTransitionError(
                f"Cannot move order {order_code} from '{current.value}' to '{new_status.value}'"
            )

        changes: Dict[str, Any] = {"status": new_status, "updated_at": utcnow()}
        if new_status == OrderStatus.PROCESSING:
            changes["processing_start_time"] = utcnow()

        claimed = await Order.filter(id=order.id, status=current).update(**changes)
        if not claimed:
            raise InvalidStatusTransitionError(
                f"Order {order_code} is no longer '{current.value}'; it was changed concurrently"
            )

        side_effect = self._on_enter.get(new_status)
        if side_effect is not None:
            try:
                await _bounded(side_effect(order))
            except (Exception, asyncio.CancelledError) as exc:
                log.error(f"Order {order_code}: side effect of '{new_status.value}' failed, reverting: {exc!r}")
                undo = _Compensations(f"Order {order_code} -> {new_status.value}")
                undo.push(
                    f"revert status to {current.value}",
                    partial(self._revert_status, order.id, new_status, current),
                )
                await asyncio.shield(undo.unwind(exc))
                raise

        log.info(f"Order {order_code}: {current.value} -> {new_status.value}")
        return await self.get_order(order_code)

    async def _revert_status(self, order_id: UUID, from_status: OrderStatus, to_status: OrderStatus) -> None:
        await Order.filter(id=order_id, status=from_status).update(status=to_status, updated_at=utcnow())

    # --- Delete ---

    async def delete_order(self, order_code: str) -> DeletionReceipt:
        """
        Removes the order from any status and gives back whatever it still holds:
        the chef binding, the table (only if this order holds it) and every line's
        stock. Releases are idempotent, so holds already freed by a status change are
        simply skipped. All of it commits or none of it does.
        """
        order = await self.get_order(order_code)

        async with atomic() as conn:
            locked = await Order.filter(id=order.id).using_db(conn).select_for_update().first()
            if locked is None:
                raise NotFoundError(f"Order not found: {order_code}")
            items = await OrderItem.filter(order_id=order.id).using_db(conn)

            chef_released = await self.chefs.release_order(order.id, conn=conn)
            table_released = False
            if order.order_type == OrderType.DINE_IN:
                table_released = await self.tables.release(locked.table_number, holder=order.order_code, conn=conn)

            restored = []
            for item in items:
                if await self.stock.restore(item.menu_item_id, item.quantity, conn=conn):
                    restored.append({"menu_item_id": str(item.menu_item_id), "quantity": item.quantity})

            await locked.delete(using_db=conn)

        log.info(
            f"Order {order_code} deleted (chef released: {chef_released}, table released: {table_released}, "
            f"{len(restored)} lines restocked)."
        )
        return DeletionReceipt(
            order=order,
            chef_released=chef_released,
            table_released=table_released,
            restored_items=restored,
        )


order_manager = OrderLifecycleManager()

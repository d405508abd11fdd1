import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Optional
from uuid import UUID

from tortoise.expressions import F

from app.core.db import atomic
from app.core.errors import InsufficientStockError, InvalidOrderError, NotFoundError
from app.models.menu import MenuItem

log = logging.getLogger("stock_ledger")


@dataclass(frozen=True)
class StockSnapshot:
    """Menu data committed together with a stock reservation."""
    menu_item_id: UUID
    name: str
    unit_price: Decimal
    preparation_time: int


class StockLedger:
    """
    Per-menu-item available quantity.

    Both operations are a single conditional UPDATE, so concurrent reservations on
    the same item can never take stock below zero.
    """

    async def reserve(self, menu_item_id: UUID, quantity: int, conn: Optional[Any] = None) -> StockSnapshot:
        if quantity < 1:
            raise InvalidOrderError(f"Quantity must be at least 1, got {quantity}")

        async with atomic(conn) as trx:
            # Compare-and-set: only decrements when enough stock is left
            updated = await MenuItem.filter(id=menu_item_id, stock__gte=quantity).using_db(trx).update(
                stock=F("stock") - quantity
            )
            item = await MenuItem.get_or_none(id=menu_item_id).using_db(trx)
        if item is None:
            raise NotFoundError(f"Menu item not found: {menu_item_id}")
        if not updated:
            raise InsufficientStockError(
                f"Insufficient stock for {item.name}. Requested: {quantity}, Available: {item.stock}"
            )

        return StockSnapshot(
            menu_item_id=item.id,
            name=item.name,
            unit_price=item.price,
            preparation_time=item.preparation_time,
        )

    async def restore(self, menu_item_id: Optional[UUID], quantity: int, conn: Optional[Any] = None) -> bool:
        """Gives 'quantity' portions back. Returns False if the menu item no longer exists."""
        if menu_item_id is None:
            return False
        updated = await MenuItem.filter(id=menu_item_id).using_db(conn).update(stock=F("stock") + quantity)
        if not updated:
            log.warning(f"Stock restore skipped, menu item {menu_item_id} no longer exists (qty {quantity}).")
        return bool(updated)

    async def available(self, menu_item_id: UUID) -> int:
        item = await MenuItem.get_or_none(id=menu_item_id)
        if item is None:
            raise NotFoundError(f"Menu item not found: {menu_item_id}")
        return item.stock

import logging
from typing import Any, Dict, List, Optional

from tortoise.expressions import F

from app.core.config import TABLE_CAPACITIES
from app.core.db import atomic
from app.core.errors import InvalidOrderError, NotFoundError, TableAlreadyReservedError
from app.models.order import Order, OrderStatus, OrderType
from app.models.table import DiningTable

log = logging.getLogger("table_ledger")

# Dine-in orders keep their table until they are served
TABLE_HOLDING_STATUSES = (OrderStatus.PENDING, OrderStatus.PROCESSING, OrderStatus.DONE)

_CLEARED_RESERVATION = {
    "is_reserved": False,
    "reserved_by_name": None,
    "reserved_by_phone": None,
    "reserved_party_size": None,
    "reserved_order_code": None,
}


class TableReservationLedger:
    """Reservation state per table, keyed by the table number (never the storage id)."""

    async def reserve(
        self,
        table_number: int,
        party: Dict[str, Any],
        holder: Optional[str] = None,
        conn: Optional[Any] = None,
    ) -> None:
        """
        Marks the table reserved for 'party'. 'holder' is the order code owning the
        reservation so a later release cannot free a table another order now holds.
        """
        async with atomic(conn) as trx:
            # Compare-and-set on the reservation flag
            updated = await DiningTable.filter(table_number=table_number, is_reserved=False).using_db(trx).update(
                is_reserved=True,
                reserved_by_name=party.get("name"),
                reserved_by_phone=party.get("phone_number"),
                reserved_party_size=party.get("number_of_members"),
                reserved_order_code=holder,
            )
            if updated:
                return
            exists = await DiningTable.filter(table_number=table_number).using_db(trx).exists()

        if not exists:
            raise NotFoundError(f"Table not found: {table_number}")
        raise TableAlreadyReservedError(f"Table {table_number} is already reserved")

    async def release(self, table_number: Optional[int], holder: Optional[str] = None,
                      conn: Optional[Any] = None) -> bool:
        """
        Clears the reservation. No-op when the table is free, missing, or held by a
        different order than 'holder'. Returns True only if something was released.
        """
        if table_number is None:
            return False
        query = DiningTable.filter(table_number=table_number, is_reserved=True)
        if holder is not None:
            query = query.filter(reserved_order_code=holder)
        updated = await query.using_db(conn).update(**_CLEARED_RESERVATION)
        return bool(updated)

    async def add_table(self, capacity: int, name: str = "") -> DiningTable:
        """Appends a table with the next free number."""
        if capacity not in TABLE_CAPACITIES:
            raise InvalidOrderError(f"Table capacity must be one of {TABLE_CAPACITIES}, got {capacity}")

        async with atomic() as conn:
            last = await DiningTable.all().using_db(conn).order_by("-table_number").first()
            table_number = last.table_number + 1 if last else 1
            return await DiningTable.create(
                table_number=table_number, capacity=capacity, name=name, using_db=conn
            )

    async def remove_table(self, table_number: int) -> List[DiningTable]:
        """
        Deletes a free table and closes the gap: every higher table number moves down
        by one, and so do the dine-in orders still holding those tables.
        """
        async with atomic() as conn:
            table = await DiningTable.filter(table_number=table_number).using_db(conn).select_for_update().first()
            if table is None:
                raise NotFoundError(f"Table not found: {table_number}")
            if table.is_reserved:
                raise TableAlreadyReservedError(f"Cannot delete reserved table {table_number}")

            await table.delete(using_db=conn)

            # Ascending, one row at a time, so the unique constraint never sees a duplicate
            higher = await DiningTable.filter(table_number__gt=table_number).using_db(conn).order_by("table_number")
            for t in higher:
                t.table_number -= 1
                await t.save(update_fields=["table_number", "updated_at"], using_db=conn)

            shifted = await Order.filter(
                order_type=OrderType.DINE_IN,
                status__in=TABLE_HOLDING_STATUSES,
                table_number__gt=table_number,
            ).using_db(conn).update(table_number=F("table_number") - 1)
            log.info(f"Table {table_number} removed; {len(higher)} tables and {shifted} orders renumbered.")

            return await DiningTable.all().using_db(conn).order_by("table_number")

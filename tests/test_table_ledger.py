import asyncio

import pytest

from app.core.errors import InvalidOrderError, NotFoundError, TableAlreadyReservedError
from app.models.order import Order, OrderStatus, OrderType
from app.models.table import DiningTable
from app.services.table_ledger import TableReservationLedger
from conftest import DINE_IN_CUSTOMER, make_order, make_table


@pytest.mark.asyncio
async def test_reserve_stores_party_and_holder(db):
    await make_table(4)

    await TableReservationLedger().reserve(4, DINE_IN_CUSTOMER, holder="ORD-1")

    table = await DiningTable.get(table_number=4)
    assert table.is_reserved
    assert table.reserved_by_name == "Asha"
    assert table.reserved_by_phone == "555-0101"
    assert table.reserved_party_size == 4
    assert table.reserved_order_code == "ORD-1"


@pytest.mark.asyncio
async def test_reserve_missing_table(db):
    with pytest.raises(NotFoundError):
        await TableReservationLedger().reserve(9, DINE_IN_CUSTOMER)


@pytest.mark.asyncio
async def test_reserve_already_reserved_table(db):
    await make_table(4)
    ledger = TableReservationLedger()
    await ledger.reserve(4, DINE_IN_CUSTOMER, holder="ORD-1")

    with pytest.raises(TableAlreadyReservedError):
        await ledger.reserve(4, DINE_IN_CUSTOMER, holder="ORD-2")

    assert (await DiningTable.get(table_number=4)).reserved_order_code == "ORD-1"


@pytest.mark.asyncio
async def test_concurrent_reservations_only_one_wins(db):
    await make_table(4)
    ledger = TableReservationLedger()

    results = await asyncio.gather(
        ledger.reserve(4, DINE_IN_CUSTOMER, holder="ORD-1"),
        ledger.reserve(4, DINE_IN_CUSTOMER, holder="ORD-2"),
        return_exceptions=True,
    )

    failures = [r for r in results if isinstance(r, Exception)]
    assert len(failures) == 1
    assert isinstance(failures[0], TableAlreadyReservedError)


@pytest.mark.asyncio
async def test_release_is_idempotent(db):
    await make_table(2)
    ledger = TableReservationLedger()
    await ledger.reserve(2, DINE_IN_CUSTOMER, holder="ORD-1")

    assert await ledger.release(2) is True
    assert await ledger.release(2) is False
    assert await ledger.release(99) is False

    table = await DiningTable.get(table_number=2)
    assert not table.is_reserved
    assert table.reserved_by_name is None
    assert table.reserved_order_code is None


@pytest.mark.asyncio
async def test_release_ignores_other_holders(db):
    await make_table(2)
    ledger = TableReservationLedger()
    await ledger.reserve(2, DINE_IN_CUSTOMER, holder="ORD-NEW")

    assert await ledger.release(2, holder="ORD-OLD") is False
    assert (await DiningTable.get(table_number=2)).is_reserved


@pytest.mark.asyncio
async def test_add_table_appends_next_number(db):
    ledger = TableReservationLedger()
    first = await ledger.add_table(2)
    second = await ledger.add_table(6, name="Window")

    assert (first.table_number, second.table_number) == (1, 2)
    assert second.name == "Window"

    with pytest.raises(InvalidOrderError):
        await ledger.add_table(5)


@pytest.mark.asyncio
async def test_remove_table_renumbers_tables_and_orders(db):
    for number in (1, 2, 3, 4):
        await make_table(number)
    ledger = TableReservationLedger()
    holding = await make_order(order_type=OrderType.DINE_IN, table_number=3)
    await ledger.reserve(3, DINE_IN_CUSTOMER, holder=holding.order_code)
    served = await make_order(status=OrderStatus.SERVED, order_type=OrderType.DINE_IN, table_number=4)

    tables = await ledger.remove_table(1)

    assert [t.table_number for t in tables] == [1, 2, 3]
    moved = await DiningTable.get(table_number=2)
    assert moved.is_reserved and moved.reserved_order_code == holding.order_code
    assert (await Order.get(id=holding.id)).table_number == 2
    # Served orders are history and keep the number they were served at
    assert (await Order.get(id=served.id)).table_number == 4

    # Releasing by the new number frees the same physical table
    assert await ledger.release(2, holder=holding.order_code) is True


@pytest.mark.asyncio
async def test_remove_reserved_or_missing_table_is_refused(db):
    await make_table(1)
    ledger = TableReservationLedger()
    await ledger.reserve(1, DINE_IN_CUSTOMER)

    with pytest.raises(TableAlreadyReservedError):
        await ledger.remove_table(1)
    with pytest.raises(NotFoundError):
        await ledger.remove_table(7)

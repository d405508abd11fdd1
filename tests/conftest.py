import random
from decimal import Decimal

import pytest
import pytest_asyncio
from tortoise import Tortoise

from app.core.db import MODELS_MODULES
from app.models.chef import Chef, ChefAssignment
from app.models.menu import MenuItem
from app.models.order import ACTIVE_STATUSES, Order, OrderStatus, OrderType
from app.models.table import DiningTable
from app.services.chef_assignment import ChefAssignmentPolicy
from app.services.order_service import OrderLifecycleManager, generate_order_code

DINE_IN_CUSTOMER = {"name": "Asha", "phone_number": "555-0101", "number_of_members": 4}
TAKEAWAY_CUSTOMER = {"name": "Ravi", "phone_number": "555-0102", "address": "12 Lake Road"}


@pytest_asyncio.fixture
async def db():
    """Fresh in-memory SQLite database per test."""
    await Tortoise.init(
        db_url="sqlite://:memory:",
        modules={"models": MODELS_MODULES},
        use_tz=True,
        timezone="UTC",
    )
    await Tortoise.generate_schemas()
    yield
    await Tortoise.close_connections()


@pytest.fixture
def manager():
    # Seeded tie-break so failures are reproducible
    return OrderLifecycleManager(chefs=ChefAssignmentPolicy(rng=random.Random(7)))


async def make_menu_item(name="Paneer Wrap", price="100.00", preparation_time=10, stock=10):
    return await MenuItem.create(name=name, price=Decimal(price), preparation_time=preparation_time, stock=stock)


async def make_chef(name="Chef Mario"):
    return await Chef.create(name=name)


async def make_table(table_number, capacity=4):
    return await DiningTable.create(table_number=table_number, capacity=capacity)


async def make_order(status=OrderStatus.PROCESSING, order_type=OrderType.TAKEAWAY, table_number=None):
    """Bare order row, for exercising the ledgers without going through place_order."""
    return await Order.create(
        order_code=generate_order_code(),
        order_type=order_type,
        status=status,
        table_number=table_number,
        customer_name="Ravi",
        customer_phone="555-0102",
        customer_address="12 Lake Road",
        total_price=Decimal("10.00"),
        total_preparation_time=10,
    )


async def assert_chef_consistent(chef_id):
    """active_order_count == |assigned set| == active orders referencing the chef."""
    chef = await Chef.get(id=chef_id)
    assigned = await ChefAssignment.filter(chef_id=chef_id).count()
    active = await Order.filter(chef_id=chef_id, status__in=ACTIVE_STATUSES).count()
    assert chef.active_order_count == assigned == active
    return chef.active_order_count

# scripts/seed_data.py
import asyncio
from tortoise import Tortoise
from app.core.db import DB_URL, MODELS_MODULES
from app.models.chef import Chef
from app.models.menu import MenuItem
from app.models.table import DiningTable

DEFAULT_CHEFS = ["Chef Mario", "Chef Luigi", "Chef Peach", "Chef Toad"]

async def init():
    await Tortoise.init(db_url=DB_URL, modules={"models": MODELS_MODULES}, use_tz=True)
    # don't generate schemas here (already created), but safe to call in dev:
    # await Tortoise.generate_schemas()

async def seed():
    # Default chefs, only when the kitchen has none
    if not await Chef.exists():
        for name in DEFAULT_CHEFS:
            await Chef.create(name=name)
    print("Chefs:", await Chef.all().count())

    # Tables 1..6 with mixed capacities
    for number, capacity in enumerate([2, 2, 4, 4, 6, 8], start=1):
        await DiningTable.get_or_create(table_number=number, defaults={"capacity": capacity})

    # Create menu items
    m1, _ = await MenuItem.get_or_create(name="Paneer Wrap", defaults={"price": "149.00", "preparation_time": 10, "category": "Wraps"})
    m2, _ = await MenuItem.get_or_create(name="Chili Paneer Rice", defaults={"price": "199.00", "preparation_time": 15, "category": "Mains"})
    m3, _ = await MenuItem.get_or_create(name="Cold Drink", defaults={"price": "49.00", "preparation_time": 1, "category": "Drinks"})

    print("Menu items:", str(m1.id), str(m2.id), str(m3.id))

    # If existing, reset stock (idempotent)
    m1.stock = 50
    m2.stock = 30
    m3.stock = 100
    await m1.save(); await m2.save(); await m3.save()

    print("Kitchen seeded.")

async def main():
    await init()
    await seed()
    await Tortoise.close_connections()

if __name__ == "__main__":
    asyncio.run(main())

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

from tortoise import Tortoise
from tortoise.transactions import in_transaction
from app.core.config import DB_URL
import logging
from logging import INFO

# Set logging level for Tortoise ORM
logging.getLogger('tortoise').setLevel(INFO)

# Define all models modules for the ORM
MODELS_MODULES = [
    "app.models.menu",
    "app.models.chef",
    "app.models.table",
    "app.models.order",
    "app.models.notification",
]

async def init_db(db_url: str = DB_URL):
    """Initializes the Tortoise ORM connection and generates schemas."""
    try:
        await Tortoise.init(
            db_url=db_url,
            modules={"models": MODELS_MODULES},
            use_tz=True,
            timezone="UTC",
        )
        # Generate the database schema (create tables)
        await Tortoise.generate_schemas()
        print("Database connection established and schemas generated.")
    except Exception as e:
        print(f"FATAL ERROR: Could not connect to database at {db_url}. Error: {e}")
        # Re-raise to prevent the application from starting without a database
        raise e

async def close_db():
    """Closes all database connections."""
    await Tortoise.close_connections()
    print("Database connections closed.")


@asynccontextmanager
async def atomic(conn: Optional[Any] = None) -> AsyncIterator[Any]:
    """
    Joins the caller's transaction when 'conn' is given, otherwise opens a new one.
    Lets ledger operations run standalone or as one step of a larger unit of work.
    """
    if conn is not None:
        yield conn
        return
    async with in_transaction() as trx:
        yield trx

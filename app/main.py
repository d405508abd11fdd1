import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, status
from app.core.db import init_db, close_db
from app.api.v1.orders import router as orders_router
from app.api.v1.chefs import router as chefs_router
from app.api.v1.tables import router as tables_router
from app.api.v1.menu import router as menu_router
from app.consumers.completion_scheduler import start_completion_scheduler
from app.core.config import PROJECT_NAME, VERSION, ENABLE_SCHEDULER, SWEEP_INTERVAL
from app.core.exception_handlers import setup_exception_handlers

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handles startup and shutdown events."""
    print(f"Starting {PROJECT_NAME} v{VERSION}...")
    await init_db() # Connect to DB and generate schemas
    scheduler = None
    if ENABLE_SCHEDULER:
        scheduler = asyncio.create_task(start_completion_scheduler(interval=SWEEP_INTERVAL))
    yield
    if scheduler:
        scheduler.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await scheduler
    await close_db()
    print(f"{PROJECT_NAME} stopped.")

app = FastAPI(
    title=PROJECT_NAME,
    version=VERSION,
    lifespan=lifespan,
    # Configure API documentation and paths
    docs_url="/docs",
    redoc_url="/redoc"
)

# Include routers for modular API structure
app.include_router(orders_router, prefix="/api/v1/orders", tags=["Order Management"])
app.include_router(chefs_router, prefix="/api/v1/chefs", tags=["Chefs"])
app.include_router(tables_router, prefix="/api/v1/tables", tags=["Tables"])
app.include_router(menu_router, prefix="/api/v1/menu", tags=["Menu Stock"])


setup_exception_handlers(app)

@app.get("/health", status_code=status.HTTP_200_OK)
async def health_check():
    """Simple health check endpoint."""
    return {"status": "ok", "app_name": PROJECT_NAME}

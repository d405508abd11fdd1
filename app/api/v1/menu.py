import logging
from fastapi import APIRouter, HTTPException, status
from app.core.errors import OrderEngineError
from app.models.menu import MenuItem
from app.schemas.kitchen import MenuItemRequest, StockResponse
from app.schemas.response import SuccessResponse
from app.services.order_service import order_manager
from uuid import UUID

log = logging.getLogger("uvicorn")

router = APIRouter()


@router.get("/{menu_item_id}/stock", response_model=SuccessResponse)
async def get_stock(menu_item_id: UUID):
    """Fetches the available stock for a specific menu item."""
    try:
        item = await MenuItem.get_or_none(id=menu_item_id)
        if not item:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Menu item not found.")
        stock = await order_manager.stock.available(item.id)
        return SuccessResponse(data=StockResponse(menu_item_id=item.id, name=item.name, stock=stock).model_dump())
    except (HTTPException, OrderEngineError):
        raise
    except Exception as e:
        log.error(f"Error fetching stock: {e}")
        raise HTTPException(status_code=500, detail="Server failed to fetch stock.")


@router.post("/items", status_code=status.HTTP_201_CREATED, response_model=SuccessResponse)
async def add_menu_item(item_data: MenuItemRequest):
    """
    Adds a new menu item together with its opening stock.
    """
    try:
        menu_item = await MenuItem.create(
            name=item_data.name,
            description=item_data.description,
            category=item_data.category,
            price=item_data.price,
            preparation_time=item_data.preparation_time,
            stock=item_data.initial_stock,
        )
        return SuccessResponse(data={
            "message": f"Successfully added '{item_data.name}' to the menu.",
            "menu_item_id": str(menu_item.id),
            "initial_stock": menu_item.stock
        })
    except Exception as e:
        log.error(f"Error adding menu item: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Internal error processing request: {e}"
        )

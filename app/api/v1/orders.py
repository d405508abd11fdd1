import logging
from fastapi import APIRouter, HTTPException, status
from app.schemas.response import SuccessResponse
from app.services.order_service import order_manager
from app.consumers.completion_scheduler import remaining_time
from app.core.errors import OrderEngineError
from app.models.order import Order, OrderStatus, OrderType
from app.schemas.order import (
    ChefSummary,
    CustomerInfo,
    OrderDeletionResponse,
    OrderDetailResponse,
    OrderItemResponse,
    OrderProgressResponse,
    OrderRequest,
    OrderStatusUpdate,
)
from typing import Optional
from uuid import UUID

router = APIRouter()
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
log = logging.getLogger("uvicorn")


def order_detail(order: Order) -> OrderDetailResponse:
    """Builds the response schema from an order with 'items' and 'chef' prefetched."""
    chef = order.chef
    return OrderDetailResponse(
        order_id=order.order_code,
        status=order.status,
        order_type=order.order_type,
        total_price=order.total_price,
        total_preparation_time=order.total_preparation_time,
        table_number=order.table_number,
        chef_assigned=ChefSummary(id=chef.id, name=chef.name) if chef else None,
        customer_info=CustomerInfo(
            name=order.customer_name,
            phone_number=order.customer_phone,
            address=order.customer_address,
            number_of_members=order.party_size,
        ),
        cooking_instructions=order.cooking_instructions,
        processing_start_time=order.processing_start_time,
        items=[
            OrderItemResponse(
                menu_item_id=i.menu_item_id,
                name=i.name,
                quantity=i.quantity,
                price=i.unit_price,
                preparation_time=i.preparation_time,
            )
            for i in order.items
        ],
        created_at=order.created_at,
    )


def _raise_http(action: str, e: Exception):
    """Maps an error from the service layer onto an HTTPException."""
    if isinstance(e, HTTPException):
        raise e
    if isinstance(e, OrderEngineError):
        log.error(f"{e.code} while {action}: {e}")
        raise HTTPException(status_code=e.status_code, detail=str(e))
    if isinstance(e, ValueError):
        log.error(f"Value error while {action}: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    log.error(f"Error while {action}: {e!r}")
    raise HTTPException(status_code=500, detail=f"Server failed while {action}.")


@router.post("/", status_code=status.HTTP_201_CREATED, response_model=SuccessResponse)
async def create_order_endpoint(request_data: OrderRequest):
    """
    Places a new order: reserves stock and table, prices it, and assigns a chef.
    """
    try:
        items_data = [
            {
                "menu_item_id": str(item.menu_item_id),
                "quantity": item.quantity
            }
            for item in request_data.items
        ]

        if not items_data:
            raise HTTPException(status_code=400, detail="Order must contain items.")

        order = await order_manager.place_order(
            items=items_data,
            order_type=request_data.order_type,
            customer=request_data.customer_info.model_dump(),
            table_number=request_data.table_number,
            cooking_instructions=request_data.cooking_instructions or "",
        )
        log.info(f"Order {order.order_code} placed successfully.")
        return SuccessResponse(data=order_detail(order).model_dump())
    except Exception as e:
        _raise_http("placing order", e)


@router.get("/", response_model=SuccessResponse)
async def list_orders_endpoint(status: Optional[OrderStatus] = None, order_type: Optional[OrderType] = None):
    """Lists orders, newest first, optionally filtered by status and order type."""
    try:
        orders = await order_manager.list_orders(status=status, order_type=order_type)
        return SuccessResponse(data=[order_detail(o).model_dump() for o in orders])
    except Exception as e:
        _raise_http("listing orders", e)


@router.get("/processing", response_model=SuccessResponse)
async def processing_orders_endpoint():
    """Processing orders with elapsed and remaining minutes. Read-only."""
    try:
        orders = await order_manager.processing_orders()
        data = []
        for order in orders:
            timing = remaining_time(order)
            if timing is None:
                continue
            data.append(OrderProgressResponse(**order_detail(order).model_dump(), **timing).model_dump())
        return SuccessResponse(data=data)
    except Exception as e:
        _raise_http("fetching processing orders", e)


@router.get("/chef/{chef_id}", response_model=SuccessResponse)
async def chef_orders_endpoint(chef_id: UUID):
    """Active (pending or processing) orders assigned to a chef."""
    try:
        orders = await order_manager.orders_for_chef(chef_id)
        return SuccessResponse(data=[order_detail(o).model_dump() for o in orders])
    except Exception as e:
        _raise_http(f"fetching orders for chef {chef_id}", e)


@router.get("/{order_id}", response_model=SuccessResponse)
async def get_order_endpoint(order_id: str):
    """Fetches details for a specific order."""
    try:
        order = await order_manager.get_order(order_id)
        return SuccessResponse(data=order_detail(order).model_dump())
    except Exception as e:
        _raise_http(f"fetching order {order_id}", e)


@router.patch("/{order_id}/status", response_model=SuccessResponse)
async def update_status_endpoint(order_id: str, payload: OrderStatusUpdate):
    """
    Moves the order one step along pending -> processing -> done -> served.
    """
    try:
        order = await order_manager.update_status(order_id, payload.status)
        return SuccessResponse(data=order_detail(order).model_dump())
    except Exception as e:
        _raise_http("updating order status", e)


@router.delete("/{order_id}", response_model=SuccessResponse)
async def delete_order_endpoint(order_id: str):
    """
    Deletes the order and returns its chef, table and stock to the kitchen.
    """
    try:
        receipt = await order_manager.delete_order(order_id)
        data = OrderDeletionResponse(
            order=order_detail(receipt.order),
            chef_released=receipt.chef_released,
            table_released=receipt.table_released,
            restored_items=receipt.restored_items,
        ).model_dump()
        return SuccessResponse(data=data)
    except Exception as e:
        _raise_http("deleting order", e)

import logging
from fastapi import APIRouter, HTTPException, status
from app.core.errors import OrderEngineError
from app.models.chef import Chef
from app.schemas.kitchen import AssignOrderRequest, ChefRequest, ChefResponse
from app.schemas.response import SuccessResponse
from app.services.order_service import order_manager
from uuid import UUID

log = logging.getLogger("uvicorn")

router = APIRouter()


async def _chef_payload(chef: Chef) -> dict:
    await chef.fetch_related("assignments__order")
    return ChefResponse(
        id=chef.id,
        name=chef.name,
        active_order_count=chef.active_order_count,
        assigned_orders=[a.order.order_code for a in chef.assignments],
    ).model_dump()


@router.get("/", response_model=SuccessResponse)
async def list_chefs():
    """All chefs with their current load."""
    chefs = await Chef.all().order_by("name")
    return SuccessResponse(data=[await _chef_payload(c) for c in chefs])


@router.post("/", status_code=status.HTTP_201_CREATED, response_model=SuccessResponse)
async def create_chef(chef_data: ChefRequest):
    chef = await Chef.create(name=chef_data.name)
    return SuccessResponse(data=await _chef_payload(chef))


@router.delete("/{chef_id}", response_model=SuccessResponse)
async def delete_chef(chef_id: UUID):
    """
    Removes a chef; their active orders move to the least-loaded remaining chefs.
    """
    try:
        moved = await order_manager.chefs.retire(chef_id)
        return SuccessResponse(data={"message": "Chef deleted successfully", "reassigned_orders": moved})
    except OrderEngineError as e:
        log.error(f"Error deleting chef {chef_id}: {e}")
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.post("/assign-order", response_model=SuccessResponse)
async def assign_order_to_chef(payload: AssignOrderRequest):
    """Manually moves an active order to the given chef."""
    try:
        order = await order_manager.get_order(payload.order_id)
        chef = await order_manager.chefs.reassign(order.id, order.chef_id, payload.chef_id)
        return SuccessResponse(data={
            "message": "Order assigned to chef successfully",
            "order_id": order.order_code,
            "chef": await _chef_payload(chef),
        })
    except OrderEngineError as e:
        log.error(f"Error assigning order {payload.order_id}: {e}")
        raise HTTPException(status_code=e.status_code, detail=str(e))

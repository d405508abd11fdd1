import logging
from fastapi import APIRouter, HTTPException, status
from app.core.errors import OrderEngineError
from app.models.table import DiningTable
from app.schemas.kitchen import TableRequest, TableResponse
from app.schemas.response import SuccessResponse
from app.services.order_service import order_manager

log = logging.getLogger("uvicorn")

router = APIRouter()


def _table_payload(table: DiningTable) -> dict:
    return TableResponse(
        table_number=table.table_number,
        capacity=table.capacity,
        name=table.name,
        is_reserved=table.is_reserved,
        reserved_by_name=table.reserved_by_name,
        reserved_by_phone=table.reserved_by_phone,
        reserved_party_size=table.reserved_party_size,
    ).model_dump()


@router.get("/", response_model=SuccessResponse)
async def list_tables():
    tables = await DiningTable.all().order_by("table_number")
    return SuccessResponse(data=[_table_payload(t) for t in tables])


@router.post("/", status_code=status.HTTP_201_CREATED, response_model=SuccessResponse)
async def add_table(table_data: TableRequest):
    """Adds a table with the next free table number."""
    try:
        table = await order_manager.tables.add_table(table_data.capacity, table_data.name)
        return SuccessResponse(data=_table_payload(table))
    except OrderEngineError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.delete("/{table_number}", response_model=SuccessResponse)
async def delete_table(table_number: int):
    """Deletes a free table and renumbers the tables after it."""
    try:
        tables = await order_manager.tables.remove_table(table_number)
        return SuccessResponse(data={
            "message": "Table deleted and numbering reshuffled",
            "tables": [_table_payload(t) for t in tables],
        })
    except OrderEngineError as e:
        log.error(f"Error deleting table {table_number}: {e}")
        raise HTTPException(status_code=e.status_code, detail=str(e))

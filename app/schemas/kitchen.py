import uuid
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field


class MenuItemRequest(BaseModel):
    name: str = Field(..., description="Name of the menu item (e.g., Paneer Wrap).")
    description: str = Field("", description="Short description shown on the menu.")
    category: str = Field("", description="Menu category (e.g., Starters).")
    price: Decimal = Field(..., gt=0, description="Selling price of the item.")
    preparation_time: int = Field(..., ge=1, description="Average preparation time in minutes.")
    initial_stock: int = Field(..., ge=0, description="Initial available stock quantity.")


class StockResponse(BaseModel):
    """Schema for fetching menu item stock."""
    menu_item_id: uuid.UUID
    name: str
    stock: int


class ChefRequest(BaseModel):
    name: str = Field(..., min_length=1)


class ChefResponse(BaseModel):
    id: uuid.UUID
    name: str
    active_order_count: int
    assigned_orders: List[str] = Field(default_factory=list)


class AssignOrderRequest(BaseModel):
    """Manual reassignment of an active order."""
    order_id: str = Field(..., description="Order code, e.g. ORD-1700000000000-a1b2c3.")
    chef_id: uuid.UUID


class TableRequest(BaseModel):
    capacity: int = Field(..., description="Seats at the table: 2, 4, 6 or 8.")
    name: str = ""


class TableResponse(BaseModel):
    table_number: int
    capacity: int
    name: str
    is_reserved: bool
    reserved_by_name: Optional[str] = None
    reserved_by_phone: Optional[str] = None
    reserved_party_size: Optional[int] = None

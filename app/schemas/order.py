from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Any, Dict, List, Optional
from datetime import datetime
from decimal import Decimal
import uuid

from app.models.order import OrderStatus, OrderType


class CamelModel(BaseModel):
    """Accepts both camelCase (frontend) and snake_case field names."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CustomerInfo(CamelModel):
    name: str = Field(..., min_length=1)
    phone_number: str = Field(..., min_length=1)
    address: Optional[str] = None
    number_of_members: Optional[int] = Field(None, ge=1)


class OrderItemRequest(CamelModel):
    """Schema for a single item in the order request."""
    menu_item_id: uuid.UUID
    quantity: int = Field(..., ge=1)


class OrderRequest(CamelModel):
    """Schema for the full order placement request body."""
    items: List[OrderItemRequest]
    order_type: OrderType
    customer_info: CustomerInfo
    table_number: Optional[int] = None
    cooking_instructions: Optional[str] = ""


class OrderStatusUpdate(BaseModel):
    """Schema for updating an order status."""
    status: OrderStatus


class OrderItemResponse(BaseModel):
    """Schema for an item inside the detailed order response (snapshotted at order time)."""
    menu_item_id: Optional[uuid.UUID]
    name: str
    quantity: int
    price: Decimal
    preparation_time: int


class ChefSummary(BaseModel):
    id: uuid.UUID
    name: str


class OrderDetailResponse(BaseModel):
    """Schema for fetching detailed order information."""
    order_id: str
    status: OrderStatus
    order_type: OrderType
    total_price: Decimal
    total_preparation_time: int
    table_number: Optional[int]
    chef_assigned: Optional[ChefSummary]
    customer_info: CustomerInfo
    cooking_instructions: str
    processing_start_time: Optional[datetime]
    items: List[OrderItemResponse]
    created_at: Optional[datetime]


class OrderProgressResponse(OrderDetailResponse):
    """A processing order with its live timing."""
    elapsed_time: int
    remaining_time: int
    is_overdue: bool


class OrderDeletionResponse(BaseModel):
    order: OrderDetailResponse
    chef_released: bool
    table_released: bool
    restored_items: List[Dict[str, Any]]

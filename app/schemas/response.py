import uuid
from typing import Any, Optional

from pydantic import BaseModel, Field


def _rid():
    return uuid.uuid4().hex


class SuccessResponse(BaseModel):
    """Envelope for every successful API response."""
    success: bool = True
    request_id: str = Field(default_factory=_rid)
    data: Optional[Any] = None


class ErrorDetail(BaseModel):
    code: str = Field(..., description="Machine-readable error code, e.g. insufficient_stock.")
    message: Any
    details: Optional[Any] = None


class ErrorResponse(BaseModel):
    """Envelope returned by the exception handlers."""
    success: bool = False
    request_id: str = Field(default_factory=_rid)
    error: ErrorDetail

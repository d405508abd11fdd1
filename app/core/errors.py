from typing import List, Optional


class OrderEngineError(Exception):
    """Base class for failures raised by the order lifecycle core."""
    status_code = 400
    code = "order_engine_error"


class NotFoundError(OrderEngineError):
    """Order, chef, table or menu item does not exist."""
    status_code = 404
    code = "not_found"


class InvalidOrderError(OrderEngineError):
    """The request is well-formed but cannot be applied to the kitchen state."""
    code = "invalid_order"


class InsufficientStockError(OrderEngineError):
    code = "insufficient_stock"


class TableAlreadyReservedError(OrderEngineError):
    code = "table_already_reserved"


class InvalidStatusTransitionError(OrderEngineError):
    code = "invalid_status_transition"


class NoChefsAvailableError(OrderEngineError):
    """Soft failure: the order is still created, just without a chef."""
    code = "no_chefs_available"


class AllocationRollbackFailure(OrderEngineError):
    """
    A multi-step allocation failed AND undoing the completed steps failed too.
    Kitchen state may hold orphaned reservations; this must be escalated.
    """
    status_code = 500
    code = "allocation_rollback_failure"

    def __init__(self, message: str, original: Optional[BaseException] = None,
                 failed_steps: Optional[List[str]] = None):
        super().__init__(message)
        self.original = original
        self.failed_steps = failed_steps or []

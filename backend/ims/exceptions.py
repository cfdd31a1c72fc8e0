"""
Typed errors raised by the write path
- Each error carries a machine-readable code and structured detail.
- main.py turns them into JSON responses of the form
  {"error": ..., "errorCode": ..., **detail}; detail may carry the item "code".
"""


class InventoryError(Exception):
    """Base class for inventory service errors."""

    code: str = "INVENTORY_ERROR"
    status_code: int = 400

    def __init__(self, message: str, **detail):
        self.message = message
        self.detail = detail
        super().__init__(message)

    def to_body(self) -> dict:
        return {**self.detail, "error": self.message, "errorCode": self.code}


class ValidationError(InventoryError):
    """A write was rejected because it would break a ledger rule."""

    code = "VALIDATION_ERROR"


class InsufficientStockError(ValidationError):
    code = "INSUFFICIENT_STOCK"

    def __init__(self, available: float, **detail):
        super().__init__("insufficient stock", available=available, **detail)


class ReturnExceedsCheckoutError(ValidationError):
    code = "RETURN_EXCEEDS_CHECKOUT"

    def __init__(self, outstanding: float, **detail):
        super().__init__("return exceeds outstanding checkout", outstanding=outstanding, **detail)


class NotFoundError(InventoryError):
    code = "NOT_FOUND"
    status_code = 404

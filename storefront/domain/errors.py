"""Order domain exceptions.

Raised inside the core when a business rule is violated. Every unit of work
that raises one of these is rolled back as a whole; the API layer translates
them into the ``{"success": false, ...}`` envelope.
"""

from typing import Optional


class StorefrontError(Exception):
    code = "error"

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code

    def __str__(self) -> str:
        return self.message


class ValidationError(StorefrontError):
    """Malformed input, rejected before any state change."""

    code = "validation_error"


class InvalidLineItem(ValidationError):
    code = "invalid_line_item"


class ConflictError(StorefrontError):
    """A precondition on current state does not hold."""

    code = "conflict"


class OutOfStock(ConflictError):
    code = "out_of_stock"

    def __init__(self, product_id: int, requested: int):
        super().__init__(
            f"Insufficient stock for product {product_id} (requested {requested})"
        )
        self.product_id = product_id
        self.requested = requested


class VoucherInvalid(ConflictError):
    code = "voucher_invalid"


class InvalidTransition(ConflictError):
    code = "invalid_transition"


class ReturnNotEligible(ConflictError):
    code = "return_not_eligible"


class InvalidReturnTransition(ConflictError):
    code = "invalid_return_transition"


class NotFoundError(StorefrontError):
    code = "not_found"


class ProductNotFound(NotFoundError):
    code = "product_not_found"

    def __init__(self, product_id: int):
        super().__init__(f"Product with id {product_id} not found")
        self.product_id = product_id


class OrderNotFound(NotFoundError):
    code = "order_not_found"

    def __init__(self, order_id: int):
        super().__init__("Order not found")
        self.order_id = order_id


class AuthenticationError(StorefrontError):
    code = "unauthenticated"


class AuthorizationError(StorefrontError):
    code = "forbidden"

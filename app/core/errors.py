# app/core/errors.py
"""
Typed failures raised by the cart store and aggregator.

Only CartService catches these; it turns them into a CartFailure result so
routers never see a raw exception.
"""


class CartError(Exception):
    """Base class for every expected cart failure."""

    kind: str = "cart_error"
    code: str = "CART_000"
    default_message: str = "Cart operation failed"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class CartValidationError(CartError):
    kind = "validation_error"
    code = "CART_001"
    default_message = "Invalid cart input"


class ProductNotFound(CartError):
    kind = "product_not_found"
    code = "CART_002"
    default_message = "Product does not exist or is no longer available"

    def __init__(self, product_id: int, message: str | None = None):
        self.product_id = product_id
        super().__init__(message)


class CartLineNotFound(CartError):
    kind = "cart_line_not_found"
    code = "CART_003"
    default_message = "Cart item not found"

    def __init__(self, cart_line_id: int, message: str | None = None):
        self.cart_line_id = cart_line_id
        super().__init__(message)


class InsufficientStock(CartError):
    kind = "insufficient_stock"
    code = "CART_004"

    def __init__(self, product_id: int, requested: int, available: int):
        self.product_id = product_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient stock: requested {requested}, only {available} available"
        )


class NoSelectionError(CartError):
    kind = "no_selection"
    code = "CART_005"
    default_message = "No items selected for checkout"

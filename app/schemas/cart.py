# app/schemas/cart.py
from datetime import datetime
from typing import Annotated, Any, Literal, Union

import pydantic
from pydantic import ConfigDict, PositiveInt, StrictBool
from sqlmodel import SQLModel, Field


# ----- Request payloads -----


class CartItemCreate(SQLModel):
    """
    Payload for adding to cart.
    """

    model_config = ConfigDict(extra="forbid")

    product_id: int = Field(gt=0)
    quantity: int = Field(default=1, gt=0)


class CartQuantityUpdate(SQLModel):
    """
    Payload for updating quantity of a cart line.
    """

    model_config = ConfigDict(extra="forbid")

    quantity: int = Field(gt=0)


class CartSelectionUpdate(SQLModel):
    model_config = ConfigDict(extra="forbid")

    is_selected: StrictBool


class CartBatchSelectionUpdate(SQLModel):
    """
    Toggle selection on several lines at once.

    The HTTP contract requires at least one id.
    """

    model_config = ConfigDict(extra="forbid")

    cart_line_ids: list[PositiveInt] = Field(min_length=1)
    is_selected: StrictBool


class CartBatchRemove(SQLModel):
    model_config = ConfigDict(extra="forbid")

    cart_line_ids: list[PositiveInt] = Field(min_length=1)


# ----- Read models -----


class CartProductRead(SQLModel):
    """
    Current product data joined into a cart line. Never null on a
    resolved line.
    """

    id: int
    name: str
    price: float
    points_required: int
    stock: int
    images: list[str] = []
    category_name: str | None = None


class ResolvedCartLine(SQLModel):
    """
    A cart line whose product is active, with its product data.
    """

    id: int
    product_id: int
    quantity: int
    is_selected: bool
    created_at: datetime
    updated_at: datetime
    product: CartProductRead
    line_points: int


OrphanReason = Literal["inactive", "deleted"]


class OrphanedCartLine(SQLModel):
    """
    A cart line hidden from cart views because its product is inactive or
    soft-deleted.
    """

    id: int
    product_id: int
    quantity: int
    is_selected: bool
    reason: OrphanReason


class CartSummary(SQLModel):
    """
    Totals over selected lines with an active product. Never null.
    """

    selected_count: int = 0
    total_points: int = 0
    total_quantity: int = 0


class CartCounts(SQLModel):
    total_count: int = 0
    selected_count: int = 0
    unavailable_count: int = 0


class CartOverview(SQLModel):
    """Full cart response: lines plus selection summary."""

    items: list[ResolvedCartLine]
    summary: CartSummary


class CartStatistics(SQLModel):
    """Counts and point totals for the cart badge / checkout bar."""

    total_count: int
    selected_count: int
    unavailable_count: int
    total_points: int
    total_quantity: int


class CheckoutSelection(SQLModel):
    """
    Hand-off to order creation: selected active lines and their point total.
    """

    items: list[ResolvedCartLine]
    total_points: int


class AddedToCart(SQLModel):
    cart_line_id: int
    quantity: int
    merged: bool
    summary: CartSummary | None = None


class QuantityUpdated(SQLModel):
    quantity: int
    summary: CartSummary | None = None


class SelectionUpdated(SQLModel):
    is_selected: bool
    summary: CartSummary | None = None


class BatchSelectionUpdated(SQLModel):
    updated_count: int
    summary: CartSummary | None = None


class LineRemoved(SQLModel):
    summary: CartSummary | None = None


class BatchRemoved(SQLModel):
    deleted_count: int
    summary: CartSummary | None = None


class CartCleared(SQLModel):
    deleted_count: int
    summary: CartSummary | None = None


# ----- Facade result -----

ErrorKind = Literal[
    "validation_error",
    "product_not_found",
    "cart_line_not_found",
    "insufficient_stock",
    "no_selection",
    "internal_error",
]


class CartSuccess(SQLModel):
    outcome: Literal["success"] = "success"
    message: str
    data: Any = None


class CartFailure(SQLModel):
    outcome: Literal["failure"] = "failure"
    message: str
    error: ErrorKind
    code: str


CartResult = Annotated[
    Union[CartSuccess, CartFailure], pydantic.Field(discriminator="outcome")
]


class ApiResponse(SQLModel):
    """
    Uniform success envelope returned by the cart routes.
    """

    success: bool = True
    message: str
    data: Any = None
    timestamp: datetime

# app/routers/cart.py
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.encoders import jsonable_encoder
from sqlmodel import Session

from app.core.auth import require_user
from app.core.config import get_settings
from app.database import get_session
from app.models.user import User
from app.repositories.cart_repo import CartRepository
from app.repositories.product_repo import ProductRepository
from app.schemas.cart import (
    ApiResponse,
    CartBatchRemove,
    CartBatchSelectionUpdate,
    CartFailure,
    CartItemCreate,
    CartQuantityUpdate,
    CartResult,
    CartSelectionUpdate,
)
from app.services.cart_aggregator import CartAggregator
from app.services.cart_service import CartService
from app.services.cart_store import CartStore

router = APIRouter(prefix="/cart", tags=["Cart"])

settings = get_settings()

cart_repo = CartRepository()
product_repo = ProductRepository()
service = CartService(
    CartStore(
        cart_repo,
        product_repo,
        max_quantity_per_line=settings.CART_MAX_QUANTITY_PER_LINE,
    ),
    CartAggregator(cart_repo),
)

STATUS_BY_ERROR: dict[str, int] = {
    "validation_error": status.HTTP_400_BAD_REQUEST,
    "product_not_found": status.HTTP_404_NOT_FOUND,
    "cart_line_not_found": status.HTTP_404_NOT_FOUND,
    "insufficient_stock": status.HTTP_409_CONFLICT,
    "no_selection": status.HTTP_400_BAD_REQUEST,
    "internal_error": status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def to_response(result: CartResult) -> ApiResponse:
    """
    Unwrap a facade result into the success envelope, or raise the
    matching HTTP error.
    """
    if isinstance(result, CartFailure):
        raise HTTPException(
            status_code=STATUS_BY_ERROR[result.error],
            detail={
                "code": result.code,
                "kind": result.error,
                "message": result.message,
            },
        )
    return ApiResponse(
        message=result.message,
        data=jsonable_encoder(result.data),
        timestamp=datetime.now(timezone.utc),
    )


# -------- Queries --------


@router.get("", response_model=ApiResponse)
def get_my_cart(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_user),
):
    """
    Get current user's cart: active lines (newest first) and the summary
    of selected lines.
    """
    return to_response(service.get_cart(session, current_user.id))


@router.get("/summary", response_model=ApiResponse)
def get_cart_summary(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_user),
):
    """
    Counts and point totals: total_count, selected_count,
    unavailable_count, total_points, total_quantity.
    """
    return to_response(service.get_statistics(session, current_user.id))


@router.get("/selected", response_model=ApiResponse)
def get_selected_items(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_user),
):
    """
    Selected items handed to order creation, with their point total.

    400 when nothing is selected.
    """
    return to_response(service.get_checkout_selection(session, current_user.id))


@router.get("/unavailable", response_model=ApiResponse)
def get_unavailable_items(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_user),
):
    """
    Lines hidden from the cart because their product was deactivated or
    deleted, so they can still be removed.
    """
    return to_response(service.get_unavailable_items(session, current_user.id))


# -------- Commands --------


@router.post("", response_model=ApiResponse)
def add_to_cart(
    payload: CartItemCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_user),
):
    """
    Add product to the current user's cart.

    Adding a product already in the cart increases its quantity and
    re-selects it.
    """
    return to_response(
        service.add_item(
            session, current_user.id, payload.product_id, payload.quantity
        )
    )


@router.put("/batch-update-selection", response_model=ApiResponse)
def batch_update_selection(
    payload: CartBatchSelectionUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_user),
):
    """
    Select / deselect several lines. Ids that are not in the user's cart
    are ignored and not counted.
    """
    return to_response(
        service.update_selection_batch(
            session, current_user.id, payload.cart_line_ids, payload.is_selected
        )
    )


@router.delete("/batch-remove", response_model=ApiResponse)
def batch_remove(
    payload: CartBatchRemove,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_user),
):
    """
    Remove several lines. Ids that are not in the user's cart are ignored.
    """
    return to_response(
        service.remove_batch(session, current_user.id, payload.cart_line_ids)
    )


@router.delete("/clear", response_model=ApiResponse)
def clear_cart(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_user),
):
    """
    Clear the entire cart.
    """
    return to_response(service.clear_cart(session, current_user.id))


@router.put("/{cart_line_id}", response_model=ApiResponse)
def update_cart_item(
    cart_line_id: int,
    payload: CartQuantityUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_user),
):
    """
    Update quantity of a cart line.
    """
    return to_response(
        service.update_quantity(
            session, current_user.id, cart_line_id, payload.quantity
        )
    )


@router.put("/{cart_line_id}/selection", response_model=ApiResponse)
def update_cart_item_selection(
    cart_line_id: int,
    payload: CartSelectionUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_user),
):
    return to_response(
        service.update_selection(
            session, current_user.id, cart_line_id, payload.is_selected
        )
    )


@router.delete("/{cart_line_id}", response_model=ApiResponse)
def remove_cart_item(
    cart_line_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_user),
):
    """
    Remove a line from the cart.
    """
    return to_response(service.remove_item(session, current_user.id, cart_line_id))

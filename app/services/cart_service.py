# app/services/cart_service.py
import logging
from typing import Any, Callable

from sqlmodel import Session

from app.core.errors import CartError
from app.schemas.cart import (
    AddedToCart,
    BatchRemoved,
    BatchSelectionUpdated,
    CartCleared,
    CartFailure,
    CartOverview,
    CartResult,
    CartStatistics,
    CartSuccess,
    CartSummary,
    LineRemoved,
    QuantityUpdated,
    SelectionUpdated,
)
from app.services.cart_aggregator import CartAggregator
from app.services.cart_store import CartStore

logger = logging.getLogger(__name__)

INTERNAL_ERROR_CODE = "SYS_001"


class CartService:
    """
    Business facade for cart operations.

    Responsibilities:
      - run one store mutation, then re-aggregate the selection summary
        (a summary that fails after a committed write is left out)
      - turn every CartError into a CartFailure result
      - turn anything else into an `internal_error` result after logging it

    Callers (routers) only ever receive a CartResult; nothing raises past
    this class.
    """

    def __init__(self, store: CartStore, aggregator: CartAggregator):
        self.store = store
        self.aggregator = aggregator

    # ---- internal helpers ----

    def _run(
        self,
        session: Session,
        operation: str,
        action: Callable[[], tuple[str, Any]],
    ) -> CartResult:
        try:
            message, data = action()
        except CartError as exc:
            session.rollback()
            logger.warning("Cart %s rejected: %s", operation, exc.message)
            return CartFailure(message=exc.message, error=exc.kind, code=exc.code)
        except Exception:
            session.rollback()
            logger.exception("Cart %s failed unexpectedly", operation)
            return CartFailure(
                message=f"Failed to {operation}",
                error="internal_error",
                code=INTERNAL_ERROR_CODE,
            )
        return CartSuccess(message=message, data=data)

    def _summary_after_write(self, session: Session, user_id: int) -> CartSummary | None:
        """
        Re-aggregate after a committed mutation.

        The write already persisted, so a failure here must not turn the
        result into a failure: it is logged and the summary is left out.
        """
        try:
            return self.aggregator.summary(session, user_id)
        except Exception:
            session.rollback()
            logger.exception("Cart summary failed after write for user %s", user_id)
            return None

    # ---- queries ----

    def get_cart(self, session: Session, user_id: int) -> CartResult:
        """
        Return all active lines (newest first) and the selection summary.
        An empty cart is a success with no items.
        """

        def action():
            items = self.aggregator.list_with_details(session, user_id)
            summary = self.aggregator.summary(session, user_id)
            return "Cart loaded", CartOverview(items=items, summary=summary)

        return self._run(session, "load cart", action)

    def get_statistics(self, session: Session, user_id: int) -> CartResult:
        def action():
            counts = self.aggregator.cart_counts(session, user_id)
            summary = self.aggregator.summary(session, user_id)
            return "Cart statistics loaded", CartStatistics(
                total_count=counts.total_count,
                selected_count=summary.selected_count,
                unavailable_count=counts.unavailable_count,
                total_points=summary.total_points,
                total_quantity=summary.total_quantity,
            )

        return self._run(session, "load cart statistics", action)

    def get_checkout_selection(self, session: Session, user_id: int) -> CartResult:
        def action():
            selection = self.aggregator.selected_for_checkout(session, user_id)
            return "Selected items loaded", selection

        return self._run(session, "load selected items", action)

    def get_unavailable_items(self, session: Session, user_id: int) -> CartResult:
        def action():
            return "Unavailable items loaded", self.aggregator.unavailable_lines(
                session, user_id
            )

        return self._run(session, "load unavailable items", action)

    # ---- commands ----

    def add_item(
        self,
        session: Session,
        user_id: int,
        product_id: int,
        quantity: int = 1,
    ) -> CartResult:
        def action():
            line_id, new_qty, merged = self.store.add(
                session, user_id, product_id, quantity
            )
            summary = self._summary_after_write(session, user_id)
            message = "Cart item quantity updated" if merged else "Item added to cart"
            return message, AddedToCart(
                cart_line_id=line_id, quantity=new_qty, merged=merged, summary=summary
            )

        return self._run(session, "add item to cart", action)

    def update_quantity(
        self,
        session: Session,
        user_id: int,
        cart_line_id: int,
        quantity: int,
    ) -> CartResult:
        def action():
            new_qty = self.store.update_quantity(session, user_id, cart_line_id, quantity)
            summary = self._summary_after_write(session, user_id)
            return "Cart item quantity updated", QuantityUpdated(
                quantity=new_qty, summary=summary
            )

        return self._run(session, "update cart item quantity", action)

    def update_selection(
        self,
        session: Session,
        user_id: int,
        cart_line_id: int,
        is_selected: bool,
    ) -> CartResult:
        def action():
            selected = self.store.update_selection(
                session, user_id, cart_line_id, is_selected
            )
            summary = self._summary_after_write(session, user_id)
            return "Cart item selection updated", SelectionUpdated(
                is_selected=selected, summary=summary
            )

        return self._run(session, "update cart item selection", action)

    def update_selection_batch(
        self,
        session: Session,
        user_id: int,
        cart_line_ids: list[int],
        is_selected: bool,
    ) -> CartResult:
        def action():
            updated = self.store.update_selection_batch(
                session, user_id, cart_line_ids, is_selected
            )
            summary = self._summary_after_write(session, user_id)
            if not cart_line_ids:
                message = "Nothing to update"
            else:
                message = f"Updated selection of {updated} cart items"
            return message, BatchSelectionUpdated(updated_count=updated, summary=summary)

        return self._run(session, "update cart selection", action)

    def remove_item(self, session: Session, user_id: int, cart_line_id: int) -> CartResult:
        def action():
            self.store.remove(session, user_id, cart_line_id)
            summary = self._summary_after_write(session, user_id)
            return "Cart item removed", LineRemoved(summary=summary)

        return self._run(session, "remove cart item", action)

    def remove_batch(
        self, session: Session, user_id: int, cart_line_ids: list[int]
    ) -> CartResult:
        def action():
            deleted = self.store.remove_batch(session, user_id, cart_line_ids)
            summary = self._summary_after_write(session, user_id)
            if not cart_line_ids:
                message = "Nothing to remove"
            else:
                message = f"Removed {deleted} cart items"
            return message, BatchRemoved(deleted_count=deleted, summary=summary)

        return self._run(session, "remove cart items", action)

    def clear_cart(self, session: Session, user_id: int) -> CartResult:
        def action():
            deleted = self.store.clear(session, user_id)
            summary = self._summary_after_write(session, user_id)
            return "Cart cleared", CartCleared(deleted_count=deleted, summary=summary)

        return self._run(session, "clear cart", action)

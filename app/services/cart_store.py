# app/services/cart_store.py
import logging

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from app.core.errors import (
    CartLineNotFound,
    CartValidationError,
    InsufficientStock,
    ProductNotFound,
)
from app.models.cart import CartLine
from app.models.product import Product
from app.repositories.cart_repo import CartRepository
from app.repositories.product_repo import ProductRepository

logger = logging.getLogger(__name__)


def _is_positive_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


class CartStore:
    """
    Owns every write to the `cart` table.

    Responsibilities:
      - validate ids / quantities before any query
      - validate product existence, active flag and stock at mutation time
      - keep one line per (user, product) by merging repeated adds
      - report missing lines through zero-row-affected statements

    Stock is checked against the value read during the call. Two concurrent
    requests can both pass that check; order creation must re-check and
    decrement stock atomically.
    """

    def __init__(
        self,
        cart_repo: CartRepository,
        product_repo: ProductRepository,
        max_quantity_per_line: int | None = None,
    ):
        self.cart_repo = cart_repo
        self.product_repo = product_repo
        self.max_quantity_per_line = max_quantity_per_line or None

    # ---- internal helpers ----

    @staticmethod
    def _require_positive(value, field: str) -> int:
        if not _is_positive_int(value):
            raise CartValidationError(f"{field} must be a positive integer")
        return value

    @staticmethod
    def _require_bool(value, field: str) -> bool:
        if not isinstance(value, bool):
            raise CartValidationError(f"{field} must be a boolean")
        return value

    def _require_id_list(self, values, field: str) -> list[int]:
        if not isinstance(values, (list, tuple)):
            raise CartValidationError(f"{field} must be a list of ids")
        return [self._require_positive(v, field) for v in values]

    def _get_valid_product(self, session: Session, product_id: int) -> Product:
        product = self.product_repo.get_active_product(session, product_id)
        if product is None:
            raise ProductNotFound(product_id)
        return product

    def _check_quantity(self, product: Product, quantity: int) -> None:
        if self.max_quantity_per_line and quantity > self.max_quantity_per_line:
            raise CartValidationError(
                f"quantity cannot exceed {self.max_quantity_per_line} per item"
            )
        if quantity > product.stock:
            raise InsufficientStock(product.id, quantity, product.stock)

    def _merge(
        self,
        session: Session,
        user_id: int,
        product: Product,
        line: CartLine,
        quantity: int,
    ) -> tuple[int, int, bool] | None:
        """
        Fold `quantity` into an existing line and re-select it.

        Returns None when the line was deleted between the read and the
        UPDATE, so the caller can insert a fresh line instead.
        """
        line_id = line.id
        new_qty = line.quantity + quantity
        self._check_quantity(product, new_qty)

        affected = self.cart_repo.set_quantity(
            session, user_id, line_id, new_qty, select_line=True
        )
        if affected == 0:
            return None

        logger.info(
            "Merged product %s into cart line %s for user %s: quantity %s",
            product.id,
            line_id,
            user_id,
            new_qty,
        )
        return line_id, new_qty, True

    # ---- public operations ----

    def add(
        self,
        session: Session,
        user_id: int,
        product_id: int,
        quantity: int,
    ) -> tuple[int, int, bool]:
        """
        Add a product to the user's cart.

        Rules:
          - product must exist, be active and not soft-deleted
          - quantity (or existing + quantity) <= stock
          - an existing line is merged into and re-selected

        Returns:
            (cart_line_id, resulting quantity, merged)
        """
        self._require_positive(user_id, "user_id")
        self._require_positive(product_id, "product_id")
        self._require_positive(quantity, "quantity")

        product = self._get_valid_product(session, product_id)
        self._check_quantity(product, quantity)

        existing = self.cart_repo.get_line(session, user_id, product_id)
        if existing is not None:
            merged = self._merge(session, user_id, product, existing, quantity)
            if merged is not None:
                return merged
            logger.info(
                "Cart line for user %s product %s vanished before merge, inserting",
                user_id,
                product_id,
            )

        return self._insert(session, user_id, product, quantity)

    def _insert(
        self,
        session: Session,
        user_id: int,
        product: Product,
        quantity: int,
    ) -> tuple[int, int, bool]:
        product_id = product.id
        try:
            line = self.cart_repo.insert(
                session,
                CartLine(
                    user_id=user_id,
                    product_id=product_id,
                    quantity=quantity,
                    is_selected=True,
                ),
            )
        except IntegrityError:
            # Lost an insert race on (user_id, product_id): merge instead.
            session.rollback()
            existing = self.cart_repo.get_line(session, user_id, product_id)
            if existing is None:
                raise
            logger.info(
                "Concurrent add for user %s product %s, retrying as merge",
                user_id,
                product_id,
            )
            merged = self._merge(session, user_id, product, existing, quantity)
            if merged is None:
                # the conflicting line was deleted again; give up
                raise
            return merged

        logger.info(
            "Added product %s to cart of user %s as line %s (quantity %s)",
            product_id,
            user_id,
            line.id,
            quantity,
        )
        return line.id, line.quantity, False

    def update_quantity(
        self,
        session: Session,
        user_id: int,
        cart_line_id: int,
        quantity: int,
    ) -> int:
        """
        Set the quantity of a line. Selection is left untouched.

        The line must belong to user_id and point at an active product.
        """
        self._require_positive(user_id, "user_id")
        self._require_positive(cart_line_id, "cart_line_id")
        self._require_positive(quantity, "quantity")

        found = self.cart_repo.get_line_with_active_product(
            session, user_id, cart_line_id
        )
        if found is None:
            raise CartLineNotFound(cart_line_id)
        _, product = found

        self._check_quantity(product, quantity)

        affected = self.cart_repo.set_quantity(session, user_id, cart_line_id, quantity)
        if affected == 0:
            raise CartLineNotFound(cart_line_id)

        logger.info(
            "Cart line %s of user %s set to quantity %s", cart_line_id, user_id, quantity
        )
        return quantity

    def update_selection(
        self,
        session: Session,
        user_id: int,
        cart_line_id: int,
        is_selected: bool,
    ) -> bool:
        self._require_positive(user_id, "user_id")
        self._require_positive(cart_line_id, "cart_line_id")
        self._require_bool(is_selected, "is_selected")

        affected = self.cart_repo.set_selected(session, user_id, cart_line_id, is_selected)
        if affected == 0:
            raise CartLineNotFound(cart_line_id)
        return is_selected

    def update_selection_batch(
        self,
        session: Session,
        user_id: int,
        cart_line_ids: list[int],
        is_selected: bool,
    ) -> int:
        """
        Toggle selection on many lines in one statement.

        Ids that are unknown or owned by someone else are not counted.
        An empty list touches nothing and returns 0.
        """
        self._require_positive(user_id, "user_id")
        ids = self._require_id_list(cart_line_ids, "cart_line_ids")
        self._require_bool(is_selected, "is_selected")

        if not ids:
            return 0

        updated = self.cart_repo.set_selected_many(session, user_id, ids, is_selected)
        logger.info(
            "Set is_selected=%s on %s/%s cart lines of user %s",
            is_selected,
            updated,
            len(ids),
            user_id,
        )
        return updated

    def remove(self, session: Session, user_id: int, cart_line_id: int) -> None:
        self._require_positive(user_id, "user_id")
        self._require_positive(cart_line_id, "cart_line_id")

        if self.cart_repo.delete_line(session, user_id, cart_line_id) == 0:
            raise CartLineNotFound(cart_line_id)
        logger.info("Removed cart line %s of user %s", cart_line_id, user_id)

    def remove_batch(
        self, session: Session, user_id: int, cart_line_ids: list[int]
    ) -> int:
        self._require_positive(user_id, "user_id")
        ids = self._require_id_list(cart_line_ids, "cart_line_ids")

        if not ids:
            return 0

        deleted = self.cart_repo.delete_many(session, user_id, ids)
        logger.info(
            "Removed %s/%s requested cart lines of user %s", deleted, len(ids), user_id
        )
        return deleted

    def clear(self, session: Session, user_id: int) -> int:
        self._require_positive(user_id, "user_id")

        deleted = self.cart_repo.delete_all(session, user_id)
        logger.info("Cleared cart of user %s (%s lines)", user_id, deleted)
        return deleted

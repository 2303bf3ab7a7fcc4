# app/services/cart_aggregator.py
from sqlmodel import Session

from app.core.errors import NoSelectionError
from app.models.cart import CartLine
from app.models.product import Product
from app.repositories.cart_repo import CartRepository
from app.schemas.cart import (
    CartCounts,
    CartProductRead,
    CartSummary,
    CheckoutSelection,
    OrphanedCartLine,
    ResolvedCartLine,
)


class CartAggregator:
    """
    Read-side views over a user's cart.

    Every view re-joins current product rows, so point totals follow
    current pricing. Lines whose product is inactive or soft-deleted are
    left out of all views except unavailable_lines().
    """

    def __init__(self, cart_repo: CartRepository):
        self.cart_repo = cart_repo

    @staticmethod
    def _resolve(
        line: CartLine, product: Product, category_name: str | None
    ) -> ResolvedCartLine:
        return ResolvedCartLine(
            id=line.id,
            product_id=line.product_id,
            quantity=line.quantity,
            is_selected=line.is_selected,
            created_at=line.created_at,
            updated_at=line.updated_at,
            product=CartProductRead(
                id=product.id,
                name=product.name,
                price=product.price,
                points_required=product.points_required,
                stock=product.stock,
                images=list(product.images or []),
                category_name=category_name,
            ),
            line_points=line.quantity * product.points_required,
        )

    def list_with_details(self, session: Session, user_id: int) -> list[ResolvedCartLine]:
        """All lines with an active product, most recently created first."""
        rows = self.cart_repo.list_with_products(session, user_id)
        return [self._resolve(line, product, category) for line, product, category in rows]

    def summary(self, session: Session, user_id: int) -> CartSummary:
        selected_count, total_points, total_quantity = self.cart_repo.selection_totals(
            session, user_id
        )
        return CartSummary(
            selected_count=selected_count,
            total_points=total_points,
            total_quantity=total_quantity,
        )

    def cart_counts(self, session: Session, user_id: int) -> CartCounts:
        """
        total_count and selected_count only cover lines with an active
        product; unavailable_count reports the hidden ones separately.
        """
        total_count, selected_count = self.cart_repo.line_counts(session, user_id)
        unavailable_count = self.cart_repo.count_orphaned(session, user_id)
        return CartCounts(
            total_count=total_count,
            selected_count=selected_count,
            unavailable_count=unavailable_count,
        )

    def selected_for_checkout(self, session: Session, user_id: int) -> CheckoutSelection:
        """
        Selected active lines plus their point total.

        Raises:
            NoSelectionError: nothing selected, checkout cannot proceed.
        """
        rows = self.cart_repo.list_with_products(session, user_id, only_selected=True)
        items = [self._resolve(line, product, category) for line, product, category in rows]
        if not items:
            raise NoSelectionError()

        return CheckoutSelection(
            items=items,
            total_points=sum(item.line_points for item in items),
        )

    def unavailable_lines(self, session: Session, user_id: int) -> list[OrphanedCartLine]:
        orphans: list[OrphanedCartLine] = []
        for line, product in self.cart_repo.list_orphaned(session, user_id):
            if product is None or product.deleted_at is not None:
                reason = "deleted"
            else:
                reason = "inactive"
            orphans.append(
                OrphanedCartLine(
                    id=line.id,
                    product_id=line.product_id,
                    quantity=line.quantity,
                    is_selected=line.is_selected,
                    reason=reason,
                )
            )
        return orphans

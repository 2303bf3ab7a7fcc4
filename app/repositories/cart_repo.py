# app/repositories/cart_repo.py
from datetime import datetime, timezone

from sqlalchemy import case, delete, func, not_, or_, update
from sqlmodel import Session, col, select

from app.models.cart import CartLine
from app.models.product import Category, Product
from app.repositories.product_repo import active_product_clause


def _now() -> datetime:
    return datetime.now(timezone.utc)


class CartRepository:
    """
    Data access layer for the `cart` table.

    Responsibilities:
      - Pure DB operations, every statement scoped by user_id
      - Mutations report the affected row count; callers decide what a
        zero means
      - No FastAPI, no stock rules
    """

    # ----- Lookups -----

    def get_line(
        self, session: Session, user_id: int, product_id: int
    ) -> CartLine | None:
        stmt = select(CartLine).where(
            CartLine.user_id == user_id, CartLine.product_id == product_id
        )
        return session.exec(stmt).first()

    def get_line_with_active_product(
        self, session: Session, user_id: int, cart_line_id: int
    ) -> tuple[CartLine, Product] | None:
        """
        Return (line, product) if the line belongs to user_id and its
        product is still active, else None.
        """
        stmt = (
            select(CartLine, Product)
            .join(Product, col(Product.id) == col(CartLine.product_id))
            .where(
                CartLine.id == cart_line_id,
                CartLine.user_id == user_id,
                active_product_clause(),
            )
        )
        row = session.exec(stmt).first()
        if row is None:
            return None
        return row[0], row[1]

    # ----- Mutations -----

    def insert(self, session: Session, line: CartLine) -> CartLine:
        """
        Insert a new line. Raises IntegrityError when (user_id, product_id)
        already exists.
        """
        session.add(line)
        session.commit()
        session.refresh(line)
        return line

    def set_quantity(
        self,
        session: Session,
        user_id: int,
        cart_line_id: int,
        quantity: int,
        *,
        select_line: bool = False,
    ) -> int:
        values = {"quantity": quantity, "updated_at": _now()}
        if select_line:
            values["is_selected"] = True
        stmt = (
            update(CartLine)
            .where(col(CartLine.id) == cart_line_id, col(CartLine.user_id) == user_id)
            .values(**values)
        )
        result = session.exec(stmt)
        session.commit()
        return result.rowcount

    def set_selected(
        self, session: Session, user_id: int, cart_line_id: int, is_selected: bool
    ) -> int:
        stmt = (
            update(CartLine)
            .where(col(CartLine.id) == cart_line_id, col(CartLine.user_id) == user_id)
            .values(is_selected=is_selected, updated_at=_now())
        )
        result = session.exec(stmt)
        session.commit()
        return result.rowcount

    def set_selected_many(
        self,
        session: Session,
        user_id: int,
        cart_line_ids: list[int],
        is_selected: bool,
    ) -> int:
        """One UPDATE for all ids; foreign and unknown ids simply don't match."""
        stmt = (
            update(CartLine)
            .where(
                col(CartLine.user_id) == user_id,
                col(CartLine.id).in_(cart_line_ids),
            )
            .values(is_selected=is_selected, updated_at=_now())
        )
        result = session.exec(stmt)
        session.commit()
        return result.rowcount

    def delete_line(self, session: Session, user_id: int, cart_line_id: int) -> int:
        stmt = delete(CartLine).where(
            col(CartLine.id) == cart_line_id, col(CartLine.user_id) == user_id
        )
        result = session.exec(stmt)
        session.commit()
        return result.rowcount

    def delete_many(
        self, session: Session, user_id: int, cart_line_ids: list[int]
    ) -> int:
        stmt = delete(CartLine).where(
            col(CartLine.user_id) == user_id,
            col(CartLine.id).in_(cart_line_ids),
        )
        result = session.exec(stmt)
        session.commit()
        return result.rowcount

    def delete_all(self, session: Session, user_id: int) -> int:
        stmt = delete(CartLine).where(col(CartLine.user_id) == user_id)
        result = session.exec(stmt)
        session.commit()
        return result.rowcount

    # ----- Joined reads / aggregates -----

    def list_with_products(
        self,
        session: Session,
        user_id: int,
        only_selected: bool = False,
    ) -> list[tuple[CartLine, Product, str | None]]:
        """
        Lines joined to their active product and category name, newest first.
        Lines whose product is inactive or soft-deleted are not returned.
        """
        stmt = (
            select(CartLine, Product, Category.name)
            .join(Product, col(Product.id) == col(CartLine.product_id))
            .outerjoin(Category, col(Category.id) == col(Product.category_id))
            .where(CartLine.user_id == user_id, active_product_clause())
        )
        if only_selected:
            stmt = stmt.where(CartLine.is_selected == True)
        stmt = stmt.order_by(col(CartLine.created_at).desc(), col(CartLine.id).desc())
        rows = session.exec(stmt).all()
        return [(line, product, category_name) for line, product, category_name in rows]

    def list_orphaned(
        self, session: Session, user_id: int
    ) -> list[tuple[CartLine, Product | None]]:
        """Lines whose product is inactive, soft-deleted or gone."""
        stmt = (
            select(CartLine, Product)
            .outerjoin(Product, col(Product.id) == col(CartLine.product_id))
            .where(
                CartLine.user_id == user_id,
                or_(col(Product.id).is_(None), not_(active_product_clause())),
            )
            .order_by(col(CartLine.created_at).desc(), col(CartLine.id).desc())
        )
        return [(line, product) for line, product in session.exec(stmt).all()]

    def selection_totals(self, session: Session, user_id: int) -> tuple[int, int, int]:
        """
        (selected_count, total_points, total_quantity) over selected lines
        with an active product. Zeros when nothing qualifies.
        """
        stmt = (
            select(
                func.count(col(CartLine.id)),
                func.coalesce(
                    func.sum(col(CartLine.quantity) * col(Product.points_required)), 0
                ),
                func.coalesce(func.sum(col(CartLine.quantity)), 0),
            )
            .select_from(CartLine)
            .join(Product, col(Product.id) == col(CartLine.product_id))
            .where(
                CartLine.user_id == user_id,
                CartLine.is_selected == True,
                active_product_clause(),
            )
        )
        count, points, quantity = session.exec(stmt).one()
        return int(count or 0), int(points or 0), int(quantity or 0)

    def line_counts(self, session: Session, user_id: int) -> tuple[int, int]:
        """(total_count, selected_count) over lines with an active product."""
        selected_case = case((col(CartLine.is_selected) == True, 1), else_=0)
        stmt = (
            select(
                func.count(col(CartLine.id)),
                func.coalesce(func.sum(selected_case), 0),
            )
            .select_from(CartLine)
            .join(Product, col(Product.id) == col(CartLine.product_id))
            .where(CartLine.user_id == user_id, active_product_clause())
        )
        total, selected = session.exec(stmt).one()
        return int(total or 0), int(selected or 0)

    def count_orphaned(self, session: Session, user_id: int) -> int:
        """Number of lines hidden from the cart, see list_orphaned()."""
        stmt = (
            select(func.count(col(CartLine.id)))
            .select_from(CartLine)
            .outerjoin(Product, col(Product.id) == col(CartLine.product_id))
            .where(
                CartLine.user_id == user_id,
                or_(col(Product.id).is_(None), not_(active_product_clause())),
            )
        )
        return int(session.exec(stmt).one() or 0)

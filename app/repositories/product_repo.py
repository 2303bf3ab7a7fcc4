# app/repositories/product_repo.py
from sqlalchemy import and_
from sqlmodel import Session, col, select

from app.models.product import Category, Product, PRODUCT_STATUS_ACTIVE


def active_product_clause():
    """WHERE fragment matching products a user may put in the cart."""
    return and_(
        col(Product.status) == PRODUCT_STATUS_ACTIVE,
        col(Product.deleted_at).is_(None),
    )


class ProductRepository:
    """
    Read-only catalog lookups used by the cart.

    - Pure DB operations.
    - No FastAPI, no business logic, no writes besides the seed helpers.
    """

    # ----- Products -----

    def get_active_product(self, session: Session, product_id: int) -> Product | None:
        """
        Return the product if it exists, is active and not soft-deleted.

        Always reads the current row; the cart never caches catalog data.
        """
        stmt = select(Product).where(Product.id == product_id, active_product_clause())
        return session.exec(stmt).first()

    def create(self, session: Session, product: Product) -> Product:
        session.add(product)
        session.commit()
        session.refresh(product)
        return product

    # ----- Categories -----

    def create_category(self, session: Session, category: Category) -> Category:
        session.add(category)
        session.commit()
        session.refresh(category)
        return category

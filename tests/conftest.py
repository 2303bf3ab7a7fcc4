"""
Shared fixtures for the cart test suite.

Every test gets a fresh in-memory SQLite database. The FastAPI app reuses
the test's Session through a dependency override, so assertions made
directly against the repositories see exactly what the routes wrote.
"""
import os

# Must be set before any app module reads settings
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret")

import pytest
from datetime import datetime, timezone
from fastapi.testclient import TestClient
from jose import jwt
from sqlmodel import Session, SQLModel

from app.database import build_engine, get_session
from app.main import app
from app.models.cart import CartLine
from app.models.product import Category, Product, PRODUCT_STATUS_INACTIVE
from app.models.user import User
from app.repositories.cart_repo import CartRepository
from app.repositories.product_repo import ProductRepository
from app.services.cart_aggregator import CartAggregator
from app.services.cart_service import CartService
from app.services.cart_store import CartStore

TEST_JWT_SECRET = os.environ["JWT_SECRET"]


@pytest.fixture
def session():
    engine = build_engine("sqlite://")
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session
    engine.dispose()


@pytest.fixture
def store() -> CartStore:
    return CartStore(CartRepository(), ProductRepository(), max_quantity_per_line=999)


@pytest.fixture
def aggregator() -> CartAggregator:
    return CartAggregator(CartRepository())


@pytest.fixture
def cart_service(store: CartStore, aggregator: CartAggregator) -> CartService:
    return CartService(store, aggregator)


@pytest.fixture
def test_client(session: Session):
    def get_session_override():
        return session

    app.dependency_overrides[get_session] = get_session_override
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


# ----- Data factories -----


@pytest.fixture
def category(session: Session) -> Category:
    cat = Category(name="Office")
    session.add(cat)
    session.commit()
    session.refresh(cat)
    return cat


@pytest.fixture
def make_user(session: Session):
    counter = {"n": 0}

    def _make(role: str = "user") -> User:
        counter["n"] += 1
        user = User(username=f"employee{counter['n']}", role=role)
        session.add(user)
        session.commit()
        session.refresh(user)
        return user

    return _make


@pytest.fixture
def user(make_user) -> User:
    return make_user()


@pytest.fixture
def other_user(make_user) -> User:
    return make_user()


@pytest.fixture
def make_product(session: Session, category: Category):
    def _make(
        stock: int = 50,
        points_required: int = 100,
        name: str = "Keyboard",
        active: bool = True,
        deleted: bool = False,
    ) -> Product:
        product = Product(
            name=name,
            price=10.0,
            points_required=points_required,
            stock=stock,
            images=["/uploads/products/item.webp"],
            category_id=category.id,
        )
        if not active:
            product.status = PRODUCT_STATUS_INACTIVE
        if deleted:
            product.deleted_at = datetime.now(timezone.utc)
        session.add(product)
        session.commit()
        session.refresh(product)
        return product

    return _make


@pytest.fixture
def make_line(session: Session):
    """Insert a cart row directly, bypassing stock rules."""

    def _make(user: User, product: Product, quantity: int = 1, is_selected: bool = True) -> CartLine:
        line = CartLine(
            user_id=user.id,
            product_id=product.id,
            quantity=quantity,
            is_selected=is_selected,
        )
        session.add(line)
        session.commit()
        session.refresh(line)
        return line

    return _make


@pytest.fixture
def auth_headers():
    def _headers(user: User) -> dict[str, str]:
        token = jwt.encode({"sub": str(user.id)}, TEST_JWT_SECRET, algorithm="HS256")
        return {"Authorization": f"Bearer {token}"}

    return _headers

# app/models/product.py
from datetime import datetime, timezone

from sqlalchemy import JSON, Column
from sqlmodel import SQLModel, Field

PRODUCT_STATUS_ACTIVE = "active"
PRODUCT_STATUS_INACTIVE = "inactive"


class Category(SQLModel, table=True):
    """
    Catalog category. Soft-deleted via deleted_at.
    """

    __tablename__ = "categories"

    id: int | None = Field(default=None, primary_key=True)

    name: str = Field(max_length=50, index=True)

    description: str | None = None

    sort: int = Field(default=0)

    status: str = Field(default=PRODUCT_STATUS_ACTIVE)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )

    deleted_at: datetime | None = Field(default=None)


class Product(SQLModel, table=True):
    """
    Redeemable catalog entry.

      - points_required: price in points per unit
      - stock: units available right now
      - status: active | inactive (admin toggle)
      - deleted_at: soft-delete marker; a deleted product is never active

    The cart never copies any of these columns. Every cart view joins the
    current row, so totals follow current pricing.
    """

    __tablename__ = "products"

    id: int | None = Field(
        default=None,
        primary_key=True,
    )

    name: str = Field(
        max_length=100,
        index=True,
        description="Display name",
    )

    description: str | None = Field(
        default=None,
    )

    price: float = Field(
        default=0,
        ge=0,
        description="Reference market price",
    )

    points_required: int = Field(
        ge=0,
        description="Points needed to redeem one unit",
    )

    stock: int = Field(
        default=0,
        ge=0,
        description="How many units currently in stock",
    )

    warning_stock: int = Field(
        default=10,
        ge=0,
        description="Low-stock threshold used by admin dashboards",
    )

    images: list[str] = Field(
        default_factory=list,
        sa_column=Column(JSON),
    )

    status: str = Field(
        default=PRODUCT_STATUS_ACTIVE,
        index=True,
        description="active | inactive",
    )

    category_id: int | None = Field(
        default=None,
        foreign_key="categories.id",
        index=True,
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Creation timestamp (UTC)",
    )

    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )

    deleted_at: datetime | None = Field(
        default=None,
        description="Soft-delete timestamp (UTC)",
    )

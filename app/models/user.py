# app/models/user.py
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


class User(SQLModel, table=True):
    """
    Employee account for the points mall.

    Identity:
      - id: MUST match the "sub"/"id" claim of tokens issued by the
        auth service.

    Role:
      - "user" | "admin"

    Password hashes live with the auth service. The cart only needs
    identity and role.
    """

    __tablename__ = "users"

    id: int | None = Field(
        default=None,
        primary_key=True,
    )

    username: str = Field(
        max_length=50,
        unique=True,
        index=True,
    )

    email: str | None = Field(
        default=None,
        unique=True,
        index=True,
    )

    # Application role
    role: str = Field(
        default="user",
        index=True,
        description="Application role: user | admin",
    )

    points_balance: int = Field(
        default=0,
        ge=0,
        description="Redeemable points; only order creation debits it",
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Creation timestamp (UTC)",
    )

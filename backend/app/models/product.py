"""
TechGear Catalog Backend — Product SQLAlchemy Model
=====================================================

What:  ORM model representing the `products` table.
Who:   Used by ProductService for CRUD operations and by Alembic for schema management.

Table Design Rationale:
    - UUID primary key: opaque id assigned at creation, never guessable
    - title / description: bounded by the validators (200 / 2000 chars)
    - price: non-negative float, coerced from the request body
    - image: URL string, validated before insert
    - created_at / updated_at: UTC with timezone awareness

Index on title:
    GET /products?search= filters by case-insensitive title substring.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, Float, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Product(Base):
    """
    A catalog product.

    Lifecycle:
        1. Created by POST /products after auth + validation
        2. Replaced field-by-field by PUT /products/{id}
        3. Removed by DELETE /products/{id}
    """

    __tablename__ = "products"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    title: Mapped[str] = mapped_column(String(200), nullable=False)

    price: Mapped[float] = mapped_column(Float, nullable=False)

    description: Mapped[str] = mapped_column(Text, nullable=False)

    image: Mapped[str] = mapped_column(Text, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )

    __table_args__ = (
        Index("idx_products_title", "title"),
    )

    def __repr__(self) -> str:
        return f"<Product(id={self.id}, title='{self.title}', price={self.price})>"

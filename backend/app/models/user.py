"""
TechGear Catalog Backend — User SQLAlchemy Model
==================================================

What:  ORM model representing the `users` table.
Who:   Written by UserService.register(); read by AuthService on every
       authenticated request.

Invariants:
    - email is stored lowercase and carries a unique index, so uniqueness
      is case-insensitive at the storage layer as well as in the handler
    - password_hash is a bcrypt digest; plaintext is never stored or returned
    - role is a closed enumeration, so a typo cannot slip past the admin gate
"""

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, Enum, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class Role(str, enum.Enum):
    USER = "user"
    ADMIN = "admin"


class User(Base):
    """A registered customer or administrator."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)

    email: Mapped[str] = mapped_column(
        String(320),
        nullable=False,
        unique=True,
        index=True,
    )

    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    # Avatar URL derived from the name at registration
    image: Mapped[str] = mapped_column(String(500), nullable=False)

    role: Mapped[Role] = mapped_column(
        Enum(Role, name="user_role", values_callable=lambda roles: [r.value for r in roles]),
        nullable=False,
        default=Role.USER,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}', role='{self.role.value}')>"

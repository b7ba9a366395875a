"""
TechGear Catalog Backend — User & Identity Schemas
====================================================

What:  Registration input and the request-scoped authenticated identity.
"""

import uuid

from pydantic import BaseModel

from app.models.user import Role


class RegistrationInput(BaseModel):
    """Validated registration fields: trimmed name, lowercased email."""

    name: str
    email: str
    password: str


class AuthenticatedUser(BaseModel):
    """
    Identity attached to a request after authentication.

    Derived on every request from a verified token plus a fresh user lookup;
    never cached and never persisted.
    """

    id: uuid.UUID
    email: str
    role: Role

    model_config = {"frozen": True}

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN

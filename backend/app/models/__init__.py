"""
TechGear Catalog Backend — ORM Models
=======================================

Importing this package registers every table on Base.metadata, which is
what Alembic autogenerate and the test suite's create_all() rely on.
"""

from app.models.product import Product
from app.models.user import Role, User

__all__ = ["Product", "Role", "User"]

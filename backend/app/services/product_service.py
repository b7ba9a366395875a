"""
TechGear Catalog Backend — Product Service
============================================

What:  Catalog CRUD: list/search, get, create, update, delete.
Why:   Keeps storage details (queries, commits, error translation) out of
       route handlers.
How:   Every operation is one logical storage call run through
       DatabaseHandle.run() (query time ceiling) inside
       DatabaseHandle.storage_errors() (503 vs 500 translation).

Inputs reaching this layer are already validated: ids are UUIDs and bodies
are ProductInput instances.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import DatabaseHandle
from app.exceptions import NotFoundError
from app.models.product import Product
from app.schemas.product import ProductInput

logger = logging.getLogger(__name__)


def _escape_like(term: str) -> str:
    """Make user search text literal inside a LIKE pattern."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class ProductService:
    """Stateless; every call receives its session and database handle."""

    async def list_products(
        self,
        db: AsyncSession,
        handle: DatabaseHandle,
        search: Optional[str] = None,
    ) -> List[Product]:
        """
        All products, oldest first, optionally filtered by a
        case-insensitive substring of the title.
        """
        query = select(Product)
        if search and search.strip():
            pattern = f"%{_escape_like(search.strip())}%"
            query = query.where(Product.title.ilike(pattern, escape="\\"))
        query = query.order_by(Product.created_at, Product.id)

        async with handle.storage_errors():
            result = await handle.run(db.execute(query))
            return list(result.scalars().all())

    async def get_product(
        self, db: AsyncSession, handle: DatabaseHandle, product_id: uuid.UUID
    ) -> Product:
        """
        Raises:
            NotFoundError: No product with this id.
        """
        async with handle.storage_errors():
            product = await handle.run(db.get(Product, product_id))
        if product is None:
            raise NotFoundError(resource="product", resource_id=str(product_id))
        return product

    async def create_product(
        self, db: AsyncSession, handle: DatabaseHandle, data: ProductInput
    ) -> Product:
        product = Product(**data.model_dump())
        async with handle.storage_errors():
            db.add(product)
            await handle.run(db.commit())
        logger.info("Product created: %s", product.id)
        return product

    async def update_product(
        self,
        db: AsyncSession,
        handle: DatabaseHandle,
        product_id: uuid.UUID,
        data: ProductInput,
    ) -> Product:
        """
        Replace the product's fields with the validated input.

        Raises:
            NotFoundError: No product with this id.
        """
        product = await self.get_product(db, handle, product_id)
        for field, value in data.model_dump().items():
            setattr(product, field, value)
        product.updated_at = datetime.now(timezone.utc)

        async with handle.storage_errors():
            await handle.run(db.commit())
        logger.info("Product updated: %s", product_id)
        return product

    async def delete_product(
        self, db: AsyncSession, handle: DatabaseHandle, product_id: uuid.UUID
    ) -> None:
        """
        Raises:
            NotFoundError: No product with this id.
        """
        product = await self.get_product(db, handle, product_id)
        async with handle.storage_errors():
            await db.delete(product)
            await handle.run(db.commit())
        logger.info("Product deleted: %s", product_id)


product_service = ProductService()

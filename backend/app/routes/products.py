"""
TechGear Catalog Backend — Product Route Handlers
===================================================

What:  /products CRUD endpoints.
How:   Routes stay thin: the pipeline stages in app.routes.deps do rate
       limiting, authentication and validation; ProductService does storage.

Auth:
    GET endpoints are public. POST/PUT/DELETE require a bearer token and
    count against the product_write rate limit.
"""

import logging
import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import DatabaseHandle, get_db_handle, get_db_session
from app.routes.deps import (
    get_current_user,
    parse_product_id,
    product_payload,
    product_write_limit,
)
from app.schemas.common import ErrorResponse, MessageResponse
from app.schemas.product import ProductInput, ProductResponse
from app.schemas.user import AuthenticatedUser
from app.services.product_service import product_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/products", tags=["Products"])

_auth_errors = {
    401: {"description": "Missing, invalid or expired token", "model": ErrorResponse},
    429: {"description": "Rate limit exceeded", "model": ErrorResponse},
}
_storage_errors = {
    500: {"description": "Server error", "model": ErrorResponse},
    503: {"description": "Database unavailable", "model": ErrorResponse},
}


@router.get(
    "",
    response_model=List[ProductResponse],
    responses=_storage_errors,
    summary="List products",
)
async def list_products(
    search: Optional[str] = Query(
        default=None,
        description="Case-insensitive substring to match against product titles",
    ),
    db: AsyncSession = Depends(get_db_session),
    handle: DatabaseHandle = Depends(get_db_handle),
) -> List[ProductResponse]:
    products = await product_service.list_products(db, handle, search=search)
    return [ProductResponse.model_validate(p) for p in products]


@router.get(
    "/{product_id}",
    response_model=ProductResponse,
    responses={
        400: {"description": "Invalid product ID format", "model": ErrorResponse},
        404: {"description": "Product not found", "model": ErrorResponse},
        **_storage_errors,
    },
    summary="Get a single product by ID",
)
async def get_product(
    product_id: uuid.UUID = Depends(parse_product_id),
    db: AsyncSession = Depends(get_db_session),
    handle: DatabaseHandle = Depends(get_db_handle),
) -> ProductResponse:
    product = await product_service.get_product(db, handle, product_id)
    return ProductResponse.model_validate(product)


@router.post(
    "",
    status_code=201,
    response_model=ProductResponse,
    dependencies=[Depends(product_write_limit)],
    responses={
        400: {"description": "Invalid product fields", "model": ErrorResponse},
        **_auth_errors,
        **_storage_errors,
    },
    summary="Create a product",
)
async def create_product(
    user: AuthenticatedUser = Depends(get_current_user),
    data: ProductInput = Depends(product_payload),
    db: AsyncSession = Depends(get_db_session),
    handle: DatabaseHandle = Depends(get_db_handle),
) -> ProductResponse:
    product = await product_service.create_product(db, handle, data)
    logger.info("Product %s created by user %s", product.id, user.id)
    return ProductResponse.model_validate(product)


@router.put(
    "/{product_id}",
    response_model=ProductResponse,
    dependencies=[Depends(product_write_limit)],
    responses={
        400: {"description": "Invalid ID or product fields", "model": ErrorResponse},
        404: {"description": "Product not found", "model": ErrorResponse},
        **_auth_errors,
        **_storage_errors,
    },
    summary="Replace a product's fields",
)
async def update_product(
    user: AuthenticatedUser = Depends(get_current_user),
    product_id: uuid.UUID = Depends(parse_product_id),
    data: ProductInput = Depends(product_payload),
    db: AsyncSession = Depends(get_db_session),
    handle: DatabaseHandle = Depends(get_db_handle),
) -> ProductResponse:
    product = await product_service.update_product(db, handle, product_id, data)
    logger.info("Product %s updated by user %s", product_id, user.id)
    return ProductResponse.model_validate(product)


@router.delete(
    "/{product_id}",
    response_model=MessageResponse,
    dependencies=[Depends(product_write_limit)],
    responses={
        400: {"description": "Invalid product ID format", "model": ErrorResponse},
        404: {"description": "Product not found", "model": ErrorResponse},
        **_auth_errors,
        **_storage_errors,
    },
    summary="Delete a product",
)
async def delete_product(
    user: AuthenticatedUser = Depends(get_current_user),
    product_id: uuid.UUID = Depends(parse_product_id),
    db: AsyncSession = Depends(get_db_session),
    handle: DatabaseHandle = Depends(get_db_handle),
) -> MessageResponse:
    await product_service.delete_product(db, handle, product_id)
    logger.info("Product %s deleted by user %s", product_id, user.id)
    return MessageResponse(message="Product deleted successfully")

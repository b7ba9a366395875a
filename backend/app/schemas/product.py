"""
TechGear Catalog Backend — Product Schemas
============================================

What:  Pydantic models for product request normalization and responses.
Why:   Separate API contracts from ORM models; password-free, id-stable output.

Note:
    Request bodies are NOT parsed by FastAPI into these models directly.
    They are read as raw JSON and run through app.services.validation so
    that every failure is a 400 with a single readable message (FastAPI's
    automatic body validation would answer 422 with a list of errors).
"""

import uuid
from datetime import datetime

from pydantic import BaseModel, Field


class ProductInput(BaseModel):
    """Validated, normalized product fields ready to be persisted."""

    title: str = Field(max_length=200)
    price: float = Field(ge=0)
    description: str = Field(max_length=2000)
    image: str


class ProductResponse(BaseModel):
    """
    What:  Full representation of a catalog product.
    Who:   Returned by every /products endpoint that yields a product.
    """

    id: uuid.UUID = Field(description="Unique product identifier (UUID)")
    title: str
    price: float
    description: str
    image: str = Field(description="Product image URL")
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

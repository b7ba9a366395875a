"""
TechGear Catalog Backend — Request Pipeline Dependencies
==========================================================

What:  The named stages every mutating request passes through.
How:   Each stage is a FastAPI dependency that either returns a value for
       the next stage or raises a CatalogError, which short-circuits the
       request into an error response. FastAPI resolves a route's
       `dependencies=[...]` first and then its parameters in declaration
       order, so the order below is the order of the route signatures:

           product_write_limit / auth_limit   → 429
           get_current_user                   → 401 (503 if the lookup cannot run)
           parse_product_id                   → 400 "Invalid product ID format"
           product_payload / registration_payload → 400
           get_db_session (readiness gate)    → 503

Nothing before get_db_session touches the handler's storage session, so a
rejected request never causes a write.
"""

import uuid
from typing import Any, Optional

from fastapi import Depends, Header, Request

from app.database import DatabaseHandle, get_db_handle
from app.exceptions import ValidationError
from app.middleware.rate_limit import RouteRateLimit
from app.schemas.product import ProductInput
from app.schemas.user import AuthenticatedUser, RegistrationInput
from app.services.auth_service import AuthService, require_admin
from app.services.validation import validate_product, validate_registration

# ── Rate limit stages ─────────────────────────────────────────────────────
auth_limit = RouteRateLimit("auth")
product_write_limit = RouteRateLimit("product_write")


# ── Authentication stages ─────────────────────────────────────────────────
def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


async def get_current_user(
    authorization: Optional[str] = Header(default=None),
    auth_service: AuthService = Depends(get_auth_service),
    handle: DatabaseHandle = Depends(get_db_handle),
) -> AuthenticatedUser:
    return await auth_service.authenticate(handle, authorization)


async def get_current_admin(
    user: AuthenticatedUser = Depends(get_current_user),
) -> AuthenticatedUser:
    """Admin-only guard; compose onto any route that needs it."""
    return require_admin(user)


# ── Validation stages ─────────────────────────────────────────────────────
def parse_product_id(product_id: str) -> uuid.UUID:
    try:
        return uuid.UUID(product_id)
    except ValueError:
        raise ValidationError(message="Invalid product ID format", field="id")


async def _json_body(request: Request) -> Any:
    try:
        return await request.json()
    except ValueError:
        # JSONDecodeError, UnicodeDecodeError and the int digit limit
        raise ValidationError(message="Request body must be valid JSON")


async def product_payload(request: Request) -> ProductInput:
    return validate_product(await _json_body(request))


async def registration_payload(request: Request) -> RegistrationInput:
    return validate_registration(await _json_body(request))

"""
TechGear Catalog Backend — Registration Route
===============================================

What:  POST /register creates a user account.
Pipeline: auth rate limit → validation → duplicate check → hash → insert.

Passwords never leave this request: only the bcrypt digest is stored and
the response is a plain confirmation message.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import DatabaseHandle, get_db_handle, get_db_session
from app.routes.deps import auth_limit, get_auth_service, registration_payload
from app.schemas.common import ErrorResponse, MessageResponse
from app.schemas.user import RegistrationInput
from app.services.auth_service import AuthService
from app.services.user_service import user_service

router = APIRouter(tags=["Users"])


@router.post(
    "/register",
    status_code=201,
    response_model=MessageResponse,
    dependencies=[Depends(auth_limit)],
    responses={
        400: {"description": "Invalid fields or user already exists", "model": ErrorResponse},
        429: {"description": "Rate limit exceeded", "model": ErrorResponse},
        503: {"description": "Database unavailable", "model": ErrorResponse},
    },
    summary="Register a new user",
)
async def register(
    data: RegistrationInput = Depends(registration_payload),
    db: AsyncSession = Depends(get_db_session),
    handle: DatabaseHandle = Depends(get_db_handle),
    auth_service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    await user_service.register(db, handle, data, hash_password=auth_service.hash_password)
    return MessageResponse(message="User created successfully")

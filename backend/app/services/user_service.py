"""
TechGear Catalog Backend — User Service
=========================================

What:  User lookup and registration.
Who:   Called by the /register route and by AuthService on every
       authenticated request.

Registration Flow:
    validated input → email already taken? → hash password → insert → commit

    The pre-insert lookup returns a clean "User already exists" instead of a
    constraint violation. The unique index on users.email still backs it up:
    if two identical registrations race, the loser's IntegrityError is
    translated into the same ConflictError by DatabaseHandle.storage_errors().
"""

import logging
import uuid
from typing import Awaitable, Callable, Optional
from urllib.parse import quote_plus

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import DatabaseHandle
from app.exceptions import ConflictError
from app.models.user import Role, User
from app.schemas.user import RegistrationInput

logger = logging.getLogger(__name__)

AVATAR_URL_TEMPLATE = "https://ui-avatars.com/api/?name={name}&background=random"

DUPLICATE_USER_MESSAGE = "User already exists"


def avatar_url(name: str) -> str:
    return AVATAR_URL_TEMPLATE.format(name=quote_plus(name))


class UserService:
    """Stateless; every call receives its session and database handle."""

    async def get_by_id(
        self, db: AsyncSession, handle: DatabaseHandle, user_id: uuid.UUID
    ) -> Optional[User]:
        async with handle.storage_errors():
            return await handle.run(db.get(User, user_id))

    async def get_by_email(
        self, db: AsyncSession, handle: DatabaseHandle, email: str
    ) -> Optional[User]:
        """Emails are stored lowercase, so the lookup is case-insensitive."""
        async with handle.storage_errors():
            result = await handle.run(
                db.execute(select(User).where(User.email == email.strip().lower()))
            )
            return result.scalar_one_or_none()

    async def register(
        self,
        db: AsyncSession,
        handle: DatabaseHandle,
        data: RegistrationInput,
        hash_password: Callable[[str], Awaitable[str]],
    ) -> User:
        """
        Create a new user account.

        Args:
            data:           Output of validate_registration()
            hash_password:  Async one-way hasher (AuthService.hash_password)

        Raises:
            ConflictError: The email is already registered.
            ServiceUnavailableError / DatabaseError: Storage failures.
        """
        existing = await self.get_by_email(db, handle, data.email)
        if existing is not None:
            logger.info("Registration rejected: email already registered")
            raise ConflictError(message=DUPLICATE_USER_MESSAGE)

        user = User(
            name=data.name,
            email=data.email,
            password_hash=await hash_password(data.password),
            image=avatar_url(data.name),
            role=Role.USER,
        )

        async with handle.storage_errors(conflict_message=DUPLICATE_USER_MESSAGE):
            db.add(user)
            await handle.run(db.commit())

        logger.info("User registered: %s", user.id)
        return user


user_service = UserService()

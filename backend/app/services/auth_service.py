"""
TechGear Catalog Backend — Authentication Service
===================================================

What:  Bearer-token verification, identity resolution, admin gate, and
       password hashing.
Why:   Product mutations must come from a known, still-existing account.
How:   1. Parse `Authorization: Bearer <token>`
       2. Verify the HS256 signature and expiry with python-jose
       3. Re-fetch the user named by the token (`id` claim, else `sub`)
       4. Return an AuthenticatedUser {id, email, role}

Failure reasons are distinct so clients (and logs) can tell them apart:
    "Unauthorized: No token provided"         → header missing / not Bearer
    "Unauthorized: Invalid token"             → "Bearer " with nothing after it
    "Unauthorized: Invalid or expired token"  → signature, expiry, or claims
    "Unauthorized: User not found"            → account removed since issuance

Tokens are normally minted by the storefront's auth provider with the same
shared secret; create_access_token() produces compatible tokens.
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt
from passlib.context import CryptContext
from starlette.concurrency import run_in_threadpool

from app.config import Settings
from app.database import DatabaseHandle
from app.exceptions import ForbiddenError, UnauthorizedError
from app.models.user import Role
from app.schemas.user import AuthenticatedUser
from app.services.user_service import user_service

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


class AuthService:
    """
    Token and password operations bound to one application's settings.

    One instance lives on app.state.auth_service.
    """

    def __init__(self, settings: Settings):
        self.secret = settings.jwt_secret
        self.algorithm = settings.jwt_algorithm
        self.expire_minutes = settings.jwt_expire_minutes
        self.pwd_context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=settings.bcrypt_rounds,
        )

    # ── Passwords ─────────────────────────────────────────────────────────

    async def hash_password(self, password: str) -> str:
        """bcrypt is CPU-bound; keep it off the event loop."""
        return await run_in_threadpool(self.pwd_context.hash, password)

    # ── Tokens ────────────────────────────────────────────────────────────

    def create_access_token(
        self,
        user_id: uuid.UUID,
        email: str,
        role: Role = Role.USER,
        expires_delta: Optional[timedelta] = None,
    ) -> str:
        now = datetime.now(timezone.utc)
        expire = now + (expires_delta or timedelta(minutes=self.expire_minutes))
        payload = {
            "sub": str(user_id),
            "id": str(user_id),
            "email": email,
            "role": role.value,
            "iat": now,
            "exp": expire,
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def decode_token(self, token: str) -> Dict[str, Any]:
        """
        Verify signature and expiry.

        Raises:
            UnauthorizedError: Any verification failure, including a missing
                               server secret.
        """
        if not self.secret:
            logger.error("JWT_SECRET is not configured; rejecting bearer token")
            raise UnauthorizedError("Unauthorized: Invalid or expired token")
        try:
            return jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except JWTError as e:
            logger.info("Token verification failed: %s", type(e).__name__)
            raise UnauthorizedError("Unauthorized: Invalid or expired token")

    @staticmethod
    def extract_bearer_token(authorization: Optional[str]) -> str:
        if not authorization or not authorization.startswith(BEARER_PREFIX):
            raise UnauthorizedError("Unauthorized: No token provided")
        token = authorization[len(BEARER_PREFIX):].strip()
        if not token:
            raise UnauthorizedError("Unauthorized: Invalid token")
        return token

    # ── Request authentication ────────────────────────────────────────────

    async def authenticate(
        self,
        handle: DatabaseHandle,
        authorization: Optional[str],
    ) -> AuthenticatedUser:
        """
        Resolve the Authorization header into a fresh identity.

        Storage is only touched once the token itself has verified, so a
        missing or forged token is rejected even while the database is down.

        Args:
            handle:         Database handle used for the user lookup
            authorization:  Raw Authorization header value (may be None)

        Raises:
            UnauthorizedError: See module docstring for the reasons.
            ServiceUnavailableError: The user lookup could not reach storage.
        """
        token = self.extract_bearer_token(authorization)
        claims = self.decode_token(token)

        subject = claims.get("id") or claims.get("sub")
        try:
            user_id = uuid.UUID(str(subject))
        except (TypeError, ValueError):
            raise UnauthorizedError("Unauthorized: User not found")

        await handle.ensure_ready()
        async with handle.session() as db:
            user = await user_service.get_by_id(db, handle, user_id)
        if user is None:
            logger.info("Token subject %s no longer exists", user_id)
            raise UnauthorizedError("Unauthorized: User not found")

        return AuthenticatedUser(id=user.id, email=user.email, role=user.role)


def require_admin(user: AuthenticatedUser) -> AuthenticatedUser:
    """
    Admin gate, composed after authenticate().

    Raises:
        ForbiddenError: The identity is not an administrator.
    """
    if user.role is not Role.ADMIN:
        raise ForbiddenError("Forbidden: Admin access required")
    return user

"""
TechGear Catalog Backend — CORS Origin Policy
===============================================

What:  Decides which browser origins may call the API, and enforces it.
Why:   The storefront is deployed on several preview/production hosts; a
       static allow-list alone cannot describe them.
How:   CORSPolicy.is_allowed() is a pure decision function. An origin is
       allowed when ANY of these hold:
           1. No Origin header (curl, server-to-server, mobile clients)
           2. Listed in CORS_ORIGINS
           3. One of the local development origins
           4. An https origin whose host ends with CORS_TRUSTED_DOMAIN_SUFFIX
       OriginPolicyMiddleware plugs the policy into Starlette's
       CORSMiddleware (so preflight and response headers work as usual)
       and rejects requests from denied origins with 403.
"""

import logging
from typing import Iterable, Optional
from urllib.parse import urlsplit

from starlette.datastructures import Headers
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Receive, Scope, Send

from app.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)

DEV_ORIGINS = frozenset({
    "http://localhost:3000",
    "http://localhost:3001",
    "http://127.0.0.1:3000",
})


class CORSPolicy:
    """
    Origin allow-list with a trusted-domain suffix match.

    Args:
        allowed_origins:  Explicit origins (scheme://host[:port])
        trusted_suffix:   Host suffix such as ".vercel.app"; "" disables it
    """

    def __init__(self, allowed_origins: Iterable[str] = (), trusted_suffix: str = ""):
        self.allowed_origins = frozenset(o.rstrip("/") for o in allowed_origins if o)
        self.trusted_suffix = trusted_suffix.lower()

    def _matches_trusted_domain(self, origin: str) -> bool:
        if not self.trusted_suffix:
            return False
        try:
            parts = urlsplit(origin)
        except ValueError:
            return False
        host = (parts.hostname or "").lower()
        if parts.scheme != "https" or not host:
            return False
        suffix = self.trusted_suffix
        return host.endswith(suffix) or host == suffix.lstrip(".")

    def is_allowed(self, origin: Optional[str]) -> bool:
        """Return True if a request carrying this Origin header may proceed."""
        if origin is None:
            return True

        normalized = origin.rstrip("/")
        if (
            normalized in self.allowed_origins
            or normalized in DEV_ORIGINS
            or self._matches_trusted_domain(normalized)
        ):
            return True

        logger.warning("CORS blocked origin: %s", origin)
        return False


class OriginPolicyMiddleware(CORSMiddleware):
    """
    Starlette CORSMiddleware driven by a CORSPolicy.

    Allowed origins get the standard Access-Control-* headers (echoing the
    origin, with credentials). Denied origins are answered with 403 before
    any other processing.
    """

    def __init__(self, app: ASGIApp, policy: CORSPolicy):
        super().__init__(
            app,
            allow_origins=(),
            allow_credentials=True,
            allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
            allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
            expose_headers=["X-Request-ID", "Retry-After"],
        )
        self.policy = policy

    def is_allowed_origin(self, origin: str) -> bool:
        return self.policy.is_allowed(origin)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http":
            origin = Headers(scope=scope).get("origin")
            if origin is not None and not self.policy.is_allowed(origin):
                response = JSONResponse(
                    status_code=403,
                    content={
                        "error": "cors_forbidden",
                        "message": "Origin not allowed by CORS policy",
                        "request_id": request_id_var.get(""),
                    },
                )
                await response(scope, receive, send)
                return
        await super().__call__(scope, receive, send)

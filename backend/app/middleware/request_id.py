"""
TechGear Catalog Backend — Request ID Middleware
==================================================

What:  Assigns a correlation ID to each request and echoes it in X-Request-ID.
Why:   Error bodies carry the same ID, so a client report can be matched to
       the server log lines of that request.
How:   Reuses a client-supplied X-Request-ID or generates a short UUID, stores
       it in a ContextVar for loggers and exception handlers, and sets it on
       the response.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests on one event loop each see their own ID
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

# Upper bound on client-supplied IDs so logs cannot be flooded
MAX_REQUEST_ID_LENGTH = 64


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Outermost middleware: every response, including rejections, gets an ID."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        supplied = request.headers.get("X-Request-ID", "")
        rid = supplied[:MAX_REQUEST_ID_LENGTH] if supplied else str(uuid.uuid4())[:8]

        request_id_var.set(rid)
        request.state.request_id = rid

        response = await call_next(request)
        response.headers["X-Request-ID"] = rid
        return response

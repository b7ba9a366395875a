# Middleware package init
"""
TechGear Catalog Backend — Middleware Package
===============================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (outermost first):
    Request → [Request ID] → [Logging] → [CORS policy] → [General rate limit] → Router

    1. Request ID first: every response, even a 403 or 429, carries X-Request-ID
    2. Logging: records the final status of every request, rejections included
    3. CORS policy: unknown browser origins are refused before they cost a
       rate-limit slot or a database round-trip
    4. General rate limit: per-IP window shared by all routes

Route-specific stages (stricter rate limits, authentication, validation)
are FastAPI dependencies; see app.routes.deps.
"""

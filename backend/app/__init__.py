"""
TechGear Catalog Backend — Application Package Initializer
==========================================================

What: Marks the `app` directory as a Python package.
Why:  Enables module imports like `from app.config import settings`.
Who:  Used implicitly by Python's import system and explicitly by Alembic, pytest, and uvicorn.

Architecture Note:
    Every request travels through an ordered pipeline before it reaches storage:

    ┌─────────────────────────────────────┐
    │   CORS origin policy (middleware)   │  ← deny unknown browser origins
    ├─────────────────────────────────────┤
    │   General rate limit (middleware)   │  ← per-IP sliding window
    ├─────────────────────────────────────┤
    │   Route rate limit (dependency)     │  ← auth / product-write windows
    ├─────────────────────────────────────┤
    │   Authentication (dependency)       │  ← bearer token + user lookup
    ├─────────────────────────────────────┤
    │   Validation (dependency)           │  ← normalize request body
    ├─────────────────────────────────────┤
    │   Services + readiness gate         │  ← async SQLAlchemy
    └─────────────────────────────────────┘

    Each stage either hands a value to the next one or raises a CatalogError,
    which the global exception handlers turn into a JSON response.
"""

__version__ = "1.0.0"

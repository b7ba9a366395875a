# Services package init
"""
TechGear Catalog Backend — Services Layer
===========================================

Service Inventory:
    - validation:       pure product / registration validators
    - AuthService:      bearer-token verification, password hashing, admin gate
    - UserService:      user lookup and registration
    - ProductService:   catalog CRUD

Services receive their session and DatabaseHandle per call and hold no
per-request state, so they can be unit-tested with mocks.
"""

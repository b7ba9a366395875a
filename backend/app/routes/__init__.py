# Routes package init
"""
TechGear Catalog Backend — API Routes Package
===============================================

Route Inventory:
    - health.py:    GET  /                   (banner)
                    GET  /health             (database status)
    - products.py:  GET  /products           (list / search)
                    GET  /products/{id}      (detail)
                    POST /products           (create, bearer token)
                    PUT  /products/{id}      (update, bearer token)
                    DELETE /products/{id}    (delete, bearer token)
    - users.py:     POST /register           (create account)
    - deps.py:      pipeline stages shared by the routers

Routes stay thin: pipeline stages reject bad requests, services touch storage.
"""

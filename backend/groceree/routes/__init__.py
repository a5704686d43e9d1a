"""
Groceree Backend - API Routes Package
=======================================

Route Inventory:
    - auth.py:     POST /api/auth/register, POST /api/auth/login,
                   GET  /api/auth/check-username/{username}
    - users.py:    GET/PUT /api/users/{username},
                   POST    /api/users/{username}/image
    - recipes.py:  /api/recipes (CRUD, owner and favorite listings,
                   favorite toggle, recipe image)
    - images.py:   GET /images/{key}   (stored image download)
    - health.py:   GET /health

Routes stay thin: read the request, call a service, shape the response.
Errors are raised as GrocereeError subclasses and rendered by the handlers
registered in main.py.
"""

"""
Groceree Backend - Services Package

Business logic between the routers and the database. Each module exposes a
singleton (`auth_service`, `user_service`, `recipe_service`, `blob_store`)
whose methods take the request's AsyncSession as their first argument.
"""

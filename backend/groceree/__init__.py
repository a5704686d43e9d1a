"""
Groceree Backend - Application Package
========================================

What: Recipe-sharing API (accounts, recipes, favorites, images).
Who:  Imported by uvicorn (groceree.main:app), Alembic, and pytest.

Layering:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │    Services (auth, users, recipes)  │  ← Queries, ownership rules
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │   Database + Blob store (Storage)   │  ← Async sessions, image files
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"

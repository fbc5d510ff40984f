"""
Postbox Backend — Application Package Initializer
==================================================

What: Marks the `postbox` directory as a Python package.
Who:  Imported by uvicorn (`postbox.main:app`), Alembic and pytest.

Architecture Note:
    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← CRUD + back-reference upkeep
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    Routes translate HTTP into service calls, services own the rules that
    keep messages and their authors' message lists consistent, and the
    database layer owns the connection lifecycle.
"""

__version__ = "1.0.0"

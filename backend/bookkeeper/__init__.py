"""
Book Keeper Backend - Application Package
==========================================

What: Library-management REST backend: users, book catalog, book categories
      and the borrow/return ticket workflow.
Who:  Imported by uvicorn (`uvicorn bookkeeper.main:app`), Alembic and pytest.

Architecture Note:
    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │     Access Policy (dependencies)    │  ← who may call what
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← users, catalog, loan workflow
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    Routes never touch the ORM directly; services never see HTTP objects.
"""

__version__ = "1.0.0"

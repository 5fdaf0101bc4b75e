"""
ReadSync Backend — Application Package Initializer
===================================================

What: Auth and reading-progress sync API for document reader clients.
Who:  Imported by uvicorn (readsync.main:app), the Lambda adapter
      (readsync.handler.handler), Alembic and pytest.

Architecture Note:
    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← Auth rules, upsert/list semantics
    ├─────────────────────────────────────┤
    │  Models, Schemas, Identity client   │  ← SQLAlchemy ORM, Pydantic, httpx
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"

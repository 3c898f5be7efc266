"""
KNote Backend — Application Package Initializer
================================================

What: Marks the `knote` directory as a Python package.
Why:  Enables module imports like `from knote.config import settings`.
Who:  Used implicitly by Python's import system and explicitly by Alembic, pytest, and uvicorn.

Architecture Note:
    The backend keeps the same layered shape for every request:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← Publish/upload workflow, feed
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │  Database + Object Store (Storage)  │  ← Async SQLAlchemy, MinIO via boto3
    └─────────────────────────────────────┘

    Notes live in the database; images live in the object store. The two are
    linked only by the `![](/img/<key>)` reference inside a note's text.
"""

__version__ = "1.0.0"

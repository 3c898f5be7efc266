"""
KNote Backend — Note SQLAlchemy Model
======================================

What:  ORM model representing the `notes` table.
Why:   Maps Python objects to database rows for type-safe database operations.
How:   Inherits from SQLAlchemy's DeclarativeBase; Alembic reads this for migrations.
Who:   Used by SQLAlchemyNoteStore and by Alembic for schema management.

Table Design Rationale:
    - Integer primary key: assigned by the database on insert, so ascending id
      order is exactly insertion order. The feed is built by reversing it.
    - description: the rendered HTML of the note, never blank.
    - created_at: UTC with timezone; informational only, ordering uses id.
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, Integer, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from knote.database import Base


class Note(Base):
    """
    A published note.

    Lifecycle:
        1. Created by the publish action with its rendered HTML
        2. Never updated, never deleted by the service
    """

    __tablename__ = "notes"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
        comment="Store-assigned identifier, increasing in insertion order",
    )

    description: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Rendered HTML of the note's markup",
    )

    # Python-side default so the value is present on the instance right after
    # flush; an unloaded server default would need a lazy load.
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
        comment="When this note was created (UTC)",
    )

    def __repr__(self) -> str:
        return f"<Note(id={self.id}, created_at='{self.created_at}')>"

    def __str__(self) -> str:
        return self.description

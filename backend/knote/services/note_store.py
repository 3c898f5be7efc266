"""
KNote Backend — Note Store
===========================

What:  The two persistence operations the pipeline needs: create a note and
       list every note in insertion order.
Why:   The workflow depends on this contract, not on SQLAlchemy, so it can be
       unit-tested against an in-memory store.
How:   `SQLAlchemyNoteStore` wraps the per-request AsyncSession. Writes are
       flushed (the id is assigned) and committed by get_db_session.
"""

import logging
from abc import ABC, abstractmethod
from typing import List

from fastapi import Depends
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from knote.database import get_db_session
from knote.exceptions import DatabaseError
from knote.models.note import Note

logger = logging.getLogger(__name__)


class NoteStore(ABC):
    """Persistence contract for notes."""

    @abstractmethod
    async def create(self, description: str) -> Note:
        """Persist a new note and return it with its store-assigned id."""
        ...

    @abstractmethod
    async def find_all(self) -> List[Note]:
        """Every note, oldest first."""
        ...


class SQLAlchemyNoteStore(NoteStore):
    """NoteStore backed by the `notes` table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, description: str) -> Note:
        note = Note(description=description)
        try:
            self.db.add(note)
            await self.db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error creating note: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not save the note. Please try again.",
                context={"error_type": type(e).__name__},
            ) from e
        logger.info("Note %s created (%d chars)", note.id, len(description))
        return note

    async def find_all(self) -> List[Note]:
        try:
            result = await self.db.execute(select(Note).order_by(Note.id))
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Database error listing notes: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve notes. Please try again.",
                context={"error_type": type(e).__name__},
            ) from e


async def get_note_store(db: AsyncSession = Depends(get_db_session)) -> NoteStore:
    """FastAPI dependency: a NoteStore bound to the request's session."""
    return SQLAlchemyNoteStore(db)

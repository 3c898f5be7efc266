"""
KNote Backend — Note Service (Business Logic Orchestrator)
===========================================================

What:  Builds the feed and handles a note form submission end to end.
Why:   Keeps the publish/upload rules in one place, independent of HTTP.
How:   Composes MarkupRenderer, AttachmentService and a NoteStore.
Who:   Called by the routes in routes/notes.py.

Submission Flow (POST /note):
    ┌───────────┐   PUBLISH   ┌──────────┐   ┌────────────┐   ┌──────────┐
    │ NoteAction│────────────▶│  Render  │──▶│ NoteStore  │──▶│   Feed   │ + redirect
    │ (decided  │             └──────────┘   └────────────┘   └──────────┘
    │  at the   │   UPLOAD    ┌────────────────────┐          ┌──────────┐
    │  route)   │────────────▶│ AttachmentService  │─────────▶│   Feed   │ + draft
    └───────────┘             └────────────────────┘          └──────────┘
                    NONE ───────────────────────────────────▶ Feed (unchanged)

Design Decision:
    Like the stores it talks to, the workflow holds no per-request state. The
    NoteStore is passed in on every call, bound to that request's session.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from knote.models.note import Note
from knote.services.attachment_service import AttachmentService, attachment_service
from knote.services.markup import MarkupRenderer, markup_renderer
from knote.services.note_store import NoteStore

logger = logging.getLogger(__name__)

PUBLISH_MARKER = "Publish"
UPLOAD_MARKER = "Upload"


class NoteAction(str, Enum):
    """What a submission asks for. Decided once from the form's button markers."""

    PUBLISH = "publish"
    UPLOAD = "upload"
    NONE = "none"

    @classmethod
    def from_markers(cls, publish: Optional[str], upload: Optional[str]) -> "NoteAction":
        # Publish wins when both buttons' values are present
        if publish == PUBLISH_MARKER:
            return cls.PUBLISH
        if upload == UPLOAD_MARKER:
            return cls.UPLOAD
        return cls.NONE


@dataclass
class UploadedImage:
    filename: str
    content: bytes
    content_type: Optional[str] = None


@dataclass
class SubmissionResult:
    """
    Outcome of a submission.

    redirect=True tells the route to answer with a redirect to the index, so
    refreshing the page does not publish the same note twice.
    """

    feed: List[Note] = field(default_factory=list)
    draft: str = ""
    redirect: bool = False


class NoteFeedAssembler:
    """Reads the full feed, most recent note first. No caching, no paging."""

    async def list_all(self, store: NoteStore) -> List[Note]:
        notes = await store.find_all()
        notes.reverse()
        return notes


class NotePublicationWorkflow:
    """
    Business logic for the single note form.

    Error Handling Strategy:
        Attachment errors (StorageUnavailableError, UploadFailedError) and
        DatabaseError propagate unchanged to the global handlers. A blank
        description is not an error: nothing is stored.
    """

    def __init__(
        self,
        renderer: MarkupRenderer,
        attachments: AttachmentService,
        feed: Optional[NoteFeedAssembler] = None,
    ):
        self.renderer = renderer
        self.attachments = attachments
        self.feed = feed or NoteFeedAssembler()

    async def publish(self, store: NoteStore, description: str) -> Optional[Note]:
        """Render and persist `description`; returns None when it renders blank."""
        rendered = self.renderer.render(description).strip()
        if not rendered:
            logger.debug("Blank note discarded")
            return None
        return await store.create(rendered)

    async def submit(
        self,
        store: NoteStore,
        action: NoteAction,
        description: str,
        image: Optional[UploadedImage] = None,
    ) -> SubmissionResult:
        """
        Apply one submission and return the refreshed feed.

        PUBLISH: persist the rendered note, clear the draft, redirect.
        UPLOAD:  store the image, append its reference to the draft.
        NONE (or UPLOAD without a file): return the feed, draft untouched.
        """
        draft = description or ""

        if action is NoteAction.PUBLISH:
            await self.publish(store, draft)
            return SubmissionResult(
                feed=await self.feed.list_all(store),
                draft="",
                redirect=True,
            )

        if action is NoteAction.UPLOAD and image is not None and image.filename:
            reference = await self.attachments.store(
                image.content,
                image.filename,
                image.content_type,
            )
            draft = f"{draft} {reference}"

        return SubmissionResult(feed=await self.feed.list_all(store), draft=draft)


# ── Singleton Instances ───────────────────────────────────────────────────
feed_assembler = NoteFeedAssembler()
publication_workflow = NotePublicationWorkflow(
    renderer=markup_renderer,
    attachments=attachment_service,
    feed=feed_assembler,
)


def get_feed_assembler() -> NoteFeedAssembler:
    return feed_assembler


def get_publication_workflow() -> NotePublicationWorkflow:
    return publication_workflow

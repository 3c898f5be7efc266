"""
KNote Backend — Notes Route Handlers
=====================================

What:  GET / (feed + empty draft) and POST /note (publish or upload).
How:   Turns the form's button markers into a NoteAction once, then delegates
       to NotePublicationWorkflow.

Post/Redirect/Get:
    A publish answers 303 See Other → GET /, so reloading the page after
    publishing repeats the harmless GET instead of the POST.
"""

import logging
from typing import Optional, Union

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import RedirectResponse

from knote.schemas.note import ErrorResponse, FeedPage, NoteResponse
from knote.services.note_service import (
    NoteAction,
    NoteFeedAssembler,
    NotePublicationWorkflow,
    UploadedImage,
    get_feed_assembler,
    get_publication_workflow,
)
from knote.services.note_store import NoteStore, get_note_store

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Notes"])


@router.get(
    "/",
    response_model=FeedPage,
    summary="List all notes, most recent first",
)
async def index(
    store: NoteStore = Depends(get_note_store),
    feed: NoteFeedAssembler = Depends(get_feed_assembler),
) -> FeedPage:
    notes = await feed.list_all(store)
    return FeedPage(
        notes=[NoteResponse.model_validate(note) for note in notes],
        description="",
    )


@router.post(
    "/note",
    response_model=FeedPage,
    responses={
        200: {"description": "Feed with the current draft", "model": FeedPage},
        303: {"description": "Note published; follow the redirect to the feed"},
        400: {"description": "Image too large", "model": ErrorResponse},
        502: {"description": "Image upload failed", "model": ErrorResponse},
        503: {"description": "Image storage unavailable", "model": ErrorResponse},
    },
    summary="Publish a note or attach an image to the draft",
)
async def submit_note(
    description: str = Form(default="", description="Raw markup typed by the user"),
    image: Optional[UploadFile] = File(default=None, description="Image to attach"),
    publish: Optional[str] = Form(default=None, description='"Publish" to publish the draft'),
    upload: Optional[str] = Form(default=None, description='"Upload" to attach the image'),
    store: NoteStore = Depends(get_note_store),
    workflow: NotePublicationWorkflow = Depends(get_publication_workflow),
) -> Union[FeedPage, RedirectResponse]:
    """
    Handle the note form.

    Exactly one action is honored per submission; Publish takes precedence
    over Upload. An Upload without a file is a no-op.
    """
    action = NoteAction.from_markers(publish, upload)

    uploaded = None
    if action is NoteAction.UPLOAD and image is not None:
        try:
            # One byte past the limit is enough for validate_size to reject it
            uploaded = UploadedImage(
                filename=image.filename or "",
                content=await image.read(workflow.attachments.max_size + 1),
                content_type=image.content_type,
            )
        finally:
            await image.close()

    logger.info(
        "Note submission: action=%s, draft=%d chars, image=%s",
        action.value,
        len(description),
        uploaded.filename if uploaded else "none",
    )

    result = await workflow.submit(store, action, description, uploaded)

    if result.redirect:
        return RedirectResponse(url="/", status_code=303)

    return FeedPage(
        notes=[NoteResponse.model_validate(note) for note in result.feed],
        description=result.draft,
    )

"""
KNote Backend — Image Route Handler
====================================

What:  GET /img/{key} serves an uploaded image from the object store.
Who:   Requested by <img src="/img/<key>"> tags inside rendered notes.

Errors (global handlers):
    404  no object under that key
    503  object store not connected (degraded mode)
    502  object store failed
"""

import logging
import mimetypes

from fastapi import APIRouter, Depends, Response

from knote.schemas.note import ErrorResponse
from knote.services.attachment_service import AttachmentService, get_attachment_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Images"])

DEFAULT_IMAGE_TYPE = "image/png"


@router.get(
    "/img/{key}",
    responses={
        200: {"description": "Raw image bytes", "content": {"image/*": {}}},
        404: {"description": "Image not found", "model": ErrorResponse},
        503: {"description": "Image storage unavailable", "model": ErrorResponse},
    },
    summary="Serve an uploaded image",
)
async def get_image(
    key: str,
    attachments: AttachmentService = Depends(get_attachment_service),
) -> Response:
    content = await attachments.retrieve(key)
    media_type, _ = mimetypes.guess_type(key)
    return Response(
        content=content,
        media_type=media_type or DEFAULT_IMAGE_TYPE,
        # Keys are never reused, so the bytes behind one never change
        headers={"Cache-Control": "public, max-age=86400"},
    )

"""
KNote Backend — Attachment Service
===================================

What:  Stores uploaded images in the object store and reads them back.
Why:   Images are not notes: an upload only produces a markup reference
       (`![](/img/<key>)`) that the user keeps editing until they publish.
How:   Generates `<uuid4>.<extension>` keys, writes through the StorageHandle
       client in a worker thread (boto3 is blocking).
Who:   Called by NotePublicationWorkflow (store) and GET /img/{key} (retrieve).

Key policy:
    The extension is taken from the last dot of the filename's final path
    segment: "my.photo.png" → "png". A filename without a dot (or ending in
    one) yields a bare token with no extension. The token carries the
    uniqueness; two keys colliding would overwrite silently.

Known inconsistency window:
    An image uploaded but never published stays in the bucket with nothing
    referencing it. There is no cross-store transaction and no cleanup job.
"""

import asyncio
import logging
import uuid
from typing import Optional

from knote.config import settings
from knote.exceptions import ObjectStoreError, UploadFailedError, ValidationError
from knote.services.storage_bootstrap import StorageHandle, storage_handle

logger = logging.getLogger(__name__)

IMAGE_URL_PREFIX = "/img/"
DEFAULT_CONTENT_TYPE = "application/octet-stream"


def extract_extension(filename: str) -> str:
    """
    Return the extension of `filename` without the dot, or "" if it has none.

    Examples:
        "photo.png"      → "png"
        "my.photo.png"   → "png"
        "archive"        → ""
        "uploads/a.b/c"  → ""
    """
    name = filename.replace("\\", "/").rsplit("/", 1)[-1]
    if "." not in name:
        return ""
    return name.rsplit(".", 1)[1]


def generate_key(filename: str) -> str:
    """Build a fresh object key `<uuid4>[.<extension>]` for an upload."""
    token = str(uuid.uuid4())
    extension = extract_extension(filename)
    return f"{token}.{extension}" if extension else token


def image_reference(key: str) -> str:
    """Markup that embeds a stored image: `![](/img/<key>)`."""
    return f"![]({IMAGE_URL_PREFIX}{key})"


class AttachmentService:
    """Writes and reads image blobs in the configured bucket."""

    def __init__(self, handle: StorageHandle, max_size: Optional[int] = None):
        self.handle = handle
        self.max_size = max_size or settings.max_image_size

    def validate_size(self, size: int) -> None:
        """
        Reject images over the configured maximum.

        Raises:
            ValidationError with the limit in MB, field="image"
        """
        if size > self.max_size:
            max_mb = self.max_size / (1024 * 1024)
            raise ValidationError(
                message=f"Image exceeds maximum of {max_mb:.0f}MB. Please upload a smaller image.",
                field="image",
                context={"max_size": self.max_size, "actual_size": size},
            )

    async def store(
        self,
        content: bytes,
        original_filename: str,
        content_type: Optional[str] = None,
    ) -> str:
        """
        Upload an image and return the markup reference to append to the draft.

        Raises:
            ValidationError: the image is larger than max_size
            StorageUnavailableError: the object store never connected
            UploadFailedError: the write failed (not retried)
        """
        self.validate_size(len(content))
        client = self.handle.client
        key = generate_key(original_filename)

        try:
            await asyncio.to_thread(
                client.put_object,
                self.handle.bucket,
                key,
                content,
                content_type or DEFAULT_CONTENT_TYPE,
            )
        except ObjectStoreError as e:
            logger.error("Upload of %s failed: %s | Context: %s", key, e.message, e.context)
            raise UploadFailedError(context={"key": key, **e.context}) from e

        logger.info("Image stored: %s (%d bytes)", key, len(content))
        return image_reference(key)

    async def retrieve(self, key: str) -> bytes:
        """
        Read an image's bytes.

        Raises:
            NotFoundError: no object under `key`
            StorageUnavailableError: the object store never connected
            ObjectStoreError: any other store failure
        """
        client = self.handle.client
        return await asyncio.to_thread(client.get_object, self.handle.bucket, key)


# ── Singleton Instance ────────────────────────────────────────────────────
attachment_service = AttachmentService(storage_handle)


def get_attachment_service() -> AttachmentService:
    """FastAPI dependency returning the process-wide AttachmentService."""
    return attachment_service

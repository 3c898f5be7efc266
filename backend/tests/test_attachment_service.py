"""
KNote Backend — Attachment Service Unit Tests
==============================================

What:  Tests for image key generation, upload and retrieval.
Why:   Every key must be unique and keep the extension; every failure must
       surface as the right error instead of a half-written draft.
How:   In-memory FakeObjectStore behind a StorageHandle in a fixed state.

What we test:
    ✅ Extension extraction (last dot, no dot, dotted directories)
    ✅ Key format `<uuid4>[.ext]` and uniqueness
    ✅ Store → retrieve returns the same bytes
    ✅ Size limit, degraded mode, failed writes and missing keys
"""

import re
import uuid

import pytest

from knote.exceptions import (
    NotFoundError,
    StorageUnavailableError,
    UploadFailedError,
    ValidationError,
)
from knote.services.attachment_service import (
    DEFAULT_CONTENT_TYPE,
    AttachmentService,
    extract_extension,
    generate_key,
    image_reference,
)

REFERENCE_PATTERN = re.compile(r"^!\[\]\(/img/([^)]+)\)$")


def _key_from(reference: str) -> str:
    match = REFERENCE_PATTERN.match(reference)
    assert match, f"not an image reference: {reference!r}"
    return match.group(1)


class TestKeyGeneration:
    """Tests for the key policy."""

    @pytest.mark.parametrize(
        "filename,expected",
        [
            ("photo.png", "png"),
            ("my.photo.png", "png"),
            ("archive", ""),
            ("trailing.", ""),
            ("uploads/a.b/c", ""),
            ("C:\\pics\\cat.JPG", "JPG"),
        ],
    )
    def test_extract_extension(self, filename, expected):
        assert extract_extension(filename) == expected

    def test_key_is_uuid_with_extension(self):
        key = generate_key("cat.png")
        token, extension = key.rsplit(".", 1)
        assert extension == "png"
        assert uuid.UUID(token).version == 4

    def test_key_without_extension_is_bare_uuid(self):
        key = generate_key("README")
        assert "." not in key
        assert uuid.UUID(key).version == 4

    def test_keys_are_unique(self):
        keys = {generate_key("same.png") for _ in range(200)}
        assert len(keys) == 200

    def test_image_reference_markup(self):
        assert image_reference("abc.png") == "![](/img/abc.png)"


class TestAttachmentStore:
    """Tests for writing images."""

    @pytest.mark.asyncio
    async def test_store_returns_reference_and_writes_object(
        self, attachment_service, fake_object_store, sample_png_bytes
    ):
        reference = await attachment_service.store(sample_png_bytes, "cat.png", "image/png")

        key = _key_from(reference)
        assert key.endswith(".png")
        assert fake_object_store.objects[("test-bucket", key)] == (sample_png_bytes, "image/png")

    @pytest.mark.asyncio
    async def test_store_defaults_content_type(self, attachment_service, fake_object_store):
        reference = await attachment_service.store(b"data", "blob")

        key = _key_from(reference)
        assert fake_object_store.objects[("test-bucket", key)][1] == DEFAULT_CONTENT_TYPE

    @pytest.mark.asyncio
    async def test_same_filename_twice_gives_two_objects(
        self, attachment_service, fake_object_store
    ):
        first = await attachment_service.store(b"one", "cat.png")
        second = await attachment_service.store(b"two", "cat.png")

        assert first != second
        assert len(fake_object_store.objects) == 2

    @pytest.mark.asyncio
    async def test_store_when_unavailable_raises(self, unavailable_handle):
        service = AttachmentService(unavailable_handle)

        with pytest.raises(StorageUnavailableError):
            await service.store(b"data", "cat.png")

    @pytest.mark.asyncio
    async def test_failed_write_raises_upload_failed(
        self, attachment_service, fake_object_store
    ):
        fake_object_store.fail_puts = True

        with pytest.raises(UploadFailedError) as exc_info:
            await attachment_service.store(b"data", "cat.png")

        assert exc_info.value.context["key"].endswith(".png")
        assert fake_object_store.objects == {}


class TestAttachmentSize:
    """Tests for the upload size limit."""

    def test_default_limit_comes_from_settings(self, connected_handle):
        assert AttachmentService(connected_handle).max_size == 10_485_760

    @pytest.mark.asyncio
    async def test_image_at_limit_is_stored(self, connected_handle, fake_object_store):
        service = AttachmentService(connected_handle, max_size=1024)

        await service.store(b"x" * 1024, "cat.png")

        assert len(fake_object_store.objects) == 1

    @pytest.mark.asyncio
    async def test_oversized_image_is_rejected_before_writing(
        self, connected_handle, fake_object_store
    ):
        service = AttachmentService(connected_handle, max_size=1024)

        with pytest.raises(ValidationError) as exc_info:
            await service.store(b"x" * 1025, "cat.png")

        assert exc_info.value.context == {
            "field": "image",
            "max_size": 1024,
            "actual_size": 1025,
        }
        assert fake_object_store.objects == {}

    @pytest.mark.asyncio
    async def test_size_is_checked_even_when_unavailable(self, unavailable_handle):
        service = AttachmentService(unavailable_handle, max_size=1024)

        with pytest.raises(ValidationError):
            await service.store(b"x" * 2048, "cat.png")


class TestAttachmentRetrieve:
    """Tests for reading images back."""

    @pytest.mark.asyncio
    async def test_round_trip(self, attachment_service, sample_png_bytes):
        key = _key_from(await attachment_service.store(sample_png_bytes, "cat.png"))

        assert await attachment_service.retrieve(key) == sample_png_bytes

    @pytest.mark.asyncio
    async def test_missing_key_raises_not_found(self, attachment_service):
        with pytest.raises(NotFoundError) as exc_info:
            await attachment_service.retrieve("does-not-exist.png")

        assert exc_info.value.context["resource"] == "image"

    @pytest.mark.asyncio
    async def test_retrieve_when_unavailable_raises(self, unavailable_handle):
        service = AttachmentService(unavailable_handle)

        with pytest.raises(StorageUnavailableError):
            await service.retrieve("cat.png")

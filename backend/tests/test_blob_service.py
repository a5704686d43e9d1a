"""
Groceree Backend - Blob Store Unit Tests
==========================================

What we test:
    ✅ Image validation: declared type, file signature, empty files, size limit
    ✅ Oversized uploads rejected from their reported size alone
    ✅ Key and URL helpers
    ✅ Keys cannot escape the storage root
    ✅ put / exists / best-effort delete
"""

import re
from unittest.mock import patch

import magic
import pytest

from groceree.config import settings
from groceree.exceptions import BlobStorageError, ValidationError
from groceree.services.blob_service import BlobStore, blob_store

PNG_BYTES = (
    b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01"
    b"\x08\x02\x00\x00\x00\x90wS\xde"
)
GIF_BYTES = b"GIF89a\x01\x00\x01\x00\x00\x00\x00;"


class TestValidateImage:

    def setup_method(self):
        self.store = blob_store

    @pytest.mark.parametrize(
        "content_type, payload, extension",
        [
            ("image/png", PNG_BYTES, ".png"),
            ("image/gif", GIF_BYTES, ".gif"),
            ("IMAGE/PNG; charset=binary", PNG_BYTES, ".png"),
        ],
    )
    def test_allowed_types(self, content_type, payload, extension):
        assert self.store.validate_image(content_type, payload) == extension

    def test_jpeg(self, sample_image_bytes):
        assert self.store.validate_image("image/jpeg", sample_image_bytes) == ".jpg"

    @pytest.mark.parametrize("content_type", ["image/webp", "application/pdf", "", None])
    def test_rejected_declared_types(self, content_type):
        with pytest.raises(ValidationError, match="Invalid image type"):
            self.store.validate_image(content_type, PNG_BYTES)

    @pytest.mark.parametrize(
        "payload",
        [b"just some text, not a picture", b"%PDF-1.4\n%\xe2\xe3\xcf\xd3\n", b"<svg></svg>"],
    )
    def test_content_must_be_an_allowed_image(self, payload):
        with pytest.raises(ValidationError, match="Invalid image type") as exc_info:
            self.store.validate_image("image/png", payload)

        assert exc_info.value.context["detected_type"] != "image/png"

    def test_extension_follows_detected_type(self, sample_image_bytes):
        assert self.store.validate_image("image/png", sample_image_bytes) == ".jpg"

    def test_empty_file(self):
        with pytest.raises(ValidationError, match="No image provided"):
            self.store.validate_image("image/png", b"")

    def test_size_limit_is_inclusive(self):
        at_limit = GIF_BYTES + b"\x00" * (settings.max_image_size - len(GIF_BYTES))

        assert self.store.validate_image("image/gif", at_limit) == ".gif"
        with pytest.raises(ValidationError, match="Maximum size is 5MB"):
            self.store.validate_image("image/gif", at_limit + b"\x00")

    def test_detection_failure_is_a_storage_error(self):
        with patch(
            "groceree.services.blob_service.magic.from_buffer",
            side_effect=magic.MagicException("libmagic unavailable"),
        ):
            with pytest.raises(BlobStorageError, match="Could not verify image type"):
                self.store.validate_image("image/png", PNG_BYTES)


class TestReportedSize:

    def test_unknown_or_small_size_passes(self):
        blob_store.check_reported_size(None)
        blob_store.check_reported_size(settings.max_image_size)

    def test_oversized_report_is_rejected(self):
        with pytest.raises(ValidationError, match="Maximum size is 5MB"):
            blob_store.check_reported_size(settings.max_image_size + 1)


class TestKeys:

    def test_make_key(self):
        key = BlobStore.make_key("recipes", "abc", ".png")

        assert re.fullmatch(r"recipes/abc-\d{13}\.png", key)

    def test_url_round_trip(self):
        assert BlobStore.url_for("users/alice-1.jpg") == "/images/users/alice-1.jpg"
        assert BlobStore.key_from_url("/images/users/alice-1.jpg") == "users/alice-1.jpg"

    @pytest.mark.parametrize("url", ["", "/images/", "https://cdn.example.com/a.jpg"])
    def test_foreign_urls_have_no_key(self, url):
        assert BlobStore.key_from_url(url) is None

    def test_traversal_is_rejected(self, temp_storage):
        store = BlobStore(storage_root=temp_storage)

        with pytest.raises(ValidationError, match="Invalid image key"):
            store.path_for("../../etc/passwd")


class TestStorage:

    @pytest.mark.asyncio
    async def test_put_and_delete(self, temp_storage, sample_image_bytes):
        store = BlobStore(storage_root=temp_storage)

        await store.put("users/alice-1.jpg", sample_image_bytes)

        assert store.exists("users/alice-1.jpg")
        assert store.path_for("users/alice-1.jpg").read_bytes() == sample_image_bytes
        assert await store.delete("users/alice-1.jpg") is True
        assert await store.delete("users/alice-1.jpg") is False
        assert not store.exists("users/alice-1.jpg")

    @pytest.mark.asyncio
    async def test_delete_url(self, temp_storage):
        store = BlobStore(storage_root=temp_storage)
        await store.put("recipes/r-1.gif", b"GIF89a")

        assert await store.delete_url("") is False
        assert await store.delete_url("/images/recipes/r-1.gif") is True

    @pytest.mark.asyncio
    async def test_delete_never_raises_on_bad_key(self, temp_storage):
        store = BlobStore(storage_root=temp_storage)

        assert await store.delete("../outside.jpg") is False

    @pytest.mark.asyncio
    async def test_put_failure_is_wrapped(self, temp_storage):
        store = BlobStore(storage_root=temp_storage)
        # A regular file where the "users" directory should be
        (store.storage_root / "users").write_bytes(b"")

        with pytest.raises(BlobStorageError):
            await store.put("users/alice-1.jpg", b"data")

    def test_is_available(self, tmp_path):
        store = BlobStore(storage_root=str(tmp_path / "blobs"))

        assert store.is_available() is True
        store.storage_root.rmdir()
        assert store.is_available() is False

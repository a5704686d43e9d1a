"""
Groceree Backend - Image Blob Store
=====================================

What:  Validates uploaded images and stores them under a key on disk.
How:   Keys look like `users/<username>-<epoch_ms>.png` or
       `recipes/<recipe_id>-<epoch_ms>.jpg` and map to files below
       STORAGE_ROOT. Public URLs are `/images/<key>`.
Who:   Called by the user and recipe services on image upload and recipe
       deletion; the images route resolves keys for download.

Validation (in order):
    1. Reported size is checked before the body is read (check_reported_size)
    2. Declared content type must be image/jpeg, image/png or image/gif
    3. File must be non-empty and at most MAX_IMAGE_SIZE bytes (5MB)
    4. libmagic must recognize the bytes as one of those same types; the
       stored extension follows the detected type, not the declared one

Deletion is best-effort: a blob that cannot be removed is logged and
otherwise ignored, so a stale image never fails a user's request.
"""

import logging
import time
from pathlib import Path
from typing import Optional

import aiofiles
import magic

from groceree.config import settings
from groceree.exceptions import BlobStorageError, ValidationError

logger = logging.getLogger(__name__)

# ── Allowed Image Types ───────────────────────────────────────────────────
ALLOWED_CONTENT_TYPES = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
}

IMAGE_URL_PREFIX = "/images/"


class BlobStore:
    """
    Local-disk blob store for user and recipe images.

    Directory Structure:
        storage/
        ├── users/
        │   └── alice-1700000000000.png
        └── recipes/
            └── 2b1e...-1700000000000.jpg
    """

    def __init__(self, storage_root: Optional[str] = None):
        """
        Args:
            storage_root: Override the default storage path (used in tests).
                          If None, uses settings.storage_root.
        """
        self.storage_root = Path(storage_root or settings.storage_root).resolve()
        self.storage_root.mkdir(parents=True, exist_ok=True)
        logger.info("BlobStore initialized with storage_root=%s", self.storage_root)

    # ── Validation ────────────────────────────────────────────────────────

    def check_reported_size(self, size: Optional[int]) -> None:
        """
        Reject an upload whose reported size is already over the limit,
        before its body is read into memory. An unknown size passes; the
        length of the read content is checked again by validate_image.
        """
        if size is not None and size > settings.max_image_size:
            raise self._too_large(size)

    def validate_image(self, content_type: Optional[str], content: bytes) -> str:
        """
        Check an upload's declared content type, size and actual file signature.

        Returns:
            The file extension for the detected type (".jpg", ".png", ".gif").

        Raises:
            ValidationError for an unsupported type, an empty file, a file
            above the configured maximum, or bytes that are not one of the
            allowed image formats.
            BlobStorageError if libmagic fails to inspect the content.
        """
        mime = (content_type or "").split(";")[0].strip().lower()
        if mime not in ALLOWED_CONTENT_TYPES:
            raise self._invalid_type(content_type)

        if len(content) == 0:
            raise ValidationError(message="No image provided", field="image")

        if len(content) > settings.max_image_size:
            raise self._too_large(len(content))

        try:
            detected = magic.from_buffer(content, mime=True)
        except magic.MagicException as e:
            logger.error("MIME type detection failed: %s", str(e))
            raise BlobStorageError(
                message="Could not verify image type. Please try again.",
                cause=e,
            )

        if detected not in ALLOWED_CONTENT_TYPES:
            logger.warning("Upload declared %s but content is %s", mime, detected)
            raise self._invalid_type(content_type, detected=detected)

        return ALLOWED_CONTENT_TYPES[detected]

    @staticmethod
    def _invalid_type(content_type: Optional[str], detected: Optional[str] = None) -> ValidationError:
        context = {"content_type": content_type}
        if detected:
            context["detected_type"] = detected
        return ValidationError(
            message="Invalid image type. Allowed types: JPG, PNG, GIF",
            field="image",
            context=context,
        )

    @staticmethod
    def _too_large(size: int) -> ValidationError:
        max_mb = settings.max_image_size / (1024 * 1024)
        return ValidationError(
            message=f"Image too large. Maximum size is {max_mb:.0f}MB",
            field="image",
            context={"size": size, "max_size": settings.max_image_size},
        )

    # ── Keys and URLs ─────────────────────────────────────────────────────

    @staticmethod
    def make_key(prefix: str, name: str, extension: str) -> str:
        """Build `<prefix>/<name>-<epoch_ms><extension>`."""
        return f"{prefix}/{name}-{int(time.time() * 1000)}{extension}"

    @staticmethod
    def url_for(key: str) -> str:
        return f"{IMAGE_URL_PREFIX}{key}"

    @staticmethod
    def key_from_url(url: str) -> Optional[str]:
        """Inverse of url_for. None for "" or URLs this store did not issue."""
        if not url or not url.startswith(IMAGE_URL_PREFIX):
            return None
        return url[len(IMAGE_URL_PREFIX):] or None

    def path_for(self, key: str) -> Path:
        """
        Resolve a key to a path inside the storage root.

        Raises:
            ValidationError if the key escapes the storage root
            (e.g. "../../etc/passwd").
        """
        path = (self.storage_root / key).resolve()
        if not path.is_relative_to(self.storage_root):
            raise ValidationError(message="Invalid image key", context={"key": key})
        return path

    # ── Operations ────────────────────────────────────────────────────────

    async def put(self, key: str, content: bytes) -> None:
        """
        Write a blob.

        Raises:
            BlobStorageError if the directory or file cannot be written.
        """
        path = self.path_for(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(path, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to store blob %s: %s", key, str(e))
            raise BlobStorageError(context={"key": key}, cause=e)

        logger.info("Blob stored: %s (%d bytes)", key, len(content))

    def exists(self, key: str) -> bool:
        return self.path_for(key).is_file()

    async def delete(self, key: str) -> bool:
        """
        Remove a blob, best-effort.

        Returns True if a file was removed. Never raises: failures are
        logged at WARNING.
        """
        try:
            path = self.path_for(key)
            if not path.is_file():
                logger.debug("Blob already gone: %s", key)
                return False
            path.unlink()
            logger.info("Blob deleted: %s", key)
            return True
        except (OSError, ValidationError) as e:
            logger.warning("Failed to delete blob %s: %s", key, str(e))
            return False

    async def delete_url(self, url: str) -> bool:
        """Best-effort delete of the blob behind an `/images/...` URL."""
        key = self.key_from_url(url)
        if key is None:
            return False
        return await self.delete(key)

    def is_available(self) -> bool:
        """Health probe: the storage root exists and is a directory."""
        return self.storage_root.is_dir()


# ── Singleton Instance ────────────────────────────────────────────────────
blob_store = BlobStore()

from __future__ import annotations

import logging
import os
import uuid
from dataclasses import dataclass
from typing import Optional

from inventory_api.core.errors import ValidationError


logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = {"image/jpeg", "image/jpg", "image/png", "image/gif", "image/webp"}
ALLOWED_IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp"}


class BlobStoreError(Exception):
    pass


@dataclass
class ImageUpload:
    filename: str
    content_type: str
    content: bytes

    @property
    def extension(self) -> str:
        return os.path.splitext(self.filename or "")[1].lower()


def validate_image(upload: ImageUpload, max_bytes: int) -> None:
    """Reject non-image files and oversized files before anything is stored."""
    # Some mobile clients send images as application/octet-stream
    is_image_ext = upload.extension in ALLOWED_IMAGE_EXTENSIONS
    if not (
        upload.content_type in ALLOWED_IMAGE_TYPES
        or (upload.content_type == "application/octet-stream" and is_image_ext)
    ):
        raise ValidationError(
            [{"field": "image", "message": "Only JPEG, PNG, GIF, and WebP are allowed."}],
            message=f"Invalid file type ({upload.content_type}).",
        )
    if len(upload.content) > max_bytes:
        raise ValidationError(
            [{"field": "image", "message": f"Maximum size is {max_bytes // (1024 * 1024)}MB."}],
            message="File too large.",
        )


class LocalBlobStore:
    """Stores uploads on the local filesystem and returns their public URL."""

    def __init__(self, root_dir: str, url_prefix: str = "/uploads"):
        self.root_dir = root_dir
        self.url_prefix = url_prefix.rstrip("/")

    def upload(self, content: bytes, filename: str, folder: str = "products") -> str:
        extension = os.path.splitext(filename or "")[1].lower()
        name = f"product-{uuid.uuid4().hex}{extension}"
        directory = os.path.join(self.root_dir, folder)
        try:
            os.makedirs(directory, exist_ok=True)
            with open(os.path.join(directory, name), "wb") as fh:
                fh.write(content)
        except OSError as exc:
            raise BlobStoreError(f"Could not store {filename}: {exc}") from exc
        return f"{self.url_prefix}/{folder}/{name}"


def store_image(blob_store, upload: Optional[ImageUpload], folder: str = "products") -> Optional[str]:
    """
    Upload an image, returning its URL or None.

    Upload failures are logged and swallowed: a product write proceeds
    without the image rather than failing.
    """
    if upload is None:
        return None
    try:
        return blob_store.upload(upload.content, upload.filename, folder)
    except BlobStoreError as exc:
        logger.warning("image upload failed filename=%s: %s", upload.filename, exc)
        return None

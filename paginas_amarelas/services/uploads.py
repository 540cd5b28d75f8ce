"""Image uploads stored on local disk."""

import logging
import secrets
from dataclasses import dataclass
from pathlib import Path

from paginas_amarelas.core.config import get_settings

logger = logging.getLogger(__name__)

EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "image/gif": "gif",
}

PUBLIC_PREFIX = "/uploads"


class UploadError(Exception):
    """Raised when an upload is rejected."""


@dataclass
class StoredFile:
    """A file saved to the upload directory."""

    filename: str
    url: str


class UploadService:
    """Validates and stores uploaded images."""

    def __init__(self, upload_dir: str | Path | None = None, max_bytes: int | None = None) -> None:
        settings = get_settings()
        self.upload_dir = Path(upload_dir or settings.upload_dir)
        self.max_bytes = max_bytes if max_bytes is not None else settings.max_upload_bytes

    def save_image(self, content: bytes, content_type: str | None) -> StoredFile:
        """
        Validate and write an image to the upload directory.

        Args:
            content: Raw file bytes
            content_type: MIME type reported by the client

        Returns:
            StoredFile with the generated name and public URL

        Raises:
            UploadError: If the type is not allowed, the file is empty or too large
        """
        extension = EXTENSIONS.get(content_type or "")
        if extension is None:
            raise UploadError("Unsupported file type. Use PNG, JPG, WEBP or GIF.")
        if not content:
            raise UploadError("Empty file")
        if len(content) > self.max_bytes:
            raise UploadError(f"File too large (max {self.max_bytes} bytes)")

        self.upload_dir.mkdir(parents=True, exist_ok=True)
        filename = f"{secrets.token_hex(8)}.{extension}"
        (self.upload_dir / filename).write_bytes(content)

        logger.info(f"Stored upload {filename} ({len(content)} bytes)")
        return StoredFile(filename=filename, url=f"{PUBLIC_PREFIX}/{filename}")


async def get_upload_service() -> UploadService:
    """Dependency that provides the upload service."""
    return UploadService()

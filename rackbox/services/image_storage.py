"""Image storage service for rack photographs."""

import uuid
from pathlib import Path

import aiofiles
from fastapi import HTTPException, UploadFile, status

from rackbox.config import settings

# File extension to MIME type mapping
EXTENSION_MIME_MAP = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
}

# Magic byte signatures for image formats
# Each entry is (magic_bytes, offset, detected_extension)
IMAGE_MAGIC_SIGNATURES = [
    (b"\xff\xd8\xff", 0, ".jpg"),
    (b"\x89PNG\r\n\x1a\n", 0, ".png"),
    (b"GIF87a", 0, ".gif"),
    (b"GIF89a", 0, ".gif"),
    (b"RIFF", 0, ".webp"),  # WEBP marker checked at offset 8
]


def detect_image_type(content: bytes) -> str | None:
    """Detect image type from file content using magic bytes.

    Returns:
        The detected extension (e.g., ".jpg") or None if not a valid image.
    """
    if len(content) < 12:
        return None

    for magic, offset, ext in IMAGE_MAGIC_SIGNATURES:
        if content[offset:offset + len(magic)] == magic:
            if ext == ".webp" and content[8:12] != b"WEBP":
                continue
            return ext

    return None


class InvalidFileTypeError(Exception):
    """Raised when uploaded file has invalid type."""


class ImageStorageService:
    """Service for storing and locating rack images."""

    def __init__(
        self,
        storage_path: Path | None = None,
        max_size_bytes: int | None = None,
    ) -> None:
        self.storage_path = storage_path or settings.image_storage_path
        self.max_size_bytes = max_size_bytes or settings.max_upload_size_bytes

    def _validate_extension(self, filename: str | None) -> str:
        if not filename:
            return ".jpg"

        ext = Path(filename).suffix.lower()
        if ext not in EXTENSION_MIME_MAP:
            raise InvalidFileTypeError(
                f"Invalid file type. Allowed types: {', '.join(EXTENSION_MIME_MAP.keys())}"
            )
        return ext

    async def save_image(self, upload_file: UploadFile) -> str:
        """Save an uploaded rack image with size, type, and content validation.

        Returns:
            The stored filename, relative to the storage path.

        Raises:
            HTTPException: If file exceeds size limit, has invalid type, or
                          content doesn't match a valid image format.
        """
        try:
            self._validate_extension(upload_file.filename)
        except InvalidFileTypeError as e:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=str(e),
            )

        content = await upload_file.read()
        if len(content) > self.max_size_bytes:
            max_mb = self.max_size_bytes / (1024 * 1024)
            raise HTTPException(
                status_code=status.HTTP_413_CONTENT_TOO_LARGE,
                detail=f"File size exceeds maximum allowed size of {max_mb:.1f} MB",
            )

        # Trust the content, not the declared extension
        ext = detect_image_type(content)
        if ext is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Invalid file content. File does not appear to be a valid image.",
            )

        self.storage_path.mkdir(parents=True, exist_ok=True)
        filename = f"{uuid.uuid4()}{ext}"
        async with aiofiles.open(self.storage_path / filename, "wb") as f:
            await f.write(content)

        return filename

    async def delete_image(self, filename: str) -> bool:
        """Delete a stored image. Returns False if it was not there."""
        file_path = self.storage_path / filename
        if file_path.exists():
            file_path.unlink()
            return True
        return False

"""Tests for rack image storage."""

import io

import pytest
from fastapi import HTTPException, UploadFile, status

from rackbox.services.image_storage import ImageStorageService, detect_image_type


def _upload(content: bytes, filename: str = "rack.png") -> UploadFile:
    return UploadFile(file=io.BytesIO(content), filename=filename)


def test_detect_image_type(sample_image_bytes):
    assert detect_image_type(sample_image_bytes) == ".png"
    assert detect_image_type(b"plain text, not an image") is None


class TestImageStorageService:
    """Saving and deleting rack photographs."""

    @pytest.mark.asyncio
    async def test_save_and_delete(self, tmp_path, sample_image_bytes):
        service = ImageStorageService(storage_path=tmp_path, max_size_bytes=1024)

        filename = await service.save_image(_upload(sample_image_bytes))
        assert filename.endswith(".png")
        assert (tmp_path / filename).read_bytes() == sample_image_bytes

        assert await service.delete_image(filename) is True
        assert await service.delete_image(filename) is False

    @pytest.mark.asyncio
    async def test_oversized_upload_rejected(self, tmp_path, sample_image_bytes):
        service = ImageStorageService(storage_path=tmp_path, max_size_bytes=10)

        with pytest.raises(HTTPException) as exc_info:
            await service.save_image(_upload(sample_image_bytes))
        assert exc_info.value.status_code == status.HTTP_413_CONTENT_TOO_LARGE
        assert list(tmp_path.iterdir()) == []

    @pytest.mark.asyncio
    async def test_unsupported_extension_rejected(self, tmp_path, sample_image_bytes):
        service = ImageStorageService(storage_path=tmp_path, max_size_bytes=1024)

        with pytest.raises(HTTPException) as exc_info:
            await service.save_image(_upload(sample_image_bytes, filename="rack.bmp"))
        assert exc_info.value.status_code == status.HTTP_400_BAD_REQUEST

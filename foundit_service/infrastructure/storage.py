"""
Local disk storage for uploaded item images
"""
from io import BytesIO
from pathlib import Path
from typing import Optional
import logging
import os
import time

import aiofiles
from fastapi import UploadFile
from PIL import Image, UnidentifiedImageError

from ..config import settings
from ..errors import ValidationError

logger = logging.getLogger(__name__)

# Pillow format names accepted for the allowed extensions
ALLOWED_IMAGE_FORMATS = {"JPEG", "PNG"}


def get_file_extension(filename: str) -> str:
    """Get lower-cased file extension including the dot"""
    return os.path.splitext(filename or "")[1].lower()


class ImageStorage:
    """Validate and store images under a directory served as static files"""

    def __init__(self, upload_dir: str, url_prefix: str, max_file_size_mb: int = 5):
        self.upload_dir = Path(upload_dir)
        self.url_prefix = url_prefix.rstrip("/")
        self.max_file_size = max_file_size_mb * 1024 * 1024

    def ensure_directory(self) -> None:
        """Create the upload directory if it doesn't exist"""
        self.upload_dir.mkdir(parents=True, exist_ok=True)

    def validate(self, filename: str, content_type: Optional[str], data: bytes) -> str:
        """
        Validate an upload

        Args:
            filename: Client-supplied filename
            content_type: Client-supplied MIME type
            data: File contents

        Returns:
            Normalised extension to store the file under

        Raises:
            ValidationError: If the file is not an allowed image or is too large
        """
        ext = get_file_extension(filename)
        mime = (content_type or "").lower()
        if ext not in settings.ALLOWED_IMAGE_EXTENSIONS or mime not in settings.ALLOWED_IMAGE_MIME_TYPES:
            raise ValidationError("Only images allowed")

        if len(data) > self.max_file_size:
            raise ValidationError("File too large")

        try:
            with Image.open(BytesIO(data)) as img:
                image_format = img.format
                img.verify()
        except (UnidentifiedImageError, OSError, SyntaxError):
            raise ValidationError("Only images allowed")

        if image_format not in ALLOWED_IMAGE_FORMATS:
            raise ValidationError("Only images allowed")

        return ext

    def _unique_filename(self, ext: str) -> str:
        """Time-based filename, suffixed if the millisecond is already taken"""
        stem = str(int(time.time() * 1000))
        filename = f"{stem}{ext}"
        counter = 1
        while (self.upload_dir / filename).exists():
            filename = f"{stem}-{counter}{ext}"
            counter += 1
        return filename

    async def store(self, filename: str, content_type: Optional[str], data: bytes) -> str:
        """
        Validate and write an image

        Returns:
            Public URL path of the stored file
        """
        ext = self.validate(filename, content_type, data)
        self.ensure_directory()

        stored_filename = self._unique_filename(ext)
        async with aiofiles.open(self.upload_dir / stored_filename, "wb") as f:
            await f.write(data)

        logger.info(f"Stored upload {filename!r} as {stored_filename}")
        return f"{self.url_prefix}/{stored_filename}"

    async def save_upload(self, file: UploadFile) -> str:
        """Store a multipart upload, reading at most one byte past the size limit"""
        data = await file.read(self.max_file_size + 1)
        return await self.store(file.filename or "", file.content_type, data)

    def delete(self, url: str) -> bool:
        """
        Delete a stored file by its public URL

        Returns:
            True if a file was removed
        """
        if not url or not url.startswith(f"{self.url_prefix}/"):
            return False

        path = self.upload_dir / Path(url).name
        try:
            path.unlink()
        except FileNotFoundError:
            return False

        logger.info(f"Deleted upload {path.name}")
        return True


# Global storage instance
storage = ImageStorage(
    upload_dir=settings.UPLOAD_DIR,
    url_prefix=settings.UPLOAD_URL_PREFIX,
    max_file_size_mb=settings.MAX_FILE_SIZE_MB,
)


async def get_storage() -> ImageStorage:
    """Dependency for getting image storage"""
    return storage

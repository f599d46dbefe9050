"""Saving multipart uploads under the upload directory."""
import logging
import os
import random
import time
from dataclasses import dataclass

from fastapi import UploadFile

from ..core.config import settings
from ..core.exceptions import SchoolERPException, ValidationError

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp"}
AUDIO_EXTENSIONS = {".mp3", ".wav", ".ogg", ".m4a"}
PDF_EXTENSIONS = {".pdf"}
ALLOWED_EXTENSIONS = IMAGE_EXTENSIONS | AUDIO_EXTENSIONS | PDF_EXTENSIONS

CHUNK_SIZE = 1024 * 1024


@dataclass
class SavedUpload:
    filename: str
    path: str
    url: str
    extension: str
    size: int


def file_extension(filename: str) -> str:
    return os.path.splitext(filename or "")[1].lower()


def unique_filename(extension: str) -> str:
    """``<epoch-ms>-<random>`` plus the original extension."""
    return f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}{extension}"


async def save_upload(file: UploadFile, upload_dir: str = None, max_bytes: int = None) -> SavedUpload:
    """Write an upload to disk, enforcing the extension whitelist and size limit."""
    upload_dir = upload_dir or settings.upload_dir
    max_bytes = max_bytes or settings.max_upload_bytes

    extension = file_extension(file.filename)
    if extension not in ALLOWED_EXTENSIONS:
        raise ValidationError("Only image, PDF, and audio files are allowed!", field="file")

    os.makedirs(upload_dir, exist_ok=True)
    filename = unique_filename(extension)
    path = os.path.join(upload_dir, filename)

    size = 0
    try:
        with open(path, "wb") as buffer:
            while True:
                chunk = await file.read(CHUNK_SIZE)
                if not chunk:
                    break
                size += len(chunk)
                if size > max_bytes:
                    raise SchoolERPException(status_code=413, detail="File too large")
                buffer.write(chunk)
    except Exception:
        if os.path.exists(path):
            os.unlink(path)
        raise

    logger.info(f"Stored upload {file.filename} as {filename} ({size} bytes)")
    return SavedUpload(
        filename=filename,
        path=path,
        url=f"/uploads/{filename}",
        extension=extension,
        size=size,
    )

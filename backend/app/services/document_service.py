import os

from fastapi import UploadFile

from app.config import Settings
from app.schemas.extraction import UploadedFile


class UploadRejected(ValueError):
    pass


async def read_upload(file: UploadFile, settings: Settings) -> UploadedFile:
    """Validate an uploaded trade document and read it into memory.

    Raises UploadRejected for missing names, disallowed types or oversized files.
    """
    if not file.filename:
        raise UploadRejected("No filename provided")

    file_ext = get_file_extension(file.filename)
    if file_ext not in settings.allowed_file_types:
        raise UploadRejected(
            f"File type '{file_ext}' not allowed. Allowed: {', '.join(sorted(settings.allowed_file_types))}"
        )

    content = await file.read()
    if len(content) > settings.max_upload_size_mb * 1024 * 1024:
        raise UploadRejected(f"File too large. Maximum size: {settings.max_upload_size_mb}MB")

    return UploadedFile(
        filename=file.filename,
        content=content,
        content_type=file.content_type or get_mime_type(file.filename),
    )


def get_file_extension(filename: str) -> str:
    """Extract the file extension without the dot, lowercased."""
    _, ext = os.path.splitext(filename)
    return ext.lstrip(".").lower()


def get_mime_type(filename: str) -> str:
    """Map file extension to MIME type."""
    ext = get_file_extension(filename)
    mime_map = {
        "pdf": "application/pdf",
        "png": "image/png",
        "jpg": "image/jpeg",
        "jpeg": "image/jpeg",
        "tiff": "image/tiff",
        "tif": "image/tiff",
        "csv": "text/csv",
        "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    }
    return mime_map.get(ext, "application/octet-stream")

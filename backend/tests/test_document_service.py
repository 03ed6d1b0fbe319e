import io

import pytest
from fastapi import UploadFile
from starlette.datastructures import Headers

from app.config import Settings
from app.services.document_service import (
    UploadRejected,
    get_file_extension,
    get_mime_type,
    read_upload,
)


def make_upload_file(filename: str | None, content: bytes = b"test content", content_type: str | None = None) -> UploadFile:
    headers = Headers({"content-type": content_type}) if content_type else None
    return UploadFile(file=io.BytesIO(content), filename=filename, headers=headers)


@pytest.mark.asyncio
async def test_read_pdf_upload():
    content = b"%PDF-1.4 fake test content"
    upload = await read_upload(make_upload_file("invoice.pdf", content, "application/pdf"), Settings())

    assert upload.filename == "invoice.pdf"
    assert upload.content == content
    assert upload.content_type == "application/pdf"


@pytest.mark.asyncio
async def test_missing_content_type_is_guessed():
    upload = await read_upload(make_upload_file("scan.PNG"), Settings())
    assert upload.content_type == "image/png"


@pytest.mark.asyncio
async def test_reject_disallowed_extension():
    with pytest.raises(UploadRejected, match="not allowed"):
        await read_upload(make_upload_file("malware.exe"), Settings())


@pytest.mark.asyncio
async def test_reject_missing_filename():
    with pytest.raises(UploadRejected, match="No filename"):
        await read_upload(make_upload_file(None), Settings())


@pytest.mark.asyncio
async def test_reject_oversized_file():
    settings = Settings(max_upload_size_mb=1)
    with pytest.raises(UploadRejected, match="too large"):
        await read_upload(make_upload_file("big.pdf", b"x" * (1024 * 1024 + 1)), settings)


def test_get_file_extension():
    assert get_file_extension("Invoice.PDF") == "pdf"
    assert get_file_extension("archive.tar.gz") == "gz"
    assert get_file_extension("README") == ""


def test_get_mime_type():
    assert get_mime_type("list.xlsx") == "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    assert get_mime_type("photo.jpeg") == "image/jpeg"
    assert get_mime_type("unknown.bin") == "application/octet-stream"

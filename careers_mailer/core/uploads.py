from __future__ import annotations

import logging
import re
import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator
from uuid import uuid4

import anyio
from starlette.datastructures import UploadFile

from careers_mailer.core.config import Settings
from careers_mailer.core.errors import ValidationError
from careers_mailer.core.paths import repo_path
from careers_mailer.schemas.submission import FileAttachment

logger = logging.getLogger("careers.uploads")

MAX_FILENAME_LENGTH = 150
MEGABYTE = 1024 * 1024

RESUME_MIME_TYPES = {
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
}

INVALID_TYPE_MESSAGE = "Invalid file type. Only PDF, DOC, and DOCX files are allowed."
MISSING_RESUME_MESSAGE = "Resume file is required. Please upload your resume."

_SAFE_NAME_RE = re.compile(r"[^A-Za-z0-9._-]+")


def sanitize_filename(raw: str | None, *, default: str = "file") -> str:
    """Reduce a client-supplied name to a safe basename of at most MAX_FILENAME_LENGTH chars."""
    basename = (raw or "").replace("\\", "/").rsplit("/", 1)[-1]
    name = _SAFE_NAME_RE.sub("_", basename.strip()).strip("._")
    if not name:
        return default
    if len(name) <= MAX_FILENAME_LENGTH:
        return name
    stem, dot, suffix = name.rpartition(".")
    if not dot or len(suffix) >= MAX_FILENAME_LENGTH:
        return name[:MAX_FILENAME_LENGTH]
    return f"{stem[: MAX_FILENAME_LENGTH - len(suffix) - 1]}.{suffix}"


def normalize_content_type(raw: str | None) -> str:
    content_type = (raw or "").strip().lower()
    if ";" in content_type:
        content_type = content_type.split(";", 1)[0].strip()
    return content_type


def size_limit_message(max_bytes: int) -> str:
    if max_bytes >= MEGABYTE and max_bytes % MEGABYTE == 0:
        limit = f"{max_bytes // MEGABYTE}MB"
    else:
        limit = f"{max(1, round(max_bytes / 1024))}KB"
    return f"File size exceeds {limit} limit. Please upload a smaller file."


def has_file(upload: UploadFile | None) -> bool:
    return bool(upload and (upload.filename or "").strip())


def validate_resume_type(upload: UploadFile) -> str:
    content_type = normalize_content_type(upload.content_type)
    if content_type not in RESUME_MIME_TYPES:
        raise ValidationError(INVALID_TYPE_MESSAGE)
    return content_type


async def read_upload(upload: UploadFile, *, max_bytes: int | None) -> bytes:
    """Read the upload, reading at most one byte past ``max_bytes`` to detect overflow."""
    if max_bytes is None:
        return await upload.read()
    data = await upload.read(max_bytes + 1)
    if len(data) > max_bytes:
        raise ValidationError(size_limit_message(max_bytes))
    return data


def staged_path(upload_dir: Path, filename: str) -> Path:
    return upload_dir / f"{int(time.time() * 1000)}-{uuid4().hex[:12]}-{filename}"


@asynccontextmanager
async def stage_resume(upload: UploadFile | None, *, settings: Settings) -> AsyncIterator[FileAttachment | None]:
    """
    Turns the uploaded resume into a FileAttachment for the lifetime of the block.

    - No file: yields None.
    - memory storage: yields the bytes in-process.
    - disk storage: writes a uniquely named transient file and removes it on exit,
      whether the block succeeds or raises.
    """
    if not has_file(upload):
        yield None
        return

    if settings.validate_resume:
        mime_type = validate_resume_type(upload)
        data = await read_upload(upload, max_bytes=settings.max_resume_bytes)
    else:
        mime_type = normalize_content_type(upload.content_type) or "application/octet-stream"
        data = await read_upload(upload, max_bytes=None)

    filename = sanitize_filename(upload.filename, default="resume")

    if settings.upload_storage != "disk":
        yield FileAttachment(filename=filename, mime_type=mime_type, size_bytes=len(data), content=data)
        return

    upload_dir = repo_path(settings.upload_dir)
    await anyio.to_thread.run_sync(lambda: upload_dir.mkdir(parents=True, exist_ok=True))
    path = staged_path(upload_dir, filename)
    await anyio.to_thread.run_sync(path.write_bytes, data)
    try:
        yield FileAttachment(filename=filename, mime_type=mime_type, size_bytes=len(data), path=path)
    finally:
        try:
            path.unlink(missing_ok=True)
        except OSError:
            logger.warning("transient_file_cleanup_failed", extra={"path": str(path)}, exc_info=True)


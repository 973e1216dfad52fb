"""
Service layer for batch uploads.

- Validation rejects the whole request before any remote call
- Files are uploaded concurrently; the batch waits for every file to settle
- Outcomes keep the order in which the files were submitted
- API → service → uploader → Google API
"""
from __future__ import annotations
import asyncio
from typing import Optional, Sequence

from core.config import settings
from core.errors import http_error, ErrorCode
from core.logger import log_upload_event
from services.drive_service import DriveUploader
from services.photos_service import PhotosUploader
from services.uploader import Uploader
from schemas.upload import BatchResult, FilePart, UploadFailure

SUPPORTED_FORMATS = "JPEG, PNG, GIF, WebP images or MP4, MOV, AVI videos"

_uploader: Optional[Uploader] = None


def build_uploader() -> Uploader:
    if settings.UPLOAD_BACKEND == "photos":
        return PhotosUploader.from_settings(settings)
    return DriveUploader.from_settings(settings)


def get_uploader() -> Uploader:
    """FastAPI dependency returning the process-wide uploader (created on first use)."""
    global _uploader
    if _uploader is None:
        _uploader = build_uploader()
    return _uploader


async def close_uploader() -> None:
    global _uploader
    if _uploader is not None:
        await _uploader.aclose()
        _uploader = None


def normalize_content_type(content_type: Optional[str]) -> str:
    return (content_type or "").split(";", 1)[0].strip().lower()


def ensure_file_count(count: int) -> None:
    """
    Raises:
        HTTPException: 400 if no files were sent or more than MAX_FILES
    """
    if count == 0:
        raise http_error(
            status_code=400,
            code=ErrorCode.NO_FILES,
            message="No files uploaded",
        )
    if count > settings.MAX_FILES:
        raise http_error(
            status_code=400,
            code=ErrorCode.TOO_MANY_FILES,
            message=f"Too many files. Maximum {settings.MAX_FILES} files per upload.",
            meta={"max_files": settings.MAX_FILES, "received": count},
        )


def ensure_content_type(filename: str, content_type: Optional[str]) -> None:
    if normalize_content_type(content_type) not in settings.allowed_content_types:
        raise http_error(
            status_code=400,
            code=ErrorCode.UNSUPPORTED_TYPE,
            message=f"Please upload supported file types: {SUPPORTED_FORMATS}.",
            meta={"filename": filename, "content_type": content_type},
        )


def ensure_file_size(filename: str, size: int) -> None:
    if size > settings.MAX_FILE_SIZE_BYTES:
        limit_mb = settings.MAX_FILE_SIZE_BYTES // (1024 * 1024)
        raise http_error(
            status_code=400,
            code=ErrorCode.FILE_TOO_LARGE,
            message=f"File too large. Maximum {limit_mb}MB per file.",
            meta={"filename": filename, "size": size, "max_bytes": settings.MAX_FILE_SIZE_BYTES},
        )


async def upload_batch(uploader: Uploader, parts: Sequence[FilePart]) -> BatchResult:
    """
    Upload every part concurrently and wait for all of them.

    One file failing never prevents the others from being attempted. Outcomes
    are returned in submission order, not completion order.
    """
    settled = await asyncio.gather(
        *(uploader.upload(p.data, p.filename, p.content_type) for p in parts),
        return_exceptions=True,
    )

    outcomes = []
    for part, result in zip(parts, settled):
        if isinstance(result, BaseException):
            # uploaders are not supposed to raise; keep the batch intact anyway
            log_upload_event(
                "upload_file", "error", filename=part.filename,
                meta={"error": repr(result)}, level="error",
            )
            result = UploadFailure(filename=part.filename, error=str(result) or result.__class__.__name__)
        outcomes.append(result)

    batch = BatchResult(outcomes=outcomes)
    log_upload_event(
        "upload_batch", "completed",
        meta={"success_count": batch.success_count, "failure_count": batch.failure_count},
        level="info" if batch.success_count else "error",
    )
    return batch


def summarize(batch: BatchResult, destination: str) -> str:
    """Human-readable summary, e.g. "3 files uploaded successfully to Google Drive, 1 failed"."""
    ok = batch.success_count
    message = f"{ok} file{'s' if ok != 1 else ''} uploaded successfully to {destination}"
    if batch.failure_count:
        message += f", {batch.failure_count} failed"
    return message


# app/api/v1/upload.py
from __future__ import annotations
from typing import List, Optional, Union
from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import JSONResponse
from core.errors import ErrorCode
from core.logger import log_upload_event
from services.uploader import Uploader
from services.upload_service import (
    ensure_content_type, ensure_file_count, ensure_file_size, get_uploader,
    normalize_content_type, summarize, upload_batch,
)
from schemas.upload import FilePart, UploadResponse

router = APIRouter(tags=["upload"])


def _respond(status_code: int, body: UploadResponse) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json", exclude_none=True))


@router.post(
    "/upload",
    response_model=UploadResponse,
    responses={400: {"model": UploadResponse}, 500: {"model": UploadResponse}},
)
async def upload_photos(
    photos: Optional[List[Union[UploadFile, str]]] = File(default=None, description="Photos and videos to upload"),
    uploader: Uploader = Depends(get_uploader),
) -> JSONResponse:
    """
    Upload a batch of photos/videos to the configured Google destination.

    The whole request is rejected (400) when there are no files, too many
    files, or any file has an unsupported type or is too large. Otherwise all
    files are uploaded concurrently: 200 if at least one succeeded, 500 if all
    failed. `results` always lists every file, in submission order.
    """
    # plain text values under `photos` are not files; browsers also send an
    # empty, nameless part when no file was picked
    uploads = [f for f in (photos or []) if not isinstance(f, str) and f.filename]
    log_upload_event("upload_batch", "received", meta={"file_count": len(uploads)})

    ensure_file_count(len(uploads))
    parts: list[FilePart] = []
    for f in uploads:
        ensure_content_type(f.filename, f.content_type)
        # the parser already knows the part size, so oversized parts are never read
        if f.size is not None:
            ensure_file_size(f.filename, f.size)
        data = await f.read()
        if f.size is None:
            ensure_file_size(f.filename, len(data))
        parts.append(FilePart(filename=f.filename, content_type=normalize_content_type(f.content_type), data=data))

    batch = await upload_batch(uploader, parts)

    if batch.success_count == 0:
        return _respond(500, UploadResponse(
            success=False,
            error="All uploads failed",
            code=ErrorCode.UPLOAD_FAILED.value,
            results=batch.outcomes,
            success_count=0,
            failure_count=batch.failure_count,
        ))

    return _respond(200, UploadResponse(
        success=True,
        message=summarize(batch, uploader.destination),
        results=batch.outcomes,
        success_count=batch.success_count,
        failure_count=batch.failure_count,
    ))

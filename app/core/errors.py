# app/core/errors.py
from typing import Any, Dict, Optional
from fastapi import HTTPException
from enum import Enum

class ErrorCode(str, Enum):
    NO_FILES = "no_files"                # 400
    TOO_MANY_FILES = "too_many_files"    # 400
    UNSUPPORTED_TYPE = "unsupported_type"# 400
    FILE_TOO_LARGE = "file_too_large"    # 400
    UPLOAD_FAILED = "upload_failed"      # 500

def http_error(
    *,
    status_code: int,
    code: ErrorCode,
    message: str,
    meta: Optional[Dict[str, Any]] = None,
) -> HTTPException:
    """
    Standardized HTTPException factory.
    Frontend should key on `code` for i18n and behavior; the app renders
    `detail` as `{"success": false, "error": message, "code": code}`.
    """
    detail = {
        "code": code.value,
        "message": message,
    }
    if meta:
        detail["meta"] = meta
    return HTTPException(status_code=status_code, detail=detail)

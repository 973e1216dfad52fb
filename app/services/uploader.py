"""
Per-file uploader boundary.

Every concrete uploader implements `_store`; `upload` wraps it so that no
failure (configuration, authorization, network, provider rejection, malformed
response) escapes. Failures come back as UploadFailure outcomes.
"""
from __future__ import annotations
from typing import Any, Optional

import httpx

from core.google_auth import GoogleAuthError, GoogleClientProvider, response_payload
from core.logger import log_upload_event, logger
from schemas.upload import UploadFailure, UploadOutcome, UploadSuccess


class UploaderError(Exception):
    """Configuration or protocol problem raised inside the per-file boundary."""

    def __init__(self, message: str, details: Any = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ProviderError(UploaderError):
    """The provider answered with an error status or an unusable payload."""

    def __init__(self, message: str, status_code: Optional[int] = None, details: Any = None):
        super().__init__(message, details)
        self.status_code = status_code

    @classmethod
    def from_response(cls, action: str, resp: httpx.Response) -> "ProviderError":
        details = response_payload(resp)
        reason = None
        if isinstance(details, dict) and isinstance(details.get("error"), dict):
            reason = details["error"].get("message")
        message = f"{action} failed with status {resp.status_code}"
        if reason:
            message = f"{message}: {reason}"
        return cls(message, status_code=resp.status_code, details=details)


class Uploader:
    """Base class for uploaders that store one file in a remote provider."""

    destination = "remote storage"

    def __init__(self, provider: GoogleClientProvider):
        self.provider = provider

    async def upload(self, data: bytes, filename: str, content_type: str) -> UploadOutcome:
        """Store one file. Never raises; failures are returned as UploadFailure."""
        log_upload_event(
            "upload_file", "started", filename=filename,
            meta={"size": len(data), "content_type": content_type, "destination": self.destination},
        )
        try:
            outcome = await self._store(data, filename, content_type)
        except (UploaderError, GoogleAuthError) as e:
            outcome = UploadFailure(filename=filename, error=e.message, details=e.details)
        except httpx.HTTPError as e:
            outcome = UploadFailure(filename=filename, error=f"Network error while contacting {self.destination}: {e}")
        except Exception as e:
            logger.exception(
                "Unexpected error while uploading",
                extra={"action": "upload_file", "result": "error", "filename_": filename},
            )
            outcome = UploadFailure(filename=filename, error=str(e) or e.__class__.__name__)

        if isinstance(outcome, UploadSuccess):
            log_upload_event(
                "upload_file", "success", filename=filename,
                meta={"remote_id": outcome.remote_id},
            )
        else:
            log_upload_event(
                "upload_file", "failure", filename=filename,
                meta={"error": outcome.error, "details": outcome.details}, level="error",
            )
        return outcome

    async def _store(self, data: bytes, filename: str, content_type: str) -> UploadSuccess:
        raise NotImplementedError

    async def test_connection(self) -> dict:
        raise NotImplementedError

    async def aclose(self) -> None:
        await self.provider.aclose()

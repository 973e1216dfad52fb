"""
Pydantic schemas for the upload and health endpoints.

- ALWAYS use Pydantic models for request/response
- Per-file outcomes are a closed union discriminated on `status`
- Never expose credentials or internal stack traces in responses
"""
from __future__ import annotations
from datetime import datetime
from typing import Annotated, Any, List, Literal, Optional, Union
from pydantic import BaseModel, Field


class FilePart(BaseModel):
    """One file taken from the multipart request body."""
    filename: str = Field(..., description="Original filename (metadata only, not an identity key)")
    content_type: str = Field(..., description="Declared content type of the part")
    data: bytes = Field(..., repr=False, description="Raw file bytes")


class UploadSuccess(BaseModel):
    """File stored by the remote provider."""
    status: Literal["success"] = "success"
    filename: str = Field(..., description="Original filename")
    remote_id: str = Field(..., description="Provider identifier (Drive file id or media item id)")
    name: Optional[str] = Field(default=None, description="Name recorded by the provider")
    link: Optional[str] = Field(default=None, description="Link to view the file")
    download_link: Optional[str] = Field(default=None, description="Direct download link, when available")
    size: Optional[int] = Field(default=None, description="Stored size in bytes, when reported")
    created_at: Optional[datetime] = Field(default=None, description="Creation time reported by the provider")


class UploadFailure(BaseModel):
    """File that could not be stored; `details` holds the raw provider error when available."""
    status: Literal["error"] = "error"
    filename: str = Field(..., description="Original filename")
    error: str = Field(..., description="Human-readable failure message")
    details: Optional[Any] = Field(default=None, description="Raw provider error payload")


UploadOutcome = Annotated[Union[UploadSuccess, UploadFailure], Field(discriminator="status")]


class BatchResult(BaseModel):
    """Outcomes of one upload request, in the order the files were submitted."""
    outcomes: List[UploadOutcome] = Field(default_factory=list)

    @property
    def success_count(self) -> int:
        return sum(1 for o in self.outcomes if isinstance(o, UploadSuccess))

    @property
    def failure_count(self) -> int:
        return len(self.outcomes) - self.success_count


class UploadResponse(BaseModel):
    """Response envelope for POST /upload (also used for its error responses)."""
    success: bool
    message: Optional[str] = None
    error: Optional[str] = None
    code: Optional[str] = None
    results: Optional[List[UploadOutcome]] = None
    success_count: Optional[int] = None
    failure_count: Optional[int] = None


class HealthResponse(BaseModel):
    status: Literal["OK"] = "OK"
    timestamp: datetime
    service: str
    version: str

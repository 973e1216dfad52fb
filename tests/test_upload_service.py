"""Tests for batch orchestration and validation helpers"""

import asyncio

import pytest
from fastapi import HTTPException

from core.config import settings
from schemas.upload import BatchResult, FilePart, UploadFailure, UploadSuccess
from services.upload_service import (
    ensure_content_type, ensure_file_count, ensure_file_size, summarize, upload_batch,
)
from conftest import FakeUploader


def _parts(*names):
    return [FilePart(filename=n, content_type="image/jpeg", data=b"\xff\xd8") for n in names]


class RaisingUploader(FakeUploader):
    """Breaks the never-raise contract for one filename"""

    async def upload(self, data, filename, content_type):
        if filename == "boom.jpg":
            raise RuntimeError("socket closed")
        return await super().upload(data, filename, content_type)


class TestUploadBatch:

    @pytest.mark.asyncio
    async def test_outcomes_in_submission_order(self):
        uploader = FakeUploader()
        uploader.delays = {"a.jpg": 0.1, "b.jpg": 0.05, "c.jpg": 0}

        batch = await upload_batch(uploader, _parts("a.jpg", "b.jpg", "c.jpg"))

        assert uploader.completed == ["c.jpg", "b.jpg", "a.jpg"]
        assert [o.filename for o in batch.outcomes] == ["a.jpg", "b.jpg", "c.jpg"]

    @pytest.mark.asyncio
    async def test_uploads_run_concurrently(self):
        uploader = FakeUploader()
        uploader.delays = {n: 0.2 for n in ("a.jpg", "b.jpg", "c.jpg", "d.jpg")}
        loop = asyncio.get_running_loop()

        started = loop.time()
        await upload_batch(uploader, _parts("a.jpg", "b.jpg", "c.jpg", "d.jpg"))

        # sequential execution would take at least 0.8s
        assert loop.time() - started < 0.6

    @pytest.mark.asyncio
    async def test_raised_exception_becomes_failure(self):
        uploader = RaisingUploader()

        batch = await upload_batch(uploader, _parts("a.jpg", "boom.jpg", "c.jpg"))

        assert len(batch.outcomes) == 3
        assert isinstance(batch.outcomes[0], UploadSuccess)
        assert isinstance(batch.outcomes[1], UploadFailure)
        assert batch.outcomes[1].error == "socket closed"
        assert isinstance(batch.outcomes[2], UploadSuccess)
        assert batch.success_count == 2
        assert batch.failure_count == 1


class TestSummarize:

    @pytest.mark.parametrize("ok,failed,expected", [
        (1, 0, "1 file uploaded successfully to Google Photos"),
        (3, 0, "3 files uploaded successfully to Google Photos"),
        (3, 1, "3 files uploaded successfully to Google Photos, 1 failed"),
        (1, 2, "1 file uploaded successfully to Google Photos, 2 failed"),
    ])
    def test_message(self, ok, failed, expected):
        outcomes = [UploadSuccess(filename=f"{i}.jpg", remote_id=str(i)) for i in range(ok)]
        outcomes += [UploadFailure(filename=f"x{i}.jpg", error="nope") for i in range(failed)]

        assert summarize(BatchResult(outcomes=outcomes), "Google Photos") == expected


class TestValidationHelpers:

    def test_zero_files(self):
        with pytest.raises(HTTPException) as exc:
            ensure_file_count(0)
        assert exc.value.status_code == 400
        assert exc.value.detail["code"] == "no_files"

    def test_file_count_limit(self):
        ensure_file_count(settings.MAX_FILES)
        with pytest.raises(HTTPException) as exc:
            ensure_file_count(settings.MAX_FILES + 1)
        assert exc.value.detail["code"] == "too_many_files"

    @pytest.mark.parametrize("content_type", ["image/jpeg", "IMAGE/PNG", "video/mp4", "image/webp; charset=binary"])
    def test_allowed_types(self, content_type):
        ensure_content_type("f", content_type)

    @pytest.mark.parametrize("content_type", [None, "", "application/pdf", "image/svg+xml", "text/html"])
    def test_rejected_types(self, content_type):
        with pytest.raises(HTTPException) as exc:
            ensure_content_type("f", content_type)
        assert exc.value.detail["code"] == "unsupported_type"

    def test_size_limit(self):
        ensure_file_size("f", settings.MAX_FILE_SIZE_BYTES)
        with pytest.raises(HTTPException) as exc:
            ensure_file_size("f", settings.MAX_FILE_SIZE_BYTES + 1)
        assert exc.value.detail["code"] == "file_too_large"
        assert "500MB" in exc.value.detail["message"]

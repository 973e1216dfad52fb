"""
Google Photos uploader (two-phase media variant).

Phase 1 uploads the raw bytes and receives an upload token; phase 2 creates
the media item in the configured album from that token. A transport error,
an error status, an empty result list and a per-item status other than
"Success" all raise ProviderError, so every failure leaves through the same
UploadFailure path.
"""
from __future__ import annotations
from typing import Optional

from core.config import Settings
from core.google_auth import PHOTOS_SCOPES, GoogleClient, GoogleClientProvider
from core.logger import log_upload_event
from services.uploader import ProviderError, Uploader, UploaderError
from schemas.upload import UploadSuccess

PHOTOS_API = "https://photoslibrary.googleapis.com/v1"
PHOTOS_UPLOAD_URL = f"{PHOTOS_API}/uploads"
PHOTOS_BATCH_CREATE_URL = f"{PHOTOS_API}/mediaItems:batchCreate"
PHOTOS_ALBUMS_URL = f"{PHOTOS_API}/albums"
ITEM_SUCCESS = "Success"


class PhotosUploader(Uploader):
    destination = "Google Photos"

    def __init__(self, provider: GoogleClientProvider, album_id: Optional[str]):
        super().__init__(provider)
        self.album_id = album_id

    @classmethod
    def from_settings(cls, settings: Settings) -> "PhotosUploader":
        provider = GoogleClientProvider(
            settings.SERVICE_ACCOUNT_KEY, PHOTOS_SCOPES, timeout=settings.GOOGLE_HTTP_TIMEOUT,
        )
        return cls(provider, settings.ALBUM_ID)

    def _require_album(self) -> str:
        if not self.album_id:
            raise UploaderError("ALBUM_ID environment variable not set")
        return self.album_id

    async def _store(self, data: bytes, filename: str, content_type: str) -> UploadSuccess:
        album_id = self._require_album()
        client = await self.provider.get()

        upload_token = await self._upload_bytes(client, data, filename, content_type)
        item = await self._create_media_item(client, album_id, upload_token, filename)

        return UploadSuccess(
            filename=filename,
            remote_id=item["id"],
            name=item.get("filename"),
            link=item.get("productUrl"),
            created_at=(item.get("mediaMetadata") or {}).get("creationTime"),
        )

    async def _upload_bytes(self, client: GoogleClient, data: bytes, filename: str, content_type: str) -> str:
        resp = await client.post(
            PHOTOS_UPLOAD_URL,
            content=data,
            headers={
                "Content-Type": "application/octet-stream",
                "X-Goog-Upload-Content-Type": content_type,
                "X-Goog-Upload-Protocol": "raw",
            },
        )
        if resp.status_code >= 300:
            raise ProviderError.from_response("Photos byte upload", resp)

        token = resp.text.strip()
        if not token:
            raise ProviderError("Photos byte upload returned an empty upload token", status_code=resp.status_code)
        log_upload_event("photos_upload_bytes", "success", filename=filename)
        return token

    async def _create_media_item(self, client: GoogleClient, album_id: str, upload_token: str, filename: str) -> dict:
        resp = await client.post(
            PHOTOS_BATCH_CREATE_URL,
            json={
                "albumId": album_id,
                "newMediaItems": [{
                    "description": f"Uploaded via Event Photo Uploader: {filename}",
                    "simpleMediaItem": {"fileName": filename, "uploadToken": upload_token},
                }],
            },
        )
        if resp.status_code >= 300:
            raise ProviderError.from_response("Photos media item creation", resp)

        try:
            body = resp.json()
        except ValueError:
            raise ProviderError("Photos media item creation returned a malformed response", details=resp.text)

        results = body.get("newMediaItemResults") if isinstance(body, dict) else None
        if not results:
            raise ProviderError("No media item results returned", details=body)

        result = results[0]
        status = result.get("status") or {}
        message = status.get("message")
        if status.get("code") or (status and message != ITEM_SUCCESS):
            raise ProviderError(f"Photos rejected the media item: {message or 'unknown status'}", details=result)

        item = result.get("mediaItem") or {}
        if not item.get("id"):
            raise ProviderError("Photos media item result did not include an id", details=result)
        return item

    async def test_connection(self) -> dict:
        """Verify credentials and access to the target album."""
        try:
            album_id = self._require_album()
            client = await self.provider.get()
            resp = await client.get(f"{PHOTOS_ALBUMS_URL}/{album_id}")
            if resp.status_code >= 300:
                raise ProviderError.from_response("Photos album lookup", resp)
            album = resp.json()
        except Exception as e:
            log_upload_event("photos_connection", "failure", meta={"error": str(e)}, level="error")
            return {"success": False, "error": str(e)}

        log_upload_event("photos_connection", "success", meta={"album_id": album.get("id")})
        return {"success": True, "album_title": album.get("title"), "album_id": album.get("id")}

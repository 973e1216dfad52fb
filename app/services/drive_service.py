"""
Google Drive uploader (direct store variant).

A resumable `files.create` session stores the file in the configured folder:
the metadata opens the session, the raw bytes are sent to the session URI.
Making the file viewable by link is a separate best-effort step: its failure
is logged and never turns a stored file into a failed upload.
"""
from __future__ import annotations
from datetime import datetime, timezone
from typing import Optional

from core.config import Settings
from core.google_auth import DRIVE_SCOPES, GoogleClient, GoogleClientProvider
from core.logger import log_upload_event
from services.uploader import ProviderError, Uploader, UploaderError
from schemas.upload import UploadSuccess

DRIVE_FILES_URL = "https://www.googleapis.com/drive/v3/files"
DRIVE_UPLOAD_URL = "https://www.googleapis.com/upload/drive/v3/files"
FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"
FILE_FIELDS = "id, name, webViewLink, webContentLink, size, createdTime"


class DriveUploader(Uploader):
    destination = "Google Drive"

    def __init__(self, provider: GoogleClientProvider, folder_id: Optional[str], make_public: bool = True):
        super().__init__(provider)
        self.folder_id = folder_id
        self.make_public = make_public

    @classmethod
    def from_settings(cls, settings: Settings) -> "DriveUploader":
        provider = GoogleClientProvider(
            settings.SERVICE_ACCOUNT_KEY, DRIVE_SCOPES, timeout=settings.GOOGLE_HTTP_TIMEOUT,
        )
        return cls(provider, settings.FOLDER_ID, make_public=settings.DRIVE_MAKE_PUBLIC)

    def _require_folder(self) -> str:
        if not self.folder_id:
            raise UploaderError("FOLDER_ID environment variable not set")
        return self.folder_id

    async def _store(self, data: bytes, filename: str, content_type: str) -> UploadSuccess:
        folder_id = self._require_folder()
        client = await self.provider.get()

        metadata = {
            "name": filename,
            "parents": [folder_id],
            "description": f"Uploaded via Event Photo Uploader at {datetime.now(timezone.utc).isoformat()}",
        }
        session = await client.post(
            DRIVE_UPLOAD_URL,
            params={"uploadType": "resumable", "fields": FILE_FIELDS, "supportsAllDrives": "true"},
            json=metadata,
            headers={"X-Upload-Content-Type": content_type, "X-Upload-Content-Length": str(len(data))},
        )
        if session.status_code >= 300:
            raise ProviderError.from_response("Drive upload", session)
        session_uri = session.headers.get("Location")
        if not session_uri:
            raise ProviderError("Drive upload session was not created", status_code=session.status_code)

        resp = await client.put(session_uri, content=data, headers={"Content-Type": content_type})
        if resp.status_code >= 300:
            raise ProviderError.from_response("Drive upload", resp)

        try:
            file = resp.json()
        except ValueError:
            raise ProviderError("Drive upload returned a malformed response", status_code=resp.status_code, details=resp.text)
        if not isinstance(file, dict) or not file.get("id"):
            raise ProviderError("Drive upload response did not include a file id", status_code=resp.status_code, details=file)

        if self.make_public:
            await self._share(client, file["id"], filename)

        return UploadSuccess(
            filename=filename,
            remote_id=file["id"],
            name=file.get("name"),
            link=file.get("webViewLink"),
            download_link=file.get("webContentLink"),
            size=file.get("size"),
            created_at=file.get("createdTime"),
        )

    async def _share(self, client: GoogleClient, file_id: str, filename: str) -> bool:
        """Grant `anyone` reader access. Best-effort: returns False instead of raising."""
        try:
            resp = await client.post(
                f"{DRIVE_FILES_URL}/{file_id}/permissions",
                params={"supportsAllDrives": "true"},
                json={"role": "reader", "type": "anyone"},
            )
            if resp.status_code >= 300:
                raise ProviderError.from_response("Drive permission update", resp)
        except Exception as e:
            log_upload_event(
                "drive_share", "failure", filename=filename,
                meta={"file_id": file_id, "error": str(e)}, level="warning",
            )
            return False

        log_upload_event("drive_share", "success", filename=filename, meta={"file_id": file_id})
        return True

    async def test_connection(self) -> dict:
        """Verify credentials and, when FOLDER_ID is set, access to the target folder."""
        try:
            client = await self.provider.get()
            if not self.folder_id:
                return {"success": True, "message": "Drive API connected, no folder specified"}

            resp = await client.get(
                f"{DRIVE_FILES_URL}/{self.folder_id}",
                params={"fields": "id, name, webViewLink", "supportsAllDrives": "true"},
            )
            if resp.status_code >= 300:
                raise ProviderError.from_response("Drive folder lookup", resp)
            folder = resp.json()
        except Exception as e:
            log_upload_event("drive_connection", "failure", meta={"error": str(e)}, level="error")
            return {"success": False, "error": str(e)}

        log_upload_event("drive_connection", "success", meta={"folder_id": folder.get("id")})
        return {
            "success": True,
            "folder_name": folder.get("name"),
            "folder_id": folder.get("id"),
            "folder_link": folder.get("webViewLink"),
        }

    async def create_folder(self, name: str, parent_id: Optional[str] = None) -> dict:
        """Create a folder (optionally inside `parent_id`) and make it viewable by link."""
        try:
            client = await self.provider.get()
            metadata = {"name": name, "mimeType": FOLDER_MIME_TYPE}
            if parent_id:
                metadata["parents"] = [parent_id]

            resp = await client.post(
                DRIVE_FILES_URL,
                params={"fields": "id, name, webViewLink", "supportsAllDrives": "true"},
                json=metadata,
            )
            if resp.status_code >= 300:
                raise ProviderError.from_response("Drive folder creation", resp)
            folder = resp.json()

            # guests open the folder link, so sharing is required here
            perm = await client.post(
                f"{DRIVE_FILES_URL}/{folder['id']}/permissions",
                params={"supportsAllDrives": "true"},
                json={"role": "reader", "type": "anyone"},
            )
            if perm.status_code >= 300:
                raise ProviderError.from_response("Drive permission update", perm)
        except Exception as e:
            log_upload_event("drive_create_folder", "failure", meta={"error": str(e)}, level="error")
            return {"success": False, "error": str(e)}

        log_upload_event("drive_create_folder", "success", meta={"folder_id": folder["id"]})
        return {
            "success": True,
            "folder_id": folder["id"],
            "folder_name": folder.get("name"),
            "folder_link": folder.get("webViewLink"),
        }

    async def list_files(self) -> dict:
        """List non-trashed files of the target folder, newest first."""
        try:
            client = await self.provider.get()
            folder_id = self._require_folder()
            resp = await client.get(
                DRIVE_FILES_URL,
                params={
                    "q": f"'{folder_id}' in parents and trashed=false",
                    "fields": "files(id, name, webViewLink, createdTime, size, mimeType)",
                    "orderBy": "createdTime desc",
                    "supportsAllDrives": "true",
                    "includeItemsFromAllDrives": "true",
                },
            )
            if resp.status_code >= 300:
                raise ProviderError.from_response("Drive file listing", resp)
            files = resp.json().get("files", [])
        except Exception as e:
            log_upload_event("drive_list_files", "failure", meta={"error": str(e)}, level="error")
            return {"success": False, "error": str(e)}

        return {"success": True, "files": files, "count": len(files)}

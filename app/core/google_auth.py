"""
Google service account authorization.

- Key material is read from the file named by SERVICE_ACCOUNT_KEY, never hardcoded
- Credentials and token refresh are handled by google-auth; its blocking
  refresh runs in the threadpool so the event loop is never held
- Tokens and keys are NEVER logged
- The authorized client is built at most once per process; a failed build is
  remembered and reported on every later use instead of crashing the process
"""
from __future__ import annotations
import asyncio
import json
from pathlib import Path
from typing import Any, Callable, Iterable, Optional

import httpx
from fastapi.concurrency import run_in_threadpool
from google.auth import exceptions as google_exceptions
from google.auth.transport.requests import Request as AuthRequest
from google.oauth2 import service_account

from core.logger import logger

DRIVE_SCOPES = (
    "https://www.googleapis.com/auth/drive.file",
    "https://www.googleapis.com/auth/drive",
)
PHOTOS_SCOPES = (
    "https://www.googleapis.com/auth/photoslibrary.appendonly",
    "https://www.googleapis.com/auth/photoslibrary.readonly.appcreateddata",
)


class GoogleAuthError(Exception):
    """Exception raised when the service account cannot be loaded or authorized."""

    def __init__(self, message: str, details: Any = None):
        super().__init__(message)
        self.message = message
        self.details = details


def response_payload(resp: httpx.Response) -> Any:
    """Best-effort decode of a provider response body for diagnostics."""
    try:
        return resp.json()
    except ValueError:
        return resp.text or None


class ServiceAccountCredentials:
    """Async face of google-auth service account credentials."""

    def __init__(self, credentials: service_account.Credentials, auth_request: Callable[..., Any]):
        self._credentials = credentials
        self._auth_request = auth_request
        self._lock = asyncio.Lock()

    @classmethod
    async def from_file(
        cls,
        path: Optional[str],
        scopes: Iterable[str],
        auth_request: Callable[..., Any],
    ) -> "ServiceAccountCredentials":
        """
        Load a service account JSON key file.

        Raises:
            GoogleAuthError: If the path is unset, the file is missing, or the key is malformed
        """
        if not path:
            raise GoogleAuthError("SERVICE_ACCOUNT_KEY environment variable not set")

        key_path = Path(path).expanduser().resolve()
        if not key_path.is_file():
            raise GoogleAuthError(f"Service account key file not found: {key_path}")

        raw = await run_in_threadpool(key_path.read_text, encoding="utf-8")
        try:
            info = json.loads(raw)
        except ValueError as e:
            raise GoogleAuthError(f"Service account key file is not valid JSON: {e}") from e
        if not isinstance(info, dict):
            raise GoogleAuthError("Service account key file must contain a JSON object")

        try:
            credentials = service_account.Credentials.from_service_account_info(info, scopes=list(scopes))
        except (ValueError, google_exceptions.GoogleAuthError) as e:
            raise GoogleAuthError(f"Service account key is invalid: {e}") from e
        return cls(credentials, auth_request)

    async def token(self) -> str:
        """Return a valid access token, refreshing it when google-auth considers it expired."""
        async with self._lock:
            if not self._credentials.valid:
                await self._refresh()
            return self._credentials.token

    async def _refresh(self) -> None:
        try:
            await run_in_threadpool(self._credentials.refresh, self._auth_request)
        except google_exceptions.RefreshError as e:
            reason = e.args[0] if e.args else str(e)
            details = e.args[1] if len(e.args) > 1 else None
            raise GoogleAuthError(f"Authorization rejected by Google: {reason}", details=details) from e
        except google_exceptions.TransportError as e:
            raise GoogleAuthError(f"Authorization request failed: {e}") from e


class GoogleClient:
    """Authorized client: every request carries the service account's bearer token."""

    def __init__(self, credentials: ServiceAccountCredentials, http: httpx.AsyncClient):
        self.credentials = credentials
        self.http = http

    async def request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        token = await self.credentials.token()
        headers = dict(kwargs.pop("headers", None) or {})
        headers["Authorization"] = f"Bearer {token}"
        return await self.http.request(method, url, headers=headers, **kwargs)

    async def get(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("GET", url, **kwargs)

    async def post(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("POST", url, **kwargs)

    async def put(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("PUT", url, **kwargs)

    async def aclose(self) -> None:
        await self.http.aclose()


class GoogleClientProvider:
    """
    Get-or-create accessor for the process-wide GoogleClient.

    The first caller builds the client under a lock; concurrent callers wait for
    that build. The outcome (client or error) is kept for the process lifetime.
    `auth_request` is the google-auth transport used for token refresh and
    `transport` the httpx transport used for API calls.
    """

    def __init__(
        self,
        key_path: Optional[str],
        scopes: Iterable[str],
        timeout: float = 300.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        auth_request: Optional[Callable[..., Any]] = None,
    ):
        self.key_path = key_path
        self.scopes = tuple(scopes)
        self.timeout = timeout
        self._transport = transport
        self._auth_request = auth_request
        self._client: Optional[GoogleClient] = None
        self._error: Optional[GoogleAuthError] = None
        self._lock = asyncio.Lock()

    async def get(self) -> GoogleClient:
        """
        Return the shared authorized client.

        Raises:
            GoogleAuthError: If initialization failed now or on an earlier call
        """
        if self._client is None and self._error is None:
            async with self._lock:
                if self._client is None and self._error is None:
                    try:
                        self._client = await self._build()
                    except GoogleAuthError as e:
                        self._error = e
                        logger.error(
                            "Google API initialization failed",
                            extra={"action": "google_init", "result": "failure", "meta": {"error": e.message}},
                        )

        if self._error is not None:
            raise GoogleAuthError(
                f"Google API initialization failed: {self._error.message}",
                details=self._error.details,
            )
        return self._client

    async def _build(self) -> GoogleClient:
        auth_request = self._auth_request or AuthRequest()
        credentials = await ServiceAccountCredentials.from_file(self.key_path, self.scopes, auth_request)
        # authorize up front so a rejected key surfaces as an init error
        await credentials.token()

        logger.info(
            "Google API initialized successfully",
            extra={"action": "google_init", "result": "success", "meta": {"scopes": list(self.scopes)}},
        )
        return GoogleClient(credentials, httpx.AsyncClient(timeout=self.timeout, transport=self._transport))

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()

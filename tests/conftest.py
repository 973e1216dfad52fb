"""Pytest configuration and fixtures for the uploader tests"""

import asyncio
import itertools
import json
from typing import Callable, Dict, List, Optional, Tuple

import httpx
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from fastapi.testclient import TestClient
from google.auth import transport as google_transport

from main import app
from schemas.upload import UploadFailure, UploadSuccess
from services.upload_service import get_uploader

JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"\x00" * 64


class FakeUploader:
    """Uploader double: records calls, fails configured filenames, optional per-file delay."""

    destination = "Google Drive"

    def __init__(self):
        self.calls: List[str] = []
        self.completed: List[str] = []
        self.fail: set = set()
        self.delays: Dict[str, float] = {}
        self._ids = itertools.count(1)

    async def upload(self, data: bytes, filename: str, content_type: str):
        self.calls.append(filename)
        await asyncio.sleep(self.delays.get(filename, 0))
        self.completed.append(filename)
        if filename in self.fail:
            return UploadFailure(filename=filename, error="Drive upload failed with status 403", details={"code": 403})
        return UploadSuccess(
            filename=filename,
            remote_id=f"file-{next(self._ids)}",
            link=f"https://drive.example/{filename}",
            size=len(data),
        )


class AuthResponse(google_transport.Response):
    """httpx response presented through the google-auth transport interface"""

    def __init__(self, resp: httpx.Response):
        self._resp = resp

    @property
    def status(self):
        return self._resp.status_code

    @property
    def headers(self):
        return dict(self._resp.headers)

    @property
    def data(self):
        return self._resp.content


class FakeGoogle:
    """Routes httpx and token requests to handlers keyed by (method, path); records every request."""

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.routes: Dict[Tuple[str, str], Callable[[httpx.Request], httpx.Response]] = {}
        self.route("POST", "/token", lambda r: httpx.Response(200, json={"access_token": "test-token", "expires_in": 3600}))

    def route(self, method: str, path: str, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.routes[(method, path)] = handler

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get((request.method, request.url.path))
        if handler is None:
            return httpx.Response(404, json={"error": {"code": 404, "message": "Not found"}})
        return handler(request)

    def auth_request(self, url, method="GET", body=None, headers=None, timeout=None, **kwargs):
        """google-auth transport: token refreshes go through the same routes as API calls"""
        return AuthResponse(self(httpx.Request(method, url, headers=headers, content=body)))

    def calls(self, method: str, path: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


@pytest.fixture(scope="session")
def rsa_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def private_key_pem(rsa_key) -> str:
    return rsa_key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    ).decode()


@pytest.fixture(scope="session")
def public_key_pem(rsa_key) -> str:
    return rsa_key.public_key().public_bytes(
        serialization.Encoding.PEM,
        serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode()


@pytest.fixture
def service_account_file(tmp_path, private_key_pem) -> str:
    path = tmp_path / "service-account-key.json"
    path.write_text(json.dumps({
        "type": "service_account",
        "client_email": "uploader@event-photos.iam.gserviceaccount.com",
        "private_key": private_key_pem,
        "token_uri": "https://oauth2.googleapis.com/token",
    }))
    return str(path)


@pytest.fixture
def fake_google() -> FakeGoogle:
    return FakeGoogle()


@pytest.fixture
def fake_uploader() -> FakeUploader:
    return FakeUploader()


@pytest.fixture
def client(fake_uploader):
    """Test client with the uploader dependency replaced by FakeUploader"""
    app.dependency_overrides[get_uploader] = lambda: fake_uploader
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def photo_files(*names: str, content_type: str = "image/jpeg", data: Optional[bytes] = None):
    """Multipart `files=` payload with one `photos` part per name"""
    return [("photos", (name, data if data is not None else JPEG_BYTES, content_type)) for name in names]

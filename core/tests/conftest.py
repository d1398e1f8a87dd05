from __future__ import annotations

from pathlib import Path
from typing import Any

import httpx
import pytest
from support import BACKEND_URL


class FakeBackend:
    """Records requests sent to the gallery backend and replays canned responses."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.gallery: list[dict[str, Any]] = []
        self.list_status = 200
        self.write_status = 201
        self.write_body: Any = {"_id": "new-id"}

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if request.method == "GET" and path == "/api/gallery/admin/all":
            if self.list_status != 200:
                return httpx.Response(self.list_status, json={"message": "nope"})
            return httpx.Response(200, json={"gallery": self.gallery})
        if request.method in {"POST", "PATCH"} and path.startswith("/api/gallery"):
            if self.write_body is None:
                return httpx.Response(self.write_status)
            return httpx.Response(self.write_status, json=self.write_body)
        return httpx.Response(404, json={"message": "Not found"})

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]


@pytest.fixture
def fake_backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def creations_home(tmp_path: Path, monkeypatch) -> Path:
    monkeypatch.setenv("CREATIONS_HOME", str(tmp_path))
    monkeypatch.setenv("CREATIONS_BACKEND_URL", BACKEND_URL)
    monkeypatch.delenv("CREATIONS_AUTH_SECRET", raising=False)
    return tmp_path

"""Shared fixtures for spotpatch tests."""

from pathlib import Path

import httpx
import pytest


@pytest.fixture
def write_document(tmp_path):
    """Write a patch document under tmp_path and return its path."""

    def _write(name: str, content: str) -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def web():
    """In-memory web server: map URLs to (status, body) and get a transport.

    Unknown URLs answer 404. Every request URL is recorded in ``web.requests``.
    """

    class FakeWeb:
        def __init__(self):
            self.routes: dict[str, tuple[int, bytes]] = {}
            self.requests: list[str] = []
            self.transport = httpx.MockTransport(self._handle)

        def serve(self, url: str, body: str | bytes, status: int = 200) -> str:
            if isinstance(body, str):
                body = body.encode("utf-8")
            self.routes[url] = (status, body)
            return url

        def _handle(self, request: httpx.Request) -> httpx.Response:
            url = str(request.url)
            self.requests.append(url)
            status, body = self.routes.get(url, (404, b"not found"))
            return httpx.Response(status, content=body)

    return FakeWeb()

"""Shared fakes for tests: an in-memory requests.Session stand-in."""

from __future__ import annotations

import pytest
import requests

from pingrab.downloader import SegmentFetcher


class FakeResponse:
    def __init__(self, url: str, status_code: int = 200, body: bytes = b""):
        self.url = url
        self.status_code = status_code
        self._body = body
        self.closed = False

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    @property
    def content(self) -> bytes:
        return self._body

    def iter_content(self, chunk_size: int = 1):
        for i in range(0, len(self._body), chunk_size):
            yield self._body[i:i + chunk_size]

    def raise_for_status(self) -> None:
        if not self.ok:
            raise requests.HTTPError(f"{self.status_code} for url: {self.url}", response=self)

    def close(self) -> None:
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


class FakeSession:
    """Serves canned bodies by URL and records the order of requests."""

    def __init__(self, routes: dict[str, bytes | int | Exception] | None = None):
        self.routes = dict(routes or {})
        self.calls: list[str] = []

    def get(self, url: str, **kwargs):
        self.calls.append(url)
        route = self.routes.get(url, 404)
        if isinstance(route, Exception):
            raise route
        if isinstance(route, int):
            return FakeResponse(url, status_code=route, body=b"<html>error</html>")
        return FakeResponse(url, body=route)


@pytest.fixture
def make_session():
    """Factory for FakeSession(routes)."""
    return FakeSession


@pytest.fixture
def make_fetcher(make_session):
    """Factory returning (SegmentFetcher, FakeSession) for the given routes."""

    def build(routes):
        session = make_session(routes)
        return SegmentFetcher(session=session), session

    return build

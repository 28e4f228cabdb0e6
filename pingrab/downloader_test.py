"""Tests for the single-shot HTTP fetcher."""

from pathlib import Path

import pytest
import requests

from pingrab.downloader import SegmentFetcher
from pingrab.errors import FetchError, NetworkError


URL = "https://v1.pinimg.com/videos/iht/expMp4/ab/cd/ef/abcdef_720w.cmfv"


class TestFetch:
    def test_returns_body(self, make_session):
        fetcher = SegmentFetcher(session=make_session({URL: b"video-bytes"}))
        assert fetcher.fetch(URL) == b"video-bytes"

    def test_single_request_no_retry(self, make_session):
        session = make_session({URL: requests.ConnectionError("reset")})
        fetcher = SegmentFetcher(session=session)
        with pytest.raises(FetchError):
            fetcher.fetch(URL)
        assert session.calls == [URL]

    def test_connection_error_carries_url_and_cause(self, make_session):
        cause = requests.ConnectionError("refused")
        fetcher = SegmentFetcher(session=make_session({URL: cause}))
        with pytest.raises(FetchError) as exc_info:
            fetcher.fetch(URL)
        assert exc_info.value.url == URL
        assert exc_info.value.cause is cause
        assert isinstance(exc_info.value, NetworkError)

    def test_non_2xx_fails_when_strict(self, make_session):
        fetcher = SegmentFetcher(session=make_session({URL: 403}))
        with pytest.raises(FetchError) as exc_info:
            fetcher.fetch(URL)
        assert isinstance(exc_info.value.cause, requests.HTTPError)

    def test_non_2xx_body_kept_when_lenient(self, make_session):
        fetcher = SegmentFetcher(session=make_session({URL: 500}), strict_status=False)
        assert fetcher.fetch(URL) == b"<html>error</html>"


class TestDownloadFile:
    def test_writes_full_body(self, make_session, tmp_path: Path):
        body = bytes(range(256)) * 100
        fetcher = SegmentFetcher(session=make_session({URL: body}))
        out = fetcher.download_file(URL, tmp_path / "video.mp4")
        assert out == tmp_path / "video.mp4"
        assert out.read_bytes() == body

    def test_failure_leaves_no_file(self, make_session, tmp_path: Path):
        fetcher = SegmentFetcher(session=make_session({URL: 404}))
        with pytest.raises(FetchError):
            fetcher.download_file(URL, tmp_path / "video.mp4")
        assert not (tmp_path / "video.mp4").exists()

    def test_missing_parent_dir_is_not_created(self, make_session, tmp_path: Path):
        fetcher = SegmentFetcher(session=make_session({URL: b"x"}))
        with pytest.raises(FileNotFoundError):
            fetcher.download_file(URL, tmp_path / "missing" / "video.mp4")

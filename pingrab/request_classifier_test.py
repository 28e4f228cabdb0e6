"""Tests for request suffix classification and candidate selection."""

import threading
from types import SimpleNamespace

import pytest

from pingrab.errors import NoVideoCandidateFound
from pingrab.request_classifier import (
    FORMAT_DIRECT,
    FORMAT_SEGMENTED,
    AcquisitionSession,
    RequestClassifier,
    choose_candidates,
    classify,
    is_video_url,
)


CMFV_1 = "https://v1.pinimg.com/videos/iht/expMp4/ab/cd/ef/abcdef_360w.cmfv"
CMFV_2 = "https://v1.pinimg.com/videos/iht/expMp4/ab/cd/ef/abcdef_720w.cmfv"
CMFA_1 = "https://v1.pinimg.com/videos/iht/expMp4/ab/cd/ef/abcdef_audio_1.cmfa"
CMFA_2 = "https://v1.pinimg.com/videos/iht/expMp4/ab/cd/ef/abcdef_audio_2.cmfa"
M3U8_1 = "https://v1.pinimg.com/videos/iht/hls/ab/cd/ef/abcdef.m3u8"
M3U8_2 = "https://v1.pinimg.com/videos/iht/hls/ab/cd/ef/abcdef_720w.m3u8"
OTHER = [
    "https://www.pinterest.com/resource/PinResource/get/",
    "https://i.pinimg.com/736x/ab/cd/ef/abcdef.jpg",
    "https://v1.pinimg.com/videos/iht/hls/ab/cd/ef/abcdef.m3u8?token=1",
    "https://v1.pinimg.com/videos/iht/expMp4/ab/cd/ef/abcdef.CMFV",
    "https://v1.pinimg.com/videos/iht/hls/ab/cd/ef/seg0.ts",
]


class TestClassify:
    def test_pools_keep_arrival_order_and_ignore_others(self):
        session = AcquisitionSession()
        events = [OTHER[0], M3U8_1, CMFV_1, OTHER[1], CMFA_1, M3U8_2, CMFV_2, *OTHER[2:]]
        for url in events:
            classify(session, url)
        assert session.direct_video == [CMFV_1, CMFV_2]
        assert session.segmented_video == [M3U8_1, M3U8_2]
        assert session.audio_candidate == CMFA_1

    def test_last_audio_wins(self):
        session = AcquisitionSession()
        classify(session, CMFA_1)
        classify(session, CMFA_2)
        assert session.audio_candidate == CMFA_2

    @pytest.mark.parametrize("url", OTHER)
    def test_unmatched_url_is_ignored(self, url):
        session = AcquisitionSession()
        assert classify(session, url) is None
        assert session.direct_video == [] and session.segmented_video == []
        assert session.audio_candidate == ""

    def test_concurrent_writers(self):
        session = AcquisitionSession()

        def push(n):
            for i in range(200):
                classify(session, f"https://cdn/{n}/{i}.cmfv")

        threads = [threading.Thread(target=push, args=(n,)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert len(session.direct_video) == 800


class TestChooseCandidates:
    def test_direct_pool_preferred_over_segmented(self):
        session = AcquisitionSession()
        for url in [M3U8_1, CMFV_1, M3U8_2, CMFA_1]:
            classify(session, url)
        cand = choose_candidates(session)
        assert cand.format == FORMAT_DIRECT
        assert cand.video_url == CMFV_1
        assert cand.audio_url == CMFA_1
        assert session.video_url == CMFV_1
        assert session.audio_url == CMFA_1

    def test_last_direct_wins(self):
        session = AcquisitionSession()
        for url in [CMFV_1, CMFV_2]:
            classify(session, url)
        assert choose_candidates(session).video_url == CMFV_2

    def test_last_segmented_wins(self):
        session = AcquisitionSession()
        for url in [M3U8_1, M3U8_2]:
            classify(session, url)
        cand = choose_candidates(session)
        assert cand.format == FORMAT_SEGMENTED
        assert cand.video_url == M3U8_2
        assert cand.audio_url == ""

    def test_no_video(self):
        session = AcquisitionSession()
        classify(session, CMFA_1)
        with pytest.raises(NoVideoCandidateFound):
            choose_candidates(session)


class TestRequestClassifier:
    def test_on_request_uses_request_url(self):
        classifier = RequestClassifier()
        classifier.on_request(SimpleNamespace(url=M3U8_1))
        classifier.on_request(SimpleNamespace(url=OTHER[0]))
        assert classifier.session.segmented_video == [M3U8_1]
        assert classifier.session.direct_video == []

    def test_on_request_then_choose(self):
        classifier = RequestClassifier()
        for url in [CMFV_1, CMFA_1]:
            classifier.on_request(SimpleNamespace(url=url))
        assert classifier.choose().video_url == CMFV_1


def test_is_video_url():
    assert is_video_url(CMFV_1)
    assert is_video_url(M3U8_1)
    assert not is_video_url(CMFA_1)
    assert not is_video_url(OTHER[2])

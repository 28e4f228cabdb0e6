from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, List

from pingrab.errors import NoVideoCandidateFound

__all__ = [
    "AcquisitionSession",
    "Candidates",
    "RequestClassifier",
    "choose_candidates",
    "classify",
    "is_video_url",
]

log = logging.getLogger(__name__)

AUDIO_SUFFIX = "cmfa"
DIRECT_VIDEO_SUFFIX = "cmfv"
MANIFEST_SUFFIX = "m3u8"

FORMAT_DIRECT = "direct"
FORMAT_SEGMENTED = "segmented"


@dataclass
class AcquisitionSession:
    """
    单次抓取的状态：两个视频候选池（按到达顺序）+ 最后一次看到的音频。
    只在一次运行内使用，不复用。
    """

    direct_video: List[str] = field(default_factory=list)
    segmented_video: List[str] = field(default_factory=list)
    audio_candidate: str = ""
    video_url: str = ""
    audio_url: str = ""
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)


@dataclass(frozen=True)
class Candidates:
    video_url: str
    audio_url: str
    format: str


def is_video_url(url: str) -> bool:
    return url.endswith(DIRECT_VIDEO_SUFFIX) or url.endswith(MANIFEST_SUFFIX)


def classify(session: AcquisitionSession, url: str) -> str | None:
    """
    按后缀（区分大小写，不去掉 query）把 URL 放进对应的池。
    返回命中的后缀；未命中返回 None，不报错。
    """
    with session.lock:
        if url.endswith(AUDIO_SUFFIX):
            session.audio_candidate = url
            return AUDIO_SUFFIX
        if url.endswith(DIRECT_VIDEO_SUFFIX):
            session.direct_video.append(url)
            return DIRECT_VIDEO_SUFFIX
        if url.endswith(MANIFEST_SUFFIX):
            session.segmented_video.append(url)
            return MANIFEST_SUFFIX
    return None


def choose_candidates(session: AcquisitionSession) -> Candidates:
    """
    观察结束后调用一次：cmfv 池优先，其次 m3u8 池，都取最后一个。
    音频取最后一次看到的 cmfa（可能为空）。
    """
    with session.lock:
        if session.direct_video:
            video, fmt = session.direct_video[-1], FORMAT_DIRECT
        elif session.segmented_video:
            video, fmt = session.segmented_video[-1], FORMAT_SEGMENTED
        else:
            raise NoVideoCandidateFound("没有捕获到任何 cmfv / m3u8 请求")
        session.video_url = video
        session.audio_url = session.audio_candidate
        return Candidates(video_url=video, audio_url=session.audio_url, format=fmt)


class RequestClassifier:
    """把 Playwright 的 request 事件接到 classify 上。"""

    def __init__(self, session: AcquisitionSession | None = None) -> None:
        self.session = session or AcquisitionSession()

    def on_request(self, request: Any) -> None:
        url = request.url
        hit = classify(self.session, url)
        if hit:
            log.debug("[classify] %s: %s", hit, url)

    def choose(self) -> Candidates:
        return choose_candidates(self.session)

from __future__ import annotations

import logging
import shutil
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Protocol

from pingrab.config import GrabConfig
from pingrab.downloader import SegmentFetcher
from pingrab.errors import AcquisitionError, NoAudioCandidateFound, PinGrabError
from pingrab.ffmpeg import Transcoder
from pingrab.m3u8_downloader import reconstruct_to_file
from pingrab.network_watcher import NetworkWatcher
from pingrab.request_classifier import (
    FORMAT_DIRECT,
    AcquisitionSession,
    Candidates,
    RequestClassifier,
)

__all__ = ["AcquisitionPaths", "AcquisitionResult", "VideoGrabber"]

log = logging.getLogger(__name__)


class Observer(Protocol):
    def observe(self, start_url: str, classifier: RequestClassifier) -> None: ...


@dataclass(frozen=True)
class AcquisitionPaths:
    video_file: Path
    raw_audio_file: Path
    audio_file: Path
    segments_file: Path

    @classmethod
    def in_dir(cls, work_dir: Path) -> "AcquisitionPaths":
        return cls(
            video_file=work_dir / "video.mp4",
            raw_audio_file=work_dir / "audio.m4a",
            audio_file=work_dir / "audio.mp3",
            segments_file=work_dir / "output.ts",
        )

    def all(self) -> tuple[Path, ...]:
        return self.video_file, self.raw_audio_file, self.audio_file, self.segments_file


@dataclass(frozen=True)
class AcquisitionResult:
    output_file: Path
    format: str
    video_url: str
    audio_url: str


class VideoGrabber:
    """
    一次抓取的完整流程：
    打开页面收集请求 → 选定视频/音频 → 下载（cmfv 直链 或 m3u8 分片拼接）→ ffmpeg 合并/转封装 → 清理中间文件。
    任一步失败立即终止，异常上带 step；中间文件在所有退出路径上都会尝试删除。
    """

    def __init__(
            self,
            config: GrabConfig | None = None,
            observer: Observer | None = None,
            fetcher: SegmentFetcher | None = None,
            transcoder: Transcoder | None = None,
    ) -> None:
        self.config = config or GrabConfig()
        cfg = self.config
        self.observer = observer or NetworkWatcher(
            headless=cfg.headless,
            observe_timeout_ms=cfg.observe_timeout_ms,
            settle_ms=cfg.settle_ms,
            navigation_timeout_ms=cfg.navigation_timeout_ms,
        )
        self.fetcher = fetcher or SegmentFetcher(timeout=cfg.http_timeout, strict_status=cfg.strict_status)
        self.transcoder = transcoder or Transcoder(
            ffmpeg_bin=cfg.ffmpeg_bin,
            audio_codec=cfg.audio_codec,
            audio_bitrate=cfg.audio_bitrate,
            timeout=cfg.ffmpeg_timeout,
        )
        self.session = AcquisitionSession()
        self.candidates: Candidates | None = None

    @staticmethod
    @contextmanager
    def _step(name: str) -> Iterator[None]:
        log.info("[grab] %s", name)
        try:
            yield
        except PinGrabError as exc:
            if exc.step is None:
                exc.step = name
            raise
        except Exception as exc:  # noqa: BLE001
            raise AcquisitionError(name, exc) from exc

    def take_requests(self, start_url: str) -> Candidates:
        """打开页面、收集请求，并选出视频/音频地址。"""
        self.session = AcquisitionSession()
        classifier = RequestClassifier(self.session)
        with self._step("observe"):
            self.observer.observe(start_url, classifier)
        with self._step("classify"):
            self.candidates = classifier.choose()
        log.info("[grab] video (%s): %s", self.candidates.format, self.candidates.video_url)
        log.info("[grab] audio: %s", self.candidates.audio_url or "-")
        return self.candidates

    def _require_candidates(self) -> Candidates:
        if self.candidates is None:
            raise RuntimeError("请先调用 take_requests()")
        return self.candidates

    def save_video(self, paths: AcquisitionPaths) -> Path:
        """
        cmfv：直接下载到 paths.video_file；
        m3u8：分片拼接到 paths.segments_file。
        """
        cand = self._require_candidates()
        if cand.format == FORMAT_DIRECT:
            with self._step("download_video"):
                return self.fetcher.download_file(cand.video_url, paths.video_file)
        with self._step("reconstruct"):
            return reconstruct_to_file(
                cand.video_url,
                paths.segments_file,
                fetcher=self.fetcher,
                workers=self.config.segment_workers,
            )

    def save_audio(self, paths: AcquisitionPaths) -> Path:
        """下载 cmfa 到 raw_audio_file，再转码为 audio_file。"""
        cand = self._require_candidates()
        with self._step("download_audio"):
            if not cand.audio_url:
                raise NoAudioCandidateFound("cmfv 视频没有对应的 cmfa 音频请求")
            self.fetcher.download_file(cand.audio_url, paths.raw_audio_file)
        with self._step("transcode_audio"):
            return self.transcoder.transcode_audio(paths.raw_audio_file, paths.audio_file)

    def merge(self, video_file: Path, audio_file: Path, output_file: Path) -> Path:
        with self._step("mux"):
            return self.transcoder.mux(video_file, audio_file, output_file)

    def repackage(self, segments_file: Path, output_file: Path) -> Path:
        with self._step("repackage"):
            return self.transcoder.repackage(segments_file, output_file)

    @contextmanager
    def _paths(self, paths: AcquisitionPaths | None) -> Iterator[AcquisitionPaths]:
        if paths is not None:
            try:
                yield paths
            finally:
                _remove_quietly(paths.all())
            return

        if self.config.work_dir is not None:
            work_dir = Path(tempfile.mkdtemp(prefix="pingrab-", dir=self.config.work_dir))
        else:
            work_dir = Path(tempfile.mkdtemp(prefix="pingrab-"))
        try:
            yield AcquisitionPaths.in_dir(work_dir)
        finally:
            shutil.rmtree(work_dir, ignore_errors=True)

    def grab(
            self,
            start_url: str,
            output_file: str | Path,
            paths: AcquisitionPaths | None = None,
    ) -> AcquisitionResult:
        """
        一步到位：抓请求、下载、合并，产出 output_file。
        paths 为 None 时中间文件放在本次运行独立的临时目录里。
        """
        output_file = Path(output_file)
        cand = self.take_requests(start_url)
        if cand.format == FORMAT_DIRECT and not cand.audio_url:
            exc = NoAudioCandidateFound("cmfv 视频没有对应的 cmfa 音频请求")
            exc.step = "classify"
            raise exc

        existed = output_file.exists()
        try:
            with self._paths(paths) as p:
                video = self.save_video(p)
                if cand.format == FORMAT_DIRECT:
                    audio = self.save_audio(p)
                    self.merge(video, audio, output_file)
                else:
                    self.repackage(video, output_file)
        except PinGrabError:
            # 不交付半成品
            if not existed:
                _remove_quietly((output_file,))
            raise

        log.info("[grab] done: %s", output_file)
        return AcquisitionResult(
            output_file=output_file,
            format=cand.format,
            video_url=cand.video_url,
            audio_url=cand.audio_url,
        )


def _remove_quietly(files: tuple[Path, ...]) -> None:
    for f in files:
        try:
            f.unlink()
        except FileNotFoundError:
            continue
        except OSError as exc:
            log.warning("[grab] cleanup failed: %s (%s)", f, exc)

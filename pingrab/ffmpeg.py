from __future__ import annotations

"""
ffmpeg 调用：音频转码 / 音视频合并 / 转封装

三个操作都是同步阻塞调用，非零退出统一抛 TranscodeError（带上 stderr）。
"""

import logging
import subprocess
from pathlib import Path

from pingrab.errors import TranscodeError

log = logging.getLogger(__name__)

DEFAULT_AUDIO_CODEC = "libmp3lame"
DEFAULT_AUDIO_BITRATE = "192k"


class Transcoder:
    def __init__(
            self,
            ffmpeg_bin: str = "ffmpeg",
            audio_codec: str = DEFAULT_AUDIO_CODEC,
            audio_bitrate: str = DEFAULT_AUDIO_BITRATE,
            timeout: float | None = None,
    ) -> None:
        self.ffmpeg_bin = ffmpeg_bin
        self.audio_codec = audio_codec
        self.audio_bitrate = audio_bitrate
        self.timeout = timeout

    def _cmd(self, *args: str | Path) -> list[str]:
        return [self.ffmpeg_bin, "-y", "-loglevel", "error", *(str(a) for a in args)]

    def _run(self, operation: str, cmd: list[str], output_file: Path) -> Path:
        log.info("[ffmpeg] %s start: %s", operation, output_file)
        log.debug("[ffmpeg] cmd: %s", cmd)
        try:
            subprocess.run(cmd, check=True, capture_output=True, text=True, timeout=self.timeout)
        except FileNotFoundError:
            raise TranscodeError(operation, None, f"未找到 {self.ffmpeg_bin}，请先安装") from None
        except subprocess.TimeoutExpired:
            raise TranscodeError(operation, None, f"超时（{self.timeout}s）") from None
        except subprocess.CalledProcessError as exc:
            raise TranscodeError(operation, exc.returncode, exc.stderr or "") from None

        log.info("[ffmpeg] %s done: %s", operation, output_file)
        return output_file

    def transcode_audio(self, input_file: str | Path, output_file: str | Path) -> Path:
        """去掉视频流，按固定码率重新编码音频。"""
        output_file = Path(output_file)
        cmd = self._cmd(
            "-i", input_file,
            "-vn",
            "-acodec", self.audio_codec,
            "-b:a", self.audio_bitrate,
            output_file,
        )
        return self._run("transcode_audio", cmd, output_file)

    def mux(self, video_file: str | Path, audio_file: str | Path, output_file: str | Path) -> Path:
        """合并独立的视频和音频，不重新编码。"""
        output_file = Path(output_file)
        cmd = self._cmd("-i", video_file, "-i", audio_file, "-c", "copy", output_file)
        return self._run("mux", cmd, output_file)

    def repackage(self, input_file: str | Path, output_file: str | Path) -> Path:
        """
        只换容器（如 .ts → .mp4），不重新编码。
        """
        output_file = Path(output_file)
        cmd = self._cmd("-i", input_file, "-c", "copy", output_file)
        return self._run("repackage", cmd, output_file)

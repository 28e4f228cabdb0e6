from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Mapping

ENV_PREFIX = "PINGRAB_"
_OPTIONAL_SECONDS = {"http_timeout", "ffmpeg_timeout"}


def _to_bool(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class GrabConfig:
    headless: bool = True
    # 等第一个视频请求出现的最长时间
    observe_timeout_ms: int = 10_000
    # 看到视频请求后再继续收集的时间（"最后一个为准"）
    settle_ms: int = 3_000
    navigation_timeout_ms: int = 60_000
    http_timeout: float | None = 30
    ffmpeg_timeout: float | None = None
    segment_workers: int = 1
    strict_status: bool = True
    ffmpeg_bin: str = "ffmpeg"
    audio_codec: str = "libmp3lame"
    audio_bitrate: str = "192k"
    # None 表示每次运行使用独立的临时目录
    work_dir: Path | None = None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "GrabConfig":
        """
        从 PINGRAB_* 环境变量读取配置，例如 PINGRAB_HEADLESS=0、PINGRAB_SEGMENT_WORKERS=4。
        未设置的字段使用默认值；空字符串表示 None（仅对可为 None 的字段）。
        """
        environ = os.environ if environ is None else environ
        kwargs = {}
        for f in fields(cls):
            raw = environ.get(ENV_PREFIX + f.name.upper())
            if raw is None:
                continue
            default = f.default
            if f.name == "work_dir":
                kwargs[f.name] = Path(raw) if raw else None
            elif f.name in _OPTIONAL_SECONDS:
                kwargs[f.name] = float(raw) if raw else None
            elif isinstance(default, bool):
                kwargs[f.name] = _to_bool(raw)
            elif isinstance(default, int):
                kwargs[f.name] = int(raw)
            else:
                kwargs[f.name] = raw
        return cls(**kwargs)

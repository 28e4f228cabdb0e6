"""
异常定义：抓取 / 重建 / 转码流程中的所有错误。
"""
from __future__ import annotations


class PinGrabError(Exception):
    """所有 pingrab 异常的基类。"""

    # 由 VideoGrabber 在失败时写入出错的步骤名
    step: str | None = None


class NetworkError(PinGrabError):
    """页面打开或任何下载失败。"""


class FetchError(NetworkError):
    """单次 GET 失败（连接错误或非 2xx 状态码）。"""

    def __init__(self, url: str, cause: BaseException | str | None = None) -> None:
        self.url = url
        self.cause = cause
        super().__init__(f"下载失败: {url} ({cause})")


class ManifestFetchError(FetchError):
    """m3u8 清单本身下载失败。"""


class SegmentFetchError(FetchError):
    """清单中某个分片下载失败，index 为分片序号（从 0 开始）。"""

    def __init__(self, index: int, url: str, cause: BaseException | str | None = None) -> None:
        self.index = index
        super().__init__(url, cause)
        self.args = (f"分片 #{index} 下载失败: {url} ({cause})",)


class MalformedManifestURL(PinGrabError, ValueError):
    """m3u8 地址层级不足，无法推出分片前缀。"""


class NoVideoCandidateFound(PinGrabError):
    """没有捕获到任何 cmfv / m3u8 请求。"""


class NoAudioCandidateFound(PinGrabError):
    """cmfv 直链视频没有可配对的 cmfa 音频。"""


class TranscodeError(PinGrabError):
    """ffmpeg 非零退出、未安装或超时。"""

    def __init__(self, operation: str, exit_status: int | None, stderr: str = "") -> None:
        self.operation = operation
        self.exit_status = exit_status
        self.stderr = stderr
        msg = f"ffmpeg {operation} 失败（exit={exit_status}）"
        if stderr.strip():
            msg += f": {stderr.strip().splitlines()[-1]}"
        super().__init__(msg)


class AcquisitionError(PinGrabError):
    """包装某个步骤里抛出的非 pingrab 异常。"""

    def __init__(self, step: str, cause: BaseException) -> None:
        self.step = step
        self.cause = cause
        super().__init__(f"[{step}] {cause}")

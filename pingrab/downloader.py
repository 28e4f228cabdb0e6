from __future__ import annotations

import logging
from pathlib import Path
from typing import BinaryIO

import requests

from pingrab.errors import FetchError

log = logging.getLogger(__name__)

CHUNK_SIZE = 8192
DEFAULT_TIMEOUT = 30


class SegmentFetcher:
    """
    单次 GET 下载器：不重试、不改重定向策略。
    - strict_status=True 时非 2xx 直接抛 FetchError；False 时按原样写出响应体
    - timeout=None 表示不设超时
    """

    def __init__(
            self,
            session: requests.Session | None = None,
            timeout: float | None = DEFAULT_TIMEOUT,
            strict_status: bool = True,
    ) -> None:
        self.session = session or requests.Session()
        self.timeout = timeout
        self.strict_status = strict_status

    def _get(self, url: str) -> requests.Response:
        try:
            resp = self.session.get(url, stream=True, timeout=self.timeout)
        except requests.RequestException as exc:
            raise FetchError(url, exc) from exc
        if self.strict_status:
            try:
                resp.raise_for_status()
            except requests.HTTPError as exc:
                resp.close()
                raise FetchError(url, exc) from exc
        elif not resp.ok:
            log.warning("[fetch] status %s ignored: %s", resp.status_code, url)
        return resp

    def copy_to(self, url: str, sink: BinaryIO) -> int:
        """把 URL 的响应体完整写入 sink，返回写入字节数。"""
        written = 0
        with self._get(url) as resp:
            try:
                for chunk in resp.iter_content(chunk_size=CHUNK_SIZE):
                    if chunk:
                        sink.write(chunk)
                        written += len(chunk)
            except requests.RequestException as exc:
                raise FetchError(url, exc) from exc
        return written

    def fetch(self, url: str) -> bytes:
        with self._get(url) as resp:
            try:
                return resp.content
            except requests.RequestException as exc:
                raise FetchError(url, exc) from exc

    def download_file(self, url: str, output_path: str | Path) -> Path:
        """
        下载指定 URL 到指定路径（包含文件名）。
        父目录必须已存在；失败时删除写了一半的文件。
        """
        target = Path(output_path)
        log.info("[fetch] start: %s -> %s", url, target)
        try:
            with target.open("wb") as f:
                size = self.copy_to(url, f)
        except FetchError:
            target.unlink(missing_ok=True)
            raise
        log.info("[fetch] done: %s (%d bytes)", target, size)
        return target

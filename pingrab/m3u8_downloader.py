from __future__ import annotations

"""
工具方法：m3u8 清单 → 按顺序拼接的 .ts 流

暴露的函数：
- segment_base_path(manifest_url) -> str
- parse_segments(body) -> list[str]
- reconstruct(manifest_url, sink, fetcher=None, workers=1) -> int
- reconstruct_to_file(manifest_url, output_file, fetcher=None, workers=1) -> Path

特点：
- 只支持单层分片列表（不处理多码率 / 嵌套清单）
- 分片不做大小、校验和、content-type 检查，原样拼接
- workers > 1 时并发下载，但写出顺序始终是清单顺序
"""

import logging
from collections import deque
from concurrent.futures import Future, ThreadPoolExecutor
from itertools import islice
from pathlib import Path
from typing import BinaryIO, Iterator

from pingrab.downloader import SegmentFetcher
from pingrab.errors import FetchError, MalformedManifestURL, ManifestFetchError, SegmentFetchError

log = logging.getLogger(__name__)

SEGMENT_SUFFIX = ".ts"
# scheme: + '' + host + 6 级路径 = 9 段
BASE_PATH_DEPTH = 9
PREFETCH_FACTOR = 2


def segment_base_path(manifest_url: str, depth: int = BASE_PATH_DEPTH) -> str:
    """取 URL 按 '/' 切分后的前 depth 段，末尾补 '/'。"""
    parts = manifest_url.split("/")
    if len(parts) < depth:
        raise MalformedManifestURL(
            f"m3u8 地址层级不足 {depth} 段（实际 {len(parts)}）: {manifest_url}"
        )
    return "/".join(parts[:depth]) + "/"


def parse_segments(body: str) -> list[str]:
    """按清单顺序返回所有以 .ts 结尾的行。"""
    segments: list[str] = []
    for line in body.split("\n"):
        line = line.rstrip("\r")
        if line.endswith(SEGMENT_SUFFIX):
            segments.append(line)
    return segments


def _fetch_segment(fetcher: SegmentFetcher, index: int, url: str) -> bytes:
    try:
        return fetcher.fetch(url)
    except FetchError as exc:
        raise SegmentFetchError(index, url, exc.cause) from exc


def _iter_segments(fetcher: SegmentFetcher, urls: list[str], workers: int) -> Iterator[bytes]:
    if workers <= 1:
        for i, url in enumerate(urls):
            yield _fetch_segment(fetcher, i, url)
        return

    # 滑动窗口：最多 workers * PREFETCH_FACTOR 个分片在途，按队首顺序产出
    window = workers * PREFETCH_FACTOR
    todo = iter(enumerate(urls))
    pending: deque[Future[bytes]] = deque()
    with ThreadPoolExecutor(max_workers=workers) as pool:
        try:
            for i, url in islice(todo, window):
                pending.append(pool.submit(_fetch_segment, fetcher, i, url))
            while pending:
                data = pending.popleft().result()
                nxt = next(todo, None)
                if nxt is not None:
                    pending.append(pool.submit(_fetch_segment, fetcher, *nxt))
                yield data
        finally:
            for fut in pending:
                fut.cancel()


def reconstruct(
        manifest_url: str,
        sink: BinaryIO,
        fetcher: SegmentFetcher | None = None,
        workers: int = 1,
) -> int:
    """
    下载 m3u8 清单，并把所有分片按顺序写入 sink。
    返回写入的字节数；清单里没有分片时返回 0，不报错。
    任一分片失败即抛 SegmentFetchError，sink 中已写的内容视为无效。
    """
    base = segment_base_path(manifest_url)
    fetcher = fetcher or SegmentFetcher()

    try:
        body = fetcher.fetch(manifest_url).decode("utf-8", errors="replace")
    except FetchError as exc:
        raise ManifestFetchError(manifest_url, exc.cause) from exc
    log.debug("[m3u8] manifest body:\n%s", body)

    urls = [base + seg for seg in parse_segments(body)]
    total = len(urls)
    log.info("[m3u8] %d segments, base=%s", total, base)

    written = 0
    for i, data in enumerate(_iter_segments(fetcher, urls, workers), start=1):
        sink.write(data)
        written += len(data)
        log.debug("[m3u8] [%d/%d] %s (%d bytes)", i, total, urls[i - 1], len(data))

    if total == 0:
        log.warning("[m3u8] manifest has no %s segments: %s", SEGMENT_SUFFIX, manifest_url)
    return written


def reconstruct_to_file(
        manifest_url: str,
        output_file: str | Path,
        fetcher: SegmentFetcher | None = None,
        workers: int = 1,
) -> Path:
    """reconstruct 的文件版本：失败时删除写了一半的输出文件。"""
    target = Path(output_file)
    try:
        with target.open("wb") as f:
            size = reconstruct(manifest_url, f, fetcher=fetcher, workers=workers)
    except BaseException:
        target.unlink(missing_ok=True)
        raise
    log.info("[m3u8] done: %s (%d bytes)", target, size)
    return target

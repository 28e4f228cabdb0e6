from __future__ import annotations

"""
入口脚本：抓取一个页面里的视频并输出为单个文件。
运行：
    python -m pingrab <page_url> <output_file>
配置通过 PINGRAB_* 环境变量调整（见 pingrab.config.GrabConfig）。
"""

import logging
import sys

from pingrab.config import GrabConfig
from pingrab.errors import PinGrabError
from pingrab.grabber import VideoGrabber


def main(argv: list[str] | None = None) -> int:
    argv = sys.argv if argv is None else argv
    if len(argv) != 3:
        print("用法: python -m pingrab <page_url> <output_file>")
        print("示例: python -m pingrab https://www.pinterest.com/pin/123456789/ downloads/pin.mp4")
        return 1

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    page_url, output_file = argv[1], argv[2]
    try:
        result = VideoGrabber(GrabConfig.from_env()).grab(page_url, output_file)
    except PinGrabError as exc:
        print(f"下载失败 [{exc.step}]: {exc}")
        return 1

    print(f"下载完成: {result.output_file} ({result.format})")
    return 0


if __name__ == "__main__":
    sys.exit(main())

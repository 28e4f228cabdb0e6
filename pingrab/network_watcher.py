from __future__ import annotations

import logging
from typing import Callable

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Page, sync_playwright
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from pingrab.errors import NetworkError
from pingrab.request_classifier import RequestClassifier, is_video_url

__all__ = ["NetworkWatcher", "wait_first_video_on_action"]

log = logging.getLogger(__name__)


def wait_first_video_on_action(page: Page, action: Callable[[], None], timeout_ms: int) -> str | None:
    """
    执行 action（通常是 goto），等待第一个 cmfv / m3u8 请求。
    超时返回 None，由调用方决定是否继续。
    """
    try:
        with page.expect_request(lambda r: is_video_url(r.url), timeout=timeout_ms) as reqinfo:
            action()
        return reqinfo.value.url
    except PlaywrightTimeoutError:
        return None


class NetworkWatcher:
    """
    用 Playwright 打开页面并把所有请求交给 RequestClassifier。
    监听必须在 goto 之前挂上，否则会漏掉请求。
    """

    def __init__(
            self,
            headless: bool = True,
            observe_timeout_ms: int = 10_000,
            settle_ms: int = 3_000,
            navigation_timeout_ms: int = 60_000,
    ) -> None:
        self.headless = headless
        self.observe_timeout_ms = observe_timeout_ms
        self.settle_ms = settle_ms
        self.navigation_timeout_ms = navigation_timeout_ms

    def _goto(self, page: Page, url: str) -> None:
        # 导航超时也算打开失败，不能当成"没看到视频请求"
        try:
            page.goto(url, wait_until="domcontentloaded", timeout=self.navigation_timeout_ms)
        except PlaywrightError as exc:
            raise NetworkError(f"页面打开失败: {url} ({exc})") from exc

    def observe(self, start_url: str, classifier: RequestClassifier) -> None:
        with sync_playwright() as pwt:
            browser = pwt.chromium.launch(headless=self.headless)
            try:
                ctx = browser.new_context()
                page = ctx.new_page()
                page.on("request", classifier.on_request)

                first = wait_first_video_on_action(
                    page,
                    action=lambda: self._goto(page, start_url),
                    timeout_ms=self.observe_timeout_ms,
                )

                if first:
                    log.info("[watch] first video request: %s", first)
                else:
                    log.warning("[watch] no video request within %d ms", self.observe_timeout_ms)

                # 同一角色可能还有后续请求，多等一会儿
                page.wait_for_timeout(self.settle_ms)
                ctx.close()
            finally:
                browser.close()

"""
ドライバー — 低レベルブラウザコマンドのインターフェースと実装

ハーネスの上位レイヤー（ナビゲーション補助、JS エラー監視、コントローラー操作）は
全てこのインターフェースを通してブラウザにコマンドを発行する。

主な構成:
  - Driver Protocol: 低レベルコマンドの共通インターフェース
  - PlaywrightDriver: Playwright Page を使った実装（コンソールログの収集を含む）
  - ThrottledDriver: 任意の Driver を包み、各コマンドの直前にスロットル遅延を挿入する
"""

from __future__ import annotations

import logging
import re
import time
from typing import TYPE_CHECKING, Any, Optional, Protocol, runtime_checkable

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from .errors import ElementNotFound, TransientNetworkTimeout
from .js_errors import ConsoleEntry

if TYPE_CHECKING:
    from playwright.async_api import ConsoleMessage, Locator, Page

    from .throttle import ExecutionThrottle

logger = logging.getLogger(__name__)

# Playwright のコンソール種別 → WebDriver ログレベル
# WebDriver の既定のブラウザログと同じく、log / info / debug 等は記録しない
_CONSOLE_LEVELS = {
    "error": "SEVERE",
    "assert": "SEVERE",
    "warning": "WARNING",
}

# 一時的なネットワーク障害とみなすエラー文字列
_TRANSIENT_NETWORK_MARKERS = (
    "net::ERR_TIMED_OUT",
    "net::ERR_CONNECTION_RESET",
    "net::ERR_EMPTY_RESPONSE",
)

# キー入力で名前付きキーに置き換える文字
_NAMED_KEYS = {"\n": "Enter", "\t": "Tab"}


# ---------------------------------------------------------------------------
# Driver Protocol
# ---------------------------------------------------------------------------

@runtime_checkable
class Driver(Protocol):
    """低レベルブラウザコマンドの共通インターフェース。

    要素は実装依存の不透明なハンドルとして扱う（Playwright 実装では Locator）。
    """

    async def goto(self, url: str) -> None: ...

    async def find(
        self,
        selector: str,
        *,
        text: Optional[str] = None,
        exact: bool = False,
        within: Any = None,
        timeout: Optional[float] = None,
    ) -> Any: ...

    async def parent(self, element: Any, levels: int = 1) -> Any: ...

    async def click(self, element: Any) -> None: ...

    async def click_on(self, text: str, *, within: Any = None) -> None: ...

    async def send_keys(self, element: Any, key: str) -> None: ...

    async def get_attribute(self, element: Any, name: str) -> Optional[str]: ...

    async def inner_html(self, element: Any) -> str: ...

    async def evaluate_on(self, element: Any, script: str, arg: Any = None) -> Any: ...

    async def has_text(self, text: str, *, within: Any = None) -> bool: ...

    async def set_viewport(self, width: int, height: int) -> None: ...

    async def console_logs(self) -> list[ConsoleEntry]: ...


# ---------------------------------------------------------------------------
# Playwright 実装
# ---------------------------------------------------------------------------

class PlaywrightDriver:
    """Playwright Page に対してコマンドを発行する Driver 実装。

    生成時に Page の console / pageerror イベントを購読し、
    セッション中に出力されたコンソールログを追記専用で保持する。
    """

    def __init__(self, page: Page, default_timeout: float = 5.0) -> None:
        """PlaywrightDriver を初期化する。

        Args:
            page: 操作対象の Playwright Page
            default_timeout: 要素探索の既定タイムアウト（秒）
        """
        self._page = page
        self._default_timeout = default_timeout
        self._logs: list[ConsoleEntry] = []
        self._last_timestamp = 0
        page.on("console", self._on_console)
        page.on("pageerror", self._on_page_error)

    @property
    def page(self) -> Page:
        return self._page

    # ----- コンソールログ収集 -----

    def _next_timestamp(self) -> int:
        # 同一ミリ秒のエントリでも順序と大小関係が一致するよう単調増加させる
        now = int(time.time() * 1000)
        self._last_timestamp = max(now, self._last_timestamp + 1)
        return self._last_timestamp

    def _on_console(self, message: ConsoleMessage) -> None:
        level = _CONSOLE_LEVELS.get(message.type)
        if level is None:
            return
        self._logs.append(
            ConsoleEntry(timestamp=self._next_timestamp(), level=level, message=message.text)
        )

    def _on_page_error(self, error: Any) -> None:
        self._logs.append(
            ConsoleEntry(timestamp=self._next_timestamp(), level="SEVERE", message=str(error))
        )

    # ----- コマンド -----

    async def goto(self, url: str) -> None:
        logger.info("visit: %s", url)
        try:
            await self._page.goto(url)
        except PlaywrightTimeoutError as exc:
            raise TransientNetworkTimeout(f"{url} の読み込みがタイムアウトしました: {exc}") from exc
        except PlaywrightError as exc:
            if any(marker in str(exc) for marker in _TRANSIENT_NETWORK_MARKERS):
                raise TransientNetworkTimeout(f"{url} の読み込みがタイムアウトしました: {exc}") from exc
            raise
        await self._page.wait_for_load_state("domcontentloaded")

    async def find(
        self,
        selector: str,
        *,
        text: Optional[str] = None,
        exact: bool = False,
        within: Any = None,
        timeout: Optional[float] = None,
    ) -> Locator:
        scope = within if within is not None else self._page
        locator = scope.locator(selector)
        if text is not None:
            pattern: Any = re.compile(rf"^\s*{re.escape(text)}\s*$") if exact else text
            locator = locator.filter(has_text=pattern)
        locator = locator.first

        wait_sec = self._default_timeout if timeout is None else timeout
        try:
            await locator.wait_for(state="visible", timeout=wait_sec * 1000)
        except PlaywrightTimeoutError as exc:
            raise ElementNotFound(selector, text) from exc
        return locator

    async def parent(self, element: Locator, levels: int = 1) -> Locator:
        return element.locator("xpath=" + "/".join([".."] * levels))

    async def click(self, element: Locator) -> None:
        await element.click()

    async def click_on(self, text: str, *, within: Any = None) -> None:
        """テキストが一致するリンクまたはボタンをクリックする。"""
        target = await self.find(
            "a, button, input[type='submit'], input[type='button']",
            text=text,
            within=within,
        )
        await target.click()

    async def send_keys(self, element: Locator, key: str) -> None:
        if key in _NAMED_KEYS:
            await element.press(_NAMED_KEYS[key])
        else:
            await element.press_sequentially(key)

    async def get_attribute(self, element: Locator, name: str) -> Optional[str]:
        return await element.get_attribute(name)

    async def inner_html(self, element: Locator) -> str:
        return await element.inner_html()

    async def evaluate_on(self, element: Locator, script: str, arg: Any = None) -> Any:
        return await element.evaluate(script, arg)

    async def has_text(self, text: str, *, within: Any = None) -> bool:
        """可視要素のいずれかがテキストを含むかを返す（大文字小文字を区別する部分一致）。"""
        scope = within if within is not None else self._page.locator("body")
        matches = scope.get_by_text(re.compile(re.escape(text))).locator("visible=true")
        try:
            return await matches.count() > 0
        except PlaywrightError as exc:
            logger.debug("可視テキストの確認中にエラー: %s", exc)
            return False

    async def set_viewport(self, width: int, height: int) -> None:
        await self._page.set_viewport_size({"width": width, "height": height})

    async def console_logs(self) -> list[ConsoleEntry]:
        return list(self._logs)


# ---------------------------------------------------------------------------
# スロットル付きラッパー
# ---------------------------------------------------------------------------

class ThrottledDriver:
    """Driver を包み、各コマンドの直前にスロットルの遅延を挿入する。

    内側の Driver 自身のディスパッチには手を加えない。
    """

    def __init__(self, inner: Driver, throttle: ExecutionThrottle) -> None:
        self._inner = inner
        self._throttle = throttle

    @property
    def inner(self) -> Driver:
        return self._inner

    @property
    def throttle(self) -> ExecutionThrottle:
        return self._throttle

    async def goto(self, url: str) -> None:
        await self._throttle.pause()
        await self._inner.goto(url)

    async def find(
        self,
        selector: str,
        *,
        text: Optional[str] = None,
        exact: bool = False,
        within: Any = None,
        timeout: Optional[float] = None,
    ) -> Any:
        await self._throttle.pause()
        return await self._inner.find(
            selector, text=text, exact=exact, within=within, timeout=timeout,
        )

    async def parent(self, element: Any, levels: int = 1) -> Any:
        await self._throttle.pause()
        return await self._inner.parent(element, levels)

    async def click(self, element: Any) -> None:
        await self._throttle.pause()
        await self._inner.click(element)

    async def click_on(self, text: str, *, within: Any = None) -> None:
        await self._throttle.pause()
        await self._inner.click_on(text, within=within)

    async def send_keys(self, element: Any, key: str) -> None:
        await self._throttle.pause()
        await self._inner.send_keys(element, key)

    async def get_attribute(self, element: Any, name: str) -> Optional[str]:
        await self._throttle.pause()
        return await self._inner.get_attribute(element, name)

    async def inner_html(self, element: Any) -> str:
        await self._throttle.pause()
        return await self._inner.inner_html(element)

    async def evaluate_on(self, element: Any, script: str, arg: Any = None) -> Any:
        await self._throttle.pause()
        return await self._inner.evaluate_on(element, script, arg)

    async def has_text(self, text: str, *, within: Any = None) -> bool:
        await self._throttle.pause()
        return await self._inner.has_text(text, within=within)

    async def set_viewport(self, width: int, height: int) -> None:
        await self._throttle.pause()
        await self._inner.set_viewport(width, height)

    async def console_logs(self) -> list[ConsoleEntry]:
        await self._throttle.pause()
        return await self._inner.console_logs()

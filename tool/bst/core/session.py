"""
Session — テスト 1 件ごとのブラウザセッション管理

Playwright ブラウザの起動・終了・状態管理を担当する。
テストの setup で新しいセッションを確立し、teardown で必ずリセットすることで
セッション状態が次のテストに漏れないようにする。

主な機能:
  - モードに応じたブラウザの選択（対話モード: headed / 通常: headless）
  - 既存セッションのリセットと新規セッションの確立
  - デバイスプロファイルに合わせたビューポートのリサイズ
  - 実行スロットルを注入した Driver の提供
"""

from __future__ import annotations

import enum
import logging
from typing import TYPE_CHECKING, Optional

from .devices import compute_viewport
from .driver import PlaywrightDriver, ThrottledDriver
from .errors import SessionSetupFailure
from .throttle import ExecutionThrottle

if TYPE_CHECKING:
    from playwright.async_api import Browser, BrowserContext, Page

    from ..config import HarnessConfig
    from .devices import DeviceProfile

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# セッション状態
# ---------------------------------------------------------------------------

class SessionState(enum.Enum):
    """ブラウザセッションの状態。"""

    IDLE = "idle"
    LAUNCHING = "launching"
    ACTIVE = "active"
    CLOSING = "closing"
    CLOSED = "closed"


# ---------------------------------------------------------------------------
# SessionController 本体
# ---------------------------------------------------------------------------

class SessionController:
    """テスト 1 件分のブラウザセッションを排他的に所有するコントローラー。

    1 つのセッションを複数のテストで共有してはならない。
    teardown() はセッション全体を破棄するため、並行実行するテストは
    それぞれ独自の SessionController を持つこと。

    使用例::

        session = SessionController(config)
        await session.setup()
        try:
            await session.resize_to(profile)
            await session.driver.goto(config.url_for("/"))
        finally:
            await session.teardown()
    """

    def __init__(
        self,
        config: HarnessConfig,
        throttle: Optional[ExecutionThrottle] = None,
    ) -> None:
        """SessionController を初期化する。

        Args:
            config: ハーネス設定（ブラウザ種別・モード・画面サイズ等）
            throttle: コマンド発行前の遅延を制御するスロットル（None で遅延なし）
        """
        self._config = config
        self._throttle = throttle if throttle is not None else ExecutionThrottle()
        self._state: SessionState = SessionState.IDLE
        self._pw_instance: Optional[object] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._page: Optional[Page] = None
        self._driver: Optional[ThrottledDriver] = None

    @property
    def state(self) -> SessionState:
        """現在のセッション状態を返す。"""
        return self._state

    @property
    def is_active(self) -> bool:
        """セッションがアクティブかどうかを返す。"""
        return self._state == SessionState.ACTIVE

    @property
    def throttle(self) -> ExecutionThrottle:
        return self._throttle

    @property
    def page(self) -> Optional[Page]:
        """現在の Page オブジェクトを返す。非アクティブ時は None。"""
        if not self.is_active:
            return None
        return self._page

    @property
    def driver(self) -> ThrottledDriver:
        """アクティブなセッションの Driver を返す。

        Raises:
            RuntimeError: セッションがアクティブでない場合
        """
        if not self.is_active or self._driver is None:
            raise RuntimeError(
                "アクティブなセッションがありません。"
                "先に setup() を呼んでください。"
            )
        return self._driver

    # -------------------------------------------------------------------
    # ライフサイクル
    # -------------------------------------------------------------------

    async def setup(self) -> None:
        """既存のセッション状態をリセットし、新しいセッションを確立する。

        Raises:
            SessionSetupFailure: ブラウザドライバーを起動・接続できなかった場合
        """
        await self._reset()

        self._state = SessionState.LAUNCHING
        logger.info(
            "ブラウザを起動しています... (browser=%s, headless=%s)",
            self._config.browser, self._config.headless,
        )

        try:
            from playwright.async_api import async_playwright

            pw = await async_playwright().start()
            self._pw_instance = pw

            browser_type = getattr(pw, self._config.browser)
            self._browser = await browser_type.launch(headless=self._config.headless)
            self._context = await self._browser.new_context(
                viewport={
                    "width": self._config.screen_width,
                    "height": self._config.screen_height,
                },
            )
            self._page = await self._context.new_page()
        except Exception as exc:
            logger.exception("ブラウザの起動に失敗しました")
            await self._release()
            self._state = SessionState.IDLE
            raise SessionSetupFailure(
                f"ブラウザドライバーに接続できませんでした ({self._config.browser}): {exc}"
            ) from exc

        inner = PlaywrightDriver(self._page, default_timeout=self._config.wait_time)
        self._driver = ThrottledDriver(inner, self._throttle)
        self._state = SessionState.ACTIVE
        logger.info("ブラウザを起動しました")

    async def teardown(self) -> None:
        """セッションをリセットし、スロットルを解除する。

        テストの成否にかかわらず必ず呼ぶこと。何度呼んでもよい。
        """
        await self._reset()
        self._throttle.reset()

    async def resize_to(self, profile: DeviceProfile) -> None:
        """プロファイルの実効ビューポートにウィンドウをリサイズする。"""
        width, height = compute_viewport(profile)
        logger.info("リサイズ: %s → %dx%d", profile.name, width, height)
        await self.driver.set_viewport(width, height)

    # -------------------------------------------------------------------
    # 内部処理
    # -------------------------------------------------------------------

    async def _reset(self) -> None:
        """現在のセッションを破棄する。セッションがなければ何もしない。"""
        if self._state in (SessionState.IDLE, SessionState.CLOSED, SessionState.CLOSING):
            return

        self._state = SessionState.CLOSING
        logger.info("ブラウザを終了しています...")
        await self._release()
        self._state = SessionState.CLOSED
        logger.info("ブラウザを終了しました")

    async def _release(self) -> None:
        # 途中で失敗しても残りのリソースは必ず閉じる
        closers = []
        if self._context is not None:
            closers.append(("context", self._context.close))
        if self._browser is not None:
            closers.append(("browser", self._browser.close))
        if self._pw_instance is not None and hasattr(self._pw_instance, "stop"):
            closers.append(("playwright", self._pw_instance.stop))

        for name, close in closers:
            try:
                await close()
            except Exception:
                logger.exception("ブラウザの終了中にエラーが発生しました (%s)", name)

        self._browser = None
        self._context = None
        self._page = None
        self._driver = None
        self._pw_instance = None

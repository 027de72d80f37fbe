"""
ナビゲーション補助 — 画面遷移とコンテンツ表示待機の組み合わせ

各補助関数は遷移操作を行ったあと、特定のテキストが表示されるまで待機する。
これにより、ページの非同期読み込みが完了する前に後続の操作が始まるのを防ぐ。

主な機能:
  - sign_in_from_homepage_for / sign_up_from_homepage_for: 認証ページへの遷移
  - sign_out_for: メニューからのログアウトとサインアウト確認
  - within_primary_menu_for / within_team_menu_for: メニュー内にスコープを限定
  - within_homepage_navigation_for: ホームページのナビゲーション操作
  - be_invited_to_sign_up: 招待制サインアップ時の招待ページ遷移
"""

from __future__ import annotations

import logging
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import TYPE_CHECKING, Any, AsyncIterator, Optional

from ..core.waits import wait_for_content

if TYPE_CHECKING:
    from ..config import HarnessConfig
    from ..core.devices import DeviceProfile
    from ..core.driver import ThrottledDriver
    from ..core.session import SessionController

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# 画面要素・表示テキスト
# ---------------------------------------------------------------------------

MOBILE_MENU_TRIGGER = ".mobile-menu-trigger"
MENU_CONTAINER = ".menu"
LOGOUT_LABEL = "Logout"
SIGN_IN_MARKER = "Sign In"
SIGN_UP_MARKER = "Create Your Account"


class NavigationHelpers:
    """セッションの Driver を使って画面遷移を行う補助クラス。

    Driver はテストの試行ごとに作り直されるため、
    呼び出しのたびに SessionController から取得する。
    """

    def __init__(self, session: SessionController, config: HarnessConfig) -> None:
        self._session = session
        self._config = config

    @property
    def driver(self) -> ThrottledDriver:
        return self._session.driver

    async def visit(self, path: str) -> None:
        """パス（またはフル URL）へ遷移する。"""
        await self.driver.goto(self._config.url_for(path))

    async def assert_content(self, text: str, *, within: Any = None,
                             timeout: Optional[float] = None) -> None:
        """テキストが表示されるまで待機する。設定の待機上限を既定値とする。"""
        wait = self._config.wait_time if timeout is None else timeout
        await wait_for_content(self.driver, text, wait, within=within)

    # -------------------------------------------------------------------
    # 認証ページ
    # -------------------------------------------------------------------

    async def sign_in_from_homepage_for(self, profile: DeviceProfile) -> None:
        """サインインページへ遷移し、ページの読み込み完了を待つ。"""
        logger.info("サインインページへ遷移します (%s)", profile.name)
        await self.visit(self._config.sign_in_path)
        await self.assert_content(SIGN_IN_MARKER)

    async def sign_up_from_homepage_for(self, profile: DeviceProfile) -> None:
        """サインアップページへ遷移し、ページの読み込み完了を待つ。"""
        logger.info("サインアップページへ遷移します (%s)", profile.name)
        await self.visit(self._config.sign_up_path)
        await self.assert_content(SIGN_UP_MARKER)

    async def be_invited_to_sign_up(self) -> None:
        """招待制の場合、最初の招待キーで招待ページへ遷移する。"""
        if not self._config.invitation_only:
            return
        if not self._config.invitation_keys:
            raise ValueError("招待制ですが招待キーが設定されていません")
        key = self._config.invitation_keys[0]
        await self.visit(f"{self._config.invitation_path}?key={key}")

    # -------------------------------------------------------------------
    # メニュー
    # -------------------------------------------------------------------

    async def open_mobile_menu(self) -> None:
        trigger = await self.driver.find(MOBILE_MENU_TRIGGER)
        await self.driver.click(trigger)

    async def sign_out_for(self, profile: DeviceProfile) -> None:
        """ログアウトし、サインアウト状態になったことを確認する。

        サインインの表示確認がログアウト完了の同期点になる。
        """
        if profile.mobile:
            await self.open_mobile_menu()
            await self.driver.click_on(LOGOUT_LABEL)
        else:
            menu = await self.driver.find(MENU_CONTAINER)
            await self.driver.click_on(LOGOUT_LABEL, within=menu)

        await self.assert_content(SIGN_IN_MARKER)
        logger.info("ログアウトしました (%s)", profile.name)

    @asynccontextmanager
    async def within_primary_menu_for(self, profile: DeviceProfile) -> AsyncIterator[Any]:
        """モバイルならメニューを開き、メニューコンテナ要素を返す。

        コンテナが見つからない場合は ElementNotFound で即座に失敗する。
        """
        if profile.mobile:
            await self.open_mobile_menu()
        menu = await self.driver.find(MENU_CONTAINER)
        yield menu

    def within_team_menu_for(
        self, profile: DeviceProfile
    ) -> AbstractAsyncContextManager[Any]:
        return self.within_primary_menu_for(profile)

    @asynccontextmanager
    async def within_homepage_navigation_for(self, profile: DeviceProfile) -> AsyncIterator[None]:
        if profile.mobile:
            await self.open_mobile_menu()
        yield

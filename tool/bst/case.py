"""
システムテストケース — セッション・補助機能・リトライを束ねるテスト単位

1 件のテストは setup → 本体 → teardown を 1 回の試行として実行し、
その試行全体を RetrySupervisor で包む。teardown は成否にかかわらず必ず実行される。

使用例::

    async def scenario(case: SystemTestCase) -> None:
        await case.sign_in_from_homepage_for(device)
        async with case.no_js_errors():
            await case.sign_out_for(device)

    state = await SystemTestCase(config).run(scenario, profile=device)
"""

from __future__ import annotations

import logging
import secrets
from functools import cached_property
from typing import TYPE_CHECKING, Any, AsyncContextManager, Awaitable, Callable, Optional, Union

from .config import HarnessConfig, load_config_from_env
from .core.js_errors import assert_no_js_errors, no_js_errors
from .core.retry import RetryPolicy, RetryState, RetrySupervisor
from .core.session import SessionController
from .helpers.controllers import ControllerLifecycle
from .helpers.email import InMemoryMailbox, MailMessage, Mailbox, open_email
from .helpers.navigation import NavigationHelpers
from .helpers.select2 import select2_select

if TYPE_CHECKING:
    from .core.devices import DeviceProfile
    from .core.driver import ThrottledDriver

logger = logging.getLogger(__name__)

TestBody = Callable[["SystemTestCase"], Awaitable[Any]]


class SystemTestCase:
    """ブラウザを使ったシステムテスト 1 件分のコンテキスト。

    Attributes:
        config: ハーネス設定
        session: このテスト専用のセッションコントローラー
        navigation: 画面遷移の補助
        supervisor: リトライ監督
        mailbox: メール確認に使う受信箱
    """

    def __init__(
        self,
        config: Optional[HarnessConfig] = None,
        *,
        name: str = "test",
        session: Optional[SessionController] = None,
        supervisor: Optional[RetrySupervisor] = None,
        mailbox: Optional[Mailbox] = None,
    ) -> None:
        self.config = config if config is not None else load_config_from_env()
        self.name = name
        self.session = session if session is not None else SessionController(self.config)
        self.navigation = NavigationHelpers(self.session, self.config)
        self.supervisor = supervisor if supervisor is not None else RetrySupervisor(
            RetryPolicy(
                retry_count=self.config.retry_count,
                verbose=self.config.retry_verbose,
            )
        )
        self.mailbox: Mailbox = mailbox if mailbox is not None else InMemoryMailbox()

    # -------------------------------------------------------------------
    # ライフサイクル
    # -------------------------------------------------------------------

    async def setup(self) -> None:
        await self.session.setup()

    async def teardown(self) -> None:
        await self.session.teardown()

    async def run(
        self, body: TestBody, *, profile: Optional[DeviceProfile] = None
    ) -> RetryState:
        """テスト本体をリトライ付きで実行する。

        各試行は setup から始まり、teardown で終わる。

        Args:
            body: テスト本体（このケースを引数に取る非同期関数）
            profile: 指定時は setup 直後にこのプロファイルへリサイズする

        Returns:
            試行記録（リトライ回数・本体の戻り値）
        """

        async def attempt() -> Any:
            await self.setup()
            try:
                if profile is not None:
                    await self.session.resize_to(profile)
                return await body(self)
            finally:
                await self.teardown()

        return await self.supervisor.run(attempt, name=self.name)

    # -------------------------------------------------------------------
    # アクセサ
    # -------------------------------------------------------------------

    @property
    def driver(self) -> ThrottledDriver:
        return self.session.driver

    @property
    def controllers(self) -> ControllerLifecycle:
        return ControllerLifecycle(self.driver)

    @cached_property
    def example_password(self) -> str:
        return secrets.token_hex()

    @cached_property
    def another_example_password(self) -> str:
        return secrets.token_hex()

    # -------------------------------------------------------------------
    # 画面遷移
    # -------------------------------------------------------------------

    async def visit(self, path: str) -> None:
        await self.navigation.visit(path)

    async def assert_content(self, text: str, *, within: Any = None,
                             timeout: Optional[float] = None) -> None:
        await self.navigation.assert_content(text, within=within, timeout=timeout)

    async def sign_in_from_homepage_for(self, profile: DeviceProfile) -> None:
        await self.navigation.sign_in_from_homepage_for(profile)

    async def sign_up_from_homepage_for(self, profile: DeviceProfile) -> None:
        await self.navigation.sign_up_from_homepage_for(profile)

    async def sign_out_for(self, profile: DeviceProfile) -> None:
        await self.navigation.sign_out_for(profile)

    async def be_invited_to_sign_up(self) -> None:
        await self.navigation.be_invited_to_sign_up()

    def within_primary_menu_for(self, profile: DeviceProfile) -> AsyncContextManager[Any]:
        return self.navigation.within_primary_menu_for(profile)

    def within_team_menu_for(self, profile: DeviceProfile) -> AsyncContextManager[Any]:
        return self.navigation.within_team_menu_for(profile)

    def within_homepage_navigation_for(self, profile: DeviceProfile) -> AsyncContextManager[None]:
        return self.navigation.within_homepage_navigation_for(profile)

    async def select2_select(self, label: str, value: Union[str, list[str]]) -> None:
        await select2_select(self.driver, label, value)

    # -------------------------------------------------------------------
    # JS エラー・スロットル・メール
    # -------------------------------------------------------------------

    def no_js_errors(self) -> AsyncContextManager[None]:
        return no_js_errors(self.driver)

    async def assert_no_js_errors(self, action: Callable[[], Awaitable[Any]]) -> Any:
        return await assert_no_js_errors(self.driver, action)

    def slow_down_execute_time(self) -> None:
        self.session.throttle.slow_down()

    def reset_execute_time(self) -> None:
        self.session.throttle.reset()

    async def open_email(self, recipient: str, subject: Optional[str] = None) -> MailMessage:
        return await open_email(self.mailbox, recipient, subject)

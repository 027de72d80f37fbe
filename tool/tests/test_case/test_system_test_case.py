"""
SystemTestCase のユニットテスト

SessionController の代わりに呼び出しを記録するスタブを使用する。
"""

from __future__ import annotations

import pytest

from bst.case import SystemTestCase
from bst.config import HarnessConfig
from bst.core.devices import KNOWN_DEVICES
from bst.core.errors import TransientNetworkTimeout, UnexpectedJsErrors
from bst.core.retry import RetryPolicy, RetrySupervisor
from bst.core.throttle import ExecutionThrottle
from bst.helpers.controllers import ControllerLifecycle
from bst.helpers.email import MailMessage


class _RecordingSession:
    """setup / teardown / resize_to の呼び出し順を記録するセッション。"""

    def __init__(self, driver) -> None:
        self.driver = driver
        self.throttle = ExecutionThrottle()
        self.events: list[str] = []

    async def setup(self) -> None:
        self.events.append("setup")

    async def teardown(self) -> None:
        self.events.append("teardown")
        self.throttle.reset()

    async def resize_to(self, profile) -> None:
        self.events.append(f"resize {profile.name}")


@pytest.fixture
def session(fake_driver) -> _RecordingSession:
    return _RecordingSession(fake_driver)


@pytest.fixture
def case(session, harness_config) -> SystemTestCase:
    return SystemTestCase(harness_config, name="test_sample", session=session)


# ===========================================================================
# テスト: run
# ===========================================================================

class TestRun:
    """SystemTestCase.run のテスト。"""

    async def test_single_attempt(self, case, session) -> None:
        async def body(c: SystemTestCase) -> str:
            session.events.append("body")
            return "ok"

        state = await case.run(body, profile=KNOWN_DEVICES["iphone_8"])

        assert state.result == "ok"
        assert session.events == ["setup", "resize iphone_8", "body", "teardown"]

    async def test_each_retry_gets_fresh_session(self, case, session) -> None:
        """リトライのたびに setup と teardown が実行されること。"""
        attempts = 0

        async def body(c: SystemTestCase) -> None:
            nonlocal attempts
            attempts += 1
            if attempts < 3:
                raise TransientNetworkTimeout("read timeout")

        state = await case.run(body)

        assert state.retries == 2
        assert session.events == ["setup", "teardown"] * 3

    async def test_teardown_runs_on_failure(self, case, session) -> None:
        async def body(c: SystemTestCase) -> None:
            raise AssertionError("missing content")

        with pytest.raises(AssertionError):
            await case.run(body)

        assert session.events == ["setup", "teardown"]

    async def test_retry_count_from_config(self, session) -> None:
        config = HarnessConfig(retry_count=1, retry_verbose=False)
        case = SystemTestCase(config, session=session)

        assert case.supervisor.policy.retry_count == 1
        assert case.supervisor.policy.verbose is False

    async def test_js_errors_fail_without_retry(self, session, fake_driver) -> None:
        """JS エラーは許可リストに含めてもリトライされないこと。"""
        supervisor = RetrySupervisor(
            RetryPolicy(exceptions=(TransientNetworkTimeout, AssertionError)),
        )
        case = SystemTestCase(HarnessConfig(), session=session, supervisor=supervisor)

        async def body(c: SystemTestCase) -> None:
            async with c.no_js_errors():
                fake_driver.log(1_700_000_000_000, "SEVERE", "Uncaught Error")

        with pytest.raises(UnexpectedJsErrors):
            await case.run(body)

        assert session.events == ["setup", "teardown"]


# ===========================================================================
# テスト: 補助機能
# ===========================================================================

class TestHelpers:
    """SystemTestCase が提供する補助機能のテスト。"""

    async def test_slow_down_is_reset_by_teardown(self, case, session) -> None:
        """スロットルはテスト終了時に解除され、次のテストへ持ち越されないこと。"""
        async def body(c: SystemTestCase) -> None:
            c.slow_down_execute_time()
            assert session.throttle.delay == 0.5

        await case.run(body)

        assert session.throttle.delay == 0

    async def test_reset_execute_time(self, case, session) -> None:
        case.slow_down_execute_time()
        case.reset_execute_time()
        assert session.throttle.enabled is False

    async def test_controllers_use_session_driver(self, case, fake_driver, element_factory) -> None:
        assert isinstance(case.controllers, ControllerLifecycle)
        el = element_factory("div", attributes={"data-controller": "x"})

        await case.controllers.disconnect(el)

        assert el.attributes["data-former-controller"] == "x"

    async def test_visit_uses_navigation(self, case, fake_driver) -> None:
        await case.visit("/account")
        assert fake_driver.calls == [("goto", "http://localhost:3001/account")]

    async def test_select2_select(self, case, fake_driver, element_factory) -> None:
        container = fake_driver.add(element_factory("div"))
        fake_driver.add(element_factory("label", text="Tags", parent=container))
        search = fake_driver.add(element_factory(".select2-search__field", parent=container))

        await case.select2_select("Tags", "a")

        assert search.typed == ["a", "\n"]

    async def test_open_email(self, case) -> None:
        case.mailbox.deliver(MailMessage(to=["ann@example.com"], subject="Welcome", body="Hi"))

        message = await case.open_email("ann@example.com")

        assert message.subject == "Welcome"

    def test_example_passwords_are_stable_and_distinct(self, case) -> None:
        assert case.example_password == case.example_password
        assert case.example_password != case.another_example_password
        assert len(case.example_password) >= 32

"""
ナビゲーション補助のユニットテスト

SessionController の代わりに FakeDriver を返すスタブを使用する。
"""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from bst.config import HarnessConfig
from bst.core.devices import KNOWN_DEVICES
from bst.core.errors import ElementNotFound, TimeoutWaitingForContent
from bst.helpers.navigation import NavigationHelpers

IPHONE = KNOWN_DEVICES["iphone_8"]
MACBOOK = KNOWN_DEVICES["macbook_pro_15_inch"]


@pytest.fixture
def nav(fake_driver, harness_config) -> NavigationHelpers:
    """FakeDriver に接続した NavigationHelpers を提供する。"""
    return NavigationHelpers(SimpleNamespace(driver=fake_driver), harness_config)


# ===========================================================================
# テスト: visit / assert_content
# ===========================================================================

class TestVisit:
    """visit / assert_content のテスト。"""

    async def test_visit_joins_base_url(self, nav, fake_driver) -> None:
        await nav.visit("/account/teams")
        assert fake_driver.calls == [("goto", "http://localhost:3001/account/teams")]

    async def test_visit_full_url_unchanged(self, nav, fake_driver) -> None:
        await nav.visit("https://example.com/x")
        assert fake_driver.calls == [("goto", "https://example.com/x")]

    async def test_assert_content_uses_config_wait_time(self, nav) -> None:
        with pytest.raises(TimeoutWaitingForContent) as exc_info:
            await nav.assert_content("Dashboard")
        assert exc_info.value.timeout == 0.3


# ===========================================================================
# テスト: サインイン・サインアップ
# ===========================================================================

class TestAuthPages:
    """認証ページへの遷移のテスト。"""

    async def test_sign_in_waits_for_marker(self, nav, fake_driver) -> None:
        fake_driver.visible_texts.add("Sign In")

        await nav.sign_in_from_homepage_for(MACBOOK)

        assert fake_driver.calls == [
            ("goto", "http://localhost:3001/users/sign_in"),
            ("has_text", "Sign In"),
        ]

    async def test_sign_up_waits_for_marker(self, nav, fake_driver) -> None:
        fake_driver.visible_texts.add("Create Your Account")

        await nav.sign_up_from_homepage_for(IPHONE)

        assert fake_driver.calls[0] == ("goto", "http://localhost:3001/users/sign_up")
        assert fake_driver.calls[-1] == ("has_text", "Create Your Account")

    async def test_sign_in_times_out_without_marker(self, nav) -> None:
        with pytest.raises(TimeoutWaitingForContent):
            await nav.sign_in_from_homepage_for(MACBOOK)


class TestInvitation:
    """be_invited_to_sign_up のテスト。"""

    async def test_noop_without_invitation_only(self, fake_driver) -> None:
        nav = NavigationHelpers(SimpleNamespace(driver=fake_driver), HarnessConfig())
        await nav.be_invited_to_sign_up()
        assert fake_driver.calls == []

    async def test_visits_invitation_with_first_key(self, fake_driver) -> None:
        config = HarnessConfig(invitation_only=True, invitation_keys=["abc123", "zzz"])
        nav = NavigationHelpers(SimpleNamespace(driver=fake_driver), config)

        await nav.be_invited_to_sign_up()

        assert fake_driver.calls == [("goto", "http://localhost:3001/invitation?key=abc123")]

    async def test_missing_keys_raise(self, fake_driver) -> None:
        config = HarnessConfig(invitation_only=True)
        nav = NavigationHelpers(SimpleNamespace(driver=fake_driver), config)

        with pytest.raises(ValueError, match="招待キー"):
            await nav.be_invited_to_sign_up()


# ===========================================================================
# テスト: サインアウト
# ===========================================================================

class TestSignOut:
    """sign_out_for のテスト。"""

    async def test_mobile_opens_menu_first(self, nav, fake_driver, element_factory) -> None:
        """モバイルではメニューを開き、Logout を押し、Sign In の表示を待つこと。"""
        fake_driver.add(element_factory(".mobile-menu-trigger"))
        fake_driver.on_click["Logout"] = lambda: fake_driver.visible_texts.add("Sign In")

        await nav.sign_out_for(IPHONE)

        assert fake_driver.calls == [
            ("find", ".mobile-menu-trigger", None),
            ("click", ".mobile-menu-trigger"),
            ("click_on", "Logout", None),
            ("has_text", "Sign In"),
        ]

    async def test_desktop_clicks_within_menu(self, nav, fake_driver, element_factory) -> None:
        """デスクトップでは .menu の中の Logout を押すこと。"""
        fake_driver.add(element_factory(".menu"))
        fake_driver.on_click["Logout"] = lambda: fake_driver.visible_texts.add("Sign In")

        await nav.sign_out_for(MACBOOK)

        assert ("click_on", "Logout", ".menu") in fake_driver.calls
        assert not any(c[0] == "click" for c in fake_driver.calls)
        assert fake_driver.calls[-1] == ("has_text", "Sign In")

    async def test_fails_when_sign_in_never_appears(self, nav, fake_driver, element_factory) -> None:
        fake_driver.add(element_factory(".menu"))

        with pytest.raises(TimeoutWaitingForContent, match="Sign In"):
            await nav.sign_out_for(MACBOOK)


# ===========================================================================
# テスト: メニュー内スコープ
# ===========================================================================

class TestWithinMenu:
    """within_primary_menu_for / within_team_menu_for のテスト。"""

    async def test_desktop_yields_menu(self, nav, fake_driver, element_factory) -> None:
        menu = fake_driver.add(element_factory(".menu"))

        async with nav.within_primary_menu_for(MACBOOK) as scope:
            assert scope is menu

        assert fake_driver.calls == [("find", ".menu", None)]

    async def test_mobile_opens_menu_before_scoping(self, nav, fake_driver, element_factory) -> None:
        fake_driver.add(element_factory(".mobile-menu-trigger"))
        menu = fake_driver.add(element_factory(".menu"))

        async with nav.within_team_menu_for(IPHONE) as scope:
            assert scope is menu

        assert fake_driver.calls[:2] == [
            ("find", ".mobile-menu-trigger", None),
            ("click", ".mobile-menu-trigger"),
        ]

    async def test_missing_menu_fails_immediately(self, nav) -> None:
        with pytest.raises(ElementNotFound, match=r"\.menu"):
            async with nav.within_primary_menu_for(MACBOOK):
                pass

    async def test_homepage_navigation_desktop_is_noop(self, nav, fake_driver) -> None:
        async with nav.within_homepage_navigation_for(MACBOOK):
            pass
        assert fake_driver.calls == []

    async def test_homepage_navigation_mobile_opens_menu(self, nav, fake_driver, element_factory) -> None:
        fake_driver.add(element_factory(".mobile-menu-trigger"))

        async with nav.within_homepage_navigation_for(IPHONE):
            pass

        assert ("click", ".mobile-menu-trigger") in fake_driver.calls

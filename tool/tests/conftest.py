"""
テスト共通フィクスチャ定義

実際のブラウザは起動せず、Driver Protocol を満たすインメモリの FakeDriver を使用する。
FakeDriver は要素の属性・innerHTML・表示テキスト・コンソールログを保持し、
発行されたコマンドを順に記録する。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

import pytest

from bst.config import HarnessConfig
from bst.core.errors import ElementNotFound
from bst.core.js_errors import ConsoleEntry


# ---------------------------------------------------------------------------
# FakeDriver
# ---------------------------------------------------------------------------

@dataclass
class FakeElement:
    """FakeDriver が扱う要素。"""

    selector: str
    text: str = ""
    attributes: dict[str, str] = field(default_factory=dict)
    inner: str = ""
    parent: Optional["FakeElement"] = None
    typed: list[str] = field(default_factory=list)


class FakeDriver:
    """Driver Protocol を満たすインメモリ実装。

    Attributes:
        elements: 登録済み要素（find の探索対象）
        visible_texts: has_text() が True を返すテキスト
        logs: console_logs() が返すエントリ
        calls: 発行されたコマンド名と主要引数の記録
    """

    def __init__(self) -> None:
        self.elements: list[FakeElement] = []
        self.visible_texts: set[str] = set()
        self.logs: list[ConsoleEntry] = []
        self.calls: list[tuple] = []
        self.viewport: Optional[tuple[int, int]] = None
        self.on_click: dict[str, Any] = {}

    # ----- テスト用ユーティリティ -----

    def add(self, element: FakeElement) -> FakeElement:
        self.elements.append(element)
        return element

    def log(self, timestamp: int, level: str, message: str) -> None:
        self.logs.append(ConsoleEntry(timestamp=timestamp, level=level, message=message))

    # ----- Driver Protocol -----

    async def goto(self, url: str) -> None:
        self.calls.append(("goto", url))

    async def find(self, selector: str, *, text: Optional[str] = None, exact: bool = False,
                   within: Any = None, timeout: Optional[float] = None) -> FakeElement:
        self.calls.append(("find", selector, text))
        for el in self.elements:
            if el.selector != selector:
                continue
            if text is not None:
                if exact and el.text.strip() != text:
                    continue
                if not exact and text not in el.text:
                    continue
            if within is not None and not _is_descendant(el, within):
                continue
            return el
        raise ElementNotFound(selector, text)

    async def parent(self, element: FakeElement, levels: int = 1) -> FakeElement:
        self.calls.append(("parent", element.selector, levels))
        current = element
        for _ in range(levels):
            assert current.parent is not None, f"{current.selector} に親要素がありません"
            current = current.parent
        return current

    async def click(self, element: FakeElement) -> None:
        self.calls.append(("click", element.selector))
        callback = self.on_click.get(element.selector)
        if callback is not None:
            callback()

    async def click_on(self, text: str, *, within: Any = None) -> None:
        self.calls.append(("click_on", text, within.selector if within is not None else None))
        callback = self.on_click.get(text)
        if callback is not None:
            callback()

    async def send_keys(self, element: FakeElement, key: str) -> None:
        self.calls.append(("send_keys", key))
        element.typed.append(key)

    async def get_attribute(self, element: FakeElement, name: str) -> Optional[str]:
        self.calls.append(("get_attribute", name))
        return element.attributes.get(name)

    async def inner_html(self, element: FakeElement) -> str:
        self.calls.append(("inner_html",))
        return element.inner

    async def evaluate_on(self, element: FakeElement, script: str, arg: Any = None) -> Any:
        self.calls.append(("evaluate_on", script, arg))
        if "setAttribute" in script:
            attribute, value = arg
            element.attributes[attribute] = value
        elif "innerHTML" in script:
            element.inner = arg
        return None

    async def has_text(self, text: str, *, within: Any = None) -> bool:
        self.calls.append(("has_text", text))
        return text in self.visible_texts

    async def set_viewport(self, width: int, height: int) -> None:
        self.calls.append(("set_viewport", width, height))
        self.viewport = (width, height)

    async def console_logs(self) -> list[ConsoleEntry]:
        self.calls.append(("console_logs",))
        return list(self.logs)


def _is_descendant(element: FakeElement, ancestor: FakeElement) -> bool:
    current = element.parent
    while current is not None:
        if current is ancestor:
            return True
        current = current.parent
    return False


# ---------------------------------------------------------------------------
# pytest フィクスチャ
# ---------------------------------------------------------------------------

@pytest.fixture
def fake_driver() -> FakeDriver:
    """空の FakeDriver を提供する。"""
    return FakeDriver()


@pytest.fixture
def element_factory() -> type[FakeElement]:
    """FakeElement クラスを提供する（要素の生成に使用）。"""
    return FakeElement


@pytest.fixture
def harness_config() -> HarnessConfig:
    """待機上限を短くしたテスト用のハーネス設定。"""
    return HarnessConfig(max_wait_time=0.3)


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """BST_* 環境変数を全て取り除いた状態にする。"""
    for key in (
        "BST_BASE_URL", "BST_INTERACTIVE", "BST_BROWSER", "BST_MAX_WAIT_TIME",
        "BST_DEVICE", "BST_DEVICES_FILE", "BST_RETRY_VERBOSE",
    ):
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


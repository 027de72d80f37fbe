"""
エラー定義 — ハーネス全体で共有する例外階層

テスト失敗の種類ごとに例外クラスを分け、リトライ可否の判定や
失敗メッセージの組み立てに使用する。

分類:
  - TimeoutWaitingForContent: コンテンツ待機がタイムアウトした（明示的に許可された場合のみリトライ）
  - ElementNotFound: 要素が見つからなかった（リトライしない）
  - UnexpectedJsErrors: 監視中のアクションで JS エラーが出力された（常に致命的）
  - SessionSetupFailure: ブラウザドライバーに接続できなかった（このレイヤーではリトライしない）
  - TransientNetworkTimeout: 一時的なネットワーク読み取りタイムアウト（リトライ対象）
  - EmailNotFound: 期待したメールが受信箱に存在しない
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .js_errors import ConsoleEntry


class HarnessError(Exception):
    """ハーネスが送出する例外の基底クラス。"""


# ---------------------------------------------------------------------------
# 待機・要素探索
# ---------------------------------------------------------------------------

class TimeoutWaitingForContent(HarnessError, TimeoutError):
    """期待したコンテンツが待機上限内に表示されなかった。

    Attributes:
        text: 待機していたテキスト
        timeout: 待機上限（秒）
    """

    def __init__(self, text: str, timeout: float) -> None:
        self.text = text
        self.timeout = timeout
        super().__init__(
            f"'{text}' が {timeout:g} 秒以内に表示されませんでした"
        )


class ElementNotFound(HarnessError):
    """セレクタに一致する要素が見つからなかった。

    Attributes:
        selector: 探索したセレクタ
        text: テキスト条件（指定時のみ）
    """

    def __init__(self, selector: str, text: Optional[str] = None) -> None:
        self.selector = selector
        self.text = text
        condition = f"（テキスト: '{text}'）" if text is not None else ""
        super().__init__(f"要素が見つかりません: {selector}{condition}")


# ---------------------------------------------------------------------------
# JS エラー
# ---------------------------------------------------------------------------

class UnexpectedJsErrors(HarnessError, AssertionError):
    """監視中のアクションでブラウザコンソールにエラーが出力された。

    Attributes:
        entries: フィルタ後に残ったコンソールエントリの全リスト
    """

    def __init__(self, entries: list[ConsoleEntry]) -> None:
        self.entries = list(entries)
        joined = ", ".join(str(e) for e in self.entries)
        super().__init__(
            f"JS エラーは発生しないはずでしたが、次のエラーが見つかりました: {joined}"
        )


# ---------------------------------------------------------------------------
# セッション・ネットワーク
# ---------------------------------------------------------------------------

class SessionSetupFailure(HarnessError):
    """ブラウザドライバーに接続できず、セッションを確立できなかった。"""


class TransientNetworkTimeout(HarnessError):
    """アプリケーションへの接続で一時的な読み取りタイムアウトが発生した。"""


# ---------------------------------------------------------------------------
# メール
# ---------------------------------------------------------------------------

class EmailNotFound(HarnessError, AssertionError):
    """条件に一致するメールが受信箱に存在しなかった。"""

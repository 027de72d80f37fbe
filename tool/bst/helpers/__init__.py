"""
補助モジュール

テストシナリオから使う高レベルの操作を提供する。

- NavigationHelpers: 認証ページ遷移・メニュー操作・ログアウト
- select2_select: キー入力による Select2 の候補選択
- ControllerLifecycle: UI コントローラーの切断・再接続シミュレーション
- Mailbox / open_email: 受信メールの確認
"""

from .controllers import ControllerLifecycle  # noqa: F401
from .email import InMemoryMailbox, MailMessage, Mailbox, assert_email_contains, open_email  # noqa: F401
from .navigation import NavigationHelpers  # noqa: F401
from .select2 import select2_select  # noqa: F401

__all__ = [
    "ControllerLifecycle",
    "InMemoryMailbox",
    "MailMessage",
    "Mailbox",
    "NavigationHelpers",
    "assert_email_contains",
    "open_email",
    "select2_select",
]

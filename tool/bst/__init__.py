"""
bst — デバイスプロファイル別ブラウザシステムテストハーネス

実際のブラウザを起動して稼働中の Web アプリケーションを操作し、
セッション管理・JS エラー検出・UI コントローラーの再接続シミュレーション・
不安定なテストのリトライを提供する。
"""

from .case import SystemTestCase
from .config import HarnessConfig, load_config_from_env

__all__ = [
    "HarnessConfig",
    "SystemTestCase",
    "load_config_from_env",
]

"""
ハーネス設定 — 環境変数・CLI 引数からの設定読み込み

環境変数または CLI 引数でハーネスの動作を制御する。
CLI 引数 > 環境変数 > デフォルト値 の優先順位で適用される。

環境変数一覧:
  BST_BASE_URL      : テスト対象アプリケーションの URL（デフォルト: http://localhost:3001）
  BST_INTERACTIVE   : 対話モード（true/false, デフォルト: false = ヘッドレス）
  BST_BROWSER       : ブラウザ種別（chromium/firefox/webkit, デフォルト: chromium）
  BST_MAX_WAIT_TIME : コンテンツ待機の上限秒数（デフォルト: 対話モード 15 / ヘッドレス 5）
  BST_DEVICE        : 実行対象をこのデバイスプロファイルに絞り込む
  BST_DEVICES_FILE  : 追加のデバイスプロファイル定義 YAML
  BST_RETRY_VERBOSE : リトライ発生時に毎回報告するか（デフォルト: true）
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Literal, Optional

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# 環境変数キー定数
# ---------------------------------------------------------------------------

_ENV_BASE_URL = "BST_BASE_URL"
_ENV_INTERACTIVE = "BST_INTERACTIVE"
_ENV_BROWSER = "BST_BROWSER"
_ENV_MAX_WAIT_TIME = "BST_MAX_WAIT_TIME"
_ENV_DEVICE = "BST_DEVICE"
_ENV_DEVICES_FILE = "BST_DEVICES_FILE"
_ENV_RETRY_VERBOSE = "BST_RETRY_VERBOSE"

# 対話モード / ヘッドレスモードごとの待機上限（秒）
INTERACTIVE_MAX_WAIT_TIME = 15.0
HEADLESS_MAX_WAIT_TIME = 5.0

BrowserName = Literal["chromium", "firefox", "webkit"]


# ---------------------------------------------------------------------------
# 設定データクラス
# ---------------------------------------------------------------------------

@dataclass
class HarnessConfig:
    """ハーネスの実行時設定。

    Attributes:
        base_url: テスト対象アプリケーションのベース URL
        interactive: 対話モード（True=ブラウザ表示, False=ヘッドレス）
        browser: 使用するブラウザ種別
        max_wait_time: コンテンツ待機の上限秒数（None でモード別デフォルト）
        device: デバイスプロファイル名の上書き（None で全プロファイル）
        devices_file: 追加デバイスプロファイル YAML のパス
        screen_width: セッション開始時のウィンドウ幅
        screen_height: セッション開始時のウィンドウ高さ
        retry_count: テスト 1 件あたりの最大リトライ回数（初回の実行を含まない）
        retry_verbose: リトライのたびにログを出力するか
        sign_in_path: サインインページのパス
        sign_up_path: サインアップページのパス
        invitation_path: 招待ページのパス
        invitation_only: 招待制サインアップかどうか
        invitation_keys: 招待キーのリスト
    """

    base_url: str = "http://localhost:3001"
    interactive: bool = False
    browser: BrowserName = "chromium"
    max_wait_time: Optional[float] = None
    device: Optional[str] = None
    devices_file: Optional[str] = None
    screen_width: int = 1400
    screen_height: int = 1400
    retry_count: int = 3
    retry_verbose: bool = True
    sign_in_path: str = "/users/sign_in"
    sign_up_path: str = "/users/sign_up"
    invitation_path: str = "/invitation"
    invitation_only: bool = False
    invitation_keys: list[str] = field(default_factory=list)

    @property
    def wait_time(self) -> float:
        """実際に使用する待機上限（秒）を返す。"""
        if self.max_wait_time is not None:
            return self.max_wait_time
        return INTERACTIVE_MAX_WAIT_TIME if self.interactive else HEADLESS_MAX_WAIT_TIME

    @property
    def headless(self) -> bool:
        """ヘッドレスでブラウザを起動するかどうかを返す。"""
        return not self.interactive

    def url_for(self, path: str) -> str:
        """パスをベース URL と結合した絶対 URL を返す。"""
        if path.startswith(("http://", "https://")):
            return path
        return self.base_url.rstrip("/") + "/" + path.lstrip("/")


# ---------------------------------------------------------------------------
# 環境変数からの読み込み
# ---------------------------------------------------------------------------

def _parse_bool(value: str) -> bool:
    """文字列を bool に変換する。

    Args:
        value: "true", "1", "yes" → True、それ以外 → False

    Returns:
        変換結果
    """
    return value.lower() in ("true", "1", "yes")


def load_config_from_env(environ: Optional[dict[str, str]] = None) -> HarnessConfig:
    """環境変数から HarnessConfig を生成する。

    設定されていない環境変数はデフォルト値を使用する。

    Args:
        environ: 参照する環境変数（None で os.environ）

    Returns:
        環境変数から読み込んだ設定
    """
    env = os.environ if environ is None else environ
    config = HarnessConfig()

    if _ENV_BASE_URL in env:
        config.base_url = env[_ENV_BASE_URL]

    if _ENV_INTERACTIVE in env:
        config.interactive = _parse_bool(env[_ENV_INTERACTIVE])

    if _ENV_BROWSER in env:
        val = env[_ENV_BROWSER]
        if val in ("chromium", "firefox", "webkit"):
            config.browser = val  # type: ignore[assignment]
        else:
            logger.warning("BST_BROWSER の値が不正です: %s", val)

    if _ENV_MAX_WAIT_TIME in env:
        try:
            config.max_wait_time = float(env[_ENV_MAX_WAIT_TIME])
        except ValueError:
            logger.warning("BST_MAX_WAIT_TIME の値が不正です: %s", env[_ENV_MAX_WAIT_TIME])

    if env.get(_ENV_DEVICE):
        config.device = env[_ENV_DEVICE]

    if env.get(_ENV_DEVICES_FILE):
        config.devices_file = env[_ENV_DEVICES_FILE]

    if _ENV_RETRY_VERBOSE in env:
        config.retry_verbose = _parse_bool(env[_ENV_RETRY_VERBOSE])

    logger.debug("設定を読み込みました: %s", config)
    return config


def apply_cli_args(config: HarnessConfig, args: Any) -> HarnessConfig:
    """CLI 引数を HarnessConfig に適用する。

    CLI 引数が指定されている場合のみ上書きする。

    Args:
        config: ベースとなる設定（環境変数から読み込み済み）
        args: CLI の解析結果（属性として各オプションを持つオブジェクト）

    Returns:
        CLI 引数が適用された設定
    """
    interactive = getattr(args, "interactive", None)
    if interactive is not None:
        config.interactive = interactive

    for name in ("base_url", "browser", "max_wait_time", "device", "devices_file"):
        value = getattr(args, name, None)
        if value is not None:
            setattr(config, name, value)

    return config


def to_environ(config: HarnessConfig) -> dict[str, str]:
    """設定を子プロセス向けの環境変数辞書に変換する。

    Args:
        config: 変換元の設定

    Returns:
        BST_* 環境変数の辞書
    """
    env = {
        _ENV_BASE_URL: config.base_url,
        _ENV_INTERACTIVE: "true" if config.interactive else "false",
        _ENV_BROWSER: config.browser,
        _ENV_RETRY_VERBOSE: "true" if config.retry_verbose else "false",
    }
    if config.max_wait_time is not None:
        env[_ENV_MAX_WAIT_TIME] = f"{config.max_wait_time:g}"
    if config.device:
        env[_ENV_DEVICE] = config.device
    if config.devices_file:
        env[_ENV_DEVICES_FILE] = config.devices_file
    return env

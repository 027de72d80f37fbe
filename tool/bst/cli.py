"""
CLI エントリポイント — Typer ベースのコマンドラインインターフェース

bst コマンドとして以下のサブコマンドを提供する:
  - devices: 実行対象になるデバイスプロファイルと実効ビューポートの一覧
  - run: ハーネス設定を環境変数に反映して pytest を実行
"""

from __future__ import annotations

import logging
import os
import subprocess
import sys
from pathlib import Path
from types import SimpleNamespace
from typing import Optional

import typer

from .config import apply_cli_args, load_config_from_env, to_environ
from .core.devices import compute_viewport, resolve_profiles

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Typer アプリ定義
# ---------------------------------------------------------------------------

app = typer.Typer(
    help=(
        "bst — デバイスプロファイル別のブラウザシステムテストハーネス\n\n"
        "基本の流れ:\n"
        "  1. bst devices             実行対象のプロファイルを確認\n"
        "  2. bst run tests/system    プロファイルごとにテストを実行\n\n"
        "詳しくは各コマンドに --help を付けてください。"
    ),
    no_args_is_help=True,
)


# ---------------------------------------------------------------------------
# devices コマンド
# ---------------------------------------------------------------------------

@app.command()
def devices(
    device: Optional[str] = typer.Option(
        None, "--device", "-d", help="このプロファイルに絞り込む（BST_DEVICE より優先）",
    ),
    devices_file: Optional[Path] = typer.Option(
        None, "--devices-file", help="追加のデバイスプロファイル定義 YAML",
    ),
) -> None:
    """実行対象のデバイスプロファイルを一覧表示する。"""
    from .pytest_plugin import registered_devices

    config = apply_cli_args(
        load_config_from_env(),
        SimpleNamespace(
            device=device,
            devices_file=str(devices_file) if devices_file is not None else None,
        ),
    )

    try:
        profiles = resolve_profiles(config.device, registered_devices(config))
    except (FileNotFoundError, ValueError) as exc:
        typer.echo(f"エラー: {exc}", err=True)
        raise typer.Exit(code=1)

    for name, profile in profiles.items():
        width, height = compute_viewport(profile)
        flags = []
        if profile.mobile:
            flags.append("mobile")
        if profile.high_dpi:
            flags.append("high_dpi")
        typer.echo(
            f"  {name:24s} {profile.resolution[0]}x{profile.resolution[1]}"
            f" → {width}x{height}  {' '.join(flags)}".rstrip()
        )

    typer.echo(f"\n合計: {len(profiles)} プロファイル")


# ---------------------------------------------------------------------------
# run コマンド
# ---------------------------------------------------------------------------

@app.command(
    context_settings={"allow_extra_args": True, "ignore_unknown_options": True},
)
def run(
    ctx: typer.Context,
    device: Optional[str] = typer.Option(
        None, "--device", "-d", help="このプロファイルに限定して実行する",
    ),
    interactive: bool = typer.Option(
        False, "--interactive", help="ブラウザを表示して実行する（待機上限も長くなる）",
    ),
    base_url: Optional[str] = typer.Option(
        None, "--base-url", help="テスト対象アプリケーションの URL",
    ),
    browser: Optional[str] = typer.Option(
        None, "--browser", help="ブラウザ種別 (chromium / firefox / webkit)",
    ),
    max_wait_time: Optional[float] = typer.Option(
        None, "--max-wait-time", help="コンテンツ待機の上限（秒）",
    ),
) -> None:
    """ハーネス設定を反映して pytest を実行する。

    オプション以外の引数はそのまま pytest に渡される。
    """
    if browser is not None and browser not in ("chromium", "firefox", "webkit"):
        typer.echo(f"エラー: 不明なブラウザ種別です: {browser}", err=True)
        raise typer.Exit(code=2)

    config = apply_cli_args(
        load_config_from_env(),
        SimpleNamespace(
            device=device,
            interactive=True if interactive else None,
            base_url=base_url,
            browser=browser,
            max_wait_time=max_wait_time,
        ),
    )

    env = dict(os.environ)
    env.update(to_environ(config))

    cmd = [sys.executable, "-m", "pytest", *ctx.args]
    typer.echo(
        f"ブラウザ: {config.browser} ({'対話モード' if config.interactive else 'ヘッドレス'})"
    )
    typer.echo(f"URL: {config.base_url}")

    result = subprocess.run(cmd, env=env)
    if result.returncode != 0:
        raise typer.Exit(code=result.returncode)


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(name)s - %(message)s")
    app()


if __name__ == "__main__":
    main()

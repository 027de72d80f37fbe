"""
pytest プラグイン — デバイスマトリクスとシステムテスト用フィクスチャ

提供する機能:
  - bst_device: 有効なデバイスプロファイルごとにテストをパラメータ化するフィクスチャ
  - bst_config: 環境変数とコマンドラインオプションから生成したハーネス設定
  - system_test: テスト専用の SystemTestCase（終了時に必ず teardown）
"""

from __future__ import annotations

import logging
from pathlib import Path
from types import SimpleNamespace
from typing import AsyncIterator

import pytest
import pytest_asyncio

from .case import SystemTestCase
from .config import HarnessConfig, apply_cli_args, load_config_from_env
from .core.devices import DEFAULT_DEVICES, DeviceProfile, load_profiles, resolve_profiles

logger = logging.getLogger(__name__)

# デバイスプロファイルでパラメータ化するフィクスチャ名
DEVICE_FIXTURE = "bst_device"


def pytest_addoption(parser: pytest.Parser) -> None:
    group = parser.getgroup("bst", "browser system test harness")
    group.addoption(
        "--bst-device", dest="bst_device", default=None,
        help="このデバイスプロファイルに限定して実行する",
    )
    group.addoption(
        "--bst-base-url", dest="bst_base_url", default=None,
        help="テスト対象アプリケーションの URL",
    )
    group.addoption(
        "--bst-interactive", dest="bst_interactive", action="store_true", default=None,
        help="ブラウザを表示する対話モードで実行する",
    )


def build_config(pytest_config: pytest.Config) -> HarnessConfig:
    """環境変数とコマンドラインオプションからハーネス設定を生成する。"""
    args = SimpleNamespace(
        device=pytest_config.getoption("bst_device"),
        base_url=pytest_config.getoption("bst_base_url"),
        interactive=pytest_config.getoption("bst_interactive"),
    )
    return apply_cli_args(load_config_from_env(), args)


def registered_devices(config: HarnessConfig) -> dict[str, DeviceProfile]:
    """既定のプロファイルに、設定ファイルで定義されたプロファイルを追加して返す。"""
    devices = dict(DEFAULT_DEVICES)
    if config.devices_file:
        devices.update(load_profiles(Path(config.devices_file)))
    return devices


def pytest_generate_tests(metafunc: pytest.Metafunc) -> None:
    if DEVICE_FIXTURE not in metafunc.fixturenames:
        return
    config = build_config(metafunc.config)
    profiles = resolve_profiles(config.device, registered_devices(config))
    metafunc.parametrize(DEVICE_FIXTURE, list(profiles.values()), ids=list(profiles))


@pytest.fixture(scope="session")
def bst_config(pytestconfig: pytest.Config) -> HarnessConfig:
    return build_config(pytestconfig)


@pytest_asyncio.fixture
async def system_test(
    bst_config: HarnessConfig, request: pytest.FixtureRequest
) -> AsyncIterator[SystemTestCase]:
    case = SystemTestCase(bst_config, name=request.node.name)
    try:
        yield case
    finally:
        await case.teardown()

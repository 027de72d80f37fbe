"""
待機戦略 — 固定スリープではなくコンテンツ表示による同期

ナビゲーション直後は非同期にページが読み込まれるため、
期待するテキストが表示されるまでポーリングで待機してから次の操作に進む。

主な機能:
  - wait_for_content: テキストが可視になるまで待機
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING, Any

from .errors import TimeoutWaitingForContent

if TYPE_CHECKING:
    from .driver import Driver

logger = logging.getLogger(__name__)

# ポーリング間隔（秒）
POLL_INTERVAL = 0.1


async def wait_for_content(
    driver: Driver, text: str, timeout: float, *, within: Any = None
) -> None:
    """テキストが可視になるまで待機する。

    ポーリング間隔 100ms で driver.has_text() を確認し、
    条件を満たした時点で即座に返る。

    Args:
        driver: 確認に使用する Driver
        text: 表示を待つテキスト（部分一致）
        timeout: 待機上限（秒）
        within: 検索範囲を限定する要素（None でページ全体）

    Raises:
        TimeoutWaitingForContent: 待機上限内にテキストが可視にならなかった場合
    """
    start = time.perf_counter()

    while True:
        if await driver.has_text(text, within=within):
            logger.debug(
                "'%s' が表示されました（%.0fms 経過）",
                text, (time.perf_counter() - start) * 1000,
            )
            return

        if time.perf_counter() - start >= timeout:
            raise TimeoutWaitingForContent(text, timeout)

        await asyncio.sleep(POLL_INTERVAL)

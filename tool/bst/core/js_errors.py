"""
JS エラー監視 — アクション実行中に新たに出力されたコンソールエラーの検出

コンソールログは追記専用でセッション中ずっと残るため、単純に「現在のエラー」を
確認すると以前のアクションで出たエラーを重複して数えてしまう。
アクション実行前の最終タイムスタンプを床値として記録し、
それより新しいエントリだけを検査対象にする。

使用例::

    async with no_js_errors(driver):
        await driver.click(button)

    await assert_no_js_errors(driver, lambda: driver.click(button))
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, AsyncIterator, Awaitable, Callable

from .errors import UnexpectedJsErrors

if TYPE_CHECKING:
    from .driver import Driver

logger = logging.getLogger(__name__)

# 検査対象から除外するログレベル
IGNORED_LEVEL = "WARNING"


@dataclass(frozen=True)
class ConsoleEntry:
    """ブラウザコンソールの 1 エントリ。

    Attributes:
        timestamp: 出力時刻（エポックミリ秒）
        level: ログレベル（SEVERE / WARNING / INFO / DEBUG）
        message: メッセージ本文
    """

    timestamp: int
    level: str
    message: str

    def __str__(self) -> str:
        return f"{self.timestamp} {self.level} {self.message}"


def last_timestamp(entries: list[ConsoleEntry]) -> int:
    """最後のエントリのタイムスタンプを返す。エントリがなければ 0。"""
    return entries[-1].timestamp if entries else 0


def new_errors(entries: list[ConsoleEntry], floor: int) -> list[ConsoleEntry]:
    """床値より新しく、WARNING 以外のエントリを返す。

    floor が 0 の場合は「最初から」を意味し、全エントリを対象にする。
    """
    if floor > 0:
        entries = [e for e in entries if e.timestamp > floor]
    return [e for e in entries if e.level != IGNORED_LEVEL]


@asynccontextmanager
async def no_js_errors(driver: Driver) -> AsyncIterator[None]:
    """ブロック内で新たな JS エラーが出力されないことを検証する。

    Raises:
        UnexpectedJsErrors: WARNING 以外の新しいエントリが 1 件以上あった場合
    """
    floor = last_timestamp(await driver.console_logs())

    yield

    errors = new_errors(await driver.console_logs(), floor)
    if errors:
        logger.error("JS エラーを %d 件検出しました", len(errors))
        raise UnexpectedJsErrors(errors)


async def assert_no_js_errors(driver: Driver, action: Callable[[], Awaitable[Any]]) -> Any:
    """action を実行し、その間に新たな JS エラーが出力されないことを検証する。

    Args:
        driver: コンソールログを読み出す Driver
        action: 実行する非同期アクション

    Returns:
        action の戻り値
    """
    async with no_js_errors(driver):
        result = await action()
    return result

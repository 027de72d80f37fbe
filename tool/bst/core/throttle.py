"""
実行スロットル — ブラウザコマンド発行前の一律遅延

ヘッドレスモードでタイミング依存の不安定さが出る場合に、
全ての低レベルブラウザコマンドの直前に固定の遅延を挿入する。

スロットルは SessionController が所有し、ThrottledDriver に注入される。
設定はテストをまたいで保持されるため、teardown で reset() すること。
"""

from __future__ import annotations

import asyncio
import logging

logger = logging.getLogger(__name__)

# slow_down() で設定する遅延（秒）
SLOW_DOWN_DELAY = 0.5


class ExecutionThrottle:
    """コマンド発行前の遅延値を保持するスロットル。

    使用例::

        throttle = ExecutionThrottle()
        throttle.slow_down()   # 以降のコマンド前に 0.5 秒待機
        throttle.reset()       # 遅延なしに戻す
    """

    def __init__(self, delay: float = 0.0) -> None:
        self._delay = delay

    @property
    def delay(self) -> float:
        """現在の遅延（秒）を返す。"""
        return self._delay

    @property
    def enabled(self) -> bool:
        return self._delay > 0

    def slow_down(self, delay: float = SLOW_DOWN_DELAY) -> None:
        """以降の全コマンドの前に delay 秒の遅延を挿入する。"""
        self._delay = delay
        logger.info("実行スロットルを有効化しました（%.2f 秒）", delay)

    def reset(self) -> None:
        """遅延を 0 に戻す。何度呼んでもよい。"""
        if self._delay:
            logger.info("実行スロットルを解除しました")
        self._delay = 0.0

    async def pause(self) -> None:
        """現在の遅延だけ待機する。遅延 0 の場合は即座に返る。"""
        if self._delay > 0:
            await asyncio.sleep(self._delay)

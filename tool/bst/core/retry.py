"""
リトライ監督 — 既知の不安定要因による失敗時にテスト全体を再実行する

失敗した例外の種類が許可リストに含まれ、リトライ回数が上限未満であれば
テストを最初からやり直す。許可リストは明示的な閉じた集合であり、
全例外を対象にするような指定はしない（実際の不具合を不安定さとして隠してしまうため）。

主な構成:
  - RetryPolicy: 許可リスト・リトライ回数・verbose 設定
  - RetryState: テスト 1 件分の試行記録
  - RetrySupervisor: ポリシーに従って試行を繰り返す本体
  - retry_flaky: コルーチン関数向けデコレータ
"""

from __future__ import annotations

import functools
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional

from .errors import TransientNetworkTimeout, UnexpectedJsErrors

logger = logging.getLogger(__name__)

# リトライ回数の既定値（初回に加えて最大 3 回再実行する）
DEFAULT_RETRY_COUNT = 3

# 既定の許可リスト
DEFAULT_RETRY_EXCEPTIONS: tuple[type[BaseException], ...] = (TransientNetworkTimeout,)

# 許可リストに含めても決してリトライしない例外
NEVER_RETRY: tuple[type[BaseException], ...] = (UnexpectedJsErrors,)


# ---------------------------------------------------------------------------
# ポリシー・状態
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RetryPolicy:
    """リトライの判定条件。

    Attributes:
        retry_count: 初回失敗後に再実行する最大回数
        exceptions: リトライ対象の例外クラス
        verbose: リトライのたびに報告するか
    """

    retry_count: int = DEFAULT_RETRY_COUNT
    exceptions: tuple[type[BaseException], ...] = DEFAULT_RETRY_EXCEPTIONS
    verbose: bool = True

    def __post_init__(self) -> None:
        if self.retry_count < 0:
            raise ValueError(f"retry_count は 0 以上を指定してください: {self.retry_count}")
        if BaseException in self.exceptions or Exception in self.exceptions:
            raise ValueError("全例外をリトライ対象にすることはできません")

    @property
    def max_attempts(self) -> int:
        return self.retry_count + 1

    def is_retryable(self, exc: BaseException) -> bool:
        """例外がリトライ対象かどうかを返す。"""
        if isinstance(exc, NEVER_RETRY):
            return False
        return isinstance(exc, self.exceptions)


@dataclass
class RetryState:
    """テスト 1 件分の試行記録。

    Attributes:
        name: テスト名
        attempts: 実行した試行回数
        retried_errors: リトライのきっかけになった例外（発生順）
        result: 成功した試行の戻り値
    """

    name: str
    attempts: int = 0
    retried_errors: list[BaseException] = field(default_factory=list)
    result: Any = None

    @property
    def retries(self) -> int:
        return len(self.retried_errors)


# ---------------------------------------------------------------------------
# RetrySupervisor 本体
# ---------------------------------------------------------------------------

class RetrySupervisor:
    """ポリシーに従ってテストの試行を繰り返す。

    使用例::

        supervisor = RetrySupervisor(RetryPolicy(verbose=True))
        state = await supervisor.run(run_test_once, name="test_sign_out")
        assert state.retries <= 3
    """

    def __init__(self, policy: Optional[RetryPolicy] = None) -> None:
        self._policy = policy if policy is not None else RetryPolicy()

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    async def run(
        self, attempt: Callable[[], Awaitable[Any]], *, name: str = "test"
    ) -> RetryState:
        """attempt を実行し、許可された失敗であれば再実行する。

        Args:
            attempt: テスト 1 回分を実行する非同期関数（setup から teardown まで）
            name: ログ出力用のテスト名

        Returns:
            成功時の試行記録

        Raises:
            Exception: リトライ対象外の失敗、または上限に達した最後の失敗
        """
        state = RetryState(name=name)
        policy = self._policy

        while True:
            state.attempts += 1
            try:
                state.result = await attempt()
            except Exception as exc:
                if not policy.is_retryable(exc) or state.attempts >= policy.max_attempts:
                    if state.retries:
                        logger.error(
                            "%s は %d 回目の試行で失敗しました: %s",
                            name, state.attempts, exc,
                        )
                    raise
                state.retried_errors.append(exc)
                if policy.verbose:
                    logger.warning(
                        "[リトライ] %s: %d/%d 回目 (%s: %s)",
                        name, state.retries, policy.retry_count,
                        type(exc).__name__, exc,
                    )
                continue

            if state.retries:
                logger.info("%s は %d 回のリトライ後に成功しました", name, state.retries)
            return state


def retry_flaky(
    retry_count: int = DEFAULT_RETRY_COUNT,
    exceptions: tuple[type[BaseException], ...] = DEFAULT_RETRY_EXCEPTIONS,
    verbose: bool = True,
) -> Callable:
    """コルーチン関数を RetrySupervisor で包むデコレータ。

    使用例::

        @retry_flaky(exceptions=(TransientNetworkTimeout,))
        async def fetch_dashboard():
            ...
    """
    policy = RetryPolicy(retry_count=retry_count, exceptions=exceptions, verbose=verbose)

    def decorator(func: Callable[..., Awaitable[Any]]) -> Callable[..., Awaitable[Any]]:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            supervisor = RetrySupervisor(policy)
            state = await supervisor.run(
                lambda: func(*args, **kwargs), name=func.__name__,
            )
            return state.result

        return wrapper

    return decorator

# コアモジュール
# デバイスプロファイル、セッション、Driver、待機、JS エラー監視、リトライ、スロットルを提供

from .devices import DEFAULT_DEVICES, DeviceProfile, compute_viewport, load_profiles, resolve_profiles
from .driver import Driver, PlaywrightDriver, ThrottledDriver
from .errors import (
    ElementNotFound,
    EmailNotFound,
    HarnessError,
    SessionSetupFailure,
    TimeoutWaitingForContent,
    TransientNetworkTimeout,
    UnexpectedJsErrors,
)
from .js_errors import ConsoleEntry, assert_no_js_errors, no_js_errors
from .retry import RetryPolicy, RetryState, RetrySupervisor, retry_flaky
from .session import SessionController, SessionState
from .throttle import ExecutionThrottle
from .waits import wait_for_content

__all__ = [
    "ConsoleEntry",
    "DEFAULT_DEVICES",
    "DeviceProfile",
    "Driver",
    "ElementNotFound",
    "EmailNotFound",
    "ExecutionThrottle",
    "HarnessError",
    "PlaywrightDriver",
    "RetryPolicy",
    "RetryState",
    "RetrySupervisor",
    "SessionController",
    "SessionSetupFailure",
    "SessionState",
    "ThrottledDriver",
    "TimeoutWaitingForContent",
    "TransientNetworkTimeout",
    "UnexpectedJsErrors",
    "assert_no_js_errors",
    "compute_viewport",
    "load_profiles",
    "no_js_errors",
    "resolve_profiles",
    "retry_flaky",
    "wait_for_content",
]

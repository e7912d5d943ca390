"""
Bounded Retry Utilities
=======================

One retry policy shared by every outbound call that may fail transiently
(payment processor, notification delivery, settlement transaction).

The policy is: a fixed number of attempts, exponential backoff starting at a
base delay and doubling on each retry, retrying only the failures the caller's
predicate marks as retryable. Everything else is raised on the first attempt.

Usage:
    from utils.retry import bounded_retry

    retrying = bounded_retry(lambda exc: isinstance(exc, TimeoutError))
    result = retrying(client.send, payload)
"""

import logging
from typing import Any, Callable, Optional

from django.conf import settings
from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception,
    stop_after_attempt,
    stop_after_delay,
    wait_exponential,
)


logger = logging.getLogger(__name__)

DEFAULT_ATTEMPTS = 3
DEFAULT_BASE_DELAY = 2.0
MAX_DELAY = 30.0


def _settlement_config(key: str, default: Any) -> Any:
    return getattr(settings, "SETTLEMENT", {}).get(key, default)


def _log_before_sleep(label: str) -> Callable[[RetryCallState], None]:
    def log_it(retry_state: RetryCallState) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        delay = retry_state.next_action.sleep if retry_state.next_action else 0
        logger.warning(
            f"{label} attempt {retry_state.attempt_number} failed ({type(exc).__name__}: {exc}); "
            f"retrying in {delay:.2f}s"
        )

    return log_it


def bounded_retry(
    retryable: Callable[[BaseException], bool],
    attempts: Optional[int] = None,
    base_delay: Optional[float] = None,
    timeout: Optional[float] = None,
    label: str = "operation",
    sleep: Optional[Callable[[float], None]] = None,
) -> Retrying:
    """
    Build a tenacity ``Retrying`` controller with the shared backoff policy.

    Args:
        retryable: Predicate deciding whether an exception is worth another attempt
        attempts: Total attempts including the first (defaults to SETTLEMENT["RETRY_ATTEMPTS"])
        base_delay: Delay before the first retry in seconds; doubles on each retry
            (defaults to SETTLEMENT["RETRY_BASE_DELAY"])
        timeout: Optional overall deadline in seconds across all attempts
        label: Name used in retry log lines
        sleep: Optional sleep function (tests inject a recorder)

    Returns:
        Retrying instance; call it as ``retrying(func, *args, **kwargs)``.
        The last exception is re-raised unchanged once attempts are exhausted.
    """
    if attempts is None:
        attempts = _settlement_config("RETRY_ATTEMPTS", DEFAULT_ATTEMPTS)
    if base_delay is None:
        base_delay = _settlement_config("RETRY_BASE_DELAY", DEFAULT_BASE_DELAY)

    stop = stop_after_attempt(attempts)
    if timeout is not None:
        stop = stop | stop_after_delay(timeout)

    options = {
        "stop": stop,
        "wait": wait_exponential(multiplier=base_delay, exp_base=2, min=0, max=MAX_DELAY),
        "retry": retry_if_exception(retryable),
        "reraise": True,
        "before_sleep": _log_before_sleep(label),
    }
    if sleep is not None:
        options["sleep"] = sleep

    return Retrying(**options)

"""This module contains decorators for the zetsubou package."""

import asyncio
import inspect
import logging
import os
from functools import wraps
from typing import Callable

from tenacity import (
    retry,
    wait_exponential,
    before_sleep_log,
    after_log,
    RetryCallState,
)

from zetsubou.exceptions import (
    ZetsubouClientClosed,
    ZetsubouConnectionError,
    ZetsubouServerError,
)

logger = logging.getLogger(__name__)


# Retry condition functions
def should_retry_transient_error(exception: BaseException) -> bool:
    """Check if exception is a transient failure worth retrying.

    Only failures where no response arrived and 5xx server errors qualify.
    Validation, authentication, not found and rate limit errors are raised
    to the caller on the first attempt.
    """
    return isinstance(exception, (ZetsubouConnectionError, ZetsubouServerError))


# Custom retry condition classes for tenacity
class TransientErrorRetryCondition:
    """Custom retry condition for transient errors."""

    def __call__(self, retry_state: RetryCallState) -> bool:
        """Check if we should retry based on transient error conditions."""
        if retry_state.outcome is None or not retry_state.outcome.failed:
            return False
        exception = retry_state.outcome.exception()
        return should_retry_transient_error(exception)


class StopAfterConfiguredRetries:
    """Stop condition that reads the retry budget from the client instance.

    Since the retry decorator is only used on ZetsubouClient instance methods,
    the first argument (self) is always the client.
    """

    def __call__(self, retry_state: RetryCallState) -> bool:
        retry_attempts = 0
        if retry_state.args and hasattr(retry_state.args[0], "retry_attempts"):
            retry_attempts = retry_state.args[0].retry_attempts
        return retry_state.attempt_number > retry_attempts


async def _async_sleep(seconds: float) -> None:
    await asyncio.sleep(seconds)


def _get_max_wait() -> float:
    max_wait_env = os.environ.get("ZETSUBOU_RETRY_MAX_WAIT")
    if max_wait_env is None or max_wait_env.lower() in ("unlimited", "inf", "none"):
        return float("inf")
    return float(max_wait_env)


def get_transient_retry_config() -> dict:
    """Get transient error retry configuration from environment.

    With the defaults the delay before retry N is 2**N seconds: 2, 4, 8, ...
    """
    return {
        "stop": StopAfterConfiguredRetries(),
        "wait": wait_exponential(
            multiplier=float(os.environ.get("ZETSUBOU_RETRY_DELAY", "") or "2.0"),
            max=_get_max_wait(),
            exp_base=float(os.environ.get("ZETSUBOU_RETRY_FACTOR", "") or "2.0"),
        ),
        "retry": TransientErrorRetryCondition(),
        "sleep": _async_sleep,
        "before_sleep": before_sleep_log(logger, logging.INFO),
        "after": after_log(logger, logging.DEBUG),
        "reraise": True,
    }


def zetsubou_retry_on_transient_error(func: Callable) -> Callable:
    """
    Retry decorator for transient errors using tenacity.

    - Retries connection failures and 500/502/503/504 responses
    - Retry budget comes from the client's ``retry_attempts``
    - Exponential backoff, uncapped unless configured
    - After the budget is spent the last classified error is re-raised

    Environment Variables:
        ZETSUBOU_RETRY_DELAY: Backoff multiplier (default: 2.0)
        ZETSUBOU_RETRY_FACTOR: Backoff exponent base (default: 2.0)
        ZETSUBOU_RETRY_MAX_WAIT: Max wait time (default: unlimited)
            - Set to a number (e.g., "30") for a cap in seconds
            - Set to "unlimited", "inf", or "none" for no cap
    """
    return retry(**get_transient_retry_config())(func)


def use_client_session(func):
    """
    Decorator to use or create an httpx.AsyncClient session for the
    ZetsubouClient if one is not already created or the existing
    httpx.AsyncClient was closed.

    Raises ZetsubouClientClosed once the ZetsubouClient itself is closed.
    """

    @wraps(func)
    async def async_wrapper(self, *args, **kwargs):
        if self.is_closed:
            raise ZetsubouClientClosed()
        if not getattr(self, "httpx_client", None) or self.httpx_client.is_closed:
            self.httpx_client = self.get_http_client()
        return await func(self, *args, **kwargs)

    if not inspect.iscoroutinefunction(func):
        raise TypeError("use_client_session only decorates coroutine functions")
    return async_wrapper

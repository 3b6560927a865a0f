import logging
import time
from typing import Callable, TypeVar

import requests

from .errors import PlatformStatsError, TransientNetworkError

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_RETRIES = 3
DEFAULT_DELAY_SECONDS = 2.0


def is_transient_error(exc: BaseException) -> bool:
    if not isinstance(exc, Exception):
        return False
    if isinstance(exc, (requests.Timeout, requests.ConnectionError, TransientNetworkError)):
        return True
    # Typed upstream answers (rate limit, GraphQL errors, bad payloads) are final.
    if isinstance(exc, PlatformStatsError):
        return False
    return "timeout" in str(exc).lower()


def execute_with_retry(
    operation: Callable[[], T],
    max_retries: int = DEFAULT_MAX_RETRIES,
    delay: float = DEFAULT_DELAY_SECONDS,
    *,
    sleep: Callable[[float], None] | None = None,
    label: str = "",
) -> T:
    """
    Runs `operation`, retrying transient network failures at a fixed interval.

    Anything that is not a timeout/connection abort is raised right away, and
    once the retries run out the last transient exception is raised as-is.
    """
    sleep = sleep or time.sleep
    remaining = max_retries
    while True:
        try:
            return operation()
        except Exception as exc:
            if remaining <= 0 or not is_transient_error(exc):
                raise
            logger.warning(
                "Retrying %s after transient error (%s). %s attempts left",
                label or getattr(operation, "__name__", "operation"),
                exc,
                remaining,
            )
            sleep(delay)
            remaining -= 1

"""
Retry opt-in avec backoff exponentiel pour les appels HTTP.

`fetch_json` ne réessaie jamais; ce module s'empile par-dessus quand
l'appelant le souhaite:

    data = with_retry(lambda: fetch_json(url), max_attempts=3)

ou en décorateur:

    @retrying(max_attempts=5)
    def load():
        return fetch_json(url)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import wraps
from typing import Any, Callable, TypeVar

import requests
from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from statsfr.utils.logger import get_logger
from .base import ApiError, HttpStatusError

log = get_logger("data_api.retry")

T = TypeVar("T")

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_MIN_WAIT = 0.5
DEFAULT_MAX_WAIT = 8.0
DEFAULT_MULTIPLIER = 1.0


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    min_wait: float = DEFAULT_MIN_WAIT
    max_wait: float = DEFAULT_MAX_WAIT
    multiplier: float = DEFAULT_MULTIPLIER


def is_retriable(exc: BaseException) -> bool:
    """Timeouts, erreurs réseau et 5xx/429 sont réessayés; les autres 4xx échouent tout de suite."""
    if isinstance(exc, HttpStatusError):
        return exc.status_code >= 500 or exc.status_code == 429
    return isinstance(exc, (ApiError, requests.exceptions.ConnectionError))


def _retrying(policy: RetryPolicy) -> Retrying:
    return Retrying(
        wait=wait_exponential(multiplier=policy.multiplier, min=policy.min_wait, max=policy.max_wait),
        stop=stop_after_attempt(policy.max_attempts),
        retry=retry_if_exception(is_retriable),
        before_sleep=before_sleep_log(log, logging.WARNING),
        reraise=True,
    )


def with_retry(fn: Callable[[], T], *, policy: RetryPolicy | None = None, **overrides: Any) -> T:
    policy = policy or RetryPolicy(**overrides)
    return _retrying(policy)(fn)


def retrying(**overrides: Any) -> Callable[[Callable[..., T]], Callable[..., T]]:
    policy = RetryPolicy(**overrides)

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            return _retrying(policy)(func, *args, **kwargs)
        return wrapper

    return decorator

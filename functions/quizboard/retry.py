"""
Bounded retry for transient document store failures.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, TypeVar

from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from quizboard.errors import TransientStoreError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    attempts: int = 3
    initial_wait: float = 0.1
    max_wait: float = 2.0

    def call(self, fn: Callable[..., T], *args, **kwargs) -> T:
        """
        Calls ``fn`` and retries it on ``TransientStoreError``.

        The last error is re-raised once ``attempts`` calls have failed.
        Callers must make ``fn`` safe to repeat.
        """
        retrying = Retrying(
            retry=retry_if_exception_type(TransientStoreError),
            stop=stop_after_attempt(max(1, self.attempts)),
            wait=wait_exponential(multiplier=self.initial_wait, max=self.max_wait),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        return retrying(fn, *args, **kwargs)


NO_RETRY = RetryPolicy(attempts=1)

"""
Retry seam for valves.

The core never retries: a failed page fetch surfaces as a FetchError and
the Dosage it was called on stays usable. RetryValve decorates any valve
and re-issues the failed call according to a RetryPolicy, both for the
first fetch() and for every next() on the returned chain.

Usage:
    valve = RetryValve(ScanValve().with_limit(50), RetryPolicy(max_attempts=5))
"""

import time
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, TypeVar

from ._logging import logger
from .conditions import Comparison
from .credentials import Credentials
from .dosage import Dosage
from .exceptions import FetchError, NoNextPageError
from .valve import Valve

T = TypeVar("T")


def is_retryable(error: BaseException) -> bool:
    """Default predicate: only FetchErrors flagged as retryable."""
    return isinstance(error, FetchError) and error.retryable


@dataclass(frozen=True)
class RetryPolicy:
    """
    How many times to re-issue a failed call, and how long to wait between.

    Delays grow from ``initial_delay`` by ``backoff_factor`` and are capped
    at ``max_delay``. ``retry_on`` decides which errors are worth retrying.
    """

    max_attempts: int = 3
    initial_delay: float = 0.1
    max_delay: float = 5.0
    backoff_factor: float = 2.0
    retry_on: Callable[[BaseException], bool] = is_retryable
    sleep: Callable[[float], None] = field(default=time.sleep, compare=False)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.initial_delay < 0 or self.max_delay < 0:
            raise ValueError("delays must be >= 0")

    def call(self, fn: Callable[[], T], operation: str = "call") -> T:
        """Runs ``fn`` until it succeeds or the policy gives up."""
        delay = self.initial_delay
        attempt = 0
        while True:
            attempt += 1
            try:
                return fn()
            except Exception as e:
                if attempt >= self.max_attempts or not self.retry_on(e):
                    raise
                logger.warning(
                    "Retrying after failure",
                    extra={
                        "operation": operation,
                        "attempt": attempt,
                        "delay": delay,
                        "error": repr(e),
                    },
                )
            if delay > 0:
                self.sleep(delay)
            delay = min(self.max_delay, delay * self.backoff_factor)


class _RetryDosage(Dosage):
    def __init__(self, origin: Dosage, policy: RetryPolicy) -> None:
        self.origin = origin
        self.policy = policy

    def items(self) -> list[dict[str, Any]]:
        return self.origin.items()

    def has_next(self) -> bool:
        return self.origin.has_next()

    def next(self) -> Dosage:
        # Misuse is reported before the policy gets a chance to retry it
        if not self.origin.has_next():
            raise NoNextPageError()
        return _RetryDosage(self.policy.call(self.origin.next, "next"), self.policy)

    def __repr__(self) -> str:
        return f"RetryDosage({self.origin!r})"


class RetryValve(Valve):
    """Valve decorator that retries failed page fetches."""

    def __init__(self, origin: Valve, policy: RetryPolicy | None = None) -> None:
        self.origin = origin
        self.policy = policy or RetryPolicy()

    def fetch(
        self,
        credentials: Credentials,
        table: str,
        conditions: Mapping[str, Comparison] | None = None,
        keys: Iterable[str] = (),
    ) -> Dosage:
        dosage = self.policy.call(
            lambda: self.origin.fetch(credentials, table, conditions, keys), "fetch"
        )
        return _RetryDosage(dosage, self.policy)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RetryValve):
            return NotImplemented
        return (self.origin, self.policy) == (other.origin, other.policy)

    def __hash__(self) -> int:
        return hash((self.origin, self.policy))

    def __repr__(self) -> str:
        return f"RetryValve({self.origin!r}, {self.policy!r})"

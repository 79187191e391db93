"""
Timed execution of a single experiment side.

Runs one zero-argument operation exactly once and captures either its
value or its exception together with the elapsed wall-clock time.
"""

from __future__ import annotations

import inspect
import time
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar, Union

T = TypeVar("T")

# A side may be a plain function or a coroutine function.
Operation = Callable[[], Union[T, Awaitable[T]]]


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """
    Captured result of one timed execution.

    Exactly one of ``value`` / ``failure`` is meaningful: ``failure`` is set
    only when the operation raised, in which case ``value`` is None.
    """

    value: Optional[T]
    failure: Optional[Exception]
    duration: timedelta

    @classmethod
    def success(cls, value: T, duration: timedelta) -> "Outcome[T]":
        return cls(value=value, failure=None, duration=duration)

    @classmethod
    def from_failure(cls, failure: Exception, duration: timedelta) -> "Outcome[T]":
        return cls(value=None, failure=failure, duration=duration)

    @property
    def failed(self) -> bool:
        return self.failure is not None

    def unwrap(self) -> T:
        """Return the value, or re-raise the captured exception unchanged."""
        if self.failure is not None:
            raise self.failure
        return self.value  # type: ignore[return-value]


async def run_timed(operation: Operation[T]) -> Outcome[T]:
    """
    Invoke ``operation`` once and measure it.

    Awaitable results are awaited, so sync and async operations are timed
    the same way. Any ``Exception`` is captured into the outcome; cancellation
    and interpreter exits still propagate.

    Args:
        operation: Zero-argument callable (sync or async)

    Returns:
        Outcome with the value or exception and the elapsed duration
    """
    start = time.perf_counter()
    try:
        result: Any = operation()
        if inspect.isawaitable(result):
            result = await result
    except Exception as e:
        elapsed = time.perf_counter() - start
        return Outcome.from_failure(e, timedelta(seconds=elapsed))

    elapsed = time.perf_counter() - start
    return Outcome.success(result, timedelta(seconds=elapsed))

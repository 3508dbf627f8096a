"""
Bounded-time execution with an explicit outcome type.

``run_with_deadline`` never lets a slow operation hang its caller. Instead of
resolving to a sentinel on timeout, it returns one of three tagged results so
"timed out" can never be mistaken for "succeeded with an empty value":

    outcome = await run_with_deadline(do_work(), timeout=10.0)
    if isinstance(outcome, Timeout):
        ...
    elif isinstance(outcome, Err):
        raise outcome.error
    else:
        use(outcome.value)

On timeout the awaiting task is cancelled. Work already handed to a thread
(``asyncio.to_thread``) keeps running in the background and its result is
discarded.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Generic, TypeVar, Union

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    """The operation finished in time and produced ``value``."""

    value: T

    def value_or(self, default: Any) -> T:
        return self.value


@dataclass(frozen=True)
class Timeout:
    """The operation did not finish within ``timeout`` seconds."""

    timeout: float

    def value_or(self, default: Any) -> Any:
        return default


@dataclass(frozen=True)
class Err:
    """The operation finished in time but raised ``error``."""

    error: Exception

    def value_or(self, default: Any) -> Any:
        return default


Outcome = Union[Ok[T], Timeout, Err]


async def run_with_deadline(
    operation: Awaitable[T],
    timeout: float,
    operation_name: str = "operation",
) -> Outcome:
    """
    Await ``operation`` for at most ``timeout`` seconds.

    Args:
        operation: Coroutine or awaitable to run
        timeout: Deadline in seconds
        operation_name: Generic label for logs (never a raw path)

    Returns:
        ``Ok`` with the result, ``Timeout`` if the deadline passed, or ``Err``
        wrapping the exception the operation raised
    """
    try:
        value = await asyncio.wait_for(operation, timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning(f"{operation_name} timed out after {timeout:g}s")
        return Timeout(timeout)
    except Exception as e:
        logger.debug(f"{operation_name} failed: {e}")
        return Err(e)
    return Ok(value)

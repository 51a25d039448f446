"""
Deadline
========
Bounds a streaming wait by a deadline.

Timeout Policy:
    - A timeout passed by the caller is used as-is
    - No timeout (None) means config.STREAM_TIMEOUT_SECONDS (60s by default)
    - An enclosing asyncio timeout or task cancellation owned by the caller
      is left alone and surfaces as the caller's own cancellation

Expiry:
    asyncio.wait_for() cancels the operation, which unwinds its
    ``async with`` blocks and closes the connection even while a read is
    pending. Expiry is reported as StreamTimeoutError; an httpx timeout
    raised under the same deadline is reported the same way. Every other
    transport error propagates unchanged.
"""
import asyncio
from typing import Awaitable, Optional, TypeVar

import httpx

from seclai.core import config
from seclai.core.errors import ConfigurationError, StreamTimeoutError

T = TypeVar("T")


def resolve_timeout(timeout: Optional[float]) -> float:
    """Return the effective deadline in seconds."""
    if timeout is None:
        return config.STREAM_TIMEOUT_SECONDS
    if timeout <= 0:
        raise ConfigurationError(f"timeout must be positive, got {timeout}")
    return float(timeout)


async def run_with_deadline(operation: Awaitable[T], timeout: Optional[float], url: str = "") -> T:
    """
    Await ``operation`` under a deadline.

    Parameters
    ----------
    operation : Awaitable
        The connect-and-read coroutine.
    timeout : float or None
        Deadline in seconds; None applies the default.
    url : str
        Request URL, used in the timeout message.
    """
    try:
        deadline = resolve_timeout(timeout)
    except ConfigurationError:
        if asyncio.iscoroutine(operation):
            operation.close()
        raise

    try:
        return await asyncio.wait_for(operation, timeout=deadline)
    except StreamTimeoutError:
        raise
    except httpx.TimeoutException as exc:
        raise StreamTimeoutError(deadline, url) from exc
    except asyncio.TimeoutError as exc:
        raise StreamTimeoutError(deadline, url) from exc

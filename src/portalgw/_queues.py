"""Bounded queue and shutdown helpers shared by the gateway tasks."""

from __future__ import annotations

import asyncio
import logging
from typing import TypeVar

from portalgw._constants import ERROR_PUT_TIMEOUT_S

_logger = logging.getLogger(__name__)

T = TypeVar("T")


async def put_with_timeout(queue: asyncio.Queue[T], item: T, timeout: float) -> bool:
    """Enqueue *item*, giving up after *timeout* seconds.

    Returns ``False`` when the item was dropped.
    """
    try:
        await asyncio.wait_for(queue.put(item), timeout)
    except TimeoutError:
        return False
    return True


async def report_error(
    errors: asyncio.Queue[Exception],
    error: Exception,
    timeout: float = ERROR_PUT_TIMEOUT_S,
) -> None:
    """Hand *error* to the error path; log it directly if that path is backed up."""
    if not await put_with_timeout(errors, error, timeout):
        _logger.warning("could not report error, dropping: %s", error)


async def wait_or_stop(stop: asyncio.Event, timeout: float) -> bool:
    """Sleep for up to *timeout* seconds; ``True`` if *stop* was set."""
    if stop.is_set():
        return True
    try:
        await asyncio.wait_for(stop.wait(), timeout)
    except TimeoutError:
        return False
    return True


async def get_or_stop(
    queue: asyncio.Queue[T],
    stop: asyncio.Event,
    timeout: float | None = None,
) -> T | None:
    """Next queue item, or ``None`` on timeout or when *stop* is set."""
    if stop.is_set():
        return None
    getter = asyncio.ensure_future(queue.get())
    stopper = asyncio.ensure_future(stop.wait())
    try:
        await asyncio.wait({getter, stopper}, timeout=timeout, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for task in (getter, stopper):
            if not task.done():
                task.cancel()

    if getter.done() and not getter.cancelled():
        return getter.result()
    return None

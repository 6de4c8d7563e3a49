"""Async generators producing status lines for the long-running modes."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import AsyncGenerator, Callable, Coroutine
from typing import Any, TypeVar

from .app import MarketBar
from .formatter import format_ticker
from .models import StatusLine
from .ticker import TickerBuffer

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def _wait(stop: asyncio.Event, timeout: float) -> None:
    """Sleep for ``timeout`` seconds or until ``stop`` is set, whichever is first."""
    if timeout <= 0:
        return
    try:
        await asyncio.wait_for(stop.wait(), timeout)
    except TimeoutError:
        pass


async def _until_stopped(coro: Coroutine[Any, Any, T], stop: asyncio.Event) -> T | None:
    """Await ``coro`` unless ``stop`` is set first.

    Returns None when ``stop`` wins; the pending work is cancelled so a slow
    upstream cannot delay shutdown.
    """
    task = asyncio.ensure_future(coro)
    stopper = asyncio.ensure_future(stop.wait())
    try:
        await asyncio.wait({task, stopper}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        stopper.cancel()
        if not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
    if task.cancelled():
        return None
    return task.result()


async def continuous_lines(
    bar: MarketBar, stop: asyncio.Event
) -> AsyncGenerator[StatusLine, None]:
    """Yield the current instrument's line, then sleep until the next rotation slot."""
    while not stop.is_set():
        line = await _until_stopped(bar.status_line(bar.clock()), stop)
        if line is None:
            break
        yield line
        await _wait(stop, bar.scheduler.seconds_until_next(bar.clock()))


async def ticker_lines(
    buffer: TickerBuffer,
    stop: asyncio.Event,
    clock: Callable[[], float] = time.time,
    interval: float = 1.0,
) -> AsyncGenerator[StatusLine, None]:
    """Yield one ticker window per ``interval`` until ``stop`` is set.

    The first window waits for the initial refresh. Later refreshes run as a
    background task while windows keep scrolling over the previous content.
    Ticks are scheduled on the loop clock so they do not drift; ticks missed
    while the loop was blocked are dropped rather than emitted in a burst.
    """
    loop = asyncio.get_running_loop()
    refresh_task: asyncio.Task | None = None

    try:
        await _until_stopped(buffer.refresh(clock()), stop)
        if not stop.is_set():
            logger.info("Ticker started: %d chars, window %d", len(buffer.content), buffer.window_size)
        next_tick = loop.time()

        while not stop.is_set():
            now = clock()
            if buffer.needs_refresh(now) and (refresh_task is None or refresh_task.done()):
                refresh_task = asyncio.create_task(_refresh(buffer, now), name="ticker-refresh")

            yield format_ticker(buffer.tick())

            next_tick += interval
            if next_tick <= loop.time():
                next_tick = loop.time() + interval
            await _wait(stop, next_tick - loop.time())
    finally:
        if refresh_task and not refresh_task.done():
            refresh_task.cancel()
            try:
                await refresh_task
            except asyncio.CancelledError:
                pass
        logger.info("Ticker stopped")


async def _refresh(buffer: TickerBuffer, now: float) -> None:
    try:
        await buffer.refresh(now)
    except Exception:
        # Fetch failures are handled per instrument; anything here is unexpected.
        # The buffer keeps its previous content and the next tick retries.
        logger.exception("Ticker refresh failed")

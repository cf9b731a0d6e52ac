"""
Fan-out helpers for report pages.

Blocking proxy calls run on a thread pool through ``run_in_executor``; the
event loop only reconciles results. A ``CancelToken`` scopes every call to
one page load.
"""
import asyncio
import logging
import threading
from concurrent.futures import Executor
from functools import partial
from typing import Any, Callable, Iterable, List, Optional

from crt_reports.exceptions.base import PageCancelled

logger = logging.getLogger(__name__)


class CancelToken:
    """Cancellation signal shared by all fetches of one page load."""

    def __init__(self):
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: List[Callable[[], None]] = []

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback()

    def add_callback(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Run ``callback`` on cancel; returns a function that unregisters it."""
        with self._lock:
            run_now = self._event.is_set()
            if not run_now:
                self._callbacks.append(callback)
        if run_now:
            callback()

        def unregister():
            with self._lock:
                if callback in self._callbacks:
                    self._callbacks.remove(callback)
        return unregister

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise PageCancelled("Page load cancelled")


async def _guard(awaitable: "asyncio.Future", token: CancelToken, loop: asyncio.AbstractEventLoop) -> Any:
    unregister = token.add_callback(lambda: loop.call_soon_threadsafe(awaitable.cancel))
    try:
        result = await awaitable
    except asyncio.CancelledError:
        if token.cancelled:
            raise PageCancelled("Page load cancelled") from None
        raise
    finally:
        unregister()

    # a result that lands after cancellation is discarded
    token.raise_if_cancelled()
    return result


async def fetch_one(fetch: Callable, *args, executor: Optional[Executor] = None,
                    token: Optional[CancelToken] = None) -> Any:
    """Run one blocking fetch off the loop; its exceptions propagate."""
    token = token or CancelToken()
    token.raise_if_cancelled()
    loop = asyncio.get_running_loop()
    future = loop.run_in_executor(executor, partial(fetch, *args))
    return await _guard(future, token, loop)


async def settle_map(items: Iterable, fetch: Callable[[Any], Any], default: Any = None,
                     executor: Optional[Executor] = None, token: Optional[CancelToken] = None) -> list:
    """
    Map every item through ``fetch`` concurrently and return results in input order.

    Each call is isolated: an exception becomes ``default`` for that item
    only (``default(item)`` when a callable is given).
    """
    items = list(items)
    token = token or CancelToken()
    token.raise_if_cancelled()
    if not items:
        return []

    loop = asyncio.get_running_loop()

    async def settle(item):
        try:
            return await loop.run_in_executor(executor, partial(fetch, item))
        except Exception as e:
            logger.warning(f"Dependent fetch failed for {item!r}, using default: {e}")
            return default(item) if callable(default) else default

    gathered = asyncio.gather(*(settle(item) for item in items))
    return await _guard(gathered, token, loop)

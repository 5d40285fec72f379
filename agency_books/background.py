"""
Background Runtime for the Host UI

DESIGN DECISION: Summarizer calls never run inside a page render.
The host records transactions synchronously, then hands the refresh
coroutine to an event loop living on a daemon thread and returns at once.
The page reads the controller state on its next rerun.

Notifications produced on that thread cannot be drawn from it, so they are
queued and drained by the page.
"""

import asyncio
import queue
import threading
from concurrent.futures import Future
from typing import Any, Callable, Coroutine, Optional

import structlog

from agency_books.models.analysis import Severity


class BackgroundLoop:
    """An asyncio event loop running forever on its own daemon thread."""

    def __init__(self, name: str = "agency-books-refresh", logger: Optional[Any] = None):
        self._logger = logger or structlog.get_logger("agency_books.background")
        self._loop = asyncio.new_event_loop()
        self._pending: set[Future] = set()
        self._lock = threading.Lock()
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)
        self._thread.start()

    def _run(self) -> None:
        asyncio.set_event_loop(self._loop)
        self._loop.run_forever()

    @property
    def pending(self) -> int:
        """Submitted coroutines that have not finished yet."""
        with self._lock:
            return len(self._pending)

    @property
    def is_running(self) -> bool:
        return self._thread.is_alive()

    def submit(self, coro: Coroutine[Any, Any, Any]) -> Future:
        """
        Schedule a coroutine and return without waiting for it.

        Returns:
            A concurrent.futures.Future for callers that do want the result
        """
        future = asyncio.run_coroutine_threadsafe(coro, self._loop)
        with self._lock:
            self._pending.add(future)
        future.add_done_callback(self._finished)
        return future

    def call_soon(self, callback: Callable[..., Any], *args: Any) -> None:
        """Run a plain callback on the loop thread."""
        self._loop.call_soon_threadsafe(callback, *args)

    def stop(self, timeout: float = 5.0) -> None:
        """Stop the loop and close it once the thread has exited."""
        if self._loop.is_closed():
            return
        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join(timeout)
        if not self._thread.is_alive():
            self._loop.close()

    def _finished(self, future: Future) -> None:
        with self._lock:
            self._pending.discard(future)

        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            self._logger.error(
                "background_task_failed",
                error=f"{type(error).__name__}: {error}",
            )


class NotificationQueue:
    """
    Thread-safe notification sink.

    Any thread may push; the page drains in order and shows each message.
    """

    def __init__(self):
        self._queue: "queue.SimpleQueue[tuple[str, Severity]]" = queue.SimpleQueue()

    def __call__(self, message: str, severity: Severity) -> None:
        self._queue.put((message, severity))

    def drain(self) -> list[tuple[str, Severity]]:
        """Remove and return every queued notification, oldest first."""
        drained = []
        while True:
            try:
                drained.append(self._queue.get_nowait())
            except queue.Empty:
                return drained

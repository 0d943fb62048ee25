"""Background task utilities."""

from __future__ import annotations

import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Optional, TypeVar

from .logging import get_logger


T = TypeVar("T")


class SingleFlight:
    """Run ``func`` on a worker thread, sharing the future while it is in flight."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=name)
        self._lock = threading.Lock()
        self._future: Optional[Future] = None

    def submit(self, func: Callable[[], T]) -> "Future[T]":
        with self._lock:
            if self._future is not None and not self._future.done():
                return self._future
            self._future = self._executor.submit(func)
            self._future.add_done_callback(self._report_failure)
            return self._future

    def _report_failure(self, future: Future) -> None:
        # callers such as PeriodicTask may never read the result
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            get_logger().error(
                "%s job failed: %s", self.name, exc, exc_info=(type(exc), exc, exc.__traceback__)
            )

    def in_flight(self) -> bool:
        with self._lock:
            return self._future is not None and not self._future.done()

    def shutdown(self, *, wait: bool = False) -> None:
        self._executor.shutdown(wait=wait)


class PeriodicTask:
    """Call ``func`` every ``interval`` seconds on a daemon thread until stopped."""

    def __init__(self, interval: float, func: Callable[[], object], *, name: str) -> None:
        if interval <= 0:
            raise ValueError("Interval must be positive.")
        self.interval = interval
        self._func = func
        self._name = name
        self._stopped = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stopped.clear()
        self._thread = threading.Thread(target=self._run, name=self._name, daemon=True)
        self._thread.start()

    def stop(self, timeout: float | None = None) -> None:
        self._stopped.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def _run(self) -> None:
        logger = get_logger()
        while not self._stopped.wait(self.interval):
            try:
                self._func()
            except Exception:  # the schedule continues after a failed run
                logger.exception("periodic task %s failed", self._name)


__all__ = ["SingleFlight", "PeriodicTask"]

"""
Per-router task handles.

Each router being polled has at most one `RouterTask`: a cancellation token
the poller checks between steps, and a future completed once the task's last
write to storage is done. Handles live in a `RouterTaskRegistry` owned by the
collector, never on the router record itself, so routers stay independent
of each other.
"""

import threading
from concurrent.futures import Future, TimeoutError as FutureTimeout
from typing import Dict, Optional

from loguru import logger


class TaskCancelled(Exception):
    """Raised by `RouterTask.raise_if_cancelled()` once a stop was requested."""


class RouterTask:
    def __init__(self, unique_name: str):
        self.unique_name = unique_name
        self._cancel = threading.Event()
        self.done = Future()

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    def cancel(self) -> None:
        self._cancel.set()

    def raise_if_cancelled(self) -> None:
        if self._cancel.is_set():
            raise TaskCancelled(self.unique_name)

    def finish(self, result=None) -> None:
        if not self.done.done():
            self.done.set_result(result)

    def fail(self, exc: BaseException) -> None:
        if not self.done.done():
            self.done.set_exception(exc)

    def join(self, timeout: Optional[float] = None) -> bool:
        """Block until the task finished; True if it did within `timeout`."""
        try:
            self.done.exception(timeout=timeout)
        except FutureTimeout:
            return False
        return True


class RouterTaskRegistry:
    """Tracks the running task of every router."""

    def __init__(self):
        self._tasks: Dict[str, RouterTask] = {}
        self._lock = threading.Lock()

    def start(self, unique_name: str) -> RouterTask:
        """
        Register a new task for `unique_name`.

        Raises RuntimeError if the router already has a task in flight;
        callers are expected to `wait()` for it first.
        """
        with self._lock:
            running = self._tasks.get(unique_name)
            if running is not None and not running.done.done():
                raise RuntimeError(f"router {unique_name} already has a running task")
            task = RouterTask(unique_name)
            self._tasks[unique_name] = task
        logger.debug(f"[tasks] started task for {unique_name}")
        return task

    def get(self, unique_name: str) -> Optional[RouterTask]:
        with self._lock:
            return self._tasks.get(unique_name)

    def wait(self, unique_name: str, timeout: Optional[float] = None) -> bool:
        """Wait for the in-flight task of `unique_name`; True if none is left running."""
        task = self.get(unique_name)
        if task is None:
            return True
        return task.join(timeout)

    def cancel(self, unique_name: str) -> bool:
        """Ask the poller of `unique_name` to stop. False if nothing is running."""
        task = self.get(unique_name)
        if task is None or task.done.done():
            return False
        task.cancel()
        logger.info(f"[tasks] cancel requested for {unique_name}")
        return True

    def cancel_all(self) -> None:
        with self._lock:
            tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()

    def running(self) -> list:
        with self._lock:
            return sorted(name for name, t in self._tasks.items() if not t.done.done())

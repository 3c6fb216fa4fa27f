"""Owner-context dispatchers for marshaling work onto the session thread.

Responsibilities:
- Accept callables posted from backend threads or rebuild workers.
- Run them in FIFO order on the single context that owns session state.
"""

from __future__ import annotations

import queue
from collections.abc import Callable
from typing import Protocol

Task = Callable[[], None]


class Dispatcher(Protocol):
    """Protocol for posting work onto the session owner context."""

    def post(self, task: Task) -> None:
        """Schedule `task` to run on the owner context."""


class QueueDispatcher:
    """Thread-safe FIFO drained explicitly by the owning thread."""

    def __init__(self) -> None:
        self._tasks: queue.SimpleQueue[Task] = queue.SimpleQueue()

    def post(self, task: Task) -> None:
        self._tasks.put(task)

    def drain(self, timeout: float | None = None) -> int:
        """Run every queued task and return how many ran.

        When `timeout` is given and the queue is empty, wait up to that many
        seconds for the first task before returning.
        """

        executed = 0
        if timeout is not None:
            try:
                task = self._tasks.get(timeout=timeout)
            except queue.Empty:
                return 0
            task()
            executed += 1
        while True:
            try:
                task = self._tasks.get_nowait()
            except queue.Empty:
                return executed
            task()
            executed += 1

    def pending(self) -> bool:
        """Return `True` when tasks are waiting to be drained."""

        return not self._tasks.empty()


class ImmediateDispatcher:
    """Run posted tasks inline; for single-threaded hosts only."""

    def post(self, task: Task) -> None:
        task()

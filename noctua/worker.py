"""Queue workers and the rate limiter that paces them."""

from __future__ import annotations

import queue
import threading
import time
from typing import Optional

from noctua.task import Task

WORKER_TASK_CAPACITY = 100


class RateLimiter:
    """Token bucket with a burst of one: calls are spaced ``interval`` seconds apart."""

    def __init__(self, interval: float) -> None:
        if interval < 0:
            raise ValueError("rate limiter interval must not be negative")
        self.interval = interval
        self._next_allowed = time.monotonic()
        self._lock = threading.Lock()

    def wait(self, cancelled: Optional[threading.Event] = None) -> bool:
        """Block until a token is free; return False if ``cancelled`` is set first."""
        if cancelled is not None and cancelled.is_set():
            return False
        with self._lock:
            now = time.monotonic()
            if now >= self._next_allowed:
                self._next_allowed = now + self.interval
                return True
            delay = self._next_allowed - now
            self._next_allowed += self.interval
        if cancelled is None:
            time.sleep(delay)
            return True
        return not cancelled.wait(delay)


class Worker:
    """Runs the tasks of one queue, one at a time, at most ``qps`` per minute."""

    def __init__(self, queue_key: str, idle_timeout: float, qps: int) -> None:
        if qps <= 0:
            raise ValueError("qps must be positive")
        self.id = f"{queue_key}-{time.time_ns()}"
        self.queue_key = queue_key
        self.idle_timeout = idle_timeout
        self.tasks: queue.Queue[Task] = queue.Queue(maxsize=WORKER_TASK_CAPACITY)
        self.limiter = RateLimiter(60.0 / qps)
        self.last_active = time.monotonic()
        self._active = False
        self._lock = threading.Lock()
        self._quit = threading.Event()

    @property
    def idle_seconds(self) -> float:
        """Seconds since the worker last finished a task (or was created)."""
        return time.monotonic() - self.last_active

    def is_active(self) -> bool:
        """Whether the worker holds a task."""
        with self._lock:
            return self._active

    def try_acquire(self) -> bool:
        """Mark the worker busy if it is idle; return whether that succeeded."""
        with self._lock:
            if self._active:
                return False
            self._active = True
            return True

    def release(self) -> None:
        """Mark the worker idle again."""
        with self._lock:
            self._active = False
            self.last_active = time.monotonic()

    def stop(self) -> None:
        """Ask the worker to quit; safe to call more than once."""
        self._quit.set()

    def stopped(self) -> bool:
        """Whether the worker has been asked to quit."""
        return self._quit.is_set()
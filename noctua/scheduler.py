"""Priority-queue task scheduler with per-queue workers that scale with demand."""

from __future__ import annotations

import logging
import math
import queue
import threading
import time
from dataclasses import dataclass, field, fields
from typing import Any, Callable, Optional

from noctua.priority_queue import PriorityQueue
from noctua.task import Task, TaskItem, build_task_tree, task_to_dict
from noctua.worker import Worker

log = logging.getLogger(__name__)

_DISPATCH_INTERVAL = 0.1
_STATE_CHECK_INTERVAL = 1.0
_POLL_INTERVAL = 0.05

TaskHandler = Callable[[Task], Any]


class SchedulerStoppedError(RuntimeError):
    """The scheduler is not running."""


class QueueFullError(RuntimeError):
    """The queue already holds its maximum number of tasks."""


@dataclass
class SchedulerConfig:
    """Scheduler settings; durations are in seconds, zero means the default."""

    max_workers_per_queue: int = 20
    worker_idle_timeout: float = 30
    auto_scale_interval: float = 1
    max_queue_depth: int = 1000
    base_retry_delay: float = 1
    default_qps: int = 1

    def __post_init__(self) -> None:
        for spec in fields(self):
            if not getattr(self, spec.name):
                setattr(self, spec.name, spec.default)


@dataclass
class QueueStatus:
    """State of one queue."""

    depth: int
    workers: int
    active_workers: int
    qps: int


@dataclass
class SchedulerStatus:
    """State of the whole scheduler."""

    running: bool
    paused: bool
    config: SchedulerConfig
    queue_details: dict[str, QueueStatus]
    total_workers: int
    active_workers: int
    queue_depth: int
    processed_tasks: int
    failed_tasks: int
    pending_tasks: int


@dataclass
class Metrics:
    """Per-queue counters."""

    queue_depths: dict[str, int] = field(default_factory=dict)
    active_workers: dict[str, int] = field(default_factory=dict)
    processed_tasks: dict[str, int] = field(default_factory=dict)
    failed_tasks: dict[str, int] = field(default_factory=dict)

    def reset(self) -> None:
        """Clear every counter."""
        self.queue_depths.clear()
        self.active_workers.clear()
        self.processed_tasks.clear()
        self.failed_tasks.clear()


class Scheduler:
    """Schedules tasks by queue; created stopped, started by ``reset()``."""

    def __init__(self, config: Optional[SchedulerConfig] = None) -> None:
        self.config = config if config is not None else SchedulerConfig()
        self.metrics = Metrics()
        self._lock = threading.RLock()
        self._paused = threading.Event()
        self._stop = threading.Event()
        self._stop.set()
        self._threads: list[threading.Thread] = []
        self._queues: dict[str, PriorityQueue[TaskItem]] = {}
        self._workers: dict[str, list[Worker]] = {}
        self._handlers: dict[str, TaskHandler] = {}
        self._task_index: dict[str, Task] = {}
        self._queue_qps: dict[str, int] = {}

    # -- control -----------------------------------------------------------

    def pause(self) -> None:
        """Stop handing out tasks until ``resume()``."""
        self._paused.set()

    def resume(self) -> None:
        """Hand out tasks again."""
        self._paused.clear()

    def is_paused(self) -> bool:
        return self._paused.is_set()

    def register_handler(self, queue_key: str, handler: TaskHandler) -> None:
        """Set the function that runs the tasks of a queue; it raises on failure."""
        with self._lock:
            self._handlers[queue_key] = handler

    def set_queue_qps(self, queue_key: str, qps: int) -> None:
        """Set the rate of new workers on a queue; non-positive means the default."""
        if qps <= 0:
            qps = self.config.default_qps
        with self._lock:
            self._queue_qps[queue_key] = qps

    def get_queue_qps(self, queue_key: str) -> int:
        with self._lock:
            return self._queue_qps.get(queue_key, self.config.default_qps)

    def reset(self) -> None:
        """Stop the current run, drop all queued work and start afresh."""
        self._halt()
        with self._lock:
            self._stop = threading.Event()
            self._clear()
            self._spawn(self._auto_scaler, self._stop)
            self._spawn(self._task_state_checker, self._stop)

    def shutdown(self) -> None:
        """Stop all workers and drop all queued work."""
        self._halt()
        with self._lock:
            self._clear()

    def _halt(self) -> None:
        with self._lock:
            self._stop.set()
            for workers in self._workers.values():
                for worker in workers:
                    worker.stop()
            threads, self._threads = self._threads, []
        current = threading.current_thread()
        for thread in threads:
            if thread is not current:
                thread.join()

    def _clear(self) -> None:
        self._queues.clear()
        self._workers.clear()
        self._task_index.clear()
        self.metrics.reset()

    def _spawn(self, target: Callable[..., None], *args: Any) -> None:
        thread = threading.Thread(target=target, args=args, daemon=True)
        self._threads.append(thread)
        thread.start()

    # -- submission --------------------------------------------------------

    def submit_task(self, task: Task) -> str:
        """Queue a task and return its id."""
        with self._lock:
            if self._stop.is_set():
                raise SchedulerStoppedError("scheduler has been stopped")
            task_queue = self._init_queue(task.queue_key)
            if self.metrics.queue_depths.get(task.queue_key, 0) >= self.config.max_queue_depth:
                raise QueueFullError(f"queue {task.queue_key} is full")
            task_queue.push(TaskItem(task))
            self._add_depth(task.queue_key, 1)
            self._task_index[task.id] = task
            if task.parent_task_id:
                parent = self._task_index.get(task.parent_task_id)
                if parent is not None:
                    if task not in parent.children:
                        parent.children.append(task)
                    parent.is_active = True
        return task.id

    def _init_queue(self, queue_key: str) -> PriorityQueue[TaskItem]:
        task_queue = self._queues.get(queue_key)
        if task_queue is None:
            task_queue = self._queues[queue_key] = PriorityQueue()
            self.metrics.queue_depths[queue_key] = 0
            self._spawn(self._dispatch_loop, queue_key, self._stop)
        return task_queue

    def _add_depth(self, queue_key: str, delta: int) -> None:
        depths = self.metrics.queue_depths
        depths[queue_key] = depths.get(queue_key, 0) + delta

    def _record(self, counters: dict[str, int], queue_key: str) -> None:
        with self._lock:
            counters[queue_key] = counters.get(queue_key, 0) + 1

    # -- dispatching -------------------------------------------------------

    def _dispatch_loop(self, queue_key: str, stop: threading.Event) -> None:
        while not stop.wait(_DISPATCH_INTERVAL):
            if not self.is_paused():
                self._dispatch(queue_key)

    def _dispatch(self, queue_key: str) -> None:
        with self._lock:
            task_queue = self._queues.get(queue_key)
            workers = self._workers.get(queue_key)
            if not task_queue or not workers:
                return
            for worker in workers:
                if not task_queue:
                    break
                if worker.try_acquire():
                    item = task_queue.pop()
                    self._add_depth(queue_key, -1)
                    worker.tasks.put_nowait(item.task)

    def _requeue(self, task: Task, stop: threading.Event) -> None:
        with self._lock:
            task_queue = self._queues.get(task.queue_key)
            if stop.is_set() or task_queue is None:
                return
            task_queue.push(TaskItem(task))
            self._add_depth(task.queue_key, 1)

    # -- scaling -----------------------------------------------------------

    def _auto_scaler(self, stop: threading.Event) -> None:
        while not stop.wait(self.config.auto_scale_interval):
            if self.is_paused():
                continue
            with self._lock:
                for queue_key in list(self._queues):
                    self._adjust_workers(queue_key)

    def _adjust_workers(self, queue_key: str) -> None:
        current = len(self._workers.get(queue_key, []))
        depth = self.metrics.queue_depths.get(queue_key, 0)
        ideal = math.ceil(math.sqrt(depth)) if depth > 0 else 0
        if ideal > current:
            self._scale_up(queue_key, ideal - current)
        elif ideal < current:
            self._scale_down(queue_key, current - ideal)

    def _scale_up(self, queue_key: str, count: int) -> None:
        qps = self.get_queue_qps(queue_key)
        workers = self._workers.setdefault(queue_key, [])
        for _ in range(count):
            worker = Worker(queue_key, self.config.worker_idle_timeout, qps)
            workers.append(worker)
            self._spawn(self._run_worker, worker, self._stop)

    def _scale_down(self, queue_key: str, count: int) -> None:
        workers = self._workers.get(queue_key)
        if not workers:
            return
        retained = []
        for worker in workers:
            if count > 0 and not worker.is_active() and worker.idle_seconds > worker.idle_timeout:
                worker.stop()
                count -= 1
            else:
                retained.append(worker)
        self._workers[queue_key] = retained

    def _retire(self, worker: Worker) -> None:
        with self._lock:
            workers = self._workers.get(worker.queue_key)
            if workers and worker in workers:
                workers.remove(worker)
        worker.stop()

    # -- running tasks -----------------------------------------------------

    def _run_worker(self, worker: Worker, stop: threading.Event) -> None:
        while not stop.is_set() and not worker.stopped():
            try:
                task = worker.tasks.get(timeout=_POLL_INTERVAL)
            except queue.Empty:
                if (
                    not worker.is_active()
                    and worker.idle_seconds > worker.idle_timeout
                    and not self.is_paused()
                ):
                    self._retire(worker)
                    return
                continue
            if self.is_paused():
                self._requeue(task, stop)
                worker.release()
                continue
            if not worker.limiter.wait(stop):
                return
            try:
                self._process_task(task, stop)
            finally:
                worker.release()

    def _process_task(self, task: Task, stop: threading.Event) -> None:
        with self._lock:
            handler = self._handlers.get(task.queue_key)
        if handler is None:
            self._record(self.metrics.failed_tasks, task.queue_key)
            return

        outcome: list[Optional[BaseException]] = []

        def call() -> None:
            try:
                handler(task)
            except BaseException as exc:  # noqa: BLE001 - any failure counts against the task
                outcome.append(exc)
            else:
                outcome.append(None)

        runner = threading.Thread(target=call, daemon=True)
        runner.start()
        deadline = time.monotonic() + task.timeout
        while runner.is_alive() and not stop.is_set():
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break
            runner.join(min(_POLL_INTERVAL, remaining))

        if outcome:
            error = outcome[0]
        elif stop.is_set():
            error = SchedulerStoppedError("scheduler stopped while the task ran")
        else:
            error = TimeoutError(f"task {task.id} timed out after {task.timeout}s")

        if stop.is_set():
            return
        if error is None:
            with self._lock:
                task.is_finished = True
                self._task_index[task.id] = task
            self._record(self.metrics.processed_tasks, task.queue_key)
            return

        log.warning("task %s failed: %s", task.id, error)
        if task.current_retry < task.max_retries:
            task.current_retry += 1
            threading.Thread(target=self._retry, args=(task, stop), daemon=True).start()
        else:
            self._record(self.metrics.failed_tasks, task.queue_key)

    def _retry(self, task: Task, stop: threading.Event) -> None:
        delay = self.config.base_retry_delay * 2 ** task.current_retry
        if stop.wait(delay):
            return
        try:
            self.submit_task(task)
        except (SchedulerStoppedError, QueueFullError):
            self._record(self.metrics.failed_tasks, task.queue_key)

    # -- task tree bookkeeping ---------------------------------------------

    def _task_state_checker(self, stop: threading.Event) -> None:
        while not stop.wait(_STATE_CHECK_INTERVAL):
            if not self.is_paused():
                self._check_task_states()

    def _check_task_states(self) -> None:
        with self._lock:
            for task in list(self._task_index.values()):
                if task.id not in self._task_index:
                    continue
                if task.is_finished and not any(child.is_active for child in task.children):
                    task.is_active = False
                    if not task.parent_task_id:
                        self._delete_recursively(task)
                    else:
                        self._update_parent(task)

    def _delete_recursively(self, task: Task) -> None:
        for child in task.children:
            self._delete_recursively(child)
        self._task_index.pop(task.id, None)

    def _update_parent(self, task: Task) -> None:
        parent = self._task_index.get(task.parent_task_id)
        if parent is not None and all(child.is_finished for child in parent.children):
            parent.is_finished = True

    # -- reporting ---------------------------------------------------------

    def task_statistics(self) -> tuple[int, int, int]:
        """Return total queue depth, processed tasks and failed tasks."""
        with self._lock:
            return (
                sum(self.metrics.queue_depths.values()),
                sum(self.metrics.processed_tasks.values()),
                sum(self.metrics.failed_tasks.values()),
            )

    def status(self) -> SchedulerStatus:
        """Snapshot of the scheduler's state."""
        depth, processed, failed = self.task_statistics()
        with self._lock:
            details: dict[str, QueueStatus] = {}
            total_workers = active_workers = 0
            for queue_key in self._queues:
                workers = self._workers.get(queue_key, [])
                active = sum(1 for worker in workers if worker.is_active())
                total_workers += len(workers)
                active_workers += active
                details[queue_key] = QueueStatus(
                    depth=self.metrics.queue_depths.setdefault(queue_key, 0),
                    workers=len(workers),
                    active_workers=active,
                    qps=self.get_queue_qps(queue_key),
                )
            return SchedulerStatus(
                running=not self._stop.is_set(),
                paused=self.is_paused(),
                config=self.config,
                queue_details=details,
                total_workers=total_workers,
                active_workers=active_workers,
                queue_depth=depth,
                processed_tasks=processed,
                failed_tasks=failed,
                pending_tasks=len(self._task_index),
            )

    def task_tree(self) -> dict[str, Any]:
        """The tree of tracked tasks as plain dictionaries."""
        with self._lock:
            tasks = list(self._task_index.values())
        return task_to_dict(build_task_tree(tasks))

    def wait_until_empty(self, timeout: Optional[float] = None) -> bool:
        """Block until no task is queued or tracked; False on stop or timeout."""
        with self._lock:
            stop = self._stop
        deadline = None if timeout is None else time.monotonic() + timeout
        while True:
            with self._lock:
                empty = sum(self.metrics.queue_depths.values()) == 0 and not self._task_index
            if empty:
                return True
            if stop.is_set():
                return False
            wait_for = _STATE_CHECK_INTERVAL
            if deadline is not None:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return False
                wait_for = min(wait_for, remaining)
            stop.wait(wait_for)
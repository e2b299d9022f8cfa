"""Scheduler tasks, their queue entries and task trees."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Iterable, Optional

DEFAULT_MAX_RETRIES = 3
DEFAULT_TIMEOUT = 30.0  # seconds
DEFAULT_PRIORITY = 8
DEFAULT_QPS = 100


class TaskStatus(str, Enum):
    """Lifecycle state of a task."""

    PENDING = "Pending"
    PROCESSING = "Processing"
    PROCESSED = "Processed"
    FAILED = "Failed"
    WAITING_SUB = "WaitingSub"

    def __str__(self) -> str:
        return self.value


@dataclass(eq=False)
class Task:
    """A unit of work for the scheduler; priority runs 0-9, 9 being highest."""

    id: str
    queue_key: str
    payload: Any = None
    parent_task_id: str = ""
    source_task_id: str = ""
    is_active: bool = True
    is_finished: bool = False
    children: list[Task] = field(default_factory=list)
    priority: int = DEFAULT_PRIORITY
    max_retries: int = DEFAULT_MAX_RETRIES
    current_retry: int = 0
    status: TaskStatus = TaskStatus.PENDING
    dependencies: list[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=datetime.now)
    timeout: float = DEFAULT_TIMEOUT


@dataclass(eq=False)
class TaskItem:
    """A task as it sits in a priority queue."""

    task: Task
    enqueued_at: datetime = field(default_factory=datetime.now)

    @property
    def id(self) -> str:
        return self.task.id

    @property
    def priority(self) -> int:
        return self.task.priority


@dataclass(eq=False)
class TaskNode:
    """A task together with the nodes of its children."""

    task: Task
    children: list[TaskNode] = field(default_factory=list)


def new_task(
    queue_key: str,
    payload: Any = None,
    *,
    parent_task_id: str = "",
    source_task_id: str = "",
    priority: Optional[int] = None,
    max_retries: Optional[int] = None,
    dependencies: Optional[Iterable[str]] = None,
    timeout: Optional[float] = None,
) -> Task:
    """Create a task with a fresh id; unset or zero options take the defaults."""
    task_id = f"{queue_key}-{uuid.uuid4()}"
    if not parent_task_id and not source_task_id:
        source_task_id = task_id
    return Task(
        id=task_id,
        queue_key=queue_key,
        payload=payload,
        parent_task_id=parent_task_id,
        source_task_id=source_task_id,
        priority=priority or DEFAULT_PRIORITY,
        max_retries=max_retries or DEFAULT_MAX_RETRIES,
        dependencies=list(dependencies) if dependencies is not None else [],
        timeout=timeout or DEFAULT_TIMEOUT,
    )


def build_task_tree(tasks: Iterable[Task]) -> Optional[TaskNode]:
    """Link tasks into a tree; the root is the last task without a parent."""
    task_list = list(tasks)
    nodes = {task.id: TaskNode(task) for task in task_list}
    root: Optional[TaskNode] = None
    for task in task_list:
        if not task.parent_task_id:
            root = nodes[task.id]
        elif task.parent_task_id in nodes:
            nodes[task.parent_task_id].children.append(nodes[task.id])
    return root


def task_to_dict(node: Optional[TaskNode]) -> dict[str, Any]:
    """Render a task tree as plain dictionaries; an empty dict for no tree."""
    if node is None:
        return {}
    return {
        "id": node.task.id,
        "queue": node.task.queue_key,
        "finished": node.task.is_finished,
        "active": node.task.is_active,
        "children": [task_to_dict(child) for child in node.children],
    }
"""File-backed access to Claude Code task lists (~/.claude/tasks/<list-id>/<task-id>.json)."""
from __future__ import annotations

import asyncio
import json
import logging
import time
from collections.abc import AsyncIterator, Iterable
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError
from watchfiles import Change, awatch

from taskviewer import config
from taskviewer.errors import EnumerationError, NotFoundError, TaskNotFoundError
from taskviewer.models import (
    TASK_STATUS_COMPLETED,
    TASK_STATUS_IN_PROGRESS,
    TASK_STATUS_PENDING,
    GraphData,
    GraphEdge,
    GraphNode,
    TaskCounts,
    TaskEvent,
    TaskItem,
)
from taskviewer.observability import record_scan
from taskviewer.parsers.sessions_index import is_plain_name

logger = logging.getLogger("taskviewer.tasks")

TASK_FILE_SUFFIX = ".json"

FILTER_ALL = "all"
FILTER_ACTIVE = "active"
_ACTIVE_STATUSES = {TASK_STATUS_PENDING, TASK_STATUS_IN_PROGRESS}
_KNOWN_FILTERS = {FILTER_ALL, FILTER_ACTIVE, TASK_STATUS_PENDING, TASK_STATUS_IN_PROGRESS, TASK_STATUS_COMPLETED}

_EVENT_TYPE_BY_CHANGE = {
    Change.added: "created",
    Change.modified: "updated",
    Change.deleted: "deleted",
}


def _task_sort_key(task: TaskItem) -> tuple[int, int, str]:
    if task.id.isdecimal():
        return 0, int(task.id), ""
    return 1, 0, task.id


def _load_task_file(path: Path) -> TaskItem:
    payload: Any = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(payload, dict):
        raise ValueError(f"Expected a JSON object in {path}")
    payload.setdefault("id", path.stem)
    return TaskItem.model_validate(payload)


class FileTaskStore:
    """Reads task lists from the tasks directory; never writes to it."""

    def __init__(self, tasks_dir: Path):
        self.tasks_dir = tasks_dir

    def list_dir(self, list_id: str) -> Path:
        if not is_plain_name(list_id):
            raise NotFoundError(f"Invalid task list id: {list_id!r}")
        return self.tasks_dir / list_id

    def list_tasks(self, list_id: str) -> list[TaskItem]:
        """All readable tasks of a list ordered by id; empty when the list does not exist."""
        try:
            list_dir = self.list_dir(list_id)
        except NotFoundError:
            return []
        if not list_dir.is_dir():
            return []

        started = time.monotonic()
        tasks: list[TaskItem] = []
        skipped = 0
        for path in list_dir.glob(f"*{TASK_FILE_SUFFIX}"):
            try:
                tasks.append(_load_task_file(path))
            except (OSError, ValueError, ValidationError) as exc:
                # Files are rewritten in place; a half-written one shows up on the next read.
                logger.debug("Skipping task file %s: %s", path, exc)
                skipped += 1
        tasks.sort(key=_task_sort_key)
        record_scan("tasks", "partial" if skipped else "ok", (time.monotonic() - started) * 1000.0)
        return tasks

    def get_task(self, list_id: str, task_id: str) -> TaskItem:
        if not is_plain_name(task_id):
            raise TaskNotFoundError(f"Invalid task id: {task_id!r}")
        try:
            path = self.list_dir(list_id) / f"{task_id}{TASK_FILE_SUFFIX}"
        except NotFoundError as exc:
            raise TaskNotFoundError(str(exc)) from exc
        try:
            return _load_task_file(path)
        except FileNotFoundError as exc:
            raise TaskNotFoundError(f"Task {task_id} not found in list {list_id}") from exc
        except (OSError, ValueError, ValidationError) as exc:
            raise TaskNotFoundError(f"Task {task_id} in list {list_id} is unreadable: {exc}") from exc

    def ensure_subscribable(self, list_id: str) -> Path:
        """Validate a list id for watching; raises before any stream is opened."""
        list_dir = self.list_dir(list_id)
        if not self.tasks_dir.is_dir():
            raise EnumerationError(f"Tasks directory {self.tasks_dir} does not exist")
        return list_dir

    async def subscribe(
        self,
        list_id: str,
        stop_event: Optional[asyncio.Event] = None,
    ) -> AsyncIterator[TaskEvent]:
        """Yield a TaskEvent for every task file created, updated or deleted in a list.

        The whole tasks directory is watched so lists that do not exist yet are
        picked up once the runtime creates them. Iteration ends when
        *stop_event* is set.
        """
        list_dir = self.ensure_subscribable(list_id)

        def _watch_filter(change: Change, raw_path: str) -> bool:
            path = Path(raw_path)
            return path.parent.name == list_dir.name and path.suffix == TASK_FILE_SUFFIX

        async for changes in awatch(self.tasks_dir, watch_filter=_watch_filter, stop_event=stop_event):
            for change, raw_path in sorted(changes, key=lambda item: item[1]):
                event = self._event_for(list_id, change, Path(raw_path))
                if event is not None:
                    yield event

    def _event_for(self, list_id: str, change: Change, path: Path) -> Optional[TaskEvent]:
        event_type = _EVENT_TYPE_BY_CHANGE.get(change)
        if event_type is None:
            return None
        if event_type == "deleted":
            return TaskEvent(type=event_type, listId=list_id, taskId=path.stem)
        try:
            task = _load_task_file(path)
        except (OSError, ValueError, ValidationError) as exc:
            logger.debug("Ignoring %s event for %s: %s", event_type, path, exc)
            return None
        return TaskEvent(type=event_type, listId=list_id, taskId=task.id, task=task)


# ── Task list helpers ──────────────────────────────────────────────

def count_by_status(tasks: Iterable[TaskItem], list_id: str = "") -> TaskCounts:
    counts = TaskCounts(listId=list_id)
    for task in tasks:
        counts.totalCount += 1
        if task.status == TASK_STATUS_PENDING:
            counts.pendingCount += 1
        elif task.status == TASK_STATUS_IN_PROGRESS:
            counts.inProgressCount += 1
        elif task.status == TASK_STATUS_COMPLETED:
            counts.completedCount += 1
    return counts


def matches_filter(task: TaskItem, filter_name: str) -> bool:
    if filter_name == FILTER_ALL:
        return True
    if filter_name == FILTER_ACTIVE:
        return task.status in _ACTIVE_STATUSES
    return task.status == filter_name


def filter_tasks(tasks: Iterable[TaskItem], filter_name: str) -> list[TaskItem]:
    """Apply a status filter; an empty filter keeps every task."""
    if not filter_name:
        return list(tasks)
    return [task for task in tasks if matches_filter(task, filter_name)]


def normalize_filter(filter_name: str | None, default: str = FILTER_ACTIVE) -> str:
    token = (filter_name or "").strip().lower()
    return token if token in _KNOWN_FILTERS else default


def related_tasks(task: TaskItem, tasks: Iterable[TaskItem]) -> tuple[list[TaskItem], list[TaskItem]]:
    """Return ``(blockers, blocking)`` for *task* among *tasks*, in dependency order."""
    by_id = {item.id: item for item in tasks}
    blockers = [by_id[task_id] for task_id in task.blockedBy if task_id in by_id]
    blocking = [by_id[task_id] for task_id in task.blocks if task_id in by_id]
    return blockers, blocking


def build_task_graph(tasks: Iterable[TaskItem]) -> GraphData:
    graph = GraphData()
    for task in tasks:
        graph.nodes.append(
            GraphNode(
                id=task.id,
                label=task.subject,
                status=task.status,
                isBlocked=task.isBlocked,
                description=task.description,
            )
        )
        for blocker_id in task.blockedBy:
            graph.edges.append(GraphEdge(source=blocker_id, target=task.id))
    return graph


task_store = FileTaskStore(config.TASKS_DIR)

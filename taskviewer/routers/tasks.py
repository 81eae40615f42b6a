"""API router for task lists, active sessions and live task events."""
from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Query, Request
from fastapi.responses import StreamingResponse

from taskviewer.errors import CatalogError, http_status
from taskviewer.models import (
    ActiveSessionsView,
    AllTasksView,
    GraphData,
    SessionTasks,
    TaskCounts,
    TaskDetail,
    TaskListView,
)
from taskviewer.project_catalog import project_catalog
from taskviewer.streaming import SubscriberRegistry, format_sse
from taskviewer.task_store import (
    build_task_graph,
    count_by_status,
    filter_tasks,
    normalize_filter,
    related_tasks,
    task_store,
)

logger = logging.getLogger("taskviewer.http")

tasks_router = APIRouter(prefix="/api", tags=["tasks"])


@tasks_router.get("/active-sessions", response_model=ActiveSessionsView)
def list_active_sessions():
    """Sessions with live task files and the total number of tasks across them."""
    try:
        active_lists = project_catalog.list_active_task_lists()
    except CatalogError as exc:
        raise HTTPException(status_code=http_status(exc), detail=f"Failed to list active sessions: {exc}") from exc
    return ActiveSessionsView(
        activeLists=active_lists,
        totalTaskCount=sum(active.taskCount for active in active_lists),
    )


@tasks_router.get("/tasks", response_model=AllTasksView)
def list_all_tasks(
    filter_name: str = Query("active", alias="filter", description="all | active | pending | in_progress | completed"),
):
    """Tasks of every active session grouped by session.

    Status counts cover all tasks; only the task lists are filtered.
    """
    filter_name = normalize_filter(filter_name)
    try:
        active_lists = project_catalog.list_active_task_lists()
    except CatalogError as exc:
        raise HTTPException(status_code=http_status(exc), detail=f"Failed to list active sessions: {exc}") from exc

    view = AllTasksView(filter=filter_name)
    for active in active_lists:
        tasks = task_store.list_tasks(active.sessionId)
        if not tasks:
            continue

        counts = count_by_status(tasks)
        view.totalCount += counts.totalCount
        view.pendingCount += counts.pendingCount
        view.inProgressCount += counts.inProgressCount
        view.completedCount += counts.completedCount

        filtered = filter_tasks(tasks, filter_name)
        if filtered:
            view.tasksBySession.append(
                SessionTasks(
                    sessionId=active.sessionId,
                    projectName=active.projectName,
                    summary=active.summary,
                    tasks=filtered,
                )
            )

    view.activeCount = view.pendingCount + view.inProgressCount
    return view


@tasks_router.get("/lists/{list_id}/tasks", response_model=TaskListView)
def get_task_list(
    list_id: str,
    filter_name: str = Query("", alias="filter", description="Optional status filter"),
):
    tasks = task_store.list_tasks(list_id)
    filter_name = filter_name.strip()
    return TaskListView(
        listId=list_id,
        tasks=filter_tasks(tasks, filter_name),
        filter=filter_name,
        counts=count_by_status(tasks, list_id),
    )


@tasks_router.get("/lists/{list_id}/tasks/{task_id}", response_model=TaskDetail)
def get_task_detail(list_id: str, task_id: str):
    """One task with the tasks blocking it and the tasks it blocks."""
    try:
        task = task_store.get_task(list_id, task_id)
    except CatalogError as exc:
        raise HTTPException(status_code=http_status(exc), detail=f"Task not found: {exc}") from exc

    blockers, blocking = related_tasks(task, task_store.list_tasks(list_id))
    return TaskDetail(listId=list_id, task=task, blockers=blockers, blocking=blocking)


@tasks_router.get("/lists/{list_id}/counts", response_model=TaskCounts)
def get_task_counts(list_id: str):
    return count_by_status(task_store.list_tasks(list_id), list_id)


@tasks_router.get("/lists/{list_id}/graph", response_model=GraphData)
def get_task_graph(list_id: str):
    return build_task_graph(task_store.list_tasks(list_id))


@tasks_router.get("/lists/{list_id}/events")
async def stream_task_events(list_id: str, request: Request):
    """Server-Sent Events stream of task changes for one list."""
    try:
        task_store.ensure_subscribable(list_id)
    except CatalogError as exc:
        raise HTTPException(status_code=http_status(exc), detail=f"Failed to subscribe: {exc}") from exc

    registry: SubscriberRegistry = request.app.state.subscribers
    stop_event = await registry.register(list_id)

    async def event_generator():
        try:
            yield format_sse("ping", "connected")
            async for event in task_store.subscribe(list_id, stop_event=stop_event):
                yield format_sse(f"task-{event.type}", event.model_dump(mode="json"))
        except CatalogError as exc:
            logger.warning("Task event stream for %s ended: %s", list_id, exc)
        finally:
            await registry.unregister(list_id, stop_event)

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
        },
    )

"""API router for the dashboard landing view."""
from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException

from taskviewer.errors import CatalogError, http_status
from taskviewer.models import DashboardView
from taskviewer.project_catalog import project_catalog

logger = logging.getLogger("taskviewer.http")

dashboard_router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


@dashboard_router.get("", response_model=DashboardView)
def get_dashboard():
    """Project groups plus the sessions that currently have tasks."""
    try:
        groups = project_catalog.list_project_groups()
    except CatalogError as exc:
        raise HTTPException(status_code=http_status(exc), detail=f"Failed to list projects: {exc}") from exc

    try:
        active_lists = project_catalog.list_active_task_lists()
    except CatalogError as exc:
        # A missing tasks directory only means nothing is running yet.
        logger.info("No active task lists: %s", exc)
        active_lists = []

    return DashboardView(
        groups=groups,
        activeLists=active_lists,
        totalTaskCount=sum(active.taskCount for active in active_lists),
    )

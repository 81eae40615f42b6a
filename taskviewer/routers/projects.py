"""API router for projects, project groups and their sessions."""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from taskviewer import config
from taskviewer.errors import CatalogError, http_status
from taskviewer.models import ProjectGroup, ProjectSummary, ProjectView, SessionPage
from taskviewer.project_catalog import project_catalog

projects_router = APIRouter(prefix="/api/projects", tags=["projects"])


@projects_router.get("", response_model=list[ProjectSummary])
def list_projects():
    """List every project with its computed base repo, most recent first."""
    try:
        return project_catalog.list_project_summaries()
    except CatalogError as exc:
        raise HTTPException(status_code=http_status(exc), detail=f"Failed to list projects: {exc}") from exc


@projects_router.get("/groups", response_model=list[ProjectGroup])
def list_project_groups():
    """List projects grouped by base repo (worktrees under their base)."""
    try:
        return project_catalog.list_project_groups()
    except CatalogError as exc:
        raise HTTPException(status_code=http_status(exc), detail=f"Failed to list projects: {exc}") from exc


@projects_router.get("/groups/{base_repo}", response_model=ProjectGroup)
def get_project_group(
    base_repo: str,
    org: Optional[str] = Query(None, description="Restrict the match to one organization"),
):
    try:
        return project_catalog.get_project_group(base_repo, org=org)
    except CatalogError as exc:
        raise HTTPException(status_code=http_status(exc), detail=str(exc)) from exc


@projects_router.get("/{dir_name}", response_model=ProjectView)
def get_project(dir_name: str):
    """A project with its sessions annotated with live task counts."""
    try:
        return project_catalog.project_view(dir_name)
    except CatalogError as exc:
        raise HTTPException(status_code=http_status(exc), detail=f"Project not found: {exc}") from exc


@projects_router.get("/{dir_name}/sessions", response_model=SessionPage)
def list_project_sessions(
    dir_name: str,
    offset: int = Query(0, ge=0),
    limit: int = Query(config.SESSIONS_PAGE_SIZE, ge=1, le=500),
):
    try:
        return project_catalog.session_page(dir_name, offset=offset, limit=limit)
    except CatalogError as exc:
        raise HTTPException(status_code=http_status(exc), detail=f"Project not found: {exc}") from exc

"""Project catalog built from ~/.claude/projects/*/sessions-index.json.

Everything is read fresh on every call: the Claude Code runtime rewrites the
indexes at any time and this module never caches or writes them.
"""
from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Optional

from taskviewer import config
from taskviewer.active_tasks import ActiveTaskListLocator, count_task_files, list_project_dir_names
from taskviewer.errors import CatalogError, EnumerationError, MalformedIndexError, NotFoundError
from taskviewer.grouping import assign_base_repos, group_projects
from taskviewer.models import (
    ActiveTaskList,
    Project,
    ProjectGroup,
    ProjectSummary,
    ProjectView,
    SessionEntry,
    SessionPage,
    SessionViewEntry,
)
from taskviewer.observability import record_index_failure, record_scan, start_span
from taskviewer.parsers.sessions_index import is_plain_name, read_project_sessions
from taskviewer.project_names import derive_from_path

logger = logging.getLogger("taskviewer.catalog")


def _elapsed_ms(started: float) -> float:
    return (time.monotonic() - started) * 1000.0


def summarize_project(project: Project) -> ProjectSummary:
    summary = ProjectSummary(
        name=project.name,
        path=project.path,
        dirName=project.dirName,
        shortname=project.shortname,
        org=project.org,
        sessionCount=project.sessionCount,
        lastModified=project.lastModified,
    )
    if project.sessions:
        summary.lastBranch = project.sessions[0].gitBranch
        summary.lastSummary = project.sessions[0].summary
    return summary


class ProjectCatalog:
    """Read-only view over Claude Code projects, their sessions and live task counts."""

    def __init__(self, claude_dir: Path, tasks_dir: Optional[Path] = None):
        self.claude_dir = claude_dir
        self.projects_dir = claude_dir / "projects"
        self.tasks_dir = tasks_dir if tasks_dir is not None else claude_dir / "tasks"
        self.active_tasks = ActiveTaskListLocator(self.projects_dir, self.tasks_dir)

    def _load_project(self, dir_name: str) -> Project:
        entries = read_project_sessions(self.projects_dir, dir_name)
        if not entries:
            raise NotFoundError(f"Project {dir_name} has no sessions")

        latest = entries[0]
        name, shortname, org = derive_from_path(latest.projectPath)
        if not name:
            name = dir_name

        return Project(
            path=latest.projectPath,
            name=name,
            shortname=shortname,
            org=org,
            dirName=dir_name,
            sessions=entries,
            sessionCount=len(entries),
            lastModified=latest.modified,
        )

    def list_projects(self) -> list[Project]:
        """All projects with at least one session, most recently modified first.

        Directories whose index is missing, malformed or empty are skipped.
        Raises EnumerationError when the projects directory cannot be listed.
        """
        started = time.monotonic()
        with start_span("catalog.list_projects", {"projects_dir": str(self.projects_dir)}):
            try:
                dir_names = list_project_dir_names(self.projects_dir)
            except EnumerationError as exc:
                logger.warning("Project listing failed: %s", exc)
                record_scan("projects", "error", _elapsed_ms(started))
                raise

            projects: list[Project] = []
            for dir_name in dir_names:
                try:
                    projects.append(self._load_project(dir_name))
                except MalformedIndexError as exc:
                    logger.debug("Skipping project %s: %s", dir_name, exc)
                    record_index_failure("malformed")
                except NotFoundError:
                    record_index_failure("missing")

        projects.sort(key=lambda project: project.lastModified, reverse=True)
        record_scan("projects", "ok", _elapsed_ms(started))
        return projects

    def get_project(self, dir_name: str) -> Project:
        """Load one project by its directory name.

        Raises NotFoundError when the directory, its index or its sessions are
        missing, and MalformedIndexError when the index cannot be parsed.
        """
        return self._load_project(dir_name)

    def get_project_by_path(self, path: str) -> Project:
        for project in self.list_projects():
            if project.path == path:
                return project
        raise NotFoundError(f"No project recorded for path {path}")

    def list_project_summaries(self) -> list[ProjectSummary]:
        summaries = [summarize_project(project) for project in self.list_projects()]
        assign_base_repos(summaries)
        return summaries

    def list_project_groups(self) -> list[ProjectGroup]:
        return group_projects(self.list_project_summaries())

    def get_project_group(self, base_repo: str, org: Optional[str] = None) -> ProjectGroup:
        for group in self.list_project_groups():
            if group.baseRepo != base_repo:
                continue
            if org is not None and group.org != org:
                continue
            return group
        raise NotFoundError(f"Project group {base_repo} not found")

    def get_task_count(self, session_id: str) -> int:
        """Number of task files for a session; 0 when it has none or never had any."""
        if not is_plain_name(session_id):
            return 0
        return count_task_files(self.tasks_dir / session_id)

    def has_tasks(self, session_id: str) -> bool:
        return self.get_task_count(session_id) > 0

    def session_views(self, sessions: list[SessionEntry]) -> list[SessionViewEntry]:
        views = []
        for session in sessions:
            task_count = self.get_task_count(session.sessionId)
            views.append(
                SessionViewEntry(
                    **session.model_dump(),
                    taskCount=task_count,
                    hasTasks=task_count > 0,
                )
            )
        return views

    def project_view(self, dir_name: str) -> ProjectView:
        project = self.get_project(dir_name)
        sessions = self.session_views(project.sessions)
        return ProjectView(
            project=project,
            sessions=sessions,
            sessionsWithTasks=sum(1 for session in sessions if session.hasTasks),
        )

    def session_page(self, dir_name: str, offset: int = 0, limit: Optional[int] = None) -> SessionPage:
        project = self.get_project(dir_name)
        if limit is None:
            limit = config.SESSIONS_PAGE_SIZE

        total = len(project.sessions)
        start = min(max(offset, 0), total)
        end = min(start + max(limit, 0), total)
        return SessionPage(
            items=self.session_views(project.sessions[start:end]),
            total=total,
            offset=start,
            limit=limit,
            projectId=dir_name,
            hasMore=end < total,
            nextOffset=end,
        )

    def list_active_task_lists(self) -> list[ActiveTaskList]:
        """Sessions that currently have task files, with best-effort project context.

        Raises EnumerationError when the tasks directory cannot be listed.
        """
        started = time.monotonic()
        with start_span("catalog.list_active_task_lists", {"tasks_dir": str(self.tasks_dir)}):
            try:
                active_lists = self.active_tasks.list_active_task_lists()
            except CatalogError:
                record_scan("active_task_lists", "error", _elapsed_ms(started))
                raise
        record_scan("active_task_lists", "ok", _elapsed_ms(started))
        return active_lists


project_catalog = ProjectCatalog(config.CLAUDE_DIR, config.TASKS_DIR)

"""Locate sessions that currently have live task files.

The tasks store (``~/.claude/tasks/<session-id>/*.json``) and the per-project
session indexes are written independently, so a session can have tasks before
its index entry exists. Project context is attached through an ordered chain of
resolvers; the first one that knows the session wins and unresolved sessions
are still listed with blank context.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol, Sequence

from taskviewer.errors import CatalogError, EnumerationError
from taskviewer.models import ActiveTaskList
from taskviewer.parsers.sessions_index import is_plain_name, read_project_sessions
from taskviewer.project_names import derive_from_dir_name

logger = logging.getLogger("taskviewer.catalog")

TASK_FILE_SUFFIX = ".json"
TRANSCRIPT_SUFFIX = ".jsonl"


@dataclass(frozen=True)
class SessionContext:
    name: str
    path: str
    summary: str = ""
    firstPrompt: str = ""


class SessionContextResolver(Protocol):
    def resolve(self, session_id: str) -> Optional[SessionContext]:
        ...


def list_project_dir_names(projects_dir: Path) -> list[str]:
    """Sorted names of the project directories; raises EnumerationError if unreadable."""
    try:
        with os.scandir(projects_dir) as entries:
            names = [entry.name for entry in entries if entry.is_dir()]
    except OSError as exc:
        raise EnumerationError(f"Cannot list projects directory {projects_dir}: {exc}") from exc
    return sorted(names)


def count_task_files(task_dir: Path) -> int:
    """Number of task data files in *task_dir*; 0 when the directory is missing."""
    try:
        with os.scandir(task_dir) as entries:
            return sum(1 for entry in entries if entry.name.endswith(TASK_FILE_SUFFIX) and entry.is_file())
    except OSError:
        return 0


class IndexedSessionResolver:
    """Resolve sessions through a session→project map built from every sessions index."""

    def __init__(self, projects_dir: Path):
        self._contexts = self._build(projects_dir)

    @staticmethod
    def _build(projects_dir: Path) -> dict[str, SessionContext]:
        contexts: dict[str, SessionContext] = {}
        try:
            dir_names = list_project_dir_names(projects_dir)
        except EnumerationError as exc:
            logger.debug("Session map unavailable: %s", exc)
            return contexts

        for dir_name in dir_names:
            try:
                entries = read_project_sessions(projects_dir, dir_name)
            except CatalogError:
                continue
            name = derive_from_dir_name(dir_name)
            # Later directories overwrite earlier ones for duplicate session ids.
            for entry in entries:
                contexts[entry.sessionId] = SessionContext(
                    name=name,
                    path=dir_name,
                    summary=entry.summary,
                    firstPrompt=entry.firstPrompt,
                )
        return contexts

    def resolve(self, session_id: str) -> Optional[SessionContext]:
        return self._contexts.get(session_id)


class TranscriptProbeResolver:
    """Find the project directory holding ``<session-id>.jsonl`` when the index lags behind."""

    def __init__(self, projects_dir: Path):
        self.projects_dir = projects_dir

    def resolve(self, session_id: str) -> Optional[SessionContext]:
        if not is_plain_name(session_id):
            return None
        try:
            dir_names = list_project_dir_names(self.projects_dir)
        except EnumerationError:
            return None

        filename = session_id + TRANSCRIPT_SUFFIX
        for dir_name in dir_names:
            if (self.projects_dir / dir_name / filename).is_file():
                return SessionContext(name=derive_from_dir_name(dir_name), path=dir_name)
        return None


class ActiveTaskListLocator:
    """Build a live snapshot of sessions that have at least one task file."""

    def __init__(self, projects_dir: Path, tasks_dir: Path):
        self.projects_dir = projects_dir
        self.tasks_dir = tasks_dir

    def resolvers(self) -> Sequence[SessionContextResolver]:
        return (
            IndexedSessionResolver(self.projects_dir),
            TranscriptProbeResolver(self.projects_dir),
        )

    def list_active_task_lists(self) -> list[ActiveTaskList]:
        try:
            with os.scandir(self.tasks_dir) as entries:
                session_ids = sorted(entry.name for entry in entries if entry.is_dir())
        except OSError as exc:
            raise EnumerationError(f"Cannot list tasks directory {self.tasks_dir}: {exc}") from exc

        resolvers: Optional[Sequence[SessionContextResolver]] = None
        active_lists: list[ActiveTaskList] = []
        for session_id in session_ids:
            task_dir = self.tasks_dir / session_id
            task_count = count_task_files(task_dir)
            if task_count == 0:
                continue

            # Built lazily so an idle tasks store never scans the project indexes.
            if resolvers is None:
                resolvers = self.resolvers()

            active = ActiveTaskList(sessionId=session_id, taskCount=task_count, taskDir=str(task_dir))
            context = _resolve(resolvers, session_id)
            if context is not None:
                active.projectName = context.name
                active.projectPath = context.path
                active.summary = context.summary
                active.firstPrompt = context.firstPrompt
            else:
                logger.debug("No project context for active session %s", session_id)
            active_lists.append(active)

        return active_lists


def _resolve(resolvers: Sequence[SessionContextResolver], session_id: str) -> Optional[SessionContext]:
    for resolver in resolvers:
        try:
            context = resolver.resolve(session_id)
        except OSError as exc:
            logger.debug("Resolver %s failed for %s: %s", type(resolver).__name__, session_id, exc)
            continue
        if context is not None:
            return context
    return None

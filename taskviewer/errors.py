"""Error types raised while reading the Claude Code data directory."""
from __future__ import annotations


class CatalogError(Exception):
    """Base class for failures reading projects, sessions or tasks."""


class NotFoundError(CatalogError):
    """A requested project, session or task does not exist (or has no sessions)."""


class IndexNotFoundError(NotFoundError):
    """A project directory has no sessions-index.json."""


class TaskNotFoundError(NotFoundError):
    """A task id is not present in its task list."""


class MalformedIndexError(CatalogError):
    """A sessions-index.json exists but cannot be read as the expected structure."""


class EnumerationError(CatalogError):
    """The projects or tasks root directory cannot be listed."""


def http_status(exc: CatalogError) -> int:
    """HTTP status code an API handler should answer with for *exc*."""
    if isinstance(exc, NotFoundError):
        return 404
    return 500

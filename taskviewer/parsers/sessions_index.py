"""Read per-project sessions-index.json files into SessionEntry models."""
from __future__ import annotations

import json
from pathlib import Path

from pydantic import ValidationError

from taskviewer.errors import IndexNotFoundError, MalformedIndexError
from taskviewer.models import SessionEntry, SessionsIndex

SESSIONS_INDEX_FILENAME = "sessions-index.json"


def is_plain_name(name: str) -> bool:
    """True when *name* is a single path component safe to join under a data root."""
    if not name or name in {".", ".."}:
        return False
    return "/" not in name and "\\" not in name and "\x00" not in name


def sessions_index_path(projects_dir: Path, dir_name: str) -> Path:
    return projects_dir / dir_name / SESSIONS_INDEX_FILENAME


def load_sessions_index(path: Path) -> list[SessionEntry]:
    """Parse a sessions-index.json file.

    Entries come back ordered by ``modified`` descending, so the first entry is
    always the most recently active session.

    Raises:
        IndexNotFoundError: the file (or its directory) does not exist.
        MalformedIndexError: the file cannot be read or is not
            ``{"version": int, "entries": [...]}``.
    """
    try:
        raw = path.read_text(encoding="utf-8")
    except (FileNotFoundError, NotADirectoryError) as exc:
        raise IndexNotFoundError(f"No sessions index at {path}") from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise MalformedIndexError(f"Could not read {path}: {exc}") from exc

    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise MalformedIndexError(f"Invalid JSON in {path}: {exc}") from exc

    if not isinstance(payload, dict):
        raise MalformedIndexError(f"Expected an object in {path}, got {type(payload).__name__}")

    try:
        index = SessionsIndex.model_validate(payload)
    except ValidationError as exc:
        raise MalformedIndexError(f"Unexpected sessions index structure in {path}") from exc

    # sorted() is stable: entries sharing a timestamp keep file order.
    return sorted(index.entries, key=lambda entry: entry.modified, reverse=True)


def read_project_sessions(projects_dir: Path, dir_name: str) -> list[SessionEntry]:
    """Load the sessions of one project directory under *projects_dir*."""
    if not is_plain_name(dir_name):
        raise IndexNotFoundError(f"Invalid project directory name: {dir_name!r}")
    return load_sessions_index(sessions_index_path(projects_dir, dir_name))

"""Derive display names for projects from filesystem paths and sanitized directory names.

Claude Code stores each project under ``~/.claude/projects/<dir-name>`` where the
directory name is the project's absolute path with every ``/`` replaced by ``-``
(``/Users/alice/src/github.com/acme/api`` becomes ``-Users-alice-src-github-com-acme-api``).
The separator positions of the real path cannot be recovered from that form, so
``derive_from_dir_name`` is a best-effort guess: a project called ``my-repo`` is
reported as ``repo``. Prefer ``derive_from_path`` whenever a real path is known.
"""
from __future__ import annotations

from pathlib import PurePosixPath

_GITHUB_HOST = "github.com"
_DIR_NAME_SEPARATOR = "-"


def derive_from_path(path: str) -> tuple[str, str, str]:
    """Return ``(name, shortname, org)`` for an absolute project path.

    ``/Users/alice/gocode/src/github.com/acme/api`` yields
    ``("api", "api", "acme")``. A path without a final component yields
    three empty strings; callers fall back to the directory name.
    """
    if not path:
        return "", "", ""

    pure = PurePosixPath(path)
    name = pure.name
    if not name or name == ".":
        return "", "", ""

    org = ""
    parts = pure.parts
    for index, part in enumerate(parts):
        if part == _GITHUB_HOST and index + 1 < len(parts):
            org = parts[index + 1]
            break

    return name, name, org


def derive_from_dir_name(dir_name: str) -> str:
    """Best-effort project name from a sanitized directory name (last non-empty ``-`` segment)."""
    for part in reversed(dir_name.split(_DIR_NAME_SEPARATOR)):
        if part:
            return part
    return dir_name


def sanitize_path(path: str) -> str:
    """Convert ``/Users/foo/bar`` to ``-Users-foo-bar``."""
    return path.replace("/", _DIR_NAME_SEPARATOR)

"""Group projects into base repositories and their worktrees.

Worktrees are named ``{base}-{variant}`` by convention. Given the sibling
project names of an organization, a project's base repo is the longest other
sibling name that it extends with ``-`` and a non-empty suffix. A sibling that
is itself the base of another sibling stays its own base, which keeps chained
names apart: with ``repo``, ``repo-client`` and ``repo-client-wt`` all present,
``repo-client-wt`` belongs to ``repo-client`` and ``repo-client`` is its own
base rather than a worktree of ``repo``.
"""
from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Sequence

from taskviewer.models import ProjectGroup, ProjectSummary

_WORKTREE_SEPARATOR = "-"


def _candidate_order(names: Iterable[str]) -> list[str]:
    # Longest first, then by name.
    return sorted(set(names), key=lambda name: (-len(name), name))


def resolve_base_repo(name: str, candidates: Sequence[str]) -> str:
    """Return the base repo for *name* given *candidates* in matching order."""
    for candidate in candidates:
        if candidate == name:
            continue
        prefix = candidate + _WORKTREE_SEPARATOR
        if name.startswith(prefix) and len(name) > len(prefix):
            return candidate
    return name


def compute_base_repos(names_by_org: dict[str, Iterable[str]]) -> dict[tuple[str, str], str]:
    """Map ``(org, name)`` to its base repo for every name of every org.

    Names with an empty org are always their own base repo, and so is any
    name that another sibling extends.
    """
    result: dict[tuple[str, str], str] = {}
    for org, names in names_by_org.items():
        names = list(names)
        if not org:
            for name in names:
                result[(org, name)] = name
            continue
        candidates = _candidate_order(names)
        longest = {name: resolve_base_repo(name, candidates) for name in names}
        extended = {base for name, base in longest.items() if base != name}
        for name in names:
            result[(org, name)] = name if name in extended else longest[name]
    return result


def assign_base_repos(summaries: list[ProjectSummary]) -> None:
    """Set ``baseRepo`` on every summary; needs the full set of siblings."""
    names_by_org: dict[str, list[str]] = defaultdict(list)
    for summary in summaries:
        names_by_org[summary.org].append(summary.name)

    base_repos = compute_base_repos(names_by_org)
    for summary in summaries:
        summary.baseRepo = base_repos[(summary.org, summary.name)]


def group_projects(summaries: Iterable[ProjectSummary]) -> list[ProjectGroup]:
    """Cluster summaries by ``(org, baseRepo)``, most recently modified first.

    Summaries without a ``baseRepo`` are grouped under their own name.
    """
    groups: dict[tuple[str, str], ProjectGroup] = {}
    for summary in summaries:
        base_repo = summary.baseRepo or summary.name
        key = (summary.org, base_repo)
        group = groups.get(key)
        if group is None:
            groups[key] = ProjectGroup(
                baseRepo=base_repo,
                org=summary.org,
                projects=[summary],
                totalSessions=summary.sessionCount,
                lastModified=summary.lastModified,
            )
            continue
        group.projects.append(summary)
        group.totalSessions += summary.sessionCount
        if summary.lastModified > group.lastModified:
            group.lastModified = summary.lastModified

    for group in groups.values():
        group.projects.sort(key=lambda item: item.lastModified, reverse=True)

    return sorted(groups.values(), key=lambda item: item.lastModified, reverse=True)

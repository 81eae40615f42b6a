"""Detect running Claude Code processes with pgrep, ps and lsof."""
from __future__ import annotations

import logging
import subprocess
from datetime import datetime, timedelta, timezone
from typing import Optional

from taskviewer import config
from taskviewer.errors import CatalogError
from taskviewer.models import ActiveTaskList, ClaudeInstance
from taskviewer.project_catalog import ProjectCatalog, project_catalog
from taskviewer.project_names import derive_from_dir_name, sanitize_path

logger = logging.getLogger("taskviewer.instances")

_PGREP_PATTERN = "claude.*node"


def parse_pids(output: str) -> list[int]:
    pids = []
    for line in output.splitlines():
        token = line.strip()
        if token.isdecimal():
            pids.append(int(token))
    return pids


def parse_ps_aux(output: str) -> list[int]:
    """PIDs of ``node`` processes running claude in ``ps aux`` output."""
    pids = []
    for line in output.splitlines():
        if "node" not in line or "claude" not in line or "grep" in line:
            continue
        fields = line.split()
        if len(fields) >= 2 and fields[1].isdecimal():
            pids.append(int(fields[1]))
    return pids


def parse_lsof_cwd(output: str) -> str:
    """Extract the cwd from ``lsof -p PID -Fn`` field output."""
    found_cwd = False
    for line in output.splitlines():
        if line == "fcwd":
            found_cwd = True
            continue
        if found_cwd and line.startswith("n"):
            return line[1:]
    return ""


def parse_etime(etime: str) -> timedelta:
    """Parse ps etime format ``[[DD-]HH:]MM:SS``; unparseable parts count as zero."""
    token = etime.strip()
    days = 0
    if "-" in token:
        day_part, token = token.split("-", 1)
        days = _to_int(day_part)

    parts = [_to_int(part) for part in token.split(":")]
    hours = minutes = seconds = 0
    if len(parts) == 3:
        hours, minutes, seconds = parts
    elif len(parts) == 2:
        minutes, seconds = parts
    elif len(parts) == 1:
        seconds = parts[0]
    return timedelta(days=days, hours=hours, minutes=minutes, seconds=seconds)


def _to_int(value: str) -> int:
    try:
        return int(value.strip())
    except ValueError:
        return 0


def _plural(count: int, unit: str) -> str:
    return f"1 {unit}" if count == 1 else f"{count} {unit}s"


def format_uptime(duration: timedelta) -> str:
    if duration < timedelta(minutes=1):
        return "just now"
    if duration < timedelta(hours=1):
        return _plural(int(duration.total_seconds() // 60), "min")
    if duration < timedelta(days=1):
        return _plural(int(duration.total_seconds() // 3600), "hour")
    return _plural(duration.days, "day")


class InstanceTracker:
    """Lists running Claude Code instances and links them to active task lists."""

    def __init__(self, catalog: Optional[ProjectCatalog] = None, timeout: float = config.INSTANCE_COMMAND_TIMEOUT_SECONDS):
        self.catalog = catalog
        self.timeout = timeout

    def _run(self, *args: str) -> subprocess.CompletedProcess:
        return subprocess.run(list(args), capture_output=True, text=True, timeout=self.timeout, check=False)

    def find_claude_pids(self) -> list[int]:
        try:
            result = self._run("pgrep", "-f", _PGREP_PATTERN)
        except (OSError, subprocess.SubprocessError) as exc:
            logger.debug("pgrep unavailable (%s), falling back to ps", exc)
            return self._find_claude_pids_fallback()

        if result.returncode == 0:
            return parse_pids(result.stdout)
        if result.returncode == 1:
            # pgrep exits 1 when nothing matched.
            return []
        return self._find_claude_pids_fallback()

    def _find_claude_pids_fallback(self) -> list[int]:
        try:
            result = self._run("ps", "aux")
        except (OSError, subprocess.SubprocessError) as exc:
            logger.warning("Could not list processes: %s", exc)
            return []
        if result.returncode != 0:
            return []
        return parse_ps_aux(result.stdout)

    def get_process_cwd(self, pid: int) -> str:
        try:
            result = self._run("lsof", "-p", str(pid), "-Fn")
        except (OSError, subprocess.SubprocessError):
            return ""
        if result.returncode != 0:
            return ""
        return parse_lsof_cwd(result.stdout)

    def get_process_elapsed(self, pid: int) -> Optional[timedelta]:
        try:
            result = self._run("ps", "-p", str(pid), "-o", "etime=")
        except (OSError, subprocess.SubprocessError):
            return None
        if result.returncode != 0 or not result.stdout.strip():
            return None
        return parse_etime(result.stdout)

    def get_instance_info(self, pid: int) -> ClaudeInstance:
        instance = ClaudeInstance(pid=pid, workingDir=self.get_process_cwd(pid))
        elapsed = self.get_process_elapsed(pid)
        if elapsed is not None:
            instance.startTime = datetime.now(timezone.utc) - elapsed
            instance.uptime = format_uptime(elapsed)
        return instance

    def active_task_lists(self) -> list[ActiveTaskList]:
        if self.catalog is None:
            return []
        try:
            return self.catalog.list_active_task_lists()
        except CatalogError as exc:
            logger.debug("Active task lists unavailable: %s", exc)
            return []

    def enrich_instance(self, instance: ClaudeInstance, active_lists: list[ActiveTaskList]) -> None:
        """Attach the project name and the first active task list whose project occurs in the cwd."""
        if not instance.workingDir:
            return

        instance.projectName = derive_from_dir_name(sanitize_path(instance.workingDir))

        for active in active_lists:
            if active.projectPath and active.projectName and active.projectName in instance.workingDir:
                instance.sessionId = active.sessionId
                instance.taskCount = active.taskCount
                instance.hasTasks = active.taskCount > 0
                break

    def list_running_instances(self) -> list[ClaudeInstance]:
        pids = self.find_claude_pids()
        if not pids:
            return []

        active_lists = self.active_task_lists()
        instances = []
        for pid in pids:
            instance = self.get_instance_info(pid)
            self.enrich_instance(instance, active_lists)
            instances.append(instance)
        return instances


instance_tracker = InstanceTracker(project_catalog)

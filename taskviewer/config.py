"""Task Viewer configuration."""
import os
from pathlib import Path


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    value = os.getenv(name)
    if not value or not value.strip():
        return default
    return Path(value.strip()).expanduser()


# Claude Code data root (~/.claude) and the two stores read from it
CLAUDE_DIR = _env_path("TASKVIEWER_CLAUDE_DIR", Path.home() / ".claude")
PROJECTS_DIR = CLAUDE_DIR / "projects"
TASKS_DIR = _env_path("TASKVIEWER_TASKS_DIR", CLAUDE_DIR / "tasks")

# Logging
LOG_LEVEL = os.getenv("TASKVIEWER_LOG_LEVEL", "INFO").strip().upper() or "INFO"
DEBUG_HTTP = _env_bool("TASKVIEWER_DEBUG_HTTP", False)

# Telemetry
OTEL_ENABLED = _env_bool("TASKVIEWER_OTEL_ENABLED", False)
OTEL_ENDPOINT = os.getenv("TASKVIEWER_OTEL_ENDPOINT", "http://localhost:4318")
OTEL_SERVICE_NAME = os.getenv("TASKVIEWER_OTEL_SERVICE_NAME", "taskviewer")
PROM_PORT = _env_int("TASKVIEWER_PROM_PORT", 0)

# Views
SESSIONS_PAGE_SIZE = max(1, _env_int("TASKVIEWER_SESSIONS_PAGE_SIZE", 10))

# Process inspection
INSTANCE_COMMAND_TIMEOUT_SECONDS = max(1, _env_int("TASKVIEWER_INSTANCE_COMMAND_TIMEOUT", 5))

# Server settings
HOST = os.getenv("TASKVIEWER_HOST", "127.0.0.1")
PORT = _env_int("TASKVIEWER_PORT", 8080)

# CORS
FRONTEND_ORIGIN = os.getenv("TASKVIEWER_FRONTEND_ORIGIN", "http://localhost:3000")

"""Pydantic models for the task viewer API."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, Field, field_validator

from taskviewer.date_utils import EPOCH, blank_to_epoch, ensure_utc

T = TypeVar("T")

TASK_STATUS_PENDING = "pending"
TASK_STATUS_IN_PROGRESS = "in_progress"
TASK_STATUS_COMPLETED = "completed"


class PaginatedResponse(BaseModel, Generic[T]):
    items: list[T]
    total: int
    offset: int
    limit: int


# ── Session index models ───────────────────────────────────────────

class SessionEntry(BaseModel):
    """One session record from a project's sessions-index.json."""

    sessionId: str
    fullPath: str = ""
    fileMtime: int = 0
    firstPrompt: str = ""
    summary: str = ""
    messageCount: int = 0
    created: datetime = EPOCH
    modified: datetime = EPOCH
    gitBranch: str = ""
    projectPath: str = ""
    isSidechain: bool = False

    @field_validator("fullPath", "firstPrompt", "summary", "gitBranch", "projectPath", mode="before")
    @classmethod
    def _null_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("fileMtime", "messageCount", mode="before")
    @classmethod
    def _null_to_zero(cls, value: Any) -> Any:
        return 0 if value is None else value

    @field_validator("isSidechain", mode="before")
    @classmethod
    def _null_to_false(cls, value: Any) -> Any:
        return False if value is None else value

    @field_validator("created", "modified", mode="before")
    @classmethod
    def _blank_timestamp(cls, value: Any) -> Any:
        return blank_to_epoch(value)

    @field_validator("created", "modified")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)


class SessionsIndex(BaseModel):
    version: int = 0
    entries: list[SessionEntry] = Field(default_factory=list)

    @field_validator("version", mode="before")
    @classmethod
    def _null_version(cls, value: Any) -> Any:
        return 0 if value is None else value

    @field_validator("entries", mode="before")
    @classmethod
    def _null_entries(cls, value: Any) -> Any:
        return [] if value is None else value


class SessionViewEntry(SessionEntry):
    taskCount: int = 0
    hasTasks: bool = False


# ── Project models ─────────────────────────────────────────────────

class Project(BaseModel):
    path: str
    name: str
    shortname: str = ""
    org: str = ""
    dirName: str
    sessions: list[SessionEntry] = Field(default_factory=list)
    sessionCount: int = 0
    lastModified: datetime = EPOCH


class ProjectSummary(BaseModel):
    name: str
    path: str
    dirName: str
    shortname: str = ""
    org: str = ""
    baseRepo: str = ""
    sessionCount: int = 0
    lastModified: datetime = EPOCH
    lastBranch: str = ""
    lastSummary: str = ""


class ProjectGroup(BaseModel):
    baseRepo: str
    org: str = ""
    projects: list[ProjectSummary] = Field(default_factory=list)
    totalSessions: int = 0
    lastModified: datetime = EPOCH


class ProjectView(BaseModel):
    project: Project
    sessions: list[SessionViewEntry] = Field(default_factory=list)
    sessionsWithTasks: int = 0


class SessionPage(PaginatedResponse[SessionViewEntry]):
    projectId: str
    hasMore: bool = False
    nextOffset: int = 0


# ── Active task list models ────────────────────────────────────────

class ActiveTaskList(BaseModel):
    sessionId: str
    taskCount: int = 0
    taskDir: str = ""
    projectName: str = ""
    projectPath: str = ""  # project directory name under ~/.claude/projects
    summary: str = ""
    firstPrompt: str = ""


class ActiveSessionsView(BaseModel):
    activeLists: list[ActiveTaskList] = Field(default_factory=list)
    totalTaskCount: int = 0


class DashboardView(BaseModel):
    groups: list[ProjectGroup] = Field(default_factory=list)
    activeLists: list[ActiveTaskList] = Field(default_factory=list)
    totalTaskCount: int = 0


# ── Task models ────────────────────────────────────────────────────

class TaskItem(BaseModel):
    id: str
    subject: str = ""
    description: str = ""
    activeForm: str = ""
    status: str = TASK_STATUS_PENDING  # pending | in_progress | completed
    owner: str = ""
    blocks: list[str] = Field(default_factory=list)
    blockedBy: list[str] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_text(cls, value: Any) -> Any:
        return str(value) if isinstance(value, int) else value

    @field_validator("subject", "description", "activeForm", "owner", mode="before")
    @classmethod
    def _null_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("blocks", "blockedBy", mode="before")
    @classmethod
    def _ids_as_text(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, list):
            return [str(item) for item in value]
        return value

    @property
    def isBlocked(self) -> bool:
        return len(self.blockedBy) > 0


class TaskEvent(BaseModel):
    type: str  # created | updated | deleted
    listId: str
    taskId: str
    task: Optional[TaskItem] = None


class TaskCounts(BaseModel):
    listId: str = ""
    totalCount: int = 0
    pendingCount: int = 0
    inProgressCount: int = 0
    completedCount: int = 0


class TaskListView(BaseModel):
    listId: str
    tasks: list[TaskItem] = Field(default_factory=list)
    filter: str = ""
    counts: TaskCounts = Field(default_factory=TaskCounts)


class SessionTasks(BaseModel):
    sessionId: str
    projectName: str = ""
    summary: str = ""
    tasks: list[TaskItem] = Field(default_factory=list)


class AllTasksView(BaseModel):
    tasksBySession: list[SessionTasks] = Field(default_factory=list)
    filter: str = "active"
    totalCount: int = 0
    pendingCount: int = 0
    inProgressCount: int = 0
    completedCount: int = 0
    activeCount: int = 0


class TaskDetail(BaseModel):
    listId: str
    task: TaskItem
    blockers: list[TaskItem] = Field(default_factory=list)
    blocking: list[TaskItem] = Field(default_factory=list)


class GraphNode(BaseModel):
    id: str
    label: str
    status: str
    isBlocked: bool = False
    description: str = ""


class GraphEdge(BaseModel):
    source: str
    target: str


class GraphData(BaseModel):
    nodes: list[GraphNode] = Field(default_factory=list)
    edges: list[GraphEdge] = Field(default_factory=list)


# ── Running instance models ────────────────────────────────────────

class ClaudeInstance(BaseModel):
    pid: int
    workingDir: str = ""
    sessionId: str = ""
    projectName: str = ""
    startTime: Optional[datetime] = None
    uptime: str = ""
    hasTasks: bool = False
    taskCount: int = 0

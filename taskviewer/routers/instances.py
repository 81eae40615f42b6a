"""API router for running Claude Code instances."""
from __future__ import annotations

from fastapi import APIRouter

from taskviewer.instances import instance_tracker
from taskviewer.models import ClaudeInstance

instances_router = APIRouter(prefix="/api/instances", tags=["instances"])


@instances_router.get("", response_model=list[ClaudeInstance])
def list_instances():
    return instance_tracker.list_running_instances()

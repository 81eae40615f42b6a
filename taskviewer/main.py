"""Task Viewer FastAPI application entry point."""
from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from taskviewer import config
from taskviewer.observability import initialize as initialize_observability, shutdown as shutdown_observability
from taskviewer.routers.dashboard import dashboard_router
from taskviewer.routers.instances import instances_router
from taskviewer.routers.projects import projects_router
from taskviewer.routers.tasks import tasks_router
from taskviewer.streaming import SubscriberRegistry

logging.basicConfig(level=config.LOG_LEVEL)
logger = logging.getLogger("taskviewer")
http_logger = logging.getLogger("taskviewer.http")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle."""
    logger.info("Task viewer starting up")
    logger.info("Reading projects from %s and tasks from %s", config.PROJECTS_DIR, config.TASKS_DIR)
    initialize_observability(app)
    app.state.subscribers = SubscriberRegistry()

    yield

    logger.info("Task viewer shutting down")
    await app.state.subscribers.close_all()
    shutdown_observability(app)


app = FastAPI(
    title="Task Viewer API",
    description="Read-only dashboard API over Claude Code projects, sessions and task lists",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        config.FRONTEND_ORIGIN,
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ],
    allow_credentials=True,
    allow_methods=["GET"],
    allow_headers=["*"],
)

if config.DEBUG_HTTP:
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.monotonic()
        response = await call_next(request)
        http_logger.info(
            "%s %s -> %s (%.1f ms)",
            request.method,
            request.url.path,
            response.status_code,
            (time.monotonic() - started) * 1000.0,
        )
        return response

app.include_router(dashboard_router)
app.include_router(projects_router)
app.include_router(tasks_router)
app.include_router(instances_router)


@app.get("/api/health")
def health(request: Request):
    """Health check endpoint."""
    registry = getattr(request.app.state, "subscribers", None)
    return {
        "status": "ok",
        "projectsDir": "present" if config.PROJECTS_DIR.is_dir() else "missing",
        "tasksDir": "present" if config.TASKS_DIR.is_dir() else "missing",
        "subscribers": registry.total if registry is not None else 0,
    }


def run() -> None:
    """Serve the API with uvicorn using the configured host and port."""
    uvicorn.run(app, host=config.HOST, port=config.PORT, log_level=config.LOG_LEVEL.lower())


if __name__ == "__main__":
    run()

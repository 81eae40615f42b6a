"""Server-Sent Events plumbing for live task updates."""
from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

logger = logging.getLogger("taskviewer.http")


def format_sse(event: str, data: str | dict[str, Any]) -> str:
    """Render one SSE frame; dict payloads are JSON encoded on a single line."""
    payload = json.dumps(data, separators=(",", ":")) if isinstance(data, dict) else data
    lines = "".join(f"data: {line}\n" for line in (payload.splitlines() or [""]))
    return f"event: {event}\n{lines}\n"


class SubscriberRegistry:
    """Tracks open event streams per task list for the lifetime of one application.

    Each subscription owns a stop event that ends its watch loop; ``close_all``
    sets every one of them during shutdown.
    """

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._subscribers: dict[str, list[asyncio.Event]] = {}
        self._closed = False

    async def register(self, list_id: str) -> asyncio.Event:
        stop_event = asyncio.Event()
        async with self._lock:
            if self._closed:
                stop_event.set()
                return stop_event
            self._subscribers.setdefault(list_id, []).append(stop_event)
        logger.debug("SSE subscriber added for %s", list_id)
        return stop_event

    async def unregister(self, list_id: str, stop_event: asyncio.Event) -> None:
        async with self._lock:
            subscribers = self._subscribers.get(list_id, [])
            if stop_event in subscribers:
                subscribers.remove(stop_event)
            if not subscribers:
                self._subscribers.pop(list_id, None)
        logger.debug("SSE subscriber removed for %s", list_id)

    async def close_all(self) -> None:
        async with self._lock:
            self._closed = True
            for subscribers in self._subscribers.values():
                for stop_event in subscribers:
                    stop_event.set()
            self._subscribers.clear()

    def counts(self) -> dict[str, int]:
        return {list_id: len(subscribers) for list_id, subscribers in self._subscribers.items()}

    @property
    def total(self) -> int:
        return sum(self.counts().values())

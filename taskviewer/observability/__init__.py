"""Observability helpers."""

from taskviewer.observability.otel import (
    initialize,
    shutdown,
    start_span,
    record_scan,
    record_index_failure,
)

__all__ = [
    "initialize",
    "shutdown",
    "start_span",
    "record_scan",
    "record_index_failure",
]

"""Observability utilities (structured tracing and redaction)."""

from app.observability.redaction import redact_text, sanitize
from app.observability.trace_logging import trace_event

__all__ = [
    "redact_text",
    "sanitize",
    "trace_event",
]

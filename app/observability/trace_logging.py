"""Structured trace/event logging.

We emit a single JSON object per line so logs are easy to grep and ship.

Events describe pipeline stages (message received, provider called,
actions dispatched, errors). Thinking blocks are never logged.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

from app.observability.redaction import sanitize
from app.observability.trace_context import (
    get_actor_id,
    get_parent_trace_id,
    get_trace_id,
)


_logger = logging.getLogger("agent.trace")


def trace_event(
    event: str,
    *,
    max_chars: int = 2000,
    **fields: Any,
) -> None:
    """Emit a structured trace event.

    Args:
        event: Short event name, e.g. 'agent.message.start'.
        max_chars: Max chars for any string field after sanitization.
        **fields: Event payload (will be sanitized).
    """

    record: dict[str, Any] = {
        "ts": datetime.now(timezone.utc).isoformat(),
        "event": event,
        "trace_id": get_trace_id(),
        "actor_id": get_actor_id(),
    }
    parent = get_parent_trace_id()
    if parent:
        record["parent_trace_id"] = parent

    for k, v in fields.items():
        record[k] = sanitize(v, max_chars=max_chars)

    try:
        line = json.dumps(record, ensure_ascii=False, separators=(",", ":"), default=str)
    except (TypeError, ValueError):
        line = json.dumps({"event": event, "error": "failed_to_serialize"})

    if event.endswith(".error") or "error" in fields:
        _logger.warning(line)
    else:
        _logger.info(line)

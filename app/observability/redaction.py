"""Redaction helpers that keep provider keys and PII out of logs.

Provider adapters log upstream error bodies and trace events carry message
previews; both pass through here first. Gemini takes its API key as a query
parameter, so URL ``key=`` parameters are scrubbed as well.

NOTE: This is not a DLP system. It catches the common credential shapes seen
in BYOK traffic.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import BaseModel

_REPLACEMENT = "[REDACTED]"
_TRUNC_SUFFIX = "…(truncated)"


_SECRET_KEY_RE = re.compile(
    r"(^|_|-)(password|passwd|secret|token|api[_-]?key|apikey|access[_-]?key|"
    r"private[_-]?key|authorization|x-api-key)($|_)",
    flags=re.IGNORECASE,
)

_SENSITIVE_VALUE_RES: list[re.Pattern[str]] = [
    # Emails
    re.compile(r"(?<![A-Za-z0-9._%+-])[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b"),
    # OpenAI / Anthropic / OpenRouter style keys
    re.compile(r"\bsk-[A-Za-z0-9_\-]{16,}"),
    # Google API keys
    re.compile(r"\bAIza[0-9A-Za-z_\-]{30,}"),
    # Bearer tokens in headers / logs
    re.compile(r"\bBearer\s+[A-Za-z0-9._\-]+", flags=re.IGNORECASE),
    # Query-string keys (Gemini generateContent URLs)
    re.compile(r"([?&]key=)[^&\s\"']+", flags=re.IGNORECASE),
    # Generic 'key=value' patterns
    re.compile(r"\b(?:password|passwd|pwd)\s*[:=]\s*\S+", flags=re.IGNORECASE),
    re.compile(r"\b(?:api[_-]?key|apikey)\s*[:=]\s*\S+", flags=re.IGNORECASE),
]


def _looks_sensitive_key(key: str) -> bool:
    return bool(_SECRET_KEY_RE.search(key))


def _replace(match: re.Match[str]) -> str:
    # Keep the "?key=" prefix so the URL stays readable.
    if match.re.groups and match.group(1):
        return f"{match.group(1)}{_REPLACEMENT}"
    return _REPLACEMENT


def redact_text(text: str | None, *, max_chars: int = 4000) -> str | None:
    """Redact sensitive substrings in a text blob and truncate."""
    if text is None:
        return text

    out = text
    for rx in _SENSITIVE_VALUE_RES:
        out = rx.sub(_replace, out)

    if max_chars and len(out) > max_chars:
        out = out[:max_chars] + _TRUNC_SUFFIX

    return out


def sanitize(obj: Any, *, max_depth: int = 6, max_chars: int = 4000) -> Any:
    """Sanitize an object for logging.

    - Dict keys that look like secrets are redacted.
    - String values are scanned for sensitive substrings.
    - Pydantic models are dumped first.
    - Deep structures are truncated by depth.
    """

    if max_depth <= 0:
        return "…"

    if obj is None or isinstance(obj, (int, float, bool)):
        return obj

    if isinstance(obj, bytes):
        return f"<bytes:{len(obj)}>"

    if isinstance(obj, str):
        return redact_text(obj, max_chars=max_chars)

    if isinstance(obj, BaseModel):
        obj = obj.model_dump(mode="json")

    if isinstance(obj, Mapping):
        out: dict[str, Any] = {}
        for k, v in obj.items():
            ks = str(k)
            if _looks_sensitive_key(ks):
                out[ks] = _REPLACEMENT
            else:
                out[ks] = sanitize(v, max_depth=max_depth - 1, max_chars=max_chars)
        return out

    if isinstance(obj, Sequence):
        items = list(obj)
        if len(items) > 50:
            items = items[:50]
            items.append("…")
        return [sanitize(v, max_depth=max_depth - 1, max_chars=max_chars) for v in items]

    return redact_text(str(obj), max_chars=max_chars)

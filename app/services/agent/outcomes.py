"""Task outcome selection and provider-failure diagnostics."""

from __future__ import annotations

import re

from app.enums import TaskStatus

MAX_OUTCOME_CHARS = 8000
BOILERPLATE_MIN_CHARS = 40

FAILED_FALLBACK = (
    "Task failed, but the agent did not return a detailed failure report. "
    "Run it again for full details."
)
COMPLETED_FALLBACK = (
    "Task marked completed, but the agent did not return detailed output. "
    "Run it again for full results."
)

_BOILERPLATE_RES = [
    re.compile(r"^processing scheduled tasks\.?$"),
    re.compile(r"^done\.?$"),
    re.compile(r"^done\. i applied the requested app update\.?$"),
    re.compile(r"^task(s)? processed\.?$"),
    re.compile(r"^completed\.?$"),
]

# Storage ids are 28-36 char lowercase alphanumerics, sometimes prefixed "task"/"taskId".
_INTERNAL_ID_RE = re.compile(r"\b(?:task(?:Id)?[\s=:\"]*)?[a-z0-9]{28,36}\b", re.IGNORECASE)
_NON_ALNUM_RE = re.compile(r"[^a-z0-9]", re.IGNORECASE)
_BLANK_LINES_RE = re.compile(r"\n{3,}")

_TERMINAL = {TaskStatus.COMPLETED, TaskStatus.FAILED}


def is_boilerplate_outcome(text: str) -> bool:
    """True for empty, generic or very short acknowledgements."""
    normalized = text.strip().lower()
    if not normalized:
        return True
    if any(rx.match(normalized) for rx in _BOILERPLATE_RES):
        return True
    return len(normalized) < BOILERPLATE_MIN_CHARS


def _strip_id(match: re.Match[str]) -> str:
    token = match.group(0)
    clean = _NON_ALNUM_RE.sub("", token)
    if not 28 <= len(clean) <= 36:
        return token
    has_letters = any(ch.isalpha() for ch in clean)
    has_digits = any(ch.isdigit() for ch in clean)
    if not (has_letters and has_digits):
        return token
    return ""


def strip_internal_ids(text: str) -> str:
    """Remove storage ids so they never reach displayed outcomes or audio."""
    stripped = _INTERNAL_ID_RE.sub(_strip_id, text)
    return _BLANK_LINES_RE.sub("\n\n", stripped).strip()


def pick_task_outcome(
    status: TaskStatus | str,
    clean_response: str,
    action_outcome_summary: str | None = None,
) -> str | None:
    """Choose the outcome text stored on a task.

    Non-terminal statuses keep whatever summary the action carried. For
    completed/failed the visible reply wins unless it is boilerplate, then the
    action summary, then a fixed fallback so a terminal task always has text.
    """
    summary = (action_outcome_summary or "").strip()
    if status not in _TERMINAL:
        return summary or None

    reply = clean_response.strip()
    for candidate in (reply, summary):
        if candidate and not is_boilerplate_outcome(candidate):
            return strip_internal_ids(candidate)[:MAX_OUTCOME_CHARS]

    return FAILED_FALLBACK if status == TaskStatus.FAILED else COMPLETED_FALLBACK


_CONFIG_SIGNATURES = (
    "unsupported parameter",
    "invalid_request_error",
    "model",
    "api key",
    "unauthorized",
    "authentication",
    '"401"',
    '"403"',
    "not found",
    "endpoint",
    "base url",
)


def build_config_diagnostic_response(
    provider: str,
    model: str,
    base_url: str | None,
    error_message: str,
) -> str | None:
    """Turn a provider error that looks like misconfiguration into user hints.

    Returns None when the error does not match a known configuration failure.
    """
    error_text = error_message.lower()
    if not any(signature in error_text for signature in _CONFIG_SIGNATURES):
        return None

    hints: list[str] = []
    if "unsupported parameter" in error_text:
        hints.append("Provider/model parameter mismatch. Try a different model for this provider.")
    if ("model" in error_text and "not found" in error_text) or "does not exist" in error_text:
        hints.append("Model ID may be invalid for this provider. Re-check model name in Settings.")
    if (
        "incorrect api key" in error_text
        or "invalid api key" in error_text
        or "authentication" in error_text
    ):
        hints.append("API key may be invalid or inactive. Re-save the key in Settings.")
    if base_url and (
        "endpoint" in error_text or "not found" in error_text or "base url" in error_text
    ):
        hints.append(
            f"Base URL may be incorrect ({base_url}). Verify it is provider-correct "
            "and includes the expected /v1 path."
        )
    if not hints:
        hints.append("Check provider, model, and BYOK credential settings in Settings.")

    return (
        f"I could not call {provider} model {model} due to a configuration issue. "
        f"{' '.join(hints)}"
    )

"""Split a raw model reply into visible text, thinking and app actions.

The reply may carry one ``<thinking>`` block (private reasoning, persisted
separately) and one ``<app_actions>`` block holding a JSON array of action
objects. Each element is validated on its own: a malformed element is
dropped without affecting its siblings, and a malformed block yields no
actions while the visible text is still returned.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from app.enums import ActionType, TaskStatus
from app.models.actions import (
    Action,
    CallToolAction,
    CreateFeedItemAction,
    CreateSkillAction,
    CreateSubtaskAction,
    CreateTaskAction,
    DelegateToAgentAction,
    GenerateAudioAction,
    GenerateImageAction,
    MoveTaskAction,
    SkillCapability,
    UpdateSkillAction,
    UpdateTaskStatusAction,
)

logger = logging.getLogger(__name__)

_THINKING_RE = re.compile(r"<thinking>\s*([\s\S]*?)\s*</thinking>", re.IGNORECASE)
_ACTIONS_RE = re.compile(r"<app_actions>\s*([\s\S]*?)\s*</app_actions>", re.IGNORECASE)

_TASK_STATUSES = {status.value for status in TaskStatus}

MAX_TASK_DESCRIPTION = 800
MAX_FEED_TITLE = 120
MAX_FEED_CONTENT = 320
MAX_SKILL_NAME = 80
MAX_SKILL_BIO = 1200
MAX_CAPABILITIES = 25
MAX_CAPABILITY_NAME = 64
MAX_CAPABILITY_DESCRIPTION = 320
MAX_OUTCOME_SUMMARY = 2000
MAX_OUTCOME_LINKS = 8
MAX_COLUMN_NAME = 80
MAX_IMAGE_PROMPT = 1000
MAX_AUDIO_TEXT = 5000
MAX_TOOL_NAME = 120


@dataclass(slots=True)
class ParsedResponse:
    clean_response: str
    actions: list[Action] = field(default_factory=list)
    thinking_content: str | None = None


def _text(candidate: dict[str, Any], key: str) -> str:
    """Trimmed string field, or '' when missing or not a string."""
    value = candidate.get(key)
    return value.strip() if isinstance(value, str) else ""


def _optional_text(candidate: dict[str, Any], key: str, limit: int | None = None) -> str | None:
    value = _text(candidate, key)
    if not value:
        return None
    return value[:limit] if limit else value


def _capabilities(raw: Any) -> list[SkillCapability]:
    if not isinstance(raw, list):
        return []
    out: list[SkillCapability] = []
    for entry in raw:
        if not isinstance(entry, dict):
            continue
        name = _text(entry, "name")[:MAX_CAPABILITY_NAME]
        description = _text(entry, "description")[:MAX_CAPABILITY_DESCRIPTION]
        if name and description:
            out.append(SkillCapability(name=name, description=description))
    return out[:MAX_CAPABILITIES]


def _create_task(c: dict[str, Any]) -> CreateTaskAction | None:
    description = _text(c, "description")
    if not description:
        return None
    return CreateTaskAction(
        description=description[:MAX_TASK_DESCRIPTION],
        is_public=c.get("isPublic") is True,
    )


def _create_feed_item(c: dict[str, Any]) -> CreateFeedItemAction | None:
    title = _text(c, "title")
    if not title:
        return None
    return CreateFeedItemAction(
        title=title[:MAX_FEED_TITLE],
        content=_optional_text(c, "content", MAX_FEED_CONTENT),
        is_public=c.get("isPublic") is True,
    )


def _create_skill(c: dict[str, Any]) -> CreateSkillAction | None:
    name = _text(c, "name")
    if not name:
        return None
    return CreateSkillAction(
        name=name[:MAX_SKILL_NAME],
        bio=_optional_text(c, "bio", MAX_SKILL_BIO),
        capabilities=_capabilities(c.get("capabilities")),
    )


def _update_task_status(c: dict[str, Any]) -> UpdateTaskStatusAction | None:
    task_id = _text(c, "taskId")
    status = c.get("status")
    if not task_id or not isinstance(status, str) or status not in _TASK_STATUSES:
        return None

    links = c.get("outcomeLinks")
    outcome_links = None
    if isinstance(links, list):
        outcome_links = [
            link.strip() for link in links if isinstance(link, str) and link.strip()
        ][:MAX_OUTCOME_LINKS]

    return UpdateTaskStatusAction(
        task_id=task_id,
        status=TaskStatus(status),
        outcome_summary=_optional_text(c, "outcomeSummary", MAX_OUTCOME_SUMMARY),
        outcome_links=outcome_links,
    )


def _move_task(c: dict[str, Any]) -> MoveTaskAction | None:
    task_id = _text(c, "taskId")
    if not task_id:
        return None
    column_id = _optional_text(c, "boardColumnId")
    column_name = _optional_text(c, "boardColumnName", MAX_COLUMN_NAME)
    if not column_id and not column_name:
        return None
    return MoveTaskAction(
        task_id=task_id,
        board_column_id=column_id,
        board_column_name=column_name,
    )


def _update_skill(c: dict[str, Any]) -> UpdateSkillAction | None:
    skill_id = _text(c, "skillId")
    if not skill_id:
        return None
    capabilities = _capabilities(c.get("capabilities"))
    is_active = c.get("isActive")
    return UpdateSkillAction(
        skill_id=skill_id,
        name=_optional_text(c, "name", MAX_SKILL_NAME),
        bio=_optional_text(c, "bio", MAX_SKILL_BIO),
        capabilities=capabilities or None,
        is_active=is_active if isinstance(is_active, bool) else None,
    )


def _create_subtask(c: dict[str, Any]) -> CreateSubtaskAction | None:
    parent_task_id = _text(c, "parentTaskId")
    description = _text(c, "description")
    if not parent_task_id or not description:
        return None
    return CreateSubtaskAction(
        parent_task_id=parent_task_id,
        description=description[:MAX_TASK_DESCRIPTION],
        is_public=c.get("isPublic") is True,
    )


def _delegate_to_agent(c: dict[str, Any]) -> DelegateToAgentAction | None:
    slug = _text(c, "targetAgentSlug")
    description = _text(c, "taskDescription")
    if not slug or not description:
        return None
    return DelegateToAgentAction(
        target_agent_slug=slug,
        task_description=description[:MAX_TASK_DESCRIPTION],
    )


def _generate_image(c: dict[str, Any]) -> GenerateImageAction | None:
    prompt = _text(c, "prompt")
    if not prompt:
        return None
    return GenerateImageAction(
        prompt=prompt[:MAX_IMAGE_PROMPT],
        task_id=_optional_text(c, "taskId"),
    )


def _generate_audio(c: dict[str, Any]) -> GenerateAudioAction | None:
    text = _text(c, "text")
    if not text:
        return None
    return GenerateAudioAction(
        text=text[:MAX_AUDIO_TEXT],
        task_id=_optional_text(c, "taskId"),
    )


def _call_tool(c: dict[str, Any]) -> CallToolAction | None:
    tool_name = _text(c, "toolName")
    if not tool_name:
        return None
    tool_input = c.get("input")
    return CallToolAction(
        tool_name=tool_name[:MAX_TOOL_NAME],
        input=tool_input if isinstance(tool_input, dict) else None,
    )


VALIDATORS: dict[ActionType, Callable[[dict[str, Any]], Action | None]] = {
    ActionType.CREATE_TASK: _create_task,
    ActionType.CREATE_FEED_ITEM: _create_feed_item,
    ActionType.CREATE_SKILL: _create_skill,
    ActionType.UPDATE_TASK_STATUS: _update_task_status,
    ActionType.MOVE_TASK: _move_task,
    ActionType.UPDATE_SKILL: _update_skill,
    ActionType.CREATE_SUBTASK: _create_subtask,
    ActionType.DELEGATE_TO_AGENT: _delegate_to_agent,
    ActionType.GENERATE_IMAGE: _generate_image,
    ActionType.GENERATE_AUDIO: _generate_audio,
    ActionType.CALL_TOOL: _call_tool,
}


def _cut(text: str, match: re.Match[str]) -> str:
    return (text[: match.start()] + text[match.end() :]).strip()


def parse_thinking(raw: str) -> tuple[str, str | None]:
    """Remove the first thinking block; return (remaining text, thinking or None)."""
    match = _THINKING_RE.search(raw)
    if not match:
        return raw, None
    return _cut(raw, match), match.group(1).strip() or None


def parse_actions(items: Any) -> list[Action]:
    """Validate a decoded action array element by element."""
    if not isinstance(items, list):
        return []
    actions: list[Action] = []
    for item in items:
        if not isinstance(item, dict):
            continue
        validator = VALIDATORS.get(item.get("type")) if isinstance(item.get("type"), str) else None
        if validator is None:
            logger.debug("Skipping unknown action type: %r", item.get("type"))
            continue
        action = validator(item)
        if action is not None:
            actions.append(action)
    return actions


def parse_agent_response(raw: str) -> ParsedResponse:
    without_thinking, thinking = parse_thinking(raw)

    match = _ACTIONS_RE.search(without_thinking)
    if not match:
        return ParsedResponse(clean_response=without_thinking.strip(), thinking_content=thinking)

    clean = _cut(without_thinking, match)
    payload = match.group(1).strip()
    if not payload:
        return ParsedResponse(clean_response=clean, thinking_content=thinking)

    try:
        decoded = json.loads(payload)
    except (ValueError, RecursionError):
        logger.warning("Ignoring malformed app_actions block (%d chars)", len(payload))
        return ParsedResponse(clean_response=clean, thinking_content=thinking)

    return ParsedResponse(
        clean_response=clean,
        actions=parse_actions(decoded),
        thinking_content=thinking,
    )

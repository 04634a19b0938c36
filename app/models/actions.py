"""App action models.

Closed tagged union of the actions a model may request inside an
``<app_actions>`` block. Instances are only built by the response parser
after every required field has been checked and capped, so the models
themselves carry no lenient coercion.
"""

from typing import Annotated, Any, Literal, Union

from pydantic import Field

from app.enums import TaskStatus
from app.models.base import JsonModel


class SkillCapability(JsonModel):
    """A named capability advertised by a skill."""

    name: str
    description: str


class CreateTaskAction(JsonModel):
    type: Literal["create_task"] = "create_task"
    description: str
    is_public: bool = False


class CreateFeedItemAction(JsonModel):
    type: Literal["create_feed_item"] = "create_feed_item"
    title: str
    content: str | None = None
    is_public: bool = False


class CreateSkillAction(JsonModel):
    type: Literal["create_skill"] = "create_skill"
    name: str
    bio: str | None = None
    capabilities: list[SkillCapability] = Field(default_factory=list)


class UpdateTaskStatusAction(JsonModel):
    type: Literal["update_task_status"] = "update_task_status"
    task_id: str
    status: TaskStatus
    outcome_summary: str | None = None
    outcome_links: list[str] | None = None


class MoveTaskAction(JsonModel):
    type: Literal["move_task"] = "move_task"
    task_id: str
    board_column_id: str | None = None
    board_column_name: str | None = None


class UpdateSkillAction(JsonModel):
    type: Literal["update_skill"] = "update_skill"
    skill_id: str
    name: str | None = None
    bio: str | None = None
    capabilities: list[SkillCapability] | None = None
    is_active: bool | None = None


class CreateSubtaskAction(JsonModel):
    type: Literal["create_subtask"] = "create_subtask"
    parent_task_id: str
    description: str
    is_public: bool = False


class DelegateToAgentAction(JsonModel):
    type: Literal["delegate_to_agent"] = "delegate_to_agent"
    target_agent_slug: str
    task_description: str


class GenerateImageAction(JsonModel):
    type: Literal["generate_image"] = "generate_image"
    prompt: str
    task_id: str | None = None


class GenerateAudioAction(JsonModel):
    type: Literal["generate_audio"] = "generate_audio"
    text: str
    task_id: str | None = None


class CallToolAction(JsonModel):
    type: Literal["call_tool"] = "call_tool"
    tool_name: str
    input: dict[str, Any] | None = None


Action = Annotated[
    Union[
        CreateTaskAction,
        CreateFeedItemAction,
        CreateSkillAction,
        UpdateTaskStatusAction,
        MoveTaskAction,
        UpdateSkillAction,
        CreateSubtaskAction,
        DelegateToAgentAction,
        GenerateImageAction,
        GenerateAudioAction,
        CallToolAction,
    ],
    Field(discriminator="type"),
]

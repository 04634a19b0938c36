"""Execute parsed app actions against the agent store.

Actions run sequentially in the order the model listed them. Each action is
isolated: a failure is logged and counted, and the batch continues.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from app.enums import TaskStatus
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
    UpdateSkillAction,
    UpdateTaskStatusAction,
)
from app.models.agent import ProcessMessageResult
from app.observability.trace_logging import trace_event
from app.services.agent.outcomes import MAX_OUTCOME_CHARS, pick_task_outcome
from app.services.agent.ports import AgentStore, SpeechSynthesizer

logger = logging.getLogger(__name__)

FEED_ITEM_TYPE = "status_update"
GENERATED_BY = "agent_runtime"

_TERMINAL = {TaskStatus.COMPLETED, TaskStatus.FAILED}


@dataclass(frozen=True, slots=True)
class DelegationChain:
    """Agents already on the current delegate_to_agent path.

    A new chain is created for every inbound message and extended (never
    mutated) for each nested hop.
    """

    visited: tuple[str, ...] = ()
    depth: int = 0

    @classmethod
    def start(cls, agent_id: str | None) -> "DelegationChain":
        return cls(visited=(agent_id,) if agent_id else ())

    def extend(self, agent_id: str) -> "DelegationChain":
        return DelegationChain(visited=(*self.visited, agent_id), depth=self.depth + 1)

    def refusal_reason(self, target_agent_id: str, max_depth: int) -> str | None:
        """Why a hop to ``target_agent_id`` is not allowed, or None if it is."""
        if target_agent_id in self.visited:
            return "cycle"
        if self.depth >= max_depth:
            return "max_depth"
        return None


# (user_id, target_agent_id, task_description, caller_agent_id, chain)
Delegate = Callable[
    [str, str, str, str | None, DelegationChain], Awaitable[ProcessMessageResult]
]


@dataclass(slots=True)
class DispatchContext:
    user_id: str
    agent_id: str | None
    channel: str
    caller_id: str | None
    assistant_response: str
    chain: DelegationChain = field(default_factory=DelegationChain)


@dataclass(slots=True)
class DispatchReport:
    executed: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    touched_task_ids: list[str] = field(default_factory=list)

    def touch(self, task_id: str) -> None:
        if task_id not in self.touched_task_ids:
            self.touched_task_ids.append(task_id)


class ActionDispatcher:
    def __init__(
        self,
        store: AgentStore,
        speech: SpeechSynthesizer,
        *,
        delegate: Delegate | None = None,
        max_delegation_depth: int = 3,
        trace: Callable[..., None] = trace_event,
    ) -> None:
        self.store = store
        self.speech = speech
        self._delegate = delegate
        self.max_delegation_depth = max_delegation_depth
        self._trace = trace

    async def dispatch(self, actions: list[Action], context: DispatchContext) -> DispatchReport:
        """Run every action; never raises."""
        report = DispatchReport()
        for action in actions:
            # Task ids count as touched even if the store call fails.
            if isinstance(action, (UpdateTaskStatusAction, MoveTaskAction)):
                report.touch(action.task_id)
            try:
                done = await self._execute(action, context)
            except Exception as e:
                logger.warning("Agent action %s failed: %s", action.type, e)
                self._trace("agent.action.error", action=action.type, error=str(e))
                report.failed.append(action.type)
                continue
            (report.executed if done else report.skipped).append(action.type)
        return report

    async def _execute(self, action: Action, ctx: DispatchContext) -> bool:
        """Execute one action. Returns False when the action was skipped."""
        if isinstance(action, CreateTaskAction):
            await self.store.create_task(
                user_id=ctx.user_id,
                agent_id=ctx.agent_id,
                description=action.description,
                is_public=action.is_public,
                source=ctx.channel,
            )
        elif isinstance(action, CreateSubtaskAction):
            await self.store.create_task(
                user_id=ctx.user_id,
                agent_id=ctx.agent_id,
                description=action.description,
                is_public=action.is_public,
                source=ctx.channel,
                parent_task_id=action.parent_task_id,
            )
        elif isinstance(action, CreateFeedItemAction):
            await self.store.create_feed_item(
                user_id=ctx.user_id,
                type=FEED_ITEM_TYPE,
                title=action.title,
                content=action.content,
                metadata={
                    "source": ctx.channel,
                    "callerId": ctx.caller_id,
                    "generatedBy": GENERATED_BY,
                },
                is_public=action.is_public,
            )
        elif isinstance(action, CreateSkillAction):
            await self.store.create_skill(
                user_id=ctx.user_id,
                agent_id=ctx.agent_id,
                name=action.name,
                bio=action.bio,
                capabilities=action.capabilities,
            )
        elif isinstance(action, UpdateSkillAction):
            await self.store.update_skill(
                user_id=ctx.user_id,
                agent_id=ctx.agent_id,
                skill_id=action.skill_id,
                name=action.name,
                bio=action.bio,
                capabilities=action.capabilities,
                is_active=action.is_active,
            )
        elif isinstance(action, UpdateTaskStatusAction):
            await self._update_task_status(action, ctx)
        elif isinstance(action, MoveTaskAction):
            await self.store.update_task(
                user_id=ctx.user_id,
                agent_id=ctx.agent_id,
                task_id=action.task_id,
                source=ctx.channel,
                board_column_id=action.board_column_id,
                board_column_name=action.board_column_name,
            )
        elif isinstance(action, DelegateToAgentAction):
            return await self._delegate_to_agent(action, ctx)
        elif isinstance(action, GenerateAudioAction):
            return await self._generate_audio(action, ctx)
        elif isinstance(action, GenerateImageAction):
            logger.info("generate_image requested: prompt=%r", action.prompt[:100])
            return False
        elif isinstance(action, CallToolAction):
            logger.info("call_tool requested: toolName=%r", action.tool_name)
            return False
        else:
            logger.warning("No handler for action type %s", getattr(action, "type", action))
            return False
        return True

    async def _update_task_status(self, action: UpdateTaskStatusAction, ctx: DispatchContext) -> None:
        outcome = pick_task_outcome(action.status, ctx.assistant_response, action.outcome_summary)
        await self.store.update_task(
            user_id=ctx.user_id,
            agent_id=ctx.agent_id,
            task_id=action.task_id,
            source=ctx.channel,
            status=action.status,
            outcome_summary=outcome,
            outcome_links=action.outcome_links,
        )

        # Long reports are capped on the task; keep the full text as a file.
        full_text = ctx.assistant_response.strip()
        if action.status in _TERMINAL and len(full_text) > MAX_OUTCOME_CHARS:
            try:
                await self.store.store_outcome_file(
                    task_id=action.task_id,
                    user_id=ctx.user_id,
                    content=ctx.assistant_response,
                )
            except Exception as e:
                logger.warning("Failed to store long-form outcome file: %s", e)

    async def _delegate_to_agent(self, action: DelegateToAgentAction, ctx: DispatchContext) -> bool:
        target = await self.store.get_agent_by_slug(ctx.user_id, action.target_agent_slug)
        if target is None:
            logger.warning("delegate_to_agent: agent slug %r not found", action.target_agent_slug)
            return False

        reason = ctx.chain.refusal_reason(target.id, self.max_delegation_depth)
        if reason is not None:
            logger.warning(
                "delegate_to_agent: refusing hop to %r (%s, chain=%s)",
                action.target_agent_slug,
                reason,
                list(ctx.chain.visited),
            )
            self._trace(
                "agent.delegation.refused",
                target=action.target_agent_slug,
                reason=reason,
                depth=ctx.chain.depth,
            )
            return False

        if self._delegate is None:
            logger.warning("delegate_to_agent: no delegate configured")
            return False

        self._trace(
            "agent.delegation.start", target=action.target_agent_slug, depth=ctx.chain.depth + 1
        )
        await self._delegate(
            ctx.user_id,
            target.id,
            action.task_description,
            ctx.agent_id,
            ctx.chain.extend(target.id),
        )
        return True

    async def _generate_audio(self, action: GenerateAudioAction, ctx: DispatchContext) -> bool:
        agent_id = ctx.agent_id or await self.store.get_default_agent_id(ctx.user_id)
        if not agent_id:
            logger.warning("generate_audio: no agent available for user %s", ctx.user_id)
            return False

        result = await self.speech.synthesize(ctx.user_id, agent_id, action.text)
        if result is None:
            return False
        if action.task_id:
            await self.store.link_outcome_audio(
                task_id=action.task_id,
                user_id=ctx.user_id,
                storage_id=result.storage_id,
            )
        return True

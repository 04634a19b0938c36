"""Message processing pipeline.

One call to ``MessageProcessor.process_message`` runs a single inbound message
through: security scan, config and credential lookup, context assembly,
provider call, response parsing, thinking persistence, action dispatch,
memory persistence, audit logging and workflow attachment.

The caller always receives a ``ProcessMessageResult``. Security blocks,
missing configuration and provider failures end the run early with a fixed
user-facing message; failures on optional paths (embeddings, semantic
search, thinking, individual actions, workflow steps) are logged and the run
continues.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from app.config import AppConfig
from app.enums import (
    AuditStatus,
    CallerType,
    Channel,
    MemoryType,
    MessageRole,
    ScanSeverity,
    ThoughtType,
    WorkflowStepStatus,
)
from app.models.actions import UpdateTaskStatusAction
from app.models.agent import (
    AgentConfig,
    ChatMessage,
    ProcessMessageResult,
    ProviderCredentials,
    SecurityScanResult,
)
from app.observability.trace_context import trace_scope
from app.observability.trace_logging import trace_event
from app.security.scanner import scan_input
from app.services.agent.action_dispatcher import (
    ActionDispatcher,
    DelegationChain,
    DispatchContext,
)
from app.services.agent.outcomes import build_config_diagnostic_response
from app.services.agent.ports import AgentStore, NullSpeechSynthesizer, SpeechSynthesizer
from app.services.agent.response_parser import ParsedResponse, parse_agent_response
from app.services.agent.workflow import WorkflowRecorder
from app.services.providers.base import ChatResult
from app.services.providers.registry import ProviderRegistry

logger = logging.getLogger(__name__)

SECURITY_REFUSAL = (
    "I'm unable to process that request as it appears to contain content that "
    "violates my security guidelines. If you believe this is an error, please "
    "rephrase your request."
)
CONFIG_NOT_FOUND = "Agent configuration not found. Please set up your agent."
MISSING_API_KEY = "No API key configured for {provider}. Please add your API key in Settings."
PROVIDER_FAILURE = "I encountered an error processing your request. Please try again later."
NO_REPLY_TEXT = "Task actions processed."

SNIPPET_CHARS = 200
THOUGHT_MAX_CHARS = 8000
THOUGHT_CONTEXT_CHARS = 500


class MessageProcessor:
    """Runs inbound messages through the agent pipeline."""

    def __init__(
        self,
        config: AppConfig,
        store: AgentStore,
        providers: ProviderRegistry,
        speech: SpeechSynthesizer | None = None,
    ):
        """Initialize the message processor.

        Args:
            config: Application configuration.
            store: Persistence collaborator for config, memory, board and audit.
            providers: Provider registry (chat adapters plus embeddings client).
            speech: Optional TTS backend; defaults to a no-op synthesizer.
        """
        self.config = config
        self.store = store
        self.providers = providers
        self.speech = speech or NullSpeechSynthesizer()
        self.dispatcher = ActionDispatcher(
            store,
            self.speech,
            delegate=self._delegate,
            max_delegation_depth=config.max_delegation_depth,
            trace=self._trace,
        )

    # ------------------------------------------------------------------
    # Public entry point
    # ------------------------------------------------------------------

    async def process_message(
        self,
        user_id: str,
        message: str,
        channel: Channel | str,
        agent_id: str | None = None,
        caller_id: str | None = None,
        *,
        delegation_chain: DelegationChain | None = None,
    ) -> ProcessMessageResult:
        channel = str(channel)
        chain = delegation_chain or DelegationChain.start(agent_id)

        with trace_scope(actor_id=user_id):
            self._trace(
                "agent.message.start",
                channel=channel,
                agent_id=agent_id,
                caller_id=caller_id,
                delegation_depth=chain.depth,
                **self._io_fields(user_message=message),
            )
            try:
                result = await self._run(
                    user_id=user_id,
                    message=message,
                    channel=channel,
                    agent_id=agent_id,
                    caller_id=caller_id,
                    chain=chain,
                )
            except Exception as e:
                logger.exception("Message processing failed for user %s: %s", user_id, e)
                self._trace("agent.message.error", error=str(e))
                result = ProcessMessageResult(response=PROVIDER_FAILURE)
            self._trace(
                "agent.message.end",
                tokens_used=result.tokens_used,
                blocked=result.blocked,
                security_flags=result.security_flags,
                **self._io_fields(response=result.response),
            )
            return result

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    async def _run(
        self,
        *,
        user_id: str,
        message: str,
        channel: str,
        agent_id: str | None,
        caller_id: str | None,
        chain: DelegationChain,
    ) -> ProcessMessageResult:
        workflow = WorkflowRecorder()

        # 1. Security scan
        started = workflow.start()
        scan = await asyncio.to_thread(scan_input, message)
        if scan.severity == ScanSeverity.BLOCK:
            await self._log_blocked(user_id, channel, message, scan)
            workflow.record(
                "Security scan",
                started,
                WorkflowStepStatus.FAILED,
                "Blocked: " + ", ".join(scan.flag_types),
            )
            return ProcessMessageResult(
                response=SECURITY_REFUSAL,
                tokens_used=0,
                blocked=True,
                security_flags=scan.flag_types,
            )
        workflow.record("Security scan", started, WorkflowStepStatus.COMPLETED)
        warn_flags = scan.flag_types if scan.severity == ScanSeverity.WARN else []

        # 2. Config + credentials
        started = workflow.start()
        config = await self.store.get_agent_config(user_id, agent_id)
        if config is None:
            workflow.record("Config load", started, WorkflowStepStatus.FAILED, "Agent config not found")
            return ProcessMessageResult(response=CONFIG_NOT_FOUND)

        credentials = await self.store.get_provider_credentials(user_id, config.provider)
        if credentials is None:
            workflow.record(
                "Config load",
                started,
                WorkflowStepStatus.FAILED,
                f"No API key for {config.provider}",
            )
            return ProcessMessageResult(response=MISSING_API_KEY.format(provider=config.provider))
        workflow.record(
            "Config load",
            started,
            WorkflowStepStatus.COMPLETED,
            f"{config.provider}/{config.model}",
        )

        # 3. Context
        started = workflow.start()
        query_embedding = await self._embed(user_id, scan.sanitized_input, purpose="query")
        recent = await self._recent_context(user_id, agent_id)
        semantic = await self._semantic_context(user_id, agent_id, query_embedding)
        workflow.record(
            "Context build",
            started,
            WorkflowStepStatus.COMPLETED,
            f"{len(recent)} messages, {len(semantic)} memories",
        )

        messages = [
            ChatMessage(role=MessageRole.SYSTEM, content=config.system_prompt),
            *recent,
            *semantic,
            ChatMessage(role=MessageRole.USER, content=scan.sanitized_input),
        ]

        # 4. Provider call
        started = workflow.start()
        try:
            result = await self.providers.call(config.provider, credentials, config.model, messages)
        except Exception as e:
            error_message = str(e) or e.__class__.__name__
            logger.error(
                "LLM call failed for user %s (%s/%s): %s",
                user_id,
                config.provider,
                config.model,
                error_message,
            )
            self._trace(
                "agent.message.provider_error",
                provider=config.provider,
                model=config.model,
                error=error_message,
            )
            workflow.record("LLM call", started, WorkflowStepStatus.FAILED, error_message[:200])
            return ProcessMessageResult(
                response=self._provider_failure_response(config, credentials, error_message),
                tokens_used=0,
                security_flags=warn_flags,
            )
        workflow.record(
            "LLM call", started, WorkflowStepStatus.COMPLETED, f"{result.tokens_used} tokens"
        )

        # 5. Parse
        started = workflow.start()
        parsed = parse_agent_response(result.content)
        assistant_response = self._assistant_response(parsed)
        workflow.record(
            "Parse response",
            started,
            WorkflowStepStatus.COMPLETED,
            f"{len(parsed.actions)} actions",
        )

        # 6. Thinking + actions
        started = workflow.start()
        if parsed.thinking_content and agent_id:
            await self._save_thought(user_id, agent_id, parsed.thinking_content, message)

        report = await self.dispatcher.dispatch(
            parsed.actions,
            DispatchContext(
                user_id=user_id,
                agent_id=agent_id,
                channel=channel,
                caller_id=caller_id,
                assistant_response=assistant_response,
                chain=chain,
            ),
        )
        detail = f"{len(parsed.actions)} dispatched"
        if report.failed:
            detail += f", {len(report.failed)} failed"
        workflow.record("Execute actions", started, WorkflowStepStatus.COMPLETED, detail)

        # 7. Memory
        started = workflow.start()
        await self._save_memories(
            user_id=user_id,
            agent_id=agent_id,
            channel=channel,
            caller_id=caller_id,
            message=message,
            query_embedding=query_embedding,
            result=result,
            assistant_response=assistant_response,
        )
        workflow.record("Save memory", started, WorkflowStepStatus.COMPLETED)

        # 8. Audit
        try:
            await self.store.log_agent_action(
                user_id=user_id,
                action="message_processed",
                resource=channel,
                caller_type=CallerType.AGENT,
                caller_identity=caller_id or "anonymous",
                token_count=result.tokens_used,
                status=AuditStatus.SUCCESS,
            )
        except Exception as e:
            logger.warning("Failed to write audit log entry: %s", e)

        # 9. Workflow trail on every touched task
        steps = workflow.steps
        for task_id in report.touched_task_ids:
            try:
                await self.store.set_workflow_steps(task_id, steps)
            except Exception as e:
                logger.warning("Failed to save workflow steps for task %s: %s", task_id, e)

        return ProcessMessageResult(
            response=assistant_response,
            tokens_used=result.tokens_used,
            blocked=False,
            security_flags=warn_flags,
        )

    # ------------------------------------------------------------------
    # Stage helpers
    # ------------------------------------------------------------------

    async def _log_blocked(
        self,
        user_id: str,
        channel: str,
        message: str,
        scan: SecurityScanResult,
    ) -> None:
        for flag in scan.flags:
            try:
                await self.store.log_security_flag(
                    user_id=user_id,
                    source=channel,
                    flag_type=flag.type,
                    severity=flag.severity,
                    pattern=flag.pattern,
                    input_snippet=message[:SNIPPET_CHARS],
                    action="blocked",
                )
            except Exception as e:
                logger.warning("Failed to log security flag (%s): %s", flag.type, e)
        logger.warning("Blocked message from user %s on %s: %s", user_id, channel, scan.flag_types)
        self._trace("agent.message.blocked", channel=channel, flags=scan.flag_types)

    async def _embed(self, user_id: str, text: str, *, purpose: str) -> list[float] | None:
        """Best-effort embedding; None when unavailable or failing."""
        client = self.providers.embeddings
        if client is None:
            return None
        try:
            creds = await self.store.get_embedding_credentials(user_id)
            if creds is None:
                return None
            return await client.embed(creds.api_key, creds.model, text, creds.base_url)
        except Exception as e:
            logger.warning("Embedding generation failed for %s vector: %s", purpose, e)
            return None

    async def _recent_context(self, user_id: str, agent_id: str | None) -> list[ChatMessage]:
        try:
            return await self.store.load_recent_context(
                user_id, agent_id, self.config.recent_context_messages
            )
        except Exception as e:
            logger.warning("Recent context load failed: %s", e)
            return []

    async def _semantic_context(
        self,
        user_id: str,
        agent_id: str | None,
        embedding: list[float] | None,
    ) -> list[ChatMessage]:
        if not embedding or self.config.semantic_memory_limit <= 0:
            return []
        try:
            ids = await self.store.vector_search_memory(
                user_id, embedding, self.config.semantic_memory_limit
            )
            if not ids:
                return []
            return await self.store.get_memories_by_ids(user_id, agent_id, ids)
        except Exception as e:
            logger.warning("Semantic memory retrieval failed: %s", e)
            return []

    def _provider_failure_response(
        self,
        config: AgentConfig,
        credentials: ProviderCredentials,
        error_message: str,
    ) -> str:
        diagnostic = build_config_diagnostic_response(
            provider=config.provider,
            model=config.model,
            base_url=credentials.base_url,
            error_message=error_message,
        )
        return diagnostic or PROVIDER_FAILURE

    @staticmethod
    def _assistant_response(parsed: ParsedResponse) -> str:
        """Visible reply, else the first non-empty update_task_status summary."""
        if parsed.clean_response.strip():
            return parsed.clean_response.strip()
        for action in parsed.actions:
            if isinstance(action, UpdateTaskStatusAction) and (action.outcome_summary or "").strip():
                return action.outcome_summary.strip()
        return NO_REPLY_TEXT

    async def _save_thought(self, user_id: str, agent_id: str, thinking: str, message: str) -> None:
        try:
            await self.store.save_thought(
                user_id=user_id,
                agent_id=agent_id,
                type=ThoughtType.REASONING,
                content=thinking[:THOUGHT_MAX_CHARS],
                context=message[:THOUGHT_CONTEXT_CHARS],
            )
        except Exception as e:
            logger.warning("Failed to save thinking block: %s", e)

    async def _save_memories(
        self,
        *,
        user_id: str,
        agent_id: str | None,
        channel: str,
        caller_id: str | None,
        message: str,
        query_embedding: list[float] | None,
        result: ChatResult,
        assistant_response: str,
    ) -> None:
        try:
            await self.store.save_memory(
                user_id=user_id,
                agent_id=agent_id,
                type=MemoryType.CONVERSATION,
                content=message,
                source=channel,
                embedding=query_embedding,
                metadata={"role": "user", "callerId": caller_id},
            )
        except Exception as e:
            logger.warning("Failed to save user memory: %s", e)

        assistant_embedding = await self._embed(user_id, result.content, purpose="assistant")
        try:
            await self.store.save_memory(
                user_id=user_id,
                agent_id=agent_id,
                type=MemoryType.CONVERSATION,
                content=assistant_response,
                source=channel,
                embedding=assistant_embedding,
                metadata={"role": "assistant"},
            )
        except Exception as e:
            logger.warning("Failed to save assistant memory: %s", e)

    async def _delegate(
        self,
        user_id: str,
        target_agent_id: str,
        task_description: str,
        caller_id: str | None,
        chain: DelegationChain,
    ) -> ProcessMessageResult:
        """Run a delegated task as a nested a2a message for the target agent."""
        return await self.process_message(
            user_id,
            task_description,
            Channel.A2A,
            agent_id=target_agent_id,
            caller_id=caller_id,
            delegation_chain=chain,
        )

    # ------------------------------------------------------------------
    # Tracing
    # ------------------------------------------------------------------

    def _trace(self, event: str, **fields: Any) -> None:
        if not self.config.trace_enabled:
            return
        trace_event(event, max_chars=self.config.trace_max_chars, **fields)

    def _io_fields(self, **fields: str) -> dict[str, Any]:
        """Message text only when model I/O tracing is on; lengths otherwise."""
        if self.config.trace_model_io_enabled:
            return dict(fields)
        return {f"{key}_len": len(value or "") for key, value in fields.items()}

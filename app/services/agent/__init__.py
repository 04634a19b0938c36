"""Agent message-processing components.

Pure helpers (prompt builder, response parser, outcomes) have no I/O and are
unit-tested in isolation; the dispatcher and processor reach storage only
through the ``AgentStore`` protocol.
"""

from app.services.agent.action_dispatcher import (
    ActionDispatcher,
    DelegationChain,
    DispatchContext,
    DispatchReport,
)
from app.services.agent.message_processing import MessageProcessor
from app.services.agent.ports import AgentStore, NullSpeechSynthesizer, SpeechSynthesizer
from app.services.agent.response_parser import ParsedResponse, parse_agent_response

__all__ = [
    "ActionDispatcher",
    "AgentStore",
    "DelegationChain",
    "DispatchContext",
    "DispatchReport",
    "MessageProcessor",
    "NullSpeechSynthesizer",
    "ParsedResponse",
    "SpeechSynthesizer",
    "parse_agent_response",
]

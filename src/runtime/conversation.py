# path: src/runtime/conversation.py

"""
Conversation entry point.

Transports (the chat REPL, an HTTP handler, IPC glue) call converse()
instead of Agent.submit() directly. It turns the typed exceptions of a
failed turn into a structured TurnOutcome so the caller can choose
between "ask the user to shorten input" and "report an outage" without
try/except boilerplate.

Only AgentError is converted. Anything else is a bug and propagates.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from agent.agent import Agent
from agent.errors import AgentError, ContextLimitExceeded
from llm_stack.errors import ErrorKind
from monitoring.bus import EventBus
from monitoring.events import EventType
from monitoring.logger import log_event

_HINTS = {
    ErrorKind.CONTEXT_LIMIT_EXCEEDED: "Conversation is too long for the model; shorten the input or reset.",
    ErrorKind.BACKEND_UNAVAILABLE: "The model backend is unavailable; check the model file and device.",
    ErrorKind.TOKENIZATION_FAILED: "The input could not be tokenized; try removing unusual characters.",
    ErrorKind.GENERATION_FAILED: "The model produced no usable reply; the turn can be retried.",
}


@dataclass
class TurnOutcome:
    """Reply text on success, the typed error otherwise. Never both."""

    reply: Optional[str] = None
    error: Optional[AgentError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def kind(self) -> Optional[ErrorKind]:
        return self.error.kind if self.error is not None else None

    @property
    def hint(self) -> str:
        """Short operator/user-facing explanation of a failure."""
        if self.error is None:
            return ""
        if isinstance(self.error, ContextLimitExceeded):
            return (
                f"{_HINTS[self.error.kind]} "
                f"(~{self.error.estimated_tokens} + {self.error.margin} reserved "
                f"> {self.error.limit} tokens)"
            )
        return _HINTS[self.error.kind]


def converse(
    agent: Agent,
    user_text: str,
    bus: Optional[EventBus] = None,
) -> TurnOutcome:
    """
    Run one turn on `agent` and return a TurnOutcome.

    When `bus` is given a LOG event with subtype "TURN_OUTCOME" is
    published for failed turns, carrying the error kind and whether a
    retry can help.
    """
    try:
        reply = agent.submit(user_text)
    except AgentError as exc:
        if bus is not None:
            log_event(
                bus=bus,
                module="runtime.conversation",
                event_type=EventType.LOG,
                message="Turn did not complete",
                payload={
                    "subtype": "TURN_OUTCOME",
                    "agent": agent.name,
                    "kind": exc.kind.value,
                    "retryable": exc.retryable,
                    "exception_repr": repr(exc),
                },
                correlation_id=agent.last_turn.turn_id if agent.last_turn else None,
            )
        return TurnOutcome(error=exc)
    return TurnOutcome(reply=reply)

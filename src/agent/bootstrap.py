# src/agent/bootstrap.py
"""
Config-driven construction of a ready-to-chat Agent.

    env = load_environment()
    with build_agent_runtime(env) as rt:
        reply = rt.agent.submit("Hello!")

build_agent_runtime() wires:
  - LlamaCppBackend from the primary model of the active model profile
  - Agent with the identity / margin of the active agent profile
  - EventBus, a stdlib logging bridge, and optional JSONL / per-call logs

The runtime owns the backend; close() releases the model and log files.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from env.schema import EnvProfile
from llm_stack.backend import LLMBackend
from monitoring.bus import EventBus
from monitoring.llm_logging import LLMLogWriter
from monitoring.logger import JsonFileLogger, StdlibEventLogger

from .agent import Agent
from .logging_config import configure_logging
from .messages import Message

logger = logging.getLogger(__name__)


@dataclass
class AgentRuntime:
    agent: Agent
    backend: LLMBackend
    bus: EventBus
    event_logger: Optional[JsonFileLogger] = None

    def close(self) -> None:
        if self.event_logger is not None:
            self.event_logger.close()
        closer = getattr(self.backend, "close", None)
        if callable(closer):
            closer()

    def __enter__(self) -> "AgentRuntime":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def build_agent_runtime(
    env: EnvProfile,
    *,
    backend: Optional[LLMBackend] = None,
    bus: Optional[EventBus] = None,
    history: Optional[Iterable[Message]] = None,
) -> AgentRuntime:
    """
    Build an AgentRuntime from a resolved EnvProfile.

    Pass `backend` to skip loading the configured model (tests, stubs) and
    `history` to continue a saved conversation.
    """
    configure_logging(env.logging.level)

    if backend is None:
        # Imported lazily so configs can be validated without llama_cpp.
        from llm_stack.backend_llamacpp import LlamaCppBackend

        backend = LlamaCppBackend(config=env.model_profile.primary)

    bus = bus or EventBus()
    StdlibEventLogger(bus)

    event_logger = None
    if env.logging.events_log:
        event_logger = JsonFileLogger(Path(env.logging.events_log), bus)

    call_log = None
    if env.logging.llm_log_dir:
        call_log = LLMLogWriter(Path(env.logging.llm_log_dir))

    profile = env.agent_profile
    agent = Agent(
        profile.identity,
        backend,
        name=profile.agent_name,
        context_margin=profile.context_margin,
        history=history,
        bus=bus,
        call_log=call_log,
    )
    logger.info(
        "Agent %s ready (profile=%s, n_ctx=%d, margin=%d)",
        profile.agent_name,
        env.name,
        backend.max_context_length(),
        profile.context_margin,
    )
    return AgentRuntime(agent=agent, backend=backend, bus=bus, event_logger=event_logger)

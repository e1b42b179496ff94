# src/agent/agent.py
"""
Conversational agent over a single LLMBackend.

Each submit() call runs one turn:

    serialize identity + history + pending user message
    -> estimate tokens, reject if estimate + reserve > backend window
    -> backend.clear_cache(); backend.generate(prompt)
    -> append User, Assistant to history

The reserve is context_margin, raised to the backend's own reply budget
when it declares one (llm_stack.backend.ReplyBudget).

The user message only becomes part of history once the backend has
replied. Any failure leaves history exactly as it was before the call.

One submit() runs at a time per Agent: a lock is held for the whole
turn, so concurrent callers queue up instead of interleaving history
and backend cache writes. Monitoring events raised during a turn are
published after the lock is released, so bus subscribers may call
back into the agent.
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from typing import Any, Callable, Iterable, List, Optional, Tuple

from llm_stack import chat_template
from llm_stack.backend import LLMBackend, ReplyBudget, TokenCounter
from llm_stack.errors import BackendError, ContextWindowOverflow, GenerationFailed
from llm_stack.tokens import estimate_prompt_tokens
from monitoring.bus import EventBus
from monitoring.events import EventType
from monitoring.llm_logging import LLMCallLog, LLMLogWriter
from monitoring.logger import log_event

from .errors import BackendFailure, ContextLimitExceeded
from .messages import History, Message
from .state import TurnPhase, TurnState

logger = logging.getLogger(__name__)

# Tokens kept free for the reply.
DEFAULT_CONTEXT_MARGIN = 256

_MODULE = "agent"


class Agent:
    """
    Owns an identity (system instruction), the conversation history and
    exclusive use of a backend.

    The identity is not stored in history; build_prompt() renders it as
    the leading system block of every prompt.
    """

    def __init__(
        self,
        identity: str,
        backend: LLMBackend,
        *,
        name: str = "agent",
        context_margin: int = DEFAULT_CONTEXT_MARGIN,
        token_counter: Optional[Callable[[str], int]] = None,
        history: Optional[Iterable[Message]] = None,
        bus: Optional[EventBus] = None,
        call_log: Optional[LLMLogWriter] = None,
    ) -> None:
        if not identity or not identity.strip():
            raise ValueError("Agent identity must be a non-empty string")
        if context_margin < 0:
            raise ValueError("context_margin must be >= 0")

        self._identity = identity
        self._backend = backend
        self._name = name
        self._context_margin = context_margin
        self._history = History(history)
        self._bus = bus
        self._call_log = call_log

        # Prefer exact tokenizer counts when the backend offers them.
        if token_counter is None and isinstance(backend, TokenCounter):
            token_counter = backend.count_tokens
        self._token_counter = token_counter

        reply_budget = backend.reply_budget() if isinstance(backend, ReplyBudget) else 0
        self._reserved_tokens = max(context_margin, reply_budget)

        self._lock = threading.Lock()
        self._phase = TurnPhase.IDLE
        self._last_turn: Optional[TurnState] = None
        # Filled under the lock, published once it is released.
        self._outbox: List[Tuple[EventType, str, dict, Optional[str]]] = []

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def identity(self) -> str:
        return self._identity

    @property
    def name(self) -> str:
        return self._name

    @property
    def backend(self) -> LLMBackend:
        return self._backend

    @property
    def context_margin(self) -> int:
        return self._context_margin

    @property
    def reserved_tokens(self) -> int:
        """Tokens kept free for the reply: context_margin or the backend's budget."""
        return self._reserved_tokens

    @property
    def history(self) -> Tuple[Message, ...]:
        return self._history.snapshot()

    @property
    def turn_count(self) -> int:
        return self._history.turn_count

    @property
    def phase(self) -> TurnPhase:
        return self._phase

    @property
    def last_turn(self) -> Optional[TurnState]:
        return self._last_turn

    # ------------------------------------------------------------------
    # Prompt construction
    # ------------------------------------------------------------------

    def build_prompt(self, user_text: Optional[str] = None) -> str:
        """Render identity + history (+ pending user text). No mutation."""
        return chat_template.build_prompt(
            self._identity,
            self._history.as_pairs(),
            pending_user=user_text,
        )

    def estimate_tokens(self, user_text: Optional[str] = None) -> int:
        return estimate_prompt_tokens(self.build_prompt(user_text), self._token_counter)

    # ------------------------------------------------------------------
    # History management (caller policy)
    # ------------------------------------------------------------------

    def reset(self) -> None:
        """Drop the whole conversation. Identity is kept."""
        with self._lock:
            removed = len(self._history)
            self._history.clear()
            self._emit(EventType.HISTORY_RESET, "History cleared", {"removed": removed})
            pending = self._drain_events()
        logger.info("Agent %s history reset (%d messages dropped)", self._name, removed)
        self._publish(pending)

    def truncate(self, keep_turns: int) -> int:
        """Keep only the last `keep_turns` turns. Returns messages removed."""
        with self._lock:
            removed = self._history.truncate_turns(keep_turns)
            if removed:
                self._emit(
                    EventType.HISTORY_RESET,
                    "History truncated",
                    {"removed": removed, "keep_turns": keep_turns},
                )
            pending = self._drain_events()
        if removed:
            logger.info(
                "Agent %s history truncated to %d turns (%d messages dropped)",
                self._name,
                keep_turns,
                removed,
            )
        self._publish(pending)
        return removed

    # ------------------------------------------------------------------
    # Turn
    # ------------------------------------------------------------------

    def submit(self, user_text: str) -> str:
        """
        Run one conversational turn and return the assistant reply.

        Raises:
            ContextLimitExceeded: candidate prompt would not fit.
            BackendFailure: backend error, `kind` says which.

        History is only touched on success.
        """
        pending: List[Tuple[EventType, str, dict, Optional[str]]] = []
        try:
            with self._lock:
                turn = TurnState(turn_id=uuid.uuid4().hex[:12])
                self._last_turn = turn
                try:
                    return self._run_turn(turn, user_text)
                finally:
                    self._phase = TurnPhase.IDLE
                    pending = self._drain_events()
        finally:
            self._publish(pending)

    def _set_phase(self, turn: TurnState, phase: TurnPhase) -> None:
        self._phase = phase
        turn.phase = phase

    def _run_turn(self, turn: TurnState, user_text: str) -> str:
        self._set_phase(turn, TurnPhase.SERIALIZING)
        self._emit(
            EventType.TURN_STARTED,
            "Turn started",
            {"history_len": len(self._history), "user_chars": len(user_text)},
            turn.turn_id,
        )
        prompt = self.build_prompt(user_text)

        try:
            estimated = estimate_prompt_tokens(prompt, self._token_counter)
        except BackendError as exc:
            self._fail(turn, exc, prompt)
            raise BackendFailure(exc) from exc

        limit = self._backend.max_context_length()
        turn.estimated_tokens = estimated
        turn.limit = limit
        self._set_phase(turn, TurnPhase.BUDGET_CHECKED)
        self._emit(
            EventType.BUDGET_CHECKED,
            "Budget checked",
            {"estimated_tokens": estimated, "margin": self._reserved_tokens, "limit": limit},
            turn.turn_id,
        )

        if estimated + self._reserved_tokens > limit:
            raise self._context_exceeded(turn, estimated, limit)

        self._set_phase(turn, TurnPhase.GENERATING)
        self._backend.clear_cache()
        self._emit(EventType.CACHE_CLEARED, "Backend cache cleared", None, turn.turn_id)

        started = time.perf_counter()
        try:
            reply = self._backend.generate(prompt)
            if not isinstance(reply, str) or not reply:
                raise GenerationFailed("Backend returned an empty reply")
        except ContextWindowOverflow as exc:
            # The backend counted more tokens than the estimate did.
            turn.estimated_tokens = exc.prompt_tokens
            raise self._context_exceeded(turn, exc.prompt_tokens, exc.limit) from exc
        except BackendError as exc:
            self._fail(turn, exc, prompt, started)
            raise BackendFailure(exc) from exc
        latency_ms = (time.perf_counter() - started) * 1000.0

        self._set_phase(turn, TurnPhase.COMMITTING)
        self._history.append(Message.user(user_text))
        self._history.append(Message.assistant(reply))

        logger.debug(
            "Agent %s committed turn %s (%d est. tokens, %.1f ms)",
            self._name,
            turn.turn_id,
            estimated,
            latency_ms,
        )
        self._emit(
            EventType.TURN_COMMITTED,
            "Turn committed",
            {"history_len": len(self._history), "reply_chars": len(reply), "latency_ms": latency_ms},
            turn.turn_id,
        )
        self._record_call(turn, prompt, reply, {"latency_ms": latency_ms, "error": None})
        return reply

    def _context_exceeded(self, turn: TurnState, estimated: int, limit: int) -> ContextLimitExceeded:
        err = ContextLimitExceeded(estimated, limit, self._reserved_tokens)
        turn.error_kind = err.kind
        logger.warning("Agent %s: %s", self._name, err)
        self._emit(
            EventType.CONTEXT_LIMIT_EXCEEDED,
            str(err),
            {"estimated_tokens": estimated, "margin": self._reserved_tokens, "limit": limit},
            turn.turn_id,
        )
        return err

    def _fail(
        self,
        turn: TurnState,
        exc: BackendError,
        prompt: str,
        started: Optional[float] = None,
    ) -> None:
        turn.error_kind = exc.kind
        logger.error("Agent %s turn %s failed: %s", self._name, turn.turn_id, exc)
        self._emit(
            EventType.TURN_FAILED,
            f"Backend failure: {exc}",
            {"kind": exc.kind.value, "phase": turn.phase.name},
            turn.turn_id,
        )
        meta = {"error": exc.kind.value}
        if started is not None:
            meta["latency_ms"] = (time.perf_counter() - started) * 1000.0
        self._record_call(turn, prompt, "", meta)

    # ------------------------------------------------------------------
    # Instrumentation
    # ------------------------------------------------------------------

    def _emit(
        self,
        event_type: EventType,
        message: str,
        payload: Optional[dict] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        if self._bus is None:
            return
        data: dict[str, Any] = {"agent": self._name}
        data.update(payload or {})
        self._outbox.append((event_type, message, data, correlation_id))

    def _drain_events(self) -> List[Tuple[EventType, str, dict, Optional[str]]]:
        pending, self._outbox = self._outbox, []
        return pending

    def _publish(self, pending: List[Tuple[EventType, str, dict, Optional[str]]]) -> None:
        # Called without the lock held.
        for event_type, message, data, correlation_id in pending:
            log_event(
                bus=self._bus,
                module=_MODULE,
                event_type=event_type,
                message=message,
                payload=data,
                correlation_id=correlation_id,
            )

    def _record_call(self, turn: TurnState, prompt: str, response: str, meta: dict) -> None:
        if self._call_log is None:
            return
        self._call_log.write(
            LLMCallLog(
                ts=time.time(),
                agent=self._name,
                turn_id=turn.turn_id,
                prompt=prompt,
                response=response,
                tokens_prompt=turn.estimated_tokens,
                context_limit=turn.limit,
                meta=meta,
            )
        )


__all__ = ["Agent", "DEFAULT_CONTEXT_MARGIN"]

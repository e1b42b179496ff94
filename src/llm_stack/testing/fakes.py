# src/llm_stack/testing/fakes.py
"""
Test helpers for llm_stack.

Provides deterministic LLMBackend implementations:
- FakeBackend: fixed reply, records every call in order.
- EchoBackend: replies with the length of the prompt it received.
- FailingBackend: raises a configured BackendError from generate().

No model files, no llama.cpp.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Optional

from ..errors import BackendError


@dataclass
class BackendCall:
    """Record of one call made against a fake backend."""

    method: str
    prompt: Optional[str] = None


class FakeBackend:
    """
    In-memory LLMBackend used for unit tests.

    Features:
    - Returns `reply` (or `reply_fn(prompt)` when given) from generate().
    - Records clear_cache()/generate() calls in `calls` for order checks.
    - Tracks whether a "cache" is live so tests can see it was dropped.
    """

    def __init__(
        self,
        reply: str = "ok",
        *,
        context_length: int = 4096,
        reply_fn: Optional[Callable[[str], str]] = None,
    ) -> None:
        self.reply = reply
        self.reply_fn = reply_fn
        self.context_length = context_length
        self.calls: List[BackendCall] = []
        self.cached_prompt: Optional[str] = None

    # ------------------------------------------------------------------
    # LLMBackend protocol
    # ------------------------------------------------------------------

    def max_context_length(self) -> int:
        return self.context_length

    def clear_cache(self) -> None:
        self.calls.append(BackendCall("clear_cache"))
        self.cached_prompt = None

    def generate(self, prompt: str) -> str:
        self.calls.append(BackendCall("generate", prompt))
        self.cached_prompt = prompt
        if self.reply_fn is not None:
            return self.reply_fn(prompt)
        return self.reply

    # ------------------------------------------------------------------
    # Inspection helpers
    # ------------------------------------------------------------------

    @property
    def prompts(self) -> List[str]:
        return [c.prompt for c in self.calls if c.method == "generate" and c.prompt is not None]

    @property
    def method_sequence(self) -> List[str]:
        return [c.method for c in self.calls]


class EchoBackend(FakeBackend):
    """Replies with the character length of the received prompt."""

    def __init__(self, *, context_length: int = 4096) -> None:
        super().__init__(
            context_length=context_length,
            reply_fn=lambda prompt: str(len(prompt)),
        )


class FailingBackend(FakeBackend):
    """generate() always raises the given BackendError."""

    def __init__(self, error: BackendError, *, context_length: int = 4096) -> None:
        super().__init__(context_length=context_length)
        self.error = error

    def generate(self, prompt: str) -> str:
        self.calls.append(BackendCall("generate", prompt))
        raise self.error

# src/llm_stack/backend.py
"""
Backend interface for local LLM engines.

The agent only ever talks to a backend through this contract. Concrete
implementations (llama.cpp today, deterministic fakes in tests) live in
their own modules so importing the contract never pulls in a model
runtime.

Contract notes:

- Calls are stateless from the caller's point of view. The agent always
  resupplies the full conversation, and always calls clear_cache() right
  before generate(). Re-processing the prompt every turn is a known
  throughput cost; it removes any chance of the KV cache drifting away
  from the history it was built from.
- Any incremental cache reuse must key the cached state on the exact
  history prefix it reflects and drop it on any truncation/edit.
- generate() blocks. There is no streaming or cancellation here.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class LLMBackend(Protocol):
    """Blocking text generation with explicit KV-cache lifecycle control."""

    def max_context_length(self) -> int:
        """Fixed token budget of the loaded model. Pure."""
        ...

    def clear_cache(self) -> None:
        """
        Drop any retained attention state.

        Must be idempotent and must not raise, including on a backend that
        has never generated anything.
        """
        ...

    def generate(self, prompt: str) -> str:
        """
        Produce the assistant reply for a fully rendered prompt.

        Returns non-empty text, stopped at the model's end-of-turn marker.
        Raises llm_stack.errors.BackendError subclasses on failure.
        """
        ...


@runtime_checkable
class TokenCounter(Protocol):
    """Optional backend capability: exact tokenizer counts."""

    def count_tokens(self, text: str) -> int:
        ...


@runtime_checkable
class ReplyBudget(Protocol):
    """
    Optional backend capability: tokens the backend keeps free for the
    reply. A backend that rejects prompts leaving less room than this
    should expose it so callers can reserve at least as much.
    """

    def reply_budget(self) -> int:
        ...

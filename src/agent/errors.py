# src/agent/errors.py
"""
Errors raised by Agent.submit().

Every error carries a `kind` (llm_stack.errors.ErrorKind) so callers can
branch on what happened without isinstance ladders:

- ContextLimitExceeded: recoverable; truncate history or shorten input.
- BackendFailure: wraps the backend's own error; `kind` is taken from it
  (BACKEND_UNAVAILABLE, TOKENIZATION_FAILED or GENERATION_FAILED).

No error ever leaves the history mutated.
"""

from __future__ import annotations

from llm_stack.errors import BackendError, ErrorKind


class AgentError(Exception):
    """Base class for failed turns."""

    kind: ErrorKind = ErrorKind.GENERATION_FAILED

    @property
    def retryable(self) -> bool:
        """True when retrying (possibly after changing input) can succeed."""
        return self.kind is not ErrorKind.BACKEND_UNAVAILABLE


class ContextLimitExceeded(AgentError):
    """The candidate prompt plus the reply margin does not fit the window."""

    kind = ErrorKind.CONTEXT_LIMIT_EXCEEDED

    def __init__(self, estimated_tokens: int, limit: int, margin: int = 0) -> None:
        self.estimated_tokens = estimated_tokens
        self.limit = limit
        self.margin = margin
        super().__init__(
            f"Context length exceeded: estimated {estimated_tokens} tokens "
            f"+ {margin} reserved > limit {limit}"
        )


class BackendFailure(AgentError):
    """A backend error surfaced through the agent."""

    def __init__(self, backend_error: BackendError) -> None:
        self.backend_error = backend_error
        super().__init__(f"{backend_error.kind.value}: {backend_error}")

    @property
    def kind(self) -> ErrorKind:  # type: ignore[override]
        return self.backend_error.kind

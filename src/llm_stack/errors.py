# src/llm_stack/errors.py
"""
Error taxonomy for LLM backends.

Every failure a backend can report maps onto one ErrorKind so that the
agent layer (and whatever REPL/service sits above it) can tell
"shorten your input" apart from "the model is down".
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    """Distinguishable failure kinds surfaced to callers."""

    CONTEXT_LIMIT_EXCEEDED = "context_limit_exceeded"
    BACKEND_UNAVAILABLE = "backend_unavailable"
    TOKENIZATION_FAILED = "tokenization_failed"
    GENERATION_FAILED = "generation_failed"


class BackendError(Exception):
    """Base class for all backend failures."""

    kind: ErrorKind = ErrorKind.GENERATION_FAILED


class BackendUnavailable(BackendError):
    """Model file missing, device init failure, or backend already closed."""

    kind = ErrorKind.BACKEND_UNAVAILABLE


class TokenizationFailed(BackendError):
    """The prompt could not be encoded by the model tokenizer."""

    kind = ErrorKind.TOKENIZATION_FAILED


class GenerationFailed(BackendError):
    """Inference ran (or tried to) but produced no valid output."""

    kind = ErrorKind.GENERATION_FAILED


class ContextWindowOverflow(GenerationFailed):
    """
    Raised by a backend when the prompt plus reply budget does not fit
    the loaded context window, even though the caller checked first.
    """

    def __init__(
        self,
        prompt_tokens: int,
        limit: int,
        message: Optional[str] = None,
    ) -> None:
        self.prompt_tokens = prompt_tokens
        self.limit = limit
        super().__init__(
            message
            or f"prompt of {prompt_tokens} tokens does not fit context window of {limit}"
        )

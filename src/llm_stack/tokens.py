# src/llm_stack/tokens.py
"""
Token estimation for context-budget checks.

An exact tokenizer count is always preferred (backends that can tokenize
expose count_tokens()). Without one we fall back to a heuristic that is
tuned to err high:

    estimate = max(regex_segments, ceil(utf8_bytes / 3))

BPE vocabularies for current chat models average roughly 4 bytes per
token on English prose, so the byte term alone over-estimates typical
text by about a quarter. The regex term covers punctuation- and
digit-heavy input where the byte ratio drops. Inputs that still beat
both terms (long runs of rare multibyte symbols) are absorbed by the
agent's reserved generation margin.
"""

from __future__ import annotations

import math
import re
from typing import Callable, Optional

BYTES_PER_TOKEN = 3

# Approximates BPE boundaries: contractions, words, digit runs (split in
# groups of three the way most tokenizers do), and single symbols.
_TOKEN_PATTERN = re.compile(
    r"""'s|'t|'re|'ve|'m|'ll|'d"""
    r"""|[^\W\d_]+"""
    r"""|\d{1,3}"""
    r"""|\S"""
)


def estimate_tokens(text: str) -> int:
    """Conservative token estimate for *text*. Always returns at least 1."""
    if not text:
        return 1
    by_bytes = math.ceil(len(text.encode("utf-8")) / BYTES_PER_TOKEN)
    by_segments = len(_TOKEN_PATTERN.findall(text))
    return max(1, by_bytes, by_segments)


def estimate_prompt_tokens(
    prompt: str,
    counter: Optional[Callable[[str], int]] = None,
) -> int:
    """Exact count when a counter is supplied, heuristic otherwise."""
    if counter is not None:
        return max(1, int(counter(prompt)))
    return estimate_tokens(prompt)

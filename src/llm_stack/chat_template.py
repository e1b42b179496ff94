# src/llm_stack/chat_template.py
"""
ChatML prompt rendering.

Layout of a rendered prompt:

    <|im_start|>system
    {identity}<|im_end|>
    <|im_start|>user
    {first question}<|im_end|>
    <|im_start|>assistant
    {first reply}<|im_end|>
    ...
    <|im_start|>user
    {pending question}<|im_end|>
    <|im_start|>assistant

Message content is opaque text. Every "<|" inside content is rewritten to
"<\\|" so a user cannot close the current turn or open a new one by typing
the markers themselves; the tokenizer sees ordinary characters instead of
special tokens.
"""

from __future__ import annotations

import re
from typing import Iterable, List, Optional, Tuple

IM_START = "<|im_start|>"
IM_END = "<|im_end|>"
END_OF_TEXT = "<|endoftext|>"

# Generation stops on either marker.
STOP_MARKERS: Tuple[str, ...] = (IM_END, END_OF_TEXT)

SYSTEM = "system"
USER = "user"
ASSISTANT = "assistant"

_MARKER_OPEN = "<|"
_MARKER_OPEN_ESCAPED = "<\\|"

_TURN_PATTERN = re.compile(
    re.escape(IM_START) + r"(\w+)\n(.*?)" + re.escape(IM_END) + r"\n",
    re.DOTALL,
)


def escape_content(text: str) -> str:
    """Make content inert: no special marker survives verbatim."""
    return text.replace(_MARKER_OPEN, _MARKER_OPEN_ESCAPED)


def render_message(role: str, content: str) -> str:
    return f"{IM_START}{role}\n{escape_content(content)}{IM_END}\n"


def assistant_header() -> str:
    return f"{IM_START}{ASSISTANT}\n"


def build_prompt(
    identity: str,
    history: Iterable[Tuple[str, str]],
    pending_user: Optional[str] = None,
) -> str:
    """
    Render a full prompt from (role, content) pairs.

    The identity block always comes first and appears exactly once.
    System-role entries found in history are informational only and are
    not rendered; identity takes precedence over them.
    """
    parts: List[str] = [render_message(SYSTEM, identity)]
    for role, content in history:
        if role == SYSTEM:
            continue
        parts.append(render_message(role, content))
    if pending_user is not None:
        parts.append(render_message(USER, pending_user))
    parts.append(assistant_header())
    return "".join(parts)


def split_turns(prompt: str) -> List[Tuple[str, str]]:
    """
    Recover the (role, content) boundaries of a rendered prompt.

    Content is returned in its escaped form. The trailing open assistant
    header is not a closed turn and is not included.
    """
    return [(m.group(1), m.group(2)) for m in _TURN_PATTERN.finditer(prompt)]

# src/agent/messages.py

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple


class Role(Enum):
    """Closed set of conversational roles. Values are the ChatML tags."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class Message:
    """A single conversational turn half. Immutable once created."""

    role: Role
    content: str

    @classmethod
    def system(cls, content: str) -> "Message":
        return cls(Role.SYSTEM, content)

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(Role.USER, content)

    @classmethod
    def assistant(cls, content: str) -> "Message":
        return cls(Role.ASSISTANT, content)

    def to_dict(self) -> Dict[str, Any]:
        return {"role": self.role.value, "content": self.content}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Message":
        try:
            role = Role(data["role"])
        except ValueError as exc:
            raise ValueError(f"Unknown message role: {data['role']!r}") from exc
        content = data["content"]
        if not isinstance(content, str):
            raise ValueError(f"Message content must be a string, got {type(content)}")
        return cls(role, content)


class History:
    """
    Ordered conversation history owned by one Agent.

    Entries are only ever appended. Removal happens wholesale through
    clear() or truncate_turns(); single messages are never edited.
    """

    def __init__(self, messages: Optional[Iterable[Message]] = None) -> None:
        self._messages: List[Message] = list(messages or [])

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(self._messages)

    def __getitem__(self, index: int) -> Message:
        return self._messages[index]

    def append(self, message: Message) -> None:
        self._messages.append(message)

    def snapshot(self) -> Tuple[Message, ...]:
        """Immutable copy, safe to hand out."""
        return tuple(self._messages)

    def as_pairs(self) -> List[Tuple[str, str]]:
        """(role tag, content) pairs in chronological order."""
        return [(m.role.value, m.content) for m in self._messages]

    @property
    def turn_count(self) -> int:
        """Number of user messages, i.e. completed turns."""
        return sum(1 for m in self._messages if m.role is Role.USER)

    def clear(self) -> None:
        self._messages.clear()

    def truncate_turns(self, keep: int) -> int:
        """
        Keep only the last `keep` turns (user + assistant pairs).

        Stored system entries are kept in place ahead of the conversation.
        Returns the number of messages removed.
        """
        if keep < 0:
            raise ValueError("keep must be >= 0")

        system = [m for m in self._messages if m.role is Role.SYSTEM]
        convo = [m for m in self._messages if m.role is not Role.SYSTEM]

        # Cut at the start of the keep-th user message from the end.
        user_positions = [i for i, m in enumerate(convo) if m.role is Role.USER]
        if keep == 0:
            cut = len(convo)
        elif keep >= len(user_positions):
            cut = 0
        else:
            cut = user_positions[-keep]

        removed = cut
        self._messages = system + convo[cut:]
        return removed

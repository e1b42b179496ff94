# src/agent/transcript.py
"""
Save / restore conversation transcripts as JSON.

File shape:

    {
      "agent": "assistant",
      "identity": "You are terse.",
      "saved_at": 1700000000.0,
      "messages": [
        {"role": "user", "content": "2+2?"},
        {"role": "assistant", "content": "4"}
      ]
    }

Restoring feeds `messages` back in through Agent(history=...). Any
"system" entries are kept as informational history; the identity block
still comes from the Agent.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List

from .agent import Agent
from .messages import Message

logger = logging.getLogger(__name__)


@dataclass
class Transcript:
    agent: str
    identity: str
    messages: List[Message] = field(default_factory=list)
    saved_at: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "agent": self.agent,
            "identity": self.identity,
            "saved_at": self.saved_at,
            "messages": [m.to_dict() for m in self.messages],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Transcript":
        raw_messages = data.get("messages") or []
        if not isinstance(raw_messages, list):
            raise ValueError(f"'messages' must be a list, got {type(raw_messages)}")
        return cls(
            agent=data.get("agent", ""),
            identity=data.get("identity", ""),
            messages=[Message.from_dict(m) for m in raw_messages],
            saved_at=float(data.get("saved_at", 0.0)),
        )


def save_transcript(agent: Agent, path: Path) -> Path:
    """Write the agent's identity and history to `path`."""
    transcript = Transcript(
        agent=agent.name,
        identity=agent.identity,
        messages=list(agent.history),
        saved_at=time.time(),
    )
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(transcript.to_dict(), f, indent=2, ensure_ascii=False)
    logger.info("Saved %d messages to %s", len(transcript.messages), path)
    return path


def load_transcript(path: Path) -> Transcript:
    if not path.exists():
        raise FileNotFoundError(f"Missing transcript: {path}")
    with path.open("r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Expected mapping at top of {path}, got {type(data)}")
    return Transcript.from_dict(data)

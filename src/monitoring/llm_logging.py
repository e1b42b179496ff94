# path: src/monitoring/llm_logging.py

"""
Per-call LLM logging.

Structured monitoring events still use:
    monitoring.logger.log_event -> JsonFileLogger -> logs/monitoring/events.log

This module is specifically for:
    - One JSON file per backend generate() call made by an Agent
    - Written under logs/llm/
    - Read back by human tools (jq, etc.) or iter_llm_logs()

Schema (one JSON per file):

{
  "ts": <float unix timestamp>,
  "agent": "<agent name>",
  "turn_id": "<turn correlation id>",
  "prompt": "<rendered ChatML prompt>",
  "response": "<reply text, empty on failure>",
  "tokens_prompt": <int or null>,
  "context_limit": <int or null>,
  "meta": {
    "latency_ms": 123.4,
    "error": null | "<error kind>"
  }
}

Filenames are unique based on timestamp + a random suffix.
"""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Any, Dict, Iterator, Optional


JsonDict = Dict[str, Any]


# ------------------------------------------------------------------------------
# Data structure representing a single LLM call
# ------------------------------------------------------------------------------

@dataclass
class LLMCallLog:
    """Structured record for one backend interaction."""

    ts: float                        # unix timestamp when call completed
    agent: str                       # agent name
    turn_id: Optional[str]           # correlation id of the submit() call
    prompt: str                      # rendered prompt passed to the backend
    response: str                    # reply text ("" when the call failed)
    tokens_prompt: Optional[int]     # estimated/exact prompt tokens
    context_limit: Optional[int]     # backend context length at call time
    meta: JsonDict                   # latency, error kind, etc.

    def to_dict(self) -> JsonDict:
        return asdict(self)


# ------------------------------------------------------------------------------
# LLM log writer
# ------------------------------------------------------------------------------

class LLMLogWriter:
    """
    File-based LLM log writer.

    Responsibilities:
    - Ensure the log directory exists.
    - Write one JSON file per call using the LLMCallLog schema.

    Typical usage:

        writer = LLMLogWriter(Path("logs/llm"))
        agent = Agent(identity, backend, call_log=writer)
    """

    def __init__(self, log_dir: Path | None = None) -> None:
        if log_dir is None:
            log_dir = Path("logs") / "llm"
        self._log_dir = log_dir
        self._log_dir.mkdir(parents=True, exist_ok=True)

    @property
    def log_dir(self) -> Path:
        return self._log_dir

    def write(self, call_log: LLMCallLog) -> Path:
        """
        Persist a single LLM call log as a JSON file.

        Returns:
            The full path to the written JSON file.
        """
        ts_part = f"{call_log.ts:.6f}"
        agent_part = call_log.agent or "unknown"
        rand_part = uuid.uuid4().hex[:8]
        path = self._log_dir / f"{ts_part}_{agent_part}_{rand_part}.json"

        with path.open("w", encoding="utf-8") as f:
            json.dump(call_log.to_dict(), f, indent=2, sort_keys=True, ensure_ascii=False)

        return path


def iter_llm_logs(log_dir: Path) -> Iterator[LLMCallLog]:
    """Yield call logs from `log_dir` in filename (timestamp) order."""
    for path in sorted(log_dir.glob("*.json")):
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
        yield LLMCallLog(**data)

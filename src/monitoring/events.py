# path: src/monitoring/events.py
"""
Event schema for conversation monitoring.

This module defines:
- EventType enum
- MonitoringEvent (structured per-turn events)

All events are JSON-serializable via `.to_dict()` and are intended
for use with monitoring.bus.EventBus and monitoring.logger.JsonFileLogger.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from enum import Enum, auto
from typing import Any, Dict, Optional


# ============================================================
# Event Types
# ============================================================

class EventType(Enum):
    """Typed monitoring events emitted by the agent runtime."""

    # submit() accepted a user message and started serializing
    TURN_STARTED = auto()

    # Budget check result (estimate, margin, limit)
    BUDGET_CHECKED = auto()

    # Candidate prompt rejected by the budget check
    CONTEXT_LIMIT_EXCEEDED = auto()

    # Backend KV cache dropped right before generation
    CACHE_CLEARED = auto()

    # User + assistant messages appended to history
    TURN_COMMITTED = auto()

    # Backend failure, turn rolled back
    TURN_FAILED = auto()

    # History cleared or truncated by the caller
    HISTORY_RESET = auto()

    # Generic log messages
    LOG = auto()


# ============================================================
# Monitoring Event Structure
# ============================================================

@dataclass
class MonitoringEvent:
    """
    Runtime event emitted by the agent, the conversation entry point
    or the CLI.

    All fields must be JSON-safe.
    """

    ts: float                   # UNIX timestamp (seconds)
    module: str                 # Source module string ("agent", "runtime.conversation", ...)
    event_type: EventType       # Enum describing the event class
    message: str                # Short human-readable description
    payload: Dict[str, Any]     # Structured data (token counts, error kind, ...)
    correlation_id: Optional[str] = None  # Turn id grouping events of one submit()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-safe dict for loggers."""
        data = asdict(self)
        data["event_type"] = self.event_type.name  # store name, not enum
        return data

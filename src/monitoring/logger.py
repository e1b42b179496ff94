# JSON logger subscribing to EventBus
"""
Structured logging for conversation monitoring.

Provides:
- JsonFileLogger: subscribes to an EventBus and writes MonitoringEvents as JSONL.
- StdlibEventLogger: forwards MonitoringEvents to the `logging` module.
- log_event: convenience helper for publishing MonitoringEvents via the EventBus.

Usage patterns:

    from pathlib import Path
    from monitoring.bus import EventBus
    from monitoring.logger import JsonFileLogger, log_event
    from monitoring.events import EventType

    bus = EventBus()
    logger = JsonFileLogger(Path("logs/monitoring/events.log"), bus)

    log_event(
        bus=bus,
        module="agent",
        event_type=EventType.LOG,
        message="Something happened",
        payload={"foo": "bar"},
    )
"""

from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import Any, Dict, Optional

from .bus import EventBus
from .events import EventType, MonitoringEvent

_log = logging.getLogger(__name__)


# ============================================================
# JSONL File Logger
# ============================================================

class JsonFileLogger:
    """
    JSON-lines logger for MonitoringEvent instances.

    - Subscribes to an EventBus and writes one JSON object per line.
    - Ensures UTF-8 encoding.
    - Ensures parent directory exists.
    """

    def __init__(self, path: Path, bus: EventBus) -> None:
        """
        Initialize the logger and subscribe to the event bus.

        Parameters
        ----------
        path:
            Path to the log file (e.g. logs/monitoring/events.log).
        bus:
            EventBus instance to subscribe to.
        """
        self._path = path
        self._bus = bus
        path.parent.mkdir(parents=True, exist_ok=True)
        self._file = path.open("a", encoding="utf-8")
        bus.subscribe(self._on_event)

    @property
    def path(self) -> Path:
        return self._path

    def _on_event(self, event: MonitoringEvent) -> None:
        """Write one event as a JSON line."""
        line = json.dumps(event.to_dict(), ensure_ascii=False)
        try:
            self._file.write(line + "\n")
            self._file.flush()
        except (OSError, ValueError) as exc:
            # Disk full or closed handle: drop the line, keep the agent running.
            _log.warning("Dropped monitoring event for %s: %s", self._path, exc)

    def close(self) -> None:
        """Unsubscribe and close the file handle. Call at shutdown."""
        self._bus.unsubscribe(self._on_event)
        if not self._file.closed:
            self._file.close()


# ============================================================
# Stdlib logging bridge
# ============================================================

class StdlibEventLogger:
    """
    Minimal subscriber that logs events via the standard logging module.

    Failures and rejected budgets go out at WARNING, everything else at
    DEBUG, so a default INFO console stays quiet on healthy turns.
    """

    _WARN_TYPES = {EventType.TURN_FAILED, EventType.CONTEXT_LIMIT_EXCEEDED}

    def __init__(self, bus: EventBus, name: str = "monitoring.events") -> None:
        self._logger = logging.getLogger(name)
        bus.subscribe(self)

    def __call__(self, event: MonitoringEvent) -> None:
        level = logging.WARNING if event.event_type in self._WARN_TYPES else logging.DEBUG
        self._logger.log(
            level,
            "[%s] %s %s: %s",
            event.correlation_id or "-",
            event.module,
            event.event_type.name,
            event.message,
        )


# ============================================================
# Convenience helper for emitting events
# ============================================================

def log_event(
    bus: EventBus,
    module: str,
    event_type: EventType,
    message: str,
    payload: Optional[Dict[str, Any]] = None,
    correlation_id: Optional[str] = None,
) -> None:
    """
    Convenience function to create and publish a MonitoringEvent.

    Intended usage in other modules:

        log_event(
            bus=self._bus,
            module="agent",
            event_type=EventType.TURN_COMMITTED,
            message="Turn committed",
            payload={"history_len": len(self._history)},
            correlation_id=turn_id,
        )

    Parameters
    ----------
    bus:
        EventBus instance to publish the event to.
    module:
        String identifying the source module ("agent", "runtime.conversation").
    event_type:
        EventType enum member describing what kind of event this is.
    message:
        Short human-readable description.
    payload:
        Structured JSON-safe data attached to this event.
    correlation_id:
        Optional ID linking related events (per turn).
    """
    event = MonitoringEvent(
        ts=time.time(),
        module=module,
        event_type=event_type,
        message=message,
        payload=payload or {},
        correlation_id=correlation_id,
    )
    bus.publish(event)

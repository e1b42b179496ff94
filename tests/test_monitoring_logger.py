#tests/test_monitoring_logger.py
"""
Tests for monitoring.logger.JsonFileLogger, StdlibEventLogger and log_event.

Covers:
- JSON structure validity
- Correct field encoding
- Parent directory creation
- Stdlib bridge levels
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from monitoring.bus import EventBus
from monitoring.logger import JsonFileLogger, StdlibEventLogger, log_event
from monitoring.events import EventType


def test_json_file_logger_writes_valid_json(tmp_path: Path):
    bus = EventBus()
    log_path = tmp_path / "events.log"
    logger = JsonFileLogger(log_path, bus)

    log_event(
        bus=bus,
        module="agent",
        event_type=EventType.TURN_COMMITTED,
        message="Turn committed",
        payload={"history_len": 2, "agent": "x"},
        correlation_id="turn-123",
    )
    logger.close()

    lines = log_path.read_text(encoding="utf-8").strip().splitlines()
    assert len(lines) == 1

    data = json.loads(lines[0])
    assert data["module"] == "agent"
    assert data["event_type"] == "TURN_COMMITTED"
    assert data["message"] == "Turn committed"
    assert data["payload"] == {"history_len": 2, "agent": "x"}
    assert data["correlation_id"] == "turn-123"
    assert isinstance(data["ts"], (int, float))


def test_logger_parent_dir_created(tmp_path: Path):
    log_path = tmp_path / "nested" / "logs" / "events.log"
    bus = EventBus()
    logger = JsonFileLogger(log_path, bus)

    log_event(bus=bus, module="test", event_type=EventType.LOG, message="hello")
    logger.close()

    assert log_path.read_text(encoding="utf-8").strip()


def test_closed_logger_stops_receiving(tmp_path: Path):
    bus = EventBus()
    log_path = tmp_path / "events.log"
    logger = JsonFileLogger(log_path, bus)
    logger.close()

    log_event(bus=bus, module="test", event_type=EventType.LOG, message="late")

    assert log_path.read_text(encoding="utf-8") == ""


def test_stdlib_bridge_levels(caplog):
    bus = EventBus()
    StdlibEventLogger(bus)

    with caplog.at_level(logging.DEBUG, logger="monitoring.events"):
        log_event(bus=bus, module="agent", event_type=EventType.TURN_STARTED, message="start")
        log_event(
            bus=bus,
            module="agent",
            event_type=EventType.CONTEXT_LIMIT_EXCEEDED,
            message="too long",
            correlation_id="t1",
        )

    levels = [(r.levelno, r.getMessage()) for r in caplog.records if r.name == "monitoring.events"]
    assert levels[0][0] == logging.DEBUG
    assert levels[1][0] == logging.WARNING
    assert "[t1] agent CONTEXT_LIMIT_EXCEEDED: too long" == levels[1][1]

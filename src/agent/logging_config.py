# src/agent/logging_config.py
"""
Central logging configuration for the agent runtime.

Call configure_logging() from your main entrypoint once, for example:

    from agent.logging_config import configure_logging
    configure_logging()

After that, per-turn diagnostics from agent.agent and the llama.cpp
backend are visible on stdout.
"""

from __future__ import annotations

import logging
import sys
from typing import Union

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(level: Union[int, str] = logging.INFO) -> None:
    """
    Configure root logging if no handlers are attached yet.

    Args:
        level: logging level or level name (e.g. logging.DEBUG, "debug")
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            raise ValueError(f"Unknown log level: {level!r}")

    root = logging.getLogger()

    # Don't duplicate handlers if someone already configured logging.
    if root.handlers:
        return

    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT))
    root.addHandler(handler)
    root.setLevel(level)

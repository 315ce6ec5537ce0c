"""
@file events.py
@brief Structured event emission for the analysis pipeline

@details
The analysis core never prints or logs data diagnostics directly. It emits
named events with keyword fields through an injected sink, so callers decide
where diagnostics go:
- LoggingEventSink: forwards events to the "stbg.events" logger (default)
- RecordingEventSink: keeps events in memory (tests, API debugging)

@author STBG Project
@date 2026-10-18
@version 1.0
@license AGPL-3.0
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

logger = logging.getLogger("stbg.events")


class EventSink:
    """
    @brief Interface for structured pipeline events
    """

    def emit(self, event: str, **fields: Any) -> None:
        raise NotImplementedError


class LoggingEventSink(EventSink):
    """
    @brief Event sink writing each event as a single log line

    @details
    Events whose name ends in "failed" or "unspecified" are logged at
    WARNING, everything else at the configured level.
    """

    def __init__(self, level: int = logging.INFO, log: Optional[logging.Logger] = None):
        self.level = level
        self.log = log or logger

    def emit(self, event: str, **fields: Any) -> None:
        level = self.level
        if event.endswith("failed") or event.endswith("unspecified"):
            level = logging.WARNING
        details = " ".join(f"{key}={value!r}" for key, value in fields.items())
        self.log.log(level, f"{event} {details}".rstrip())


class RecordingEventSink(EventSink):
    """
    @brief Event sink collecting events in memory
    """

    def __init__(self):
        self.events: List[Tuple[str, Dict[str, Any]]] = []

    def emit(self, event: str, **fields: Any) -> None:
        self.events.append((event, dict(fields)))

    def named(self, event: str) -> List[Dict[str, Any]]:
        """Return the fields of every recorded event with the given name."""
        return [fields for name, fields in self.events if name == event]


def default_sink() -> EventSink:
    return LoggingEventSink()

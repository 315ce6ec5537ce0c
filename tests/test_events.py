"""
Event Sink Tests

Tests for the structured diagnostics emitted by the pipeline.

Author: STBG Project
License: AGPL-3.0
"""

import logging

from stbg.core.events import LoggingEventSink, RecordingEventSink, default_sink
from stbg.core.logging import setup_logging


def test_logging_sink_writes_one_line(caplog):
    sink = LoggingEventSink()

    with caplog.at_level(logging.INFO, logger="stbg.events"):
        sink.emit("criterion.completed", criterion="safety_freq", max_raw=12.5)

    [record] = caplog.records
    assert record.levelno == logging.INFO
    assert record.getMessage() == "criterion.completed criterion='safety_freq' max_raw=12.5"


def test_failures_logged_as_warnings(caplog):
    sink = LoggingEventSink(level=logging.DEBUG)

    with caplog.at_level(logging.DEBUG, logger="stbg.events"):
        sink.emit("spatial.buffer_failed", error="boom")
        sink.emit("criterion.unspecified", criterion="job_growth_score")
        sink.emit("spatial.engine_ready")

    assert [r.levelno for r in caplog.records] == [logging.WARNING, logging.WARNING, logging.DEBUG]
    assert caplog.records[2].getMessage() == "spatial.engine_ready"


def test_recording_sink():
    sink = RecordingEventSink()
    sink.emit("validation.cleaned", label="popemp", discarded=1)
    sink.emit("validation.cleaned", label="lehd", discarded=0)
    sink.emit("analysis.started", projects=3)

    assert [e["label"] for e in sink.named("validation.cleaned")] == ["popemp", "lehd"]
    assert sink.named("analysis.completed") == []


def test_default_sink_logs():
    assert isinstance(default_sink(), LoggingEventSink)


def test_setup_logging_returns_package_logger(monkeypatch):
    monkeypatch.setenv("LOG_OUTPUT", "stdout")
    assert setup_logging().name == "stbg"

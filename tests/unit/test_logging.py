"""
Tests for the structlog processor chain configured by setup_logging.
"""

import json
import logging

import structlog

from app.infrastructure.observability.logging import setup_logging


def _render(event_dict):
    logger = logging.getLogger("app.services.interview_service")
    for processor in structlog.get_config()["processors"]:
        event_dict = processor(logger, "info", event_dict)
    return json.loads(event_dict)


def test_session_id_is_logged_in_full():
    setup_logging("INFO")
    session_id = "3f6c2a9e-1b4d-4c8f-9a7e-5d2b1c0e8f41"

    line = _render({"event": "Turn processed", "session_id": session_id})

    assert line["session_id"] == session_id
    assert line["level"] == "info"
    assert line["logger"] == "app.services.interview_service"
    assert "timestamp" in line


def test_request_context_is_merged():
    setup_logging("INFO")
    structlog.contextvars.bind_contextvars(request_id="req-42")
    try:
        line = _render({"event": "Call report generated"})
    finally:
        structlog.contextvars.clear_contextvars()

    assert line["request_id"] == "req-42"

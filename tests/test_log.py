"""Tests for evalbench.log.configure_logging."""

from __future__ import annotations

import json

import pytest
import structlog

from evalbench.log import configure_logging


@pytest.fixture(autouse=True)
def _reset_structlog():
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()


def test_json_lines_on_stderr(capsys):
    configure_logging("json", "info")
    structlog.get_logger().info("batch.started", total=3)

    captured = capsys.readouterr()
    assert captured.out == ""
    event = json.loads(captured.err.strip())
    assert event["event"] == "batch.started"
    assert event["total"] == 3
    assert event["level"] == "info"
    assert "timestamp" in event


def test_level_filtering(capsys):
    configure_logging("json", "warning")
    log = structlog.get_logger()
    log.info("hidden")
    log.warning("shown")
    lines = capsys.readouterr().err.strip().splitlines()
    assert [json.loads(line)["event"] for line in lines] == ["shown"]


def test_context_vars_merged(capsys):
    configure_logging("json", "debug")
    structlog.contextvars.bind_contextvars(dataset_entry_id="e1")
    structlog.get_logger().debug("simulation.turn_completed")
    event = json.loads(capsys.readouterr().err.strip())
    assert event["dataset_entry_id"] == "e1"


def test_console_format(capsys):
    configure_logging("console", "info")
    structlog.get_logger().info("report.rendered")
    assert "report.rendered" in capsys.readouterr().err


@pytest.mark.parametrize("fmt,level", [("xml", "info"), ("json", "loud")])
def test_invalid_arguments(fmt, level):
    with pytest.raises(ValueError):
        configure_logging(fmt, level)

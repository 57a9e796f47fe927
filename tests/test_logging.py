"""
Tests for log formatting and setup.
"""
import json
import logging

import pytest

from herdcycle.config import settings
from herdcycle.logging import JSONFormatter, herd_context, setup_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def make_record(**extra):
    record = logging.LogRecord(
        "herdcycle.services.recording", logging.INFO, __file__, 10, "Recorded insemination for %s", ("C1",), None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_line_carries_herd_fields():
    line = json.loads(JSONFormatter().format(make_record(**herd_context(3, "C1", 7))))

    assert line["message"] == "Recorded insemination for C1"
    assert line["logger"] == "herdcycle.services.recording"
    assert line["farm_id"] == 3
    assert line["tag_number"] == "C1"
    assert line["cow_id"] == 7


def test_json_line_without_herd_fields():
    line = json.loads(JSONFormatter().format(make_record()))
    assert "farm_id" not in line
    assert "tag_number" not in line


def test_herd_context_drops_missing_values():
    assert herd_context(farm_id=1) == {"farm_id": 1}
    assert herd_context() == {}


def test_setup_logging_json(monkeypatch, restore_root_logger):
    monkeypatch.setattr(settings, "LOG_FORMAT", "json")
    monkeypatch.setattr(settings, "LOG_LEVEL", "DEBUG")

    root = setup_logging()
    assert len(root.handlers) == 1
    assert isinstance(root.handlers[0].formatter, JSONFormatter)
    assert logging.getLogger("herdcycle").level == logging.DEBUG
    assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING


def test_setup_logging_text(monkeypatch, restore_root_logger):
    monkeypatch.setattr(settings, "LOG_FORMAT", "text")
    monkeypatch.setattr(settings, "ENVIRONMENT", "development")

    root = setup_logging()
    assert not isinstance(root.handlers[0].formatter, JSONFormatter)

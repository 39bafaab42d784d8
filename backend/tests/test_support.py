"""Per-key locking and JSON log formatting."""
import json
import logging
import threading
from datetime import datetime, timezone

import pytest

from conftest import EDITOR
from curriculum_content.application.locks import KeyedLock
from curriculum_content.core.logging import JSONFormatter, RequestIdFilter, set_request_id
from curriculum_content.domain.common.errors import ConflictError, NotFoundError


def test_busy_key_times_out_with_conflict():
    locks = KeyedLock(timeout=0.05)
    holding = threading.Event()
    release = threading.Event()

    def hold():
        with locks.hold("content:1"):
            holding.set()
            release.wait(2)

    worker = threading.Thread(target=hold)
    worker.start()
    holding.wait(2)
    try:
        with pytest.raises(ConflictError):
            with locks.hold("content:1"):
                pass
        with locks.hold("content:2"):
            pass
    finally:
        release.set()
        worker.join()
    assert locks.active_keys() == 0


def test_lock_is_released_when_body_raises():
    locks = KeyedLock(timeout=0.05)
    with pytest.raises(RuntimeError):
        with locks.hold("unit:1"):
            raise RuntimeError("boom")
    with locks.hold("unit:1"):
        pass


def _record(msg="moved %s", args=("c1",)):
    return logging.LogRecord("curriculum_content.test", logging.INFO, __file__, 1, msg, args, None)


def test_json_formatter_carries_request_id():
    record = _record()
    set_request_id("req-42")
    try:
        RequestIdFilter().filter(record)
    finally:
        set_request_id(None)
    line = json.loads(JSONFormatter().format(record))
    assert line["message"] == "moved c1"
    assert line["level"] == "INFO"
    assert line["request_id"] == "req-42"

    other = _record()
    RequestIdFilter().filter(other)
    assert "request_id" not in json.loads(JSONFormatter().format(other))


def test_json_formatter_uses_event_time():
    record = _record()
    record.created = 0.0
    line = json.loads(JSONFormatter().format(record))
    assert datetime.fromisoformat(line["time"]) == datetime(1970, 1, 1, tzinfo=timezone.utc)


def test_rejected_mutation_is_logged(services, caplog):
    with caplog.at_level(logging.WARNING, logger="curriculum_content"):
        with pytest.raises(NotFoundError):
            services.content.update_content("missing", EDITOR, {"title": "x"})
    assert any("Rejected update on content missing" in r.getMessage() for r in caplog.records)

"""Unit tests for log correlation fields."""

import json
import logging
import uuid

import pytest

from furioza.logging_config import (
    UNBOUND,
    JsonFormatter,
    LogContextFilter,
    actor_id_var,
    bind_actor,
    request_id_var,
)


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("furioza.test", logging.INFO, __file__, 1, "Thread locked", None, None)
    record.__dict__.update(extra)
    return record


@pytest.fixture
def bound_context():
    actor_id = uuid.uuid4()
    request_token = request_id_var.set("req-42")
    actor_token = actor_id_var.set(None)
    bind_actor(actor_id)
    yield actor_id
    actor_id_var.reset(actor_token)
    request_id_var.reset(request_token)


def test_filter_uses_placeholders_outside_a_request():
    record = _record()
    LogContextFilter().filter(record)
    assert (record.request_id, record.actor_id) == (UNBOUND, UNBOUND)


def test_filter_copies_bound_context(bound_context):
    record = _record()
    LogContextFilter().filter(record)
    assert record.request_id == "req-42"
    assert record.actor_id == str(bound_context)


def test_explicit_extra_wins_over_context(bound_context):
    record = _record(actor_id="someone-else")
    LogContextFilter().filter(record)
    assert record.actor_id == "someone-else"


def test_json_formatter_includes_context_and_extra(bound_context):
    thread_id = uuid.uuid4()
    record = _record(thread_id=thread_id, deleted_posts=3)
    LogContextFilter().filter(record)

    entry = json.loads(JsonFormatter().format(record))
    assert entry["message"] == "Thread locked"
    assert entry["request_id"] == "req-42"
    assert entry["actor_id"] == str(bound_context)
    assert entry["thread_id"] == str(thread_id)
    assert entry["deleted_posts"] == 3


def test_json_formatter_omits_unbound_fields():
    record = _record()
    LogContextFilter().filter(record)
    entry = json.loads(JsonFormatter().format(record))
    assert "request_id" not in entry
    assert "actor_id" not in entry

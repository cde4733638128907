"""Tests for exception payload shaping."""

import json
import re

import pytest

from lazylog.payload import format_exception, format_trace


class Task:
    def run(self):
        raise ValueError("task #12 failed")


def _raise_os_error():
    raise FileNotFoundError(2, "No such file", "/missing")


class UnprintableError(Exception):
    def __str__(self):
        raise RuntimeError("broken __str__")


def _caught(func):
    try:
        func()
    except Exception as e:
        return e
    pytest.fail("expected an exception")


class TestFormatException:
    def test_fields(self):
        exc = _caught(Task().run)
        payload = format_exception(exc, "billing", {"request_id": "r-1"})

        assert re.fullmatch(r"[0-9a-f]{16}", payload["uuid"])
        assert payload["project"] == "billing"
        assert payload["level"] == "error"
        assert payload["message"] == "task #12 failed"
        assert payload["code"] == 0
        assert payload["file"].endswith("test_payload.py")
        assert payload["line"] > 0
        assert payload["context"] == {"request_id": "r-1"}
        assert payload["server"]["ip"] == "/"
        assert payload["server"]["hostname"]
        assert payload["server"]["python_version"]
        assert re.match(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}[+-]\d{2}:\d{2}$", payload["timestamp"])

    def test_defaults(self):
        payload = format_exception(_caught(Task().run))
        assert payload["project"] == "unknown-project"
        assert payload["context"] == {}

    def test_errno_becomes_code(self):
        payload = format_exception(_caught(_raise_os_error))
        assert payload["code"] == 2

    def test_exception_without_traceback(self):
        payload = format_exception(RuntimeError("never raised"))
        assert payload["trace"] == []
        assert payload["file"] == ""
        assert payload["line"] == 0

    def test_json_serializable(self):
        payload = format_exception(_caught(Task().run), context={"path": "/a"})
        assert json.loads(json.dumps(payload)) == payload

    def test_uuid_unique(self):
        exc = _caught(Task().run)
        assert format_exception(exc)["uuid"] != format_exception(exc)["uuid"]

    def test_unprintable_message_falls_back_to_type_name(self):
        payload = format_exception(UnprintableError())
        assert payload["message"] == "UnprintableError"


class TestFormatTrace:
    def test_innermost_first_with_class(self):
        trace = format_trace(_caught(Task().run))
        assert trace[0]["function"] == "run"
        assert trace[0]["class"] == "Task"
        assert trace[-1]["function"] == "_caught"
        assert trace[-1]["class"] is None
        assert set(trace[0]) == {"file", "line", "function", "class"}

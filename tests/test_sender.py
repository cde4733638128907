"""Tests for the synchronous sender."""

import json
import time

from lazylog.sender import SyncSender, post_json


class TestSyncSender:
    def test_posts_json(self, collector):
        outcome = SyncSender(timeout=5).post({"message": "sync", "path": "/x"}, collector.url)
        assert outcome.delivered
        assert outcome.status_code == 200
        content_type, body = collector.received[0]
        assert content_type == "application/json"
        assert json.loads(body) == {"message": "sync", "path": "/x"}

    def test_default_timeout(self):
        assert SyncSender().timeout == 5

    def test_unreachable_is_absorbed(self, closed_port_url):
        outcome = SyncSender(timeout=1).post({"a": 1}, closed_port_url)
        assert not outcome.delivered
        assert outcome.error

    def test_invalid_url_is_absorbed(self):
        outcome = SyncSender(timeout=1).post({"a": 1}, "not a url")
        assert not outcome.delivered

    def test_timeout_bounds_the_call(self, slow_collector):
        start = time.monotonic()
        outcome = SyncSender(timeout=0.3).post({"a": 1}, slow_collector.url)
        assert time.monotonic() - start < 1.5
        assert not outcome.delivered

    def test_serialize_failure(self, collector):
        outcome = SyncSender().post({"bad": object()}, collector.url)
        assert not outcome.delivered
        assert outcome.error.startswith("serialize")
        assert collector.received == []

    def test_too_deeply_nested_payload(self, collector):
        nested = []
        for _ in range(100000):
            nested = [nested]
        outcome = SyncSender().post(nested, collector.url)
        assert not outcome.delivered
        assert outcome.error.startswith("serialize")
        assert collector.received == []


class TestPostJson:
    def test_raw_bytes(self, collector):
        outcome = post_json(collector.url, b'{"raw":true}', timeout=5)
        assert outcome.delivered
        assert collector.received[0][1] == b'{"raw":true}'

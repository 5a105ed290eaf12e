"""Tests del job de sync: cliente pull/ack, writer y loop."""

from __future__ import annotations

import base64
import json

import httpx
import pytest

from status_engine.core.domain.errors import ConfigurationError
from status_engine.jobs.sync.client import MessagingClient, ReceivedMessage
from status_engine.jobs.sync.config import SyncConfig
from status_engine.jobs.sync.runner import SyncStats, poll_once, run_sync
from status_engine.jobs.sync.writer import SyncWriter

SUB_PATH = "/v1/projects/ARGO/subscriptions/sync_sub"


def _message(ack_id, data, **attributes):
    return {
        "ackId": ack_id,
        "message": {
            "messageId": ack_id.split(":")[-1],
            "attributes": attributes,
            "data": base64.b64encode(data).decode(),
            "publishTime": "2015-05-01T00:00:00Z",
        },
    }


class FakeMessaging:
    """Servicio de mensajería en memoria sobre httpx.MockTransport."""

    def __init__(self, batches):
        self.batches = list(batches)
        self.acked = []
        self.pull_bodies = []
        self.keys = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.keys.append(request.url.params.get("key"))
        body = json.loads(request.content)
        if request.url.path == f"{SUB_PATH}:pull":
            self.pull_bodies.append(body)
            messages = self.batches.pop(0) if self.batches else []
            return httpx.Response(200, json={"receivedMessages": messages})
        if request.url.path == f"{SUB_PATH}:acknowledge":
            self.acked.extend(body["ackIds"])
            return httpx.Response(200, json={})
        return httpx.Response(404, json={"error": {"message": "not found"}})


@pytest.fixture
def cfg(tmp_path) -> SyncConfig:
    return SyncConfig(
        endpoint="msg.example.org",
        port=443,
        token="s3cr3t",
        project="ARGO",
        subscription="sync_sub",
        base_path=str(tmp_path / "sync"),
        batch=2,
        interval_ms=0,
    )


def _client(cfg, service) -> MessagingClient:
    http = httpx.Client(transport=httpx.MockTransport(service.handler), base_url=cfg.base_url)
    return MessagingClient(cfg, http=http)


class TestSyncConfig:

    def test_base_url(self, cfg):
        assert cfg.base_url == "https://msg.example.org:443"

    def test_missing_token(self, cfg, tmp_path):
        bad = SyncConfig(
            endpoint=cfg.endpoint, port=cfg.port, token="", project=cfg.project,
            subscription=cfg.subscription, base_path=cfg.base_path,
        )
        with pytest.raises(ConfigurationError):
            bad.validate()


class TestMessagingClient:

    def test_pull_decodes_messages(self, cfg):
        service = FakeMessaging([[_message("p:1", b"\x00avro", report="Critical", type="metric_profile")]])
        with _client(cfg, service) as client:
            [msg] = client.pull(2)

        assert msg.ack_id == "p:1"
        assert msg.message_id == "1"
        assert msg.data == b"\x00avro"
        assert msg.attributes["type"] == "metric_profile"
        assert service.pull_bodies == [{"maxMessages": "2", "returnImmediately": "true"}]
        assert service.keys == ["s3cr3t"]

    def test_malformed_message_skipped_without_ack(self, cfg):
        bad = {"ackId": "p:2", "message": {"messageId": "2", "data": "%%% not base64"}}
        service = FakeMessaging([[bad, _message("p:3", b"ok")]])
        with _client(cfg, service) as client:
            messages = client.pull(2)
        assert [m.ack_id for m in messages] == ["p:3"]

    def test_http_error_raised(self, cfg):
        def handler(request):
            return httpx.Response(503)

        http = httpx.Client(transport=httpx.MockTransport(handler), base_url=cfg.base_url)
        with MessagingClient(cfg, http=http) as client:
            with pytest.raises(httpx.HTTPStatusError):
                client.pull(1)


class TestSyncWriter:

    def test_layout_from_attributes(self, tmp_path):
        writer = SyncWriter(str(tmp_path))
        msg = ReceivedMessage(
            ack_id="a", message_id="10", data=b"payload",
            attributes={"report": "Critical", "type": "group_endpoints", "partition_date": "2015-05-01"},
        )
        path = writer.write(msg)
        assert path == tmp_path / "Critical" / "group_endpoints" / "2015-05-01.avro"
        assert path.read_bytes() == b"payload"

    def test_unsorted_and_format(self, tmp_path):
        writer = SyncWriter(str(tmp_path))
        msg = ReceivedMessage(ack_id="a", message_id="../11", data=b"{}", attributes={"format": "json"})
        path = writer.target_for(msg)
        assert path.parent == tmp_path / "unsorted"
        assert path.suffix == ".json"

    def test_snapshot_replaces_previous(self, tmp_path):
        writer = SyncWriter(str(tmp_path))
        attrs = {"report": "Critical", "type": "downtimes", "partition_date": "2015-05-01"}
        writer.write(ReceivedMessage(ack_id="a", message_id="1", data=b"old", attributes=attrs))
        path = writer.write(ReceivedMessage(ack_id="b", message_id="2", data=b"new", attributes=attrs))
        assert path.read_bytes() == b"new"
        assert not list(path.parent.glob("*.tmp"))


class FlakyWriter(SyncWriter):
    def write(self, message):
        if message.message_id == "bad":
            raise OSError("disk full")
        return super().write(message)


class TestSyncLoop:

    def test_ack_only_after_write(self, cfg):
        service = FakeMessaging([[_message("p:ok", b"1"), _message("p:bad", b"2")]])
        stats = SyncStats()
        with _client(cfg, service) as client:
            stored = poll_once(client, FlakyWriter(cfg.base_path), cfg.batch, stats)

        assert stored == 1
        assert service.acked == ["p:ok"]
        assert stats.failed == 1
        assert stats.received == 2

    def test_run_sync_stops_after_max_polls(self, cfg):
        service = FakeMessaging([
            [_message("p:1", b"a", report="R", type="weights", partition_date="2015-05-01")],
            [],
            [_message("p:2", b"b")],
        ])
        sleeps = []
        stats = run_sync(cfg, client=_client(cfg, service), max_polls=3, sleep=sleeps.append)

        assert stats.polls == 3
        assert stats.stored == 2
        assert service.acked == ["p:1", "p:2"]
        assert sleeps == [0.0, 0.0, 0.0]

    def test_run_sync_survives_messaging_errors(self, cfg):
        calls = []

        def handler(request):
            calls.append(request.url.path)
            return httpx.Response(500)

        http = httpx.Client(transport=httpx.MockTransport(handler), base_url=cfg.base_url)
        stats = run_sync(cfg, client=MessagingClient(cfg, http=http), max_polls=2, sleep=lambda s: None)
        assert stats.polls == 2
        assert stats.stored == 0
        assert len(calls) == 2

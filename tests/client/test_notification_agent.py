"""Reconnection, deduplication and queueing behaviour of the client agent."""

from __future__ import annotations

import logging

import anyio
import pytest

from versatileshare.client import (
    ConnectionState,
    DedupeTracker,
    NotificationAgent,
    ReconnectPolicy,
    TransportClosed,
    dedupe_tag,
)
from versatileshare.client.transport import with_token
from versatileshare.config import ClientSettings
from versatileshare.domain.errors import ReconnectExhausted

CONNECTED = {"type": "connected", "data": {"principalId": 1, "groups": ["user:1"]}}


def _new_resource(resource_id: int = 3, message: str = "Notes uploaded") -> dict:
    return {
        "type": "new-resource",
        "data": {
            "message": message,
            "resource": {"id": resource_id, "title": "Notes", "subject": "Maths", "semester": 3, "type": "pdf", "uploadedBy": "Dr. Rao"},
            "timestamp": "2024-05-01T10:00:00+00:00",
        },
    }



def _comment(text: str, stamp: str, event_key: str | None = None) -> dict:
    data = {
        "message": f'Asha commented on your resource "Notes": {text}',
        "resourceId": 3,
        "interactionType": "comment",
        "student": {"id": 8, "name": "Asha"},
        "timestamp": stamp,
    }
    if event_key is not None:
        data["eventKey"] = event_key
    return {"type": "resource-interaction", "data": data}

class FakeConnection:
    def __init__(self, *frames: dict, dropped: bool = False) -> None:
        self._send, self._receive = anyio.create_memory_object_stream(100)
        for frame in frames:
            self._send.send_nowait(frame)
        if dropped:
            self._send.close()
        self.sent: list[dict] = []
        self.closed = False

    def push(self, frame: dict) -> None:
        self._send.send_nowait(frame)

    def drop(self) -> None:
        self._send.close()

    async def send(self, message: dict) -> None:
        if self.closed:
            raise TransportClosed("closed")
        self.sent.append(message)

    async def receive(self) -> dict:
        try:
            return await self._receive.receive()
        except (anyio.EndOfStream, anyio.ClosedResourceError) as exc:
            raise TransportClosed("connection lost") from exc

    async def close(self) -> None:
        self.closed = True
        self._send.close()


class FakeConnector:
    """Hands out the queued outcomes; refuses once they run out."""

    def __init__(self, *outcomes) -> None:
        self.outcomes = list(outcomes)
        self.attempts = 0
        self.tokens: list[str] = []

    async def connect(self, url: str, token: str):
        self.attempts += 1
        self.tokens.append(token)
        outcome = self.outcomes.pop(0) if self.outcomes else TransportClosed("refused")
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.fixture
def delays() -> list[float]:
    return []


@pytest.fixture
def make_agent(delays):
    def factory(*outcomes, **options):
        alerts = options.pop("alerts", None)
        failures = options.pop("failures", None)
        policy = ReconnectPolicy(**options)
        connector = FakeConnector(*outcomes)

        async def sleep(delay: float) -> None:
            delays.append(delay)

        agent = NotificationAgent(
            "ws://testserver/notifications/ws",
            connector=connector,
            policy=policy,
            sleep=sleep,
            on_alert=alerts.append if alerts is not None else None,
            on_failure=failures.append if failures is not None else None,
        )
        return agent, connector

    return factory


@pytest.mark.anyio
async def test_handshake_reaches_ready(make_agent) -> None:
    agent, connector = make_agent(FakeConnection(CONNECTED))

    assert agent.state is ConnectionState.DISCONNECTED
    await agent.connect("token-1")

    assert agent.state is ConnectionState.READY
    assert connector.tokens == ["token-1"]


@pytest.mark.anyio
async def test_stops_after_max_attempts_and_stays_failed(make_agent, delays) -> None:
    failures: list[ReconnectExhausted] = []
    refusals = [TransportClosed("refused") for _ in range(6)]
    agent, connector = make_agent(*refusals, max_attempts=5, failures=failures)

    with pytest.raises(ReconnectExhausted):
        await agent.connect("token")

    assert agent.state is ConnectionState.FAILED
    assert connector.attempts == 5
    assert delays == [3.0, 6.0, 12.0, 24.0]
    assert len(failures) == 1
    assert "reload" in failures[0].detail

    with pytest.raises(ReconnectExhausted):
        await agent.connect("token")
    assert connector.attempts == 5


@pytest.mark.anyio
async def test_backoff_is_capped(make_agent, delays) -> None:
    agent, _ = make_agent(max_attempts=4, initial_delay=10.0, max_delay=15.0)

    with pytest.raises(ReconnectExhausted):
        await agent.connect("token")

    assert delays == [10.0, 15.0, 15.0]


@pytest.mark.anyio
async def test_transient_failure_is_retried(make_agent, delays) -> None:
    agent, connector = make_agent(TransportClosed("refused"), FakeConnection(CONNECTED))

    await agent.connect("token")

    assert agent.state is ConnectionState.READY
    assert connector.attempts == 2
    assert delays == [3.0]


@pytest.mark.anyio
async def test_handshake_without_confirmation_times_out(make_agent) -> None:
    silent = FakeConnection()
    agent, _ = make_agent(silent, max_attempts=1, handshake_timeout=0.05)

    with pytest.raises(ReconnectExhausted):
        await agent.connect("token")

    assert silent.closed is True


@pytest.mark.anyio
async def test_duplicate_deliveries_render_once(make_agent) -> None:
    alerts = []
    connection = FakeConnection(CONNECTED, _new_resource(3), _new_resource(3), dropped=True)
    agent, _ = make_agent(connection, max_attempts=1, alerts=alerts)

    await agent.connect("token")
    await agent.run()

    assert [alert.tag for alert in alerts] == ["new-resource:3"]
    assert alerts[0].title == "New resource"
    assert alerts[0].related_resource_id == 3
    assert agent.received["new-resource"] == 2


@pytest.mark.anyio
async def test_events_before_ready_are_flushed_in_order(make_agent) -> None:
    alerts = []
    early = [_new_resource(1, "first"), _new_resource(2, "second"), _new_resource(1, "first")]
    agent, _ = make_agent(FakeConnection(*early, CONNECTED), alerts=alerts)

    await agent.connect("token")

    assert [alert.message for alert in alerts] == ["first", "second"]
    assert agent.pending == []


@pytest.mark.anyio
async def test_commands_outside_ready_are_dropped(make_agent, caplog) -> None:
    connection = FakeConnection(CONNECTED)
    agent, _ = make_agent(connection)

    with caplog.at_level(logging.WARNING):
        assert await agent.join_resource(5) is False
    assert "Dropping join-resource" in caplog.text

    await agent.connect("token")
    assert await agent.join_resource(5) is True
    assert await agent.send_resource_update(5, {"likes": 2}) is True
    assert connection.sent == [
        {"type": "join-resource", "resourceId": "5"},
        {"type": "resource-update", "resourceId": "5", "patch": {"likes": 2}},
    ]


@pytest.mark.anyio
async def test_reconnect_rejoins_rooms_and_keeps_dedupe_state(make_agent) -> None:
    alerts = []
    first = FakeConnection(CONNECTED, _new_resource(3))
    second = FakeConnection(CONNECTED, _new_resource(3), _new_resource(4), dropped=True)
    agent, connector = make_agent(first, second, max_attempts=1, alerts=alerts)
    await agent.connect("token")
    await agent.join_resource(9)
    first.drop()

    await agent.run()

    assert connector.attempts == 3
    assert agent.state is ConnectionState.FAILED
    assert second.sent == [{"type": "join-resource", "resourceId": "9"}]
    assert [alert.tag for alert in alerts] == ["new-resource:3", "new-resource:4"]


@pytest.mark.anyio
async def test_close_terminates_until_connect_is_called_again(make_agent) -> None:
    first = FakeConnection(CONNECTED)
    agent, _ = make_agent(first, FakeConnection(CONNECTED))
    await agent.connect("token")

    await agent.close()

    assert agent.state is ConnectionState.TERMINATED
    assert first.closed is True
    assert await agent.leave_resource(1) is False
    await agent.run()
    assert agent.state is ConnectionState.TERMINATED

    await agent.connect("token")
    assert agent.state is ConnectionState.READY


@pytest.mark.anyio
async def test_backlog_is_rendered_once_per_record(make_agent) -> None:
    alerts = []
    backlog = {
        "type": "init",
        "data": [{"id": 7, "eventType": "notification", "message": "Welcome", "resourceId": None}],
    }
    first = FakeConnection(CONNECTED, backlog)
    second = FakeConnection(CONNECTED, backlog, dropped=True)
    agent, _ = make_agent(first, second, max_attempts=1, alerts=alerts)
    await agent.connect("token")
    first.drop()

    await agent.run()

    assert [(alert.tag, alert.message) for alert in alerts] == [("notification:7", "Welcome")]


@pytest.mark.anyio
async def test_alert_seen_live_is_not_rendered_again_from_the_backlog(make_agent) -> None:
    alerts = []
    live = _new_resource(3)
    live["data"]["eventKey"] = "evt-3"
    backlog = {
        "type": "init",
        "data": [
            {"id": 11, "eventKey": "evt-3", "eventType": "new-resource", "message": "Notes uploaded", "resourceId": 3}
        ],
    }
    first = FakeConnection(CONNECTED, live)
    second = FakeConnection(CONNECTED, backlog, dropped=True)
    agent, _ = make_agent(first, second, max_attempts=1, alerts=alerts)
    await agent.connect("token")
    first.drop()

    await agent.run()

    assert [alert.tag for alert in alerts] == ["new-resource:evt-3"]
    assert agent.received["new-resource"] == 2


@pytest.mark.anyio
async def test_repeated_comments_from_one_student_are_all_rendered(make_agent) -> None:
    alerts = []
    connection = FakeConnection(
        CONNECTED,
        _comment("great", "2024-05-01T10:00:00+00:00", "evt-a"),
        _comment("thanks again", "2024-05-01T10:05:00+00:00", "evt-b"),
        _comment("no key", "2024-05-01T10:06:00+00:00"),
        _comment("no key either", "2024-05-01T10:07:00+00:00"),
        dropped=True,
    )
    agent, _ = make_agent(connection, max_attempts=1, alerts=alerts)

    await agent.connect("token")
    await agent.run()

    assert [alert.message.rsplit(": ", 1)[-1] for alert in alerts] == [
        "great",
        "thanks again",
        "no key",
        "no key either",
    ]


@pytest.mark.anyio
async def test_rendered_history_is_bounded(make_agent) -> None:
    frames = [_new_resource(resource_id) for resource_id in range(5)]
    connection = FakeConnection(CONNECTED, *frames, dropped=True)
    agent = NotificationAgent(
        "ws://testserver/notifications/ws",
        connector=FakeConnector(connection),
        policy=ReconnectPolicy(max_attempts=1),
        sleep=lambda delay: anyio.sleep(0),
        dedupe_capacity=2,
    )

    await agent.connect("token")
    await agent.run()

    assert [alert.related_resource_id for alert in agent.rendered] == [3, 4]
    assert agent.received["new-resource"] == 5

@pytest.mark.anyio
async def test_local_counter_reconciles_to_server_value(make_agent) -> None:
    connection = FakeConnection(CONNECTED)
    agent, _ = make_agent(connection, max_attempts=1)

    assert agent.increment_counter(5, "views") == 1
    assert agent.counters.get("5", "views") == 1

    await agent.connect("token")
    connection.push({"type": "resource-updated", "data": {"resourceId": "5", "patch": {"views": 42, "title": "x"}}})
    connection.drop()
    await agent.run()

    assert agent.counters.get(5, "views") == 42
    assert agent.counters.get(5, "title", default=-1) == -1


def test_dedupe_tags_identify_logical_events() -> None:
    like = {"resourceId": 3, "interactionType": "like", "student": {"id": 8}}
    assert dedupe_tag("resource-interaction", like) == "resource-interaction:3:like:8"
    assert dedupe_tag("new-resource", _new_resource(3)["data"]) == "new-resource:3"
    assert dedupe_tag("notification", {"timestamp": "t1"}) == "notification:t1"
    assert dedupe_tag("notification", {"resourceId": 3}) == "notification:3"
    assert dedupe_tag("new-resource", {**_new_resource(3)["data"], "eventKey": "evt-1"}) == "new-resource:evt-1"


def test_dedupe_tracker_forgets_the_oldest_tags() -> None:
    tracker = DedupeTracker(capacity=2)

    assert tracker.remember("a") is True
    assert tracker.remember("a") is False
    tracker.remember("b")
    tracker.remember("c")

    assert "a" not in tracker
    assert len(tracker) == 2


def test_policy_from_client_settings() -> None:
    settings = ClientSettings(reconnect_attempts=2, reconnect_delay=1.5, reconnect_max_delay=4.0, handshake_timeout=2.0)

    policy = ReconnectPolicy.from_settings(settings)

    assert policy.max_attempts == 2
    assert [policy.delay_for(n) for n in (1, 2, 3)] == [1.5, 3.0, 4.0]
    assert policy.handshake_timeout == 2.0


def test_token_is_appended_to_the_socket_url() -> None:
    assert with_token("ws://h/notifications/ws", "abc") == "ws://h/notifications/ws?token=abc"
    assert with_token("ws://h/ws?v=2", "a b") == "ws://h/ws?v=2&token=a+b"

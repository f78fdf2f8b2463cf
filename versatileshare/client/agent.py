"""Client side agent that keeps one notification connection per session.

The agent opens the socket, waits for the server's ``connected`` frame,
reconnects with exponential backoff after transient failures and renders each
logical alert exactly once even when the server delivers it over both the
per-user and the group channel.
"""

from __future__ import annotations

import logging
from collections import Counter, OrderedDict, deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, Hashable

import anyio

from versatileshare.client.counters import OptimisticCounters
from versatileshare.client.transport import Connection, Connector, TransportClosed, WebsocketsConnector
from versatileshare.config import ClientSettings
from versatileshare.domain.entities import (
    EVENT_NEW_RESOURCE,
    EVENT_NOTIFICATION,
    EVENT_RESOURCE_INTERACTION,
    EVENT_RESOURCE_UPDATED,
)
from versatileshare.domain.errors import ReconnectExhausted

logger = logging.getLogger(__name__)

ALERT_EVENTS = (EVENT_NEW_RESOURCE, EVENT_RESOURCE_INTERACTION, EVENT_NOTIFICATION)

_TITLES = {
    EVENT_NEW_RESOURCE: "New resource",
    EVENT_NOTIFICATION: "Notification",
}


class ConnectionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    READY = "ready"
    TERMINATED = "terminated"
    FAILED = "failed"


@dataclass(frozen=True)
class ReconnectPolicy:
    max_attempts: int = 5
    initial_delay: float = 3.0
    multiplier: float = 2.0
    max_delay: float = 30.0
    handshake_timeout: float = 10.0

    def delay_for(self, attempt: int) -> float:
        """Return the wait before the attempt that follows failed ``attempt``."""

        return min(self.initial_delay * self.multiplier ** (attempt - 1), self.max_delay)

    @classmethod
    def from_settings(cls, settings: ClientSettings) -> "ReconnectPolicy":
        return cls(
            max_attempts=settings.reconnect_attempts,
            initial_delay=settings.reconnect_delay,
            max_delay=settings.reconnect_max_delay,
            handshake_timeout=settings.handshake_timeout,
        )


@dataclass
class PendingDelivery:
    """An alert waiting to be rendered."""

    title: str
    message: str
    related_resource_id: Any
    tag: str
    event_type: str
    received_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class DedupeTracker:
    """Remember recently rendered tags, forgetting the oldest past ``capacity``."""

    def __init__(self, capacity: int = 500) -> None:
        self._capacity = capacity
        self._tags: OrderedDict[str, None] = OrderedDict()

    def __contains__(self, tag: str) -> bool:
        return tag in self._tags

    def __len__(self) -> int:
        return len(self._tags)

    def remember(self, tag: str) -> bool:
        """Record ``tag`` and return ``True`` when it had not been seen."""

        if tag in self._tags:
            self._tags.move_to_end(tag)
            return False
        self._tags[tag] = None
        while len(self._tags) > self._capacity:
            self._tags.popitem(last=False)
        return True

    def clear(self) -> None:
        self._tags.clear()


def dedupe_tag(event_type: str, payload: dict[str, Any]) -> str:
    """Build the tag that identifies one logical event across delivery paths."""

    event_key = payload.get("eventKey")
    if event_key:
        return f"{event_type}:{event_key}"

    resource_id = payload.get("resourceId")
    resource = payload.get("resource")
    if resource_id is None and isinstance(resource, dict):
        resource_id = resource.get("id")

    if resource_id is None:
        stamp = payload.get("timestamp") or datetime.now(timezone.utc).isoformat()
        return f"{event_type}:{stamp}"

    tag = f"{event_type}:{resource_id}"
    if event_type == EVENT_RESOURCE_INTERACTION:
        student = payload.get("student") or {}
        tag = f"{tag}:{payload.get('interactionType')}:{student.get('id')}"
        if payload.get("timestamp"):
            tag = f"{tag}:{payload['timestamp']}"
    return tag


def _record_tag(event_type: str, record: dict[str, Any]) -> str:
    if record.get("eventKey"):
        return f"{event_type}:{record['eventKey']}"
    return f"notification:{record['id']}"


def _alert_title(event_type: str, payload: dict[str, Any]) -> str:
    if event_type == EVENT_RESOURCE_INTERACTION:
        return f"New {payload.get('interactionType') or 'interaction'}"
    return _TITLES.get(event_type, "Notification")


def _related_resource(payload: dict[str, Any]) -> Any:
    if payload.get("resourceId") is not None:
        return payload["resourceId"]
    resource = payload.get("resource")
    return resource.get("id") if isinstance(resource, dict) else None


AlertHandler = Callable[[PendingDelivery], None]
FailureHandler = Callable[[ReconnectExhausted], None]
EventHandler = Callable[[str, Any], None]


class NotificationAgent:
    """Own a single logical notification connection for one client session."""

    def __init__(
        self,
        url: str,
        *,
        connector: Connector | None = None,
        policy: ReconnectPolicy | None = None,
        on_alert: AlertHandler | None = None,
        on_failure: FailureHandler | None = None,
        on_event: EventHandler | None = None,
        sleep: Callable[[float], Awaitable[Any]] = anyio.sleep,
        dedupe_capacity: int = 500,
    ) -> None:
        self.url = url
        self.policy = policy or ReconnectPolicy()
        self.counters = OptimisticCounters()
        self.received: Counter[str] = Counter()
        self.pending: list[PendingDelivery] = []
        self.rendered: deque[PendingDelivery] = deque(maxlen=dedupe_capacity)
        self.failure: ReconnectExhausted | None = None
        self._connector = connector or WebsocketsConnector()
        self._on_alert = on_alert
        self._on_failure = on_failure
        self._on_event = on_event
        self._sleep = sleep
        self._dedupe = DedupeTracker(dedupe_capacity)
        self._state = ConnectionState.DISCONNECTED
        self._connection: Connection | None = None
        self._token: str | None = None
        self._closing = False
        self._rooms: set[str] = set()

    @classmethod
    def from_settings(
        cls, settings: ClientSettings | None = None, **kwargs: Any
    ) -> "NotificationAgent":
        settings = settings or ClientSettings()
        return cls(
            settings.server_url,
            policy=ReconnectPolicy.from_settings(settings),
            dedupe_capacity=settings.dedupe_capacity,
            **kwargs,
        )

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state is ConnectionState.READY

    def _set_state(self, state: ConnectionState) -> None:
        if state is not self._state:
            logger.debug("Notification agent %s -> %s", self._state.value, state.value)
            self._state = state

    # Connection lifecycle

    async def connect(self, token: str) -> None:
        """Open the connection, retrying with backoff until ready or exhausted."""

        if self._state is ConnectionState.FAILED:
            raise self.failure or ReconnectExhausted()
        if self._state in (ConnectionState.READY, ConnectionState.CONNECTING):
            return

        self._token = token
        self._closing = False
        if not await self._establish() and self._state is ConnectionState.FAILED:
            raise self.failure or ReconnectExhausted()

    async def run(self) -> None:
        """Receive frames until closed, reconnecting after transient losses."""

        while self._state is ConnectionState.READY and self._connection is not None:
            try:
                frame = await self._connection.receive()
            except TransportClosed:
                await self._connection_lost()
                continue
            await self._handle_frame(frame)

    async def close(self) -> None:
        """Close on request; the agent stays terminated until ``connect`` is called again."""

        self._closing = True
        connection, self._connection = self._connection, None
        if self._state is not ConnectionState.FAILED:
            self._set_state(ConnectionState.TERMINATED)
        self.pending.clear()
        if connection is not None:
            await connection.close()

    async def _establish(self) -> bool:
        attempt = 0
        while True:
            if self._closing:
                self._set_state(ConnectionState.TERMINATED)
                return False

            attempt += 1
            self._set_state(ConnectionState.CONNECTING)
            connection = await self._handshake()
            if connection is not None:
                if self._closing:
                    await connection.close()
                    self._set_state(ConnectionState.TERMINATED)
                    return False
                self._connection = connection
                self._set_state(ConnectionState.READY)
                await self._on_ready()
                return True

            self._set_state(ConnectionState.DISCONNECTED)
            if attempt >= self.policy.max_attempts:
                self._fail(attempt)
                return False
            delay = self.policy.delay_for(attempt)
            logger.info(
                "Notification connection attempt %s failed; retrying in %.1fs", attempt, delay
            )
            await self._sleep(delay)

    async def _handshake(self) -> Connection | None:
        connection: Connection | None = None
        try:
            with anyio.fail_after(self.policy.handshake_timeout):
                connection = await self._connector.connect(self.url, self._token or "")
                while True:
                    frame = await connection.receive()
                    if frame.get("type") == "connected":
                        return connection
                    await self._handle_frame(frame)
        except (TransportClosed, TimeoutError) as exc:
            logger.debug("Notification handshake failed: %s", exc)
            if connection is not None:
                await self._close_quietly(connection)
            return None

    @staticmethod
    async def _close_quietly(connection: Connection) -> None:
        try:
            await connection.close()
        except (TransportClosed, OSError) as exc:
            logger.debug("Ignoring close failure: %s", exc)

    async def _connection_lost(self) -> None:
        self._connection = None
        if self._closing:
            self._set_state(ConnectionState.TERMINATED)
            return
        logger.info("Notification connection lost; reconnecting")
        self._set_state(ConnectionState.DISCONNECTED)
        await self._establish()

    def _fail(self, attempts: int) -> None:
        self.failure = ReconnectExhausted(
            f"Could not reach the notification service after {attempts} attempts; reload to retry"
        )
        self._set_state(ConnectionState.FAILED)
        logger.warning("%s", self.failure.detail)
        if self._on_failure is not None:
            self._on_failure(self.failure)

    async def _on_ready(self) -> None:
        pending, self.pending = self.pending, []
        for item in pending:
            self._render(item)
        for room in sorted(self._rooms):
            await self._send({"type": "join-resource", "resourceId": room})

    # Inbound frames

    async def _handle_frame(self, frame: dict[str, Any]) -> None:
        event_type = frame.get("type")
        data = frame.get("data")

        if event_type in ALERT_EVENTS and isinstance(data, dict):
            self._receive_alert(event_type, data)
        elif event_type == "init" and isinstance(data, list):
            for record in data:
                self._receive_backlog(record)
        elif event_type == EVENT_RESOURCE_UPDATED and isinstance(data, dict):
            patch = data.get("patch")
            if data.get("resourceId") is not None and isinstance(patch, dict):
                self.counters.apply_patch(data["resourceId"], patch)
        elif event_type in ("connected", "pong"):
            pass
        else:
            logger.debug("Ignoring unknown frame type %r", event_type)

        if self._on_event is not None and isinstance(event_type, str):
            self._on_event(event_type, data)

    def _receive_alert(self, event_type: str, payload: dict[str, Any]) -> None:
        self.received[event_type] += 1
        self._deliver(
            PendingDelivery(
                title=_alert_title(event_type, payload),
                message=str(payload.get("message", "")),
                related_resource_id=_related_resource(payload),
                tag=dedupe_tag(event_type, payload),
                event_type=event_type,
            )
        )

    def _receive_backlog(self, record: dict[str, Any]) -> None:
        if not isinstance(record, dict) or record.get("id") is None:
            return
        event_type = str(record.get("eventType") or EVENT_NOTIFICATION)
        self.received[event_type] += 1
        self._deliver(
            PendingDelivery(
                title=_TITLES.get(event_type, "Notification"),
                message=str(record.get("message", "")),
                related_resource_id=record.get("resourceId"),
                tag=_record_tag(event_type, record),
                event_type=event_type,
            )
        )

    def _deliver(self, item: PendingDelivery) -> None:
        if self._state is not ConnectionState.READY:
            self.pending.append(item)
            return
        self._render(item)

    def _render(self, item: PendingDelivery) -> bool:
        if not self._dedupe.remember(item.tag):
            logger.debug("Skipping already rendered alert %s", item.tag)
            return False
        self.rendered.append(item)
        if self._on_alert is not None:
            self._on_alert(item)
        return True

    # Outbound commands

    async def _send(self, message: dict[str, Any]) -> bool:
        if self._state is not ConnectionState.READY or self._connection is None:
            logger.warning(
                "Dropping %s command while %s", message.get("type"), self._state.value
            )
            return False
        try:
            await self._connection.send(message)
        except TransportClosed as exc:
            logger.warning("Could not send %s command: %s", message.get("type"), exc)
            return False
        return True

    async def join_resource(self, resource_id: Hashable) -> bool:
        sent = await self._send({"type": "join-resource", "resourceId": str(resource_id)})
        if sent:
            self._rooms.add(str(resource_id))
        return sent

    async def leave_resource(self, resource_id: Hashable) -> bool:
        sent = await self._send({"type": "leave-resource", "resourceId": str(resource_id)})
        if sent:
            self._rooms.discard(str(resource_id))
        return sent

    async def send_resource_update(self, resource_id: Hashable, patch: dict[str, Any]) -> bool:
        return await self._send(
            {"type": "resource-update", "resourceId": str(resource_id), "patch": patch}
        )

    async def acknowledge(self, ids: list[int]) -> bool:
        """Ask the server to mark the given notification records as read."""

        return await self._send({"type": "ack", "ids": list(ids)})

    # Optimistic counters

    def increment_counter(self, resource_id: Hashable, field: str, amount: int = 1) -> int:
        """Reflect a local action immediately, before any server confirmation."""

        return self.counters.increment(resource_id, field, amount)

    def reconcile_counter(self, resource_id: Hashable, field: str, value: int) -> int:
        return self.counters.reconcile(resource_id, field, value)


__all__ = [
    "ConnectionState",
    "DedupeTracker",
    "NotificationAgent",
    "PendingDelivery",
    "ReconnectPolicy",
    "dedupe_tag",
]

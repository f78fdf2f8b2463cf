"""Connection registry for notification websockets."""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, DefaultDict, Hashable, Iterable, Protocol, Set

from versatileshare.domain.entities import Identity
from versatileshare.domain.errors import AuthenticationRejected
from versatileshare.utils import now_in_app_timezone

logger = logging.getLogger(__name__)

POLICY_VIOLATION = 1008
INTERNAL_ERROR = 1011


class Transport(Protocol):
    """The part of a websocket the registry is allowed to use."""

    async def accept(self) -> None:
        ...

    async def send_json(self, data: Any) -> None:
        ...

    async def close(self, code: int = 1000, reason: str | None = None) -> None:
        ...


@dataclass(eq=False)
class ConnectionEntry:
    """A live transport owned by the registry."""

    principal_id: Hashable
    identity: Identity
    transport: Transport
    groups: frozenset[str]
    rooms: Set[str] = field(default_factory=set)
    connected_at: datetime = field(default_factory=now_in_app_timezone)

    @property
    def channels(self) -> frozenset[str]:
        return self.groups | frozenset(self.rooms)


def build_message(event: str, payload: Any) -> dict[str, Any]:
    return {"type": event, "data": payload}


class ConnectionRegistry:
    """Map live transports to their principal and group channels.

    Mutations never suspend, so they are atomic with respect to the event loop
    and need no locking. Pushes snapshot their targets before sending.
    """

    def __init__(self) -> None:
        self._entries: dict[Transport, ConnectionEntry] = {}
        self._by_principal: DefaultDict[Hashable, Set[Transport]] = defaultdict(set)
        self._by_channel: DefaultDict[str, Set[Transport]] = defaultdict(set)

    async def register(
        self, transport: Transport, identity: Identity | None
    ) -> ConnectionEntry:
        """Accept ``transport`` for ``identity`` and subscribe its groups.

        Raises :class:`AuthenticationRejected` after closing the transport when
        the identity is missing or malformed; no entry is created in that case.
        """

        if identity is None or not identity.is_valid():
            await transport.close(code=POLICY_VIOLATION, reason="Authentication failed")
            raise AuthenticationRejected("Missing or invalid credential")

        await transport.accept()
        entry = ConnectionEntry(
            principal_id=identity.principal_id,
            identity=identity,
            transport=transport,
            groups=identity.groups(),
        )
        self._entries[transport] = entry
        self._by_principal[entry.principal_id].add(transport)
        for channel in entry.groups:
            self._by_channel[channel].add(transport)
        logger.info(
            "Principal %s connected (%d live connections, groups: %s)",
            entry.principal_id,
            len(self._by_principal[entry.principal_id]),
            ", ".join(sorted(entry.groups)),
        )
        return entry

    def unregister(self, transport: Transport) -> None:
        """Forget ``transport``. Unknown or already removed handles are ignored."""

        entry = self._entries.pop(transport, None)
        if entry is None:
            return
        self._discard(self._by_principal, entry.principal_id, transport)
        for channel in entry.channels:
            self._discard(self._by_channel, channel, transport)
        logger.info("Principal %s disconnected", entry.principal_id)

    def join(self, transport: Transport, channel: str) -> bool:
        entry = self._entries.get(transport)
        if entry is None:
            return False
        entry.rooms.add(channel)
        self._by_channel[channel].add(transport)
        return True

    def leave(self, transport: Transport, channel: str) -> bool:
        entry = self._entries.get(transport)
        if entry is None or channel not in entry.rooms:
            return False
        entry.rooms.discard(channel)
        self._discard(self._by_channel, channel, transport)
        return True

    async def push_to_principal(
        self, principal_id: Hashable, event: str, payload: Any
    ) -> int:
        """Send to every live connection of ``principal_id``; return how many succeeded."""

        targets = list(self._by_principal.get(principal_id, ()))
        return await self._send_all(targets, build_message(event, payload))

    async def push_to_group(
        self,
        group_tag: str,
        event: str,
        payload: Any,
        *,
        exclude: Transport | None = None,
    ) -> int:
        """Send to every live connection subscribed to ``group_tag``."""

        targets = [
            transport
            for transport in self._by_channel.get(group_tag, ())
            if transport is not exclude
        ]
        return await self._send_all(targets, build_message(event, payload))

    def is_connected(self, principal_id: Hashable) -> bool:
        return bool(self._by_principal.get(principal_id))

    def entries_for(self, principal_id: Hashable) -> list[ConnectionEntry]:
        return [self._entries[t] for t in self._by_principal.get(principal_id, ())]

    def get(self, transport: Transport) -> ConnectionEntry | None:
        return self._entries.get(transport)

    @property
    def connection_count(self) -> int:
        return len(self._entries)

    @property
    def principal_count(self) -> int:
        return len(self._by_principal)

    async def _send_all(self, targets: Iterable[Transport], message: dict[str, Any]) -> int:
        delivered = 0
        for transport in targets:
            entry = self._entries.get(transport)
            if entry is None:
                continue
            try:
                await transport.send_json(message)
            except Exception as exc:
                logger.debug(
                    "Dropping stale connection of principal %s: %s", entry.principal_id, exc
                )
                self.unregister(transport)
                await self._close_quietly(transport)
                continue
            delivered += 1
        return delivered

    @staticmethod
    async def _close_quietly(transport: Transport) -> None:
        try:
            await transport.close(code=INTERNAL_ERROR)
        except Exception as exc:
            logger.debug("Stale connection was already closed: %s", exc)

    @staticmethod
    def _discard(index: DefaultDict[Any, Set[Transport]], key: Any, transport: Transport) -> None:
        members = index.get(key)
        if members is None:
            return
        members.discard(transport)
        if not members:
            index.pop(key, None)


__all__ = [
    "ConnectionEntry",
    "ConnectionRegistry",
    "POLICY_VIOLATION",
    "Transport",
    "build_message",
]

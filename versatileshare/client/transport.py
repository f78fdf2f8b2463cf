"""Websocket transport used by the notification client agent."""

from __future__ import annotations

import json
import logging
from typing import Any, Protocol
from urllib.parse import urlencode, urlsplit, urlunsplit

import websockets
from websockets.exceptions import ConnectionClosed, InvalidHandshake, InvalidURI

logger = logging.getLogger(__name__)


class TransportClosed(Exception):
    """The live connection ended or could not be opened."""


class Connection(Protocol):
    async def send(self, message: dict[str, Any]) -> None:
        ...

    async def receive(self) -> dict[str, Any]:
        ...

    async def close(self) -> None:
        ...


class Connector(Protocol):
    async def connect(self, url: str, token: str) -> Connection:
        ...


def with_token(url: str, token: str) -> str:
    """Return ``url`` with the bearer token appended as the ``token`` query parameter."""

    parts = urlsplit(url)
    query = "&".join(filter(None, [parts.query, urlencode({"token": token})]))
    return urlunsplit(parts._replace(query=query))


class WebsocketsConnection:
    """JSON framing over a :mod:`websockets` client connection."""

    def __init__(self, websocket) -> None:
        self._websocket = websocket

    async def send(self, message: dict[str, Any]) -> None:
        try:
            await self._websocket.send(json.dumps(message))
        except ConnectionClosed as exc:
            raise TransportClosed(str(exc)) from exc

    async def receive(self) -> dict[str, Any]:
        while True:
            try:
                raw = await self._websocket.recv()
            except ConnectionClosed as exc:
                raise TransportClosed(str(exc)) from exc
            try:
                message = json.loads(raw)
            except ValueError:
                logger.debug("Discarding non JSON frame")
                continue
            if isinstance(message, dict):
                return message

    async def close(self) -> None:
        await self._websocket.close()


class WebsocketsConnector:
    """Open notification sockets with the :mod:`websockets` client."""

    def __init__(
        self,
        *,
        ping_interval: float | None = 30,
        ping_timeout: float | None = 10,
        close_timeout: float | None = 5,
    ) -> None:
        self._ping_interval = ping_interval
        self._ping_timeout = ping_timeout
        self._close_timeout = close_timeout

    async def connect(self, url: str, token: str) -> WebsocketsConnection:
        try:
            websocket = await websockets.connect(
                with_token(url, token),
                ping_interval=self._ping_interval,
                ping_timeout=self._ping_timeout,
                close_timeout=self._close_timeout,
            )
        except InvalidURI as exc:
            raise TransportClosed(f"Invalid notification URL: {exc}") from exc
        except (InvalidHandshake, OSError) as exc:
            raise TransportClosed(f"Notification socket rejected: {exc}") from exc
        return WebsocketsConnection(websocket)


__all__ = [
    "Connection",
    "Connector",
    "TransportClosed",
    "WebsocketsConnection",
    "WebsocketsConnector",
    "with_token",
]

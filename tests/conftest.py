"""Shared fixtures. The environment is prepared before any application import."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

import pytest

TEST_DB_PATH = Path(tempfile.gettempdir()) / "versatileshare-tests.db"

os.environ["DATABASE_URL"] = f"sqlite:///{TEST_DB_PATH}"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["ACCESS_TOKEN_EXPIRE_MINUTES"] = "30"
os.environ["APP_TIMEZONE"] = "UTC"


class FakeTransport:
    """Records what the registry does with a websocket."""

    def __init__(self, *, fail_send: bool = False) -> None:
        self.accepted = False
        self.close_code: int | None = None
        self.sent: list[dict] = []
        self.fail_send = fail_send

    async def accept(self) -> None:
        self.accepted = True

    async def send_json(self, data) -> None:
        if self.fail_send:
            raise RuntimeError("socket already closed")
        self.sent.append(data)

    async def close(self, code: int = 1000, reason: str | None = None) -> None:
        self.close_code = code

    def events(self) -> list[str]:
        return [message["type"] for message in self.sent]


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def make_transport():
    return FakeTransport


@pytest.fixture
def database():
    """Give every test empty tables in the shared SQLite file."""

    from versatileshare.infrastructure import database as database_module

    database_module.initialize_database()
    database_module.Base.metadata.drop_all(bind=database_module.engine)
    database_module.Base.metadata.create_all(bind=database_module.engine)
    yield database_module
    database_module.Base.metadata.drop_all(bind=database_module.engine)


@pytest.fixture
def db_session(database):
    session = database.SessionLocal()
    try:
        yield session
    finally:
        session.close()

"""Behaviour of the in-memory connection registry."""

from __future__ import annotations

import pytest

from versatileshare.domain.entities import Identity
from versatileshare.domain.errors import AuthenticationRejected
from versatileshare.infrastructure.notifications import (
    INTERNAL_ERROR,
    POLICY_VIOLATION,
    ConnectionRegistry,
)

pytestmark = pytest.mark.anyio


def _student(principal_id: int = 1, semester: int = 3) -> Identity:
    return Identity(principal_id=principal_id, role="student", department="CSE", semester=semester)


async def test_register_subscribes_identity_groups(make_transport) -> None:
    registry = ConnectionRegistry()
    transport = make_transport()

    entry = await registry.register(transport, _student())

    assert transport.accepted is True
    assert entry.groups == frozenset({"user:1", "department:CSE", "semester:3"})
    assert registry.is_connected(1)
    assert registry.connection_count == 1


async def test_faculty_is_not_subscribed_to_a_semester(make_transport) -> None:
    registry = ConnectionRegistry()
    identity = Identity(principal_id=7, role="faculty", department="ECE", semester=4)

    entry = await registry.register(make_transport(), identity)

    assert entry.groups == frozenset({"user:7", "department:ECE"})


@pytest.mark.parametrize(
    "identity",
    [None, Identity(principal_id=None, role="student"), Identity(principal_id=3, role="guest")],
)
async def test_register_rejects_missing_or_invalid_identity(make_transport, identity) -> None:
    registry = ConnectionRegistry()
    transport = make_transport()

    with pytest.raises(AuthenticationRejected):
        await registry.register(transport, identity)

    assert transport.accepted is False
    assert transport.close_code == POLICY_VIOLATION
    assert registry.connection_count == 0


async def test_unregister_is_idempotent(make_transport) -> None:
    registry = ConnectionRegistry()
    transport = make_transport()
    await registry.register(transport, _student())

    registry.unregister(transport)
    registry.unregister(transport)
    registry.unregister(make_transport())

    assert registry.connection_count == 0
    assert registry.principal_count == 0
    assert not registry.is_connected(1)


async def test_two_tabs_receive_principal_push_until_one_closes(make_transport) -> None:
    registry = ConnectionRegistry()
    first, second = make_transport(), make_transport()
    await registry.register(first, _student())
    await registry.register(second, _student())

    assert await registry.push_to_principal(1, "new-resource", {"message": "X uploaded"}) == 2
    registry.unregister(first)
    assert await registry.push_to_principal(1, "new-resource", {"message": "again"}) == 1

    assert first.events() == ["new-resource"]
    assert second.events() == ["new-resource", "new-resource"]
    assert second.sent[-1] == {"type": "new-resource", "data": {"message": "again"}}


async def test_push_to_unknown_principal_is_a_no_op() -> None:
    registry = ConnectionRegistry()

    assert await registry.push_to_principal(99, "new-resource", {}) == 0


async def test_group_push_honours_exclusion_and_rooms(make_transport) -> None:
    registry = ConnectionRegistry()
    author, reader, outsider = make_transport(), make_transport(), make_transport()
    await registry.register(author, _student(1))
    await registry.register(reader, _student(2))
    await registry.register(outsider, _student(3, semester=5))
    registry.join(author, "resource:9")
    registry.join(reader, "resource:9")

    delivered = await registry.push_to_group(
        "resource:9", "resource-updated", {"resourceId": "9"}, exclude=author
    )

    assert delivered == 1
    assert reader.events() == ["resource-updated"]
    assert author.sent == [] and outsider.sent == []

    assert registry.leave(reader, "resource:9") is True
    assert registry.leave(reader, "resource:9") is False
    assert await registry.push_to_group("resource:9", "resource-updated", {}) == 1


async def test_join_requires_a_registered_transport(make_transport) -> None:
    registry = ConnectionRegistry()

    assert registry.join(make_transport(), "resource:1") is False


async def test_failed_send_drops_the_stale_connection(make_transport) -> None:
    registry = ConnectionRegistry()
    healthy, stale = make_transport(), make_transport(fail_send=True)
    await registry.register(healthy, _student(1))
    await registry.register(stale, _student(2))

    delivered = await registry.push_to_group("semester:3", "new-resource", {"message": "hi"})

    assert delivered == 1
    assert registry.get(stale) is None
    assert stale.close_code == INTERNAL_ERROR
    assert healthy.close_code is None
    assert not registry.is_connected(2)
    assert registry.is_connected(1)


async def test_unregister_removes_joined_rooms(make_transport) -> None:
    registry = ConnectionRegistry()
    transport = make_transport()
    await registry.register(transport, _student())
    registry.join(transport, "resource:4")

    registry.unregister(transport)

    assert await registry.push_to_group("resource:4", "resource-updated", {}) == 0

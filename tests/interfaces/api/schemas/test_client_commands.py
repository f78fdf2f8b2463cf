"""Validation of inbound websocket commands and request payloads."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from versatileshare.interfaces.api.schemas import (
    AckCommand,
    JoinResourceCommand,
    NotificationMarkReadRequest,
    PingCommand,
    ResourceUpdateCommand,
    parse_client_command,
)


def test_commands_are_dispatched_on_their_type() -> None:
    assert isinstance(parse_client_command({"type": "ping"}), PingCommand)
    assert parse_client_command({"type": "ack", "ids": [3, 4]}) == AckCommand(type="ack", ids=[3, 4])

    join = parse_client_command({"type": "join-resource", "resourceId": 12})
    assert isinstance(join, JoinResourceCommand)
    assert join.resource_id == "12"


def test_resource_update_keeps_the_patch_verbatim() -> None:
    patch = {"views": 4, "title": {"nested": True}, "tags": ["a"]}

    command = parse_client_command({"type": "resource-update", "resourceId": "r1", "patch": patch})

    assert isinstance(command, ResourceUpdateCommand)
    assert command.patch == patch


@pytest.mark.parametrize(
    "frame",
    [
        {"type": "shout"},
        {"resourceId": "1"},
        {"type": "join-resource"},
        {"type": "join-resource", "resourceId": ""},
        {"type": "ack", "ids": ["not-a-number"]},
        ["ping"],
    ],
)
def test_malformed_frames_are_rejected(frame) -> None:
    with pytest.raises(ValidationError):
        parse_client_command(frame)


def test_mark_read_requires_a_selection() -> None:
    with pytest.raises(ValidationError):
        NotificationMarkReadRequest()

    request = NotificationMarkReadRequest(ids=[3, 1, 3])
    assert request.unique_ids() == [3, 1]
    assert NotificationMarkReadRequest(mark_all=True).ids == []

"""Commands accepted from websocket clients."""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class _Command(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class PingCommand(_Command):
    type: Literal["ping"]


class AckCommand(_Command):
    """Mark the listed notifications as read."""

    type: Literal["ack"]
    ids: list[int] = Field(default_factory=list)


class JoinResourceCommand(_Command):
    type: Literal["join-resource"]
    resource_id: str = Field(alias="resourceId", min_length=1)


class LeaveResourceCommand(_Command):
    type: Literal["leave-resource"]
    resource_id: str = Field(alias="resourceId", min_length=1)


class ResourceUpdateCommand(_Command):
    """Patch relayed verbatim to the other members of a resource room."""

    type: Literal["resource-update"]
    resource_id: str = Field(alias="resourceId", min_length=1)
    patch: dict[str, Any] = Field(default_factory=dict)


ClientCommand = Annotated[
    Union[
        PingCommand,
        AckCommand,
        JoinResourceCommand,
        LeaveResourceCommand,
        ResourceUpdateCommand,
    ],
    Field(discriminator="type"),
]

client_command_adapter: TypeAdapter[ClientCommand] = TypeAdapter(ClientCommand)


def _coerce_resource_id(value: Any) -> Any:
    return str(value) if isinstance(value, int) and not isinstance(value, bool) else value


def parse_client_command(message: Any) -> ClientCommand:
    """Validate a decoded websocket frame; raises ``pydantic.ValidationError``."""

    if isinstance(message, dict) and "resourceId" in message:
        message = {**message, "resourceId": _coerce_resource_id(message["resourceId"])}
    return client_command_adapter.validate_python(message)


__all__ = [
    "AckCommand",
    "ClientCommand",
    "JoinResourceCommand",
    "LeaveResourceCommand",
    "PingCommand",
    "ResourceUpdateCommand",
    "parse_client_command",
]

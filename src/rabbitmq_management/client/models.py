"""Typed views over common management API payloads.

The management API returns far more fields than are modelled here and
the set varies between RabbitMQ versions, so every model allows extra
fields and keeps the known ones optional.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, RootModel


class _Payload(BaseModel):
    model_config = ConfigDict(extra="allow")


class ObjectTotals(_Payload):
    """Cluster-wide object counts from /overview."""

    channels: int = 0
    connections: int = 0
    consumers: int = 0
    exchanges: int = 0
    queues: int = 0


class Overview(_Payload):
    """Response of GET /overview."""

    management_version: str | None = None
    rabbitmq_version: str | None = None
    erlang_version: str | None = None
    cluster_name: str | None = None
    node: str | None = None
    object_totals: ObjectTotals | None = None


class Node(_Payload):
    name: str
    type: str | None = None
    running: bool | None = None
    uptime: int | None = None
    mem_used: int | None = None
    fd_used: int | None = None


class Vhost(_Payload):
    name: str
    tracing: bool | None = None
    messages: int | None = None


class Queue(_Payload):
    name: str
    vhost: str
    durable: bool = False
    auto_delete: bool = False
    arguments: dict[str, Any] = Field(default_factory=dict)
    state: str | None = None
    messages: int | None = None
    consumers: int | None = None


class Exchange(_Payload):
    name: str
    vhost: str
    type: str
    durable: bool = False
    auto_delete: bool = False
    internal: bool = False
    arguments: dict[str, Any] = Field(default_factory=dict)


class Binding(_Payload):
    source: str
    vhost: str
    destination: str
    destination_type: str
    routing_key: str = ""
    arguments: dict[str, Any] = Field(default_factory=dict)
    properties_key: str | None = None


class User(_Payload):
    name: str
    tags: str | list[str] = ""
    password_hash: str | None = None


class Permission(_Payload):
    user: str
    vhost: str
    configure: str
    write: str
    read: str


class AlivenessStatus(_Payload):
    """Response of GET /aliveness-test/{vhost}."""

    status: str

    @property
    def ok(self) -> bool:
        return self.status == "ok"


class NodeList(RootModel[list[Node]]):
    """List of Node objects."""
    pass


class VhostList(RootModel[list[Vhost]]):
    """List of Vhost objects."""
    pass


class QueueList(RootModel[list[Queue]]):
    """List of Queue objects."""
    pass


class ExchangeList(RootModel[list[Exchange]]):
    """List of Exchange objects."""
    pass


class BindingList(RootModel[list[Binding]]):
    """List of Binding objects."""
    pass


class UserList(RootModel[list[User]]):
    """List of User objects."""
    pass


class PermissionList(RootModel[list[Permission]]):
    """List of Permission objects."""
    pass

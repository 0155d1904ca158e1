"""Client for the RabbitMQ management plugin HTTP API.

Every operation maps onto exactly one REST endpoint. Path segments such
as vhost and queue names are interpolated as given: callers must escape
reserved characters themselves, e.g. the default vhost ``/`` is passed
as ``%2f`` (see :func:`escape_segment`).

Usage:
    with ManagementClient("http://localhost:15672/api") as client:
        result = client.get_queues_in_vhost(vhost="%2f")
        if result.success:
            for queue in result.content:
                print(queue["name"])
"""

from __future__ import annotations

import json
import logging
from typing import Any
from urllib.parse import quote

import httpx

from .exceptions import InvalidMethod, MissingParameter
from .result import Result

logger = logging.getLogger(__name__)

METHODS = ("DELETE", "GET", "PATCH", "POST", "PUT")


def escape_segment(value: str) -> str:
    """Percent-encode a single path segment (``/`` becomes ``%2F``)."""
    return quote(value, safe="")


def _missing(value: Any) -> bool:
    return value is None or value == ""


def _require(**params: Any) -> None:
    """Raise MissingParameter for the first parameter without a value."""
    for name, value in params.items():
        if _missing(value):
            raise MissingParameter(name)


class ManagementClient:
    """Synchronous client for the RabbitMQ management REST API.

    Args:
        url: Base URL of the API, e.g. ``http://localhost:15672/api``.
        username: User for HTTP basic authentication.
        password: Password for HTTP basic authentication.
        transport: httpx transport used to send requests. Defaults to a
            plain ``httpx.HTTPTransport``.
    """

    def __init__(
        self,
        url: str | httpx.URL,
        username: str = "guest",
        password: str = "guest",
        transport: httpx.BaseTransport | None = None,
    ):
        self._url = httpx.URL(url)
        self._username = username
        self._password = password
        # Client-level auth wins over any user:password in the URL
        self._http = httpx.Client(
            transport=transport or httpx.HTTPTransport(),
            auth=httpx.BasicAuth(username, password),
        )

    def __enter__(self) -> ManagementClient:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    @property
    def url(self) -> httpx.URL:
        return self._url

    @property
    def username(self) -> str:
        return self._username

    @property
    def password(self) -> str:
        return self._password

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._http.close()

    def request(self, method: str, path: str, data: Any = None) -> Result:
        """Send a request to the management API.

        This is what every named operation is built on and can be used
        directly for endpoints without a dedicated method:

            client.request("GET", "/definitions")
            client.request("PUT", "/policies/%2f/ha", data={...})

        Args:
            method: One of DELETE, GET, PATCH, POST, PUT.
            path: Path appended verbatim to the base URL's path.
            data: Optional JSON-serializable request body.

        Returns:
            A Result wrapping the response, whatever its status code.
        """
        if not method:
            raise MissingParameter("method")
        if not path:
            raise MissingParameter("path")
        if method not in METHODS:
            raise InvalidMethod(method)

        request = self._request_for(method, self._url_for(path), data)
        logger.debug("%s %s", method, request.url)
        response = self._http.send(request)
        logger.debug("%s %s -> %s", method, request.url, response.status_code)
        return Result(response)

    def _request_for(self, method: str, url: httpx.URL, data: Any) -> httpx.Request:
        content = b""
        if data is not None:
            content = json.dumps(data, separators=(",", ":"), ensure_ascii=False).encode("utf-8")

        headers = {
            "Content-Type": "application/json",
            "Content-Length": str(len(content)),
        }
        return self._http.build_request(method, url, headers=headers, content=content)

    def _url_for(self, path: str) -> httpx.URL:
        # Plain concatenation onto the base path; a base query string stays last.
        base, sep, query = str(self._url).partition("?")
        return httpx.URL(base + path + sep + query)

    # -------------------------------------------------------------------------
    # Overview, nodes and cluster configuration
    # -------------------------------------------------------------------------

    def get_overview(self) -> Result:
        """Get various random bits of information that describe the whole system."""
        return self.request("GET", "/overview")

    def get_nodes(self) -> Result:
        """List the nodes in the RabbitMQ cluster."""
        return self.request("GET", "/nodes")

    def get_node(self, *, name: str | None = None) -> Result:
        """Get an individual node in the RabbitMQ cluster."""
        _require(name=name)
        return self.request("GET", f"/nodes/{name}/")

    def get_extensions(self) -> Result:
        """List the extensions to the management plugin."""
        return self.request("GET", "/extensions")

    def get_configuration(self) -> Result:
        """Get the server definitions: users, vhosts, permissions, queues,
        exchanges and bindings. Everything else is omitted."""
        return self.request("GET", "/all-configuration")

    def update_configuration(
        self,
        *,
        users: list[dict[str, Any]] | None = None,
        vhosts: list[dict[str, Any]] | None = None,
        permissions: list[dict[str, Any]] | None = None,
        queues: list[dict[str, Any]] | None = None,
        exchanges: list[dict[str, Any]] | None = None,
        bindings: list[dict[str, Any]] | None = None,
        **options: Any,
    ) -> Result:
        """Upload a set of server definitions.

        Existing objects are kept; conflicting ones are overwritten.
        """
        _require(
            users=users,
            vhosts=vhosts,
            permissions=permissions,
            queues=queues,
            exchanges=exchanges,
            bindings=bindings,
        )
        data = {
            "users": users,
            "vhosts": vhosts,
            "permissions": permissions,
            "queues": queues,
            "exchanges": exchanges,
            "bindings": bindings,
            **options,
        }
        return self.request("POST", "/all-configuration", data=data)

    # -------------------------------------------------------------------------
    # Connections and channels
    # -------------------------------------------------------------------------

    def get_connections(self) -> Result:
        """List all open connections."""
        return self.request("GET", "/connections")

    def get_connection(self, *, name: str | None = None) -> Result:
        """Get an individual connection."""
        _require(name=name)
        return self.request("GET", f"/connections/{name}")

    def delete_connection(self, *, name: str | None = None) -> Result:
        """Close a connection."""
        _require(name=name)
        return self.request("DELETE", f"/connections/{name}")

    def get_channels(self) -> Result:
        """List all open channels."""
        return self.request("GET", "/channels")

    def get_channel(self, *, name: str | None = None) -> Result:
        """Get details about an individual channel."""
        _require(name=name)
        return self.request("GET", f"/channels/{name}")

    # -------------------------------------------------------------------------
    # Exchanges
    # -------------------------------------------------------------------------

    def get_exchanges(self) -> Result:
        """List all exchanges."""
        return self.request("GET", "/exchanges")

    def get_exchanges_in_vhost(self, *, vhost: str | None = None) -> Result:
        """List all exchanges in a given virtual host."""
        _require(vhost=vhost)
        return self.request("GET", f"/exchanges/{vhost}")

    def get_exchange(self, *, name: str | None = None, vhost: str | None = None) -> Result:
        """Get an individual exchange."""
        _require(name=name, vhost=vhost)
        return self.request("GET", f"/exchanges/{vhost}/{name}")

    def create_exchange(
        self,
        *,
        name: str | None = None,
        vhost: str | None = None,
        type: str | None = None,
        **options: Any,
    ) -> Result:
        """Declare an exchange.

        Args:
            name: Exchange name.
            vhost: Escaped virtual host name.
            type: Exchange type, e.g. ``direct`` or ``topic``.
            **options: Sent in the body: ``auto_delete``, ``durable``,
                ``internal``, ``arguments``.
        """
        _require(name=name, vhost=vhost, type=type)
        return self.request("PUT", f"/exchanges/{vhost}/{name}", data={"type": type, **options})

    def delete_exchange(self, *, name: str | None = None, vhost: str | None = None) -> Result:
        """Delete an exchange."""
        _require(name=name, vhost=vhost)
        return self.request("DELETE", f"/exchanges/{vhost}/{name}")

    def get_exchange_bindings_by_source(
        self, *, name: str | None = None, vhost: str | None = None
    ) -> Result:
        """List all bindings in which a given exchange is the source."""
        _require(name=name, vhost=vhost)
        return self.request("GET", f"/exchanges/{vhost}/{name}/bindings/source")

    def get_exchange_bindings_by_destination(
        self, *, name: str | None = None, vhost: str | None = None
    ) -> Result:
        """List all bindings in which a given exchange is the destination."""
        _require(name=name, vhost=vhost)
        return self.request("GET", f"/exchanges/{vhost}/{name}/bindings/destination")

    def publish_exchange_message(
        self,
        *,
        name: str | None = None,
        vhost: str | None = None,
        properties: dict[str, Any] | None = None,
        routing_key: str | None = None,
        payload: str | None = None,
        payload_encoding: str | None = None,
        **options: Any,
    ) -> Result:
        """Publish a message to a given exchange.

        ``payload_encoding`` is either ``string`` or ``base64``. The
        response content has a single ``routed`` key telling whether the
        message reached at least one queue.
        """
        _require(
            name=name,
            vhost=vhost,
            properties=properties,
            routing_key=routing_key,
            payload=payload,
            payload_encoding=payload_encoding,
        )
        data = {
            "properties": properties,
            "routing_key": routing_key,
            "payload": payload,
            "payload_encoding": payload_encoding,
            **options,
        }
        return self.request("POST", f"/exchanges/{vhost}/{name}/publish", data=data)

    # -------------------------------------------------------------------------
    # Queues
    # -------------------------------------------------------------------------

    def get_queues(self) -> Result:
        """List all queues."""
        return self.request("GET", "/queues")

    def get_queues_in_vhost(self, *, vhost: str | None = None) -> Result:
        """List all queues in a given virtual host."""
        _require(vhost=vhost)
        return self.request("GET", f"/queues/{vhost}")

    def get_queue(self, *, name: str | None = None, vhost: str | None = None) -> Result:
        """Get an individual queue."""
        _require(name=name, vhost=vhost)
        return self.request("GET", f"/queues/{vhost}/{name}")

    def create_queue(
        self, *, name: str | None = None, vhost: str | None = None, **options: Any
    ) -> Result:
        """Declare a queue.

        Keyword arguments other than name and vhost (``auto_delete``,
        ``durable``, ``arguments``, ``node``) are sent as the body.
        """
        _require(name=name, vhost=vhost)
        return self.request("PUT", f"/queues/{vhost}/{name}", data=options)

    def delete_queue(self, *, name: str | None = None, vhost: str | None = None) -> Result:
        """Delete a queue."""
        _require(name=name, vhost=vhost)
        return self.request("DELETE", f"/queues/{vhost}/{name}")

    def get_queue_bindings(self, *, name: str | None = None, vhost: str | None = None) -> Result:
        """List all bindings on a given queue."""
        _require(name=name, vhost=vhost)
        return self.request("GET", f"/queues/{vhost}/{name}/bindings")

    def delete_queue_contents(
        self, *, name: str | None = None, vhost: str | None = None
    ) -> Result:
        """Purge a queue."""
        _require(name=name, vhost=vhost)
        return self.request("DELETE", f"/queues/{vhost}/{name}/contents")

    def get_queue_messages(
        self,
        *,
        name: str | None = None,
        vhost: str | None = None,
        encoding: str | None = None,
        count: int | None = None,
        requeue: bool | None = None,
        **options: Any,
    ) -> Result:
        """Get messages from a queue.

        This is not an HTTP GET: it alters the state of the queue.

        Args:
            name: Queue name.
            vhost: Escaped virtual host name.
            encoding: ``auto`` or ``base64``.
            count: Maximum number of messages to get.
            requeue: Whether the messages are put back on the queue.
            **options: Sent in the body, e.g. ``truncate`` or ``ackmode``.
        """
        _require(name=name, vhost=vhost, encoding=encoding, count=count, requeue=requeue)
        data = {"encoding": encoding, "count": count, "requeue": requeue, **options}
        return self.request("POST", f"/queues/{vhost}/{name}/get", data=data)

    # -------------------------------------------------------------------------
    # Bindings
    # -------------------------------------------------------------------------

    def get_bindings(self) -> Result:
        """List all bindings."""
        return self.request("GET", "/bindings")

    def get_bindings_in_vhost(self, *, vhost: str | None = None) -> Result:
        """List all bindings in a given virtual host."""
        _require(vhost=vhost)
        return self.request("GET", f"/bindings/{vhost}")

    def get_bindings_between_exchange_and_queue(
        self,
        *,
        vhost: str | None = None,
        exchange: str | None = None,
        queue: str | None = None,
    ) -> Result:
        """List all bindings between an exchange and a queue."""
        _require(vhost=vhost, exchange=exchange, queue=queue)
        return self.request("GET", f"/bindings/{vhost}/e/{exchange}/q/{queue}")

    def create_bindings_between_exchange_and_queue(
        self,
        *,
        vhost: str | None = None,
        exchange: str | None = None,
        queue: str | None = None,
        **options: Any,
    ) -> Result:
        """Bind a queue to an exchange.

        ``routing_key`` and ``arguments`` are sent in the body. The
        response Location header holds the URI of the new binding.
        """
        _require(vhost=vhost, exchange=exchange, queue=queue)
        return self.request("POST", f"/bindings/{vhost}/e/{exchange}/q/{queue}", data=options)

    def get_binding(
        self,
        *,
        vhost: str | None = None,
        exchange: str | None = None,
        queue: str | None = None,
        name: str | None = None,
    ) -> Result:
        """Get an individual binding.

        ``name`` is the binding's properties key, a routing key plus a
        hash of its arguments.
        """
        _require(vhost=vhost, exchange=exchange, queue=queue, name=name)
        return self.request("GET", f"/bindings/{vhost}/e/{exchange}/q/{queue}/{name}")

    def create_binding(
        self,
        *,
        vhost: str | None = None,
        exchange: str | None = None,
        queue: str | None = None,
        name: str | None = None,
    ) -> Result:
        _require(vhost=vhost, exchange=exchange, queue=queue, name=name)
        return self.request("PUT", f"/bindings/{vhost}/e/{exchange}/q/{queue}/{name}")

    def delete_binding(
        self,
        *,
        vhost: str | None = None,
        exchange: str | None = None,
        queue: str | None = None,
        name: str | None = None,
    ) -> Result:
        _require(vhost=vhost, exchange=exchange, queue=queue, name=name)
        return self.request("DELETE", f"/bindings/{vhost}/e/{exchange}/q/{queue}/{name}")

    # -------------------------------------------------------------------------
    # Virtual hosts
    # -------------------------------------------------------------------------

    def get_vhosts(self) -> Result:
        """List all vhosts."""
        return self.request("GET", "/vhosts")

    def get_vhost(self, *, name: str | None = None) -> Result:
        """Get an individual virtual host."""
        _require(name=name)
        return self.request("GET", f"/vhosts/{name}")

    def create_vhost(self, *, name: str | None = None) -> Result:
        _require(name=name)
        return self.request("PUT", f"/vhosts/{name}")

    def delete_vhost(self, *, name: str | None = None) -> Result:
        _require(name=name)
        return self.request("DELETE", f"/vhosts/{name}")

    def get_vhost_permissions(self, *, name: str | None = None) -> Result:
        """List all permissions for a given virtual host."""
        _require(name=name)
        return self.request("GET", f"/vhosts/{name}/permissions")

    def vhost_aliveness_test(self, *, vhost: str | None = None) -> Result:
        """Declare a test queue, publish and consume a message.

        Content is ``{"status": "ok"}`` when the vhost is healthy.
        """
        _require(vhost=vhost)
        return self.request("GET", f"/aliveness-test/{vhost}")

    # -------------------------------------------------------------------------
    # Users and permissions
    # -------------------------------------------------------------------------

    def get_users(self) -> Result:
        """List all users."""
        return self.request("GET", "/users")

    def get_user(self, *, name: str | None = None) -> Result:
        """Get an individual user."""
        _require(name=name)
        return self.request("GET", f"/users/{name}")

    def create_user(
        self,
        *,
        name: str | None = None,
        tags: str | None = None,
        password: str | None = None,
        password_hash: str | None = None,
        **options: Any,
    ) -> Result:
        """Create a user.

        Either ``password`` or ``password_hash`` must be given. ``tags``
        is a comma-separated list such as ``administrator``.
        """
        _require(name=name, tags=tags)
        if _missing(password) and _missing(password_hash):
            raise MissingParameter("password or password_hash")

        data: dict[str, Any] = {"tags": tags, **options}
        if password is not None:
            data["password"] = password
        if password_hash is not None:
            data["password_hash"] = password_hash
        return self.request("PUT", f"/users/{name}", data=data)

    def delete_user(self, *, name: str | None = None) -> Result:
        _require(name=name)
        return self.request("DELETE", f"/users/{name}")

    def get_user_permissions(self, *, name: str | None = None) -> Result:
        """List all permissions for a given user."""
        _require(name=name)
        return self.request("GET", f"/users/{name}/permissions")

    def get_user_details(self) -> Result:
        """Get details of the currently authenticated user."""
        return self.request("GET", "/whoami")

    def get_users_permissions(self) -> Result:
        """List all permissions for all users."""
        return self.request("GET", "/permissions")

    def get_user_vhost_permissions(
        self, *, name: str | None = None, vhost: str | None = None
    ) -> Result:
        """Get an individual permission of a user and virtual host."""
        _require(name=name, vhost=vhost)
        return self.request("GET", f"/permissions/{vhost}/{name}")

    def create_user_vhost_permissions(
        self,
        *,
        name: str | None = None,
        vhost: str | None = None,
        write: str | None = None,
        read: str | None = None,
        configure: str | None = None,
        **options: Any,
    ) -> Result:
        """Grant a user permissions on a virtual host.

        ``write``, ``read`` and ``configure`` are regular expressions
        matched against resource names.
        """
        _require(name=name, vhost=vhost, write=write, read=read, configure=configure)
        data = {"configure": configure, "write": write, "read": read, **options}
        return self.request("PUT", f"/permissions/{vhost}/{name}", data=data)

    def delete_user_vhost_permissions(
        self, *, name: str | None = None, vhost: str | None = None
    ) -> Result:
        """Revoke a user's permissions on a virtual host."""
        _require(name=name, vhost=vhost)
        return self.request("DELETE", f"/permissions/{vhost}/{name}")

"""RabbitMQ management CLI application."""

from __future__ import annotations

import functools
import json
import logging

import httpx
import typer
from rich.markup import escape

from rabbitmq_management.cli.output import (
    colored_state,
    console,
    print_error,
    print_json,
    print_success,
    print_table,
)
from rabbitmq_management.client import (
    METHODS,
    ManagementClient,
    ManagementError,
    Result,
    ResultDecodeError,
    escape_segment,
)
from rabbitmq_management.client.models import (
    AlivenessStatus,
    BindingList,
    ExchangeList,
    NodeList,
    Overview,
    PermissionList,
    QueueList,
    UserList,
    VhostList,
)
from rabbitmq_management.config import ConnectionSettings, load_settings, save_settings

app = typer.Typer(
    name="rabbitmq-management",
    help="Inspect and manage a RabbitMQ broker through its management API.",
    no_args_is_help=True,
)


def handle_errors(func):
    """Decorator to catch common client errors."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except httpx.HTTPError as e:
            print_error(f"request failed: {e}")
            raise typer.Exit(1) from None
        except ManagementError as e:
            print_error(str(e))
            raise typer.Exit(1) from None
    return wrapper


def _client(ctx: typer.Context) -> ManagementClient:
    settings: ConnectionSettings = ctx.obj
    return ManagementClient(
        settings.url, username=settings.username, password=settings.password
    )


def _failure_reason(result: Result) -> str:
    try:
        content = result.content
    except ResultDecodeError:
        return result.raw_content or result.response.reason_phrase
    if isinstance(content, dict) and content.get("reason"):
        return str(content["reason"])
    return result.response.reason_phrase


def _check(result: Result) -> Result:
    """Exit with an error unless the response was a 2xx."""
    if not result.success:
        print_error(f"HTTP {result.code}: {_failure_reason(result)}")
        raise typer.Exit(1)
    return result


@app.callback()
def main(
    ctx: typer.Context,
    url: str | None = typer.Option(None, "--url", help="Management API base URL"),
    user: str | None = typer.Option(None, "--user", "-u", help="Username"),
    password: str | None = typer.Option(None, "--password", "-p", help="Password"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log HTTP requests"),
):
    """Inspect and manage a RabbitMQ broker through its management API."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(name)s %(levelname)s %(message)s",
        )

    settings = load_settings()
    overrides = {"url": url, "username": user, "password": password}
    ctx.obj = settings._replace(**{k: v for k, v in overrides.items() if v})


@app.command()
@handle_errors
def overview(ctx: typer.Context):
    """Show broker versions and object totals."""
    with _client(ctx) as client:
        info = _check(client.get_overview()).parse(Overview)

    console.print(f"[bold]Cluster[/bold]     {info.cluster_name or '-'}")
    console.print(f"[bold]Node[/bold]        {info.node or '-'}")
    console.print(f"[bold]RabbitMQ[/bold]    {info.rabbitmq_version or '-'}")
    console.print(f"[bold]Erlang[/bold]      {info.erlang_version or '-'}")
    console.print(f"[bold]Management[/bold]  {info.management_version or '-'}")
    if info.object_totals:
        totals = info.object_totals
        console.print(
            f"[bold]Objects[/bold]     {totals.connections} connections, "
            f"{totals.channels} channels, {totals.queues} queues, "
            f"{totals.exchanges} exchanges, {totals.consumers} consumers"
        )


@app.command()
@handle_errors
def nodes(ctx: typer.Context):
    """List cluster nodes."""
    with _client(ctx) as client:
        node_list = _check(client.get_nodes()).parse(NodeList).root

    print_table(
        ["Name", "Type", "Running", "Uptime (ms)"],
        [(n.name, n.type, n.running, n.uptime) for n in node_list],
        empty="No nodes.",
    )


@app.command()
@handle_errors
def vhosts(ctx: typer.Context):
    """List virtual hosts."""
    with _client(ctx) as client:
        vhost_list = _check(client.get_vhosts()).parse(VhostList).root

    print_table(
        ["Name", "Messages"],
        [(v.name, v.messages) for v in vhost_list],
        empty="No virtual hosts.",
    )


@app.command()
@handle_errors
def users(ctx: typer.Context):
    """List users."""
    with _client(ctx) as client:
        user_list = _check(client.get_users()).parse(UserList).root

    rows = []
    for u in user_list:
        tags = ",".join(u.tags) if isinstance(u.tags, list) else u.tags
        rows.append((u.name, tags))
    print_table(["Name", "Tags"], rows, empty="No users.")


@app.command()
@handle_errors
def queues(
    ctx: typer.Context,
    vhost: str | None = typer.Option(None, "--vhost", help="Only this virtual host"),
):
    """List queues."""
    with _client(ctx) as client:
        if vhost:
            result = client.get_queues_in_vhost(vhost=escape_segment(vhost))
        else:
            result = client.get_queues()
        queue_list = _check(result).parse(QueueList).root

    print_table(
        ["Vhost", "Name", "State", "Messages", "Consumers"],
        [
            (q.vhost, q.name, colored_state(q.state), q.messages, q.consumers)
            for q in queue_list
        ],
        empty="No queues.",
    )


@app.command()
@handle_errors
def exchanges(
    ctx: typer.Context,
    vhost: str | None = typer.Option(None, "--vhost", help="Only this virtual host"),
):
    """List exchanges."""
    with _client(ctx) as client:
        if vhost:
            result = client.get_exchanges_in_vhost(vhost=escape_segment(vhost))
        else:
            result = client.get_exchanges()
        exchange_list = _check(result).parse(ExchangeList).root

    print_table(
        ["Vhost", "Name", "Type", "Durable"],
        [(e.vhost, e.name or "(default)", e.type, e.durable) for e in exchange_list],
        empty="No exchanges.",
    )


@app.command()
@handle_errors
def bindings(
    ctx: typer.Context,
    vhost: str | None = typer.Option(None, "--vhost", help="Only this virtual host"),
):
    """List bindings."""
    with _client(ctx) as client:
        if vhost:
            result = client.get_bindings_in_vhost(vhost=escape_segment(vhost))
        else:
            result = client.get_bindings()
        binding_list = _check(result).parse(BindingList).root

    print_table(
        ["Vhost", "Source", "Destination", "Type", "Routing key"],
        [
            (b.vhost, b.source or "(default)", b.destination, b.destination_type, b.routing_key)
            for b in binding_list
        ],
        empty="No bindings.",
    )


@app.command()
@handle_errors
def permissions(
    ctx: typer.Context,
    vhost: str | None = typer.Option(None, "--vhost", help="Only this virtual host"),
    user: str | None = typer.Option(None, "--user", help="Only this user"),
):
    """List user permissions."""
    with _client(ctx) as client:
        if vhost:
            result = client.get_vhost_permissions(name=escape_segment(vhost))
        elif user:
            result = client.get_user_permissions(name=escape_segment(user))
        else:
            result = client.get_users_permissions()
        permission_list = _check(result).parse(PermissionList).root

    if vhost and user:
        permission_list = [p for p in permission_list if p.user == user]

    print_table(
        ["User", "Vhost", "Configure", "Write", "Read"],
        [
            (p.user, p.vhost, escape(p.configure), escape(p.write), escape(p.read))
            for p in permission_list
        ],
        empty="No permissions.",
    )


@app.command("declare-queue")
@handle_errors
def declare_queue(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Queue name"),
    vhost: str = typer.Option("/", "--vhost", help="Virtual host"),
    durable: bool = typer.Option(True, "--durable/--transient", help="Survive broker restarts"),
):
    """Declare a queue."""
    with _client(ctx) as client:
        _check(client.create_queue(
            name=escape_segment(name), vhost=escape_segment(vhost), durable=durable
        ))
    print_success(f"Queue '{name}' declared.")


@app.command("delete-queue")
@handle_errors
def delete_queue(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Queue name"),
    vhost: str = typer.Option("/", "--vhost", help="Virtual host"),
):
    """Delete a queue."""
    with _client(ctx) as client:
        _check(client.delete_queue(name=escape_segment(name), vhost=escape_segment(vhost)))
    print_success(f"Queue '{name}' deleted.")


@app.command("purge-queue")
@handle_errors
def purge_queue(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Queue name"),
    vhost: str = typer.Option("/", "--vhost", help="Virtual host"),
):
    """Remove all messages from a queue."""
    with _client(ctx) as client:
        _check(client.delete_queue_contents(
            name=escape_segment(name), vhost=escape_segment(vhost)
        ))
    print_success(f"Queue '{name}' purged.")


@app.command()
@handle_errors
def aliveness(
    ctx: typer.Context,
    vhost: str = typer.Option("/", "--vhost", help="Virtual host"),
):
    """Run the aliveness test against a virtual host."""
    with _client(ctx) as client:
        status = _check(client.vhost_aliveness_test(vhost=escape_segment(vhost))).parse(
            AlivenessStatus
        )

    if not status.ok:
        print_error(f"vhost '{vhost}' is not alive: {status.status}")
        raise typer.Exit(1)
    print_success(f"vhost '{vhost}' is alive.")


@app.command()
@handle_errors
def request(
    ctx: typer.Context,
    method: str = typer.Argument(..., help="HTTP method"),
    path: str = typer.Argument(..., help="Path below the API base URL, e.g. /overview"),
    data: str | None = typer.Option(None, "--data", "-d", help="JSON request body"),
):
    """Send a raw request and print the JSON response."""
    method = method.upper()
    if method not in METHODS:
        raise typer.BadParameter(f"must be one of {', '.join(METHODS)}", param_hint="METHOD")

    body = None
    if data is not None:
        try:
            body = json.loads(data)
        except json.JSONDecodeError as e:
            raise typer.BadParameter(f"invalid JSON: {e}", param_hint="--data") from None

    with _client(ctx) as client:
        result = _check(client.request(method, path, data=body))
        if result.raw_content:
            print_json(result.content)
        else:
            print_success(f"{method} {path}: HTTP {result.code}")


@app.command()
def config(
    ctx: typer.Context,
    save: bool = typer.Option(False, "--save", help="Write these settings to the user config"),
):
    """Show the effective connection settings."""
    settings: ConnectionSettings = ctx.obj
    console.print(f"[bold]url[/bold] = {settings.url}")
    console.print(f"[bold]username[/bold] = {settings.username}")
    console.print(f"[bold]password[/bold] = {'*' * len(settings.password)}")
    if save:
        path = save_settings(settings)
        print_success(f"Saved to {path}.")

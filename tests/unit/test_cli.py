"""Tests for the rabbitmq-management CLI."""

import json

import httpx
import pytest
from unittest.mock import MagicMock, patch
from typer.testing import CliRunner

from rabbitmq_management.cli.app import app
from rabbitmq_management.client import MissingParameter, Result
from rabbitmq_management.config import ConnectionSettings


runner = CliRunner()

SETTINGS = ConnectionSettings("http://localhost:15672/api", "guest", "guest")


def make_result(status_code=200, body=None, method="GET", path="/"):
    request = httpx.Request(method, f"http://localhost:15672/api{path}")
    content = b"" if body is None else json.dumps(body).encode()
    return Result(httpx.Response(status_code, content=content, request=request))


@pytest.fixture(autouse=True)
def settings():
    with patch("rabbitmq_management.cli.app.load_settings", return_value=SETTINGS) as m:
        yield m


@pytest.fixture(autouse=True)
def client_class():
    """Mock ManagementClient for all CLI tests."""
    with patch("rabbitmq_management.cli.app.ManagementClient") as cls:
        yield cls


@pytest.fixture
def mock_client(client_class):
    client = MagicMock()
    client.__enter__.return_value = client
    client.__exit__.return_value = False
    client_class.return_value = client
    return client


QUEUES = [
    {"name": "jobs", "vhost": "/", "durable": True, "state": "running",
     "messages": 12, "consumers": 2},
    {"name": "mail", "vhost": "staging", "durable": False, "state": "idle",
     "messages": 0, "consumers": 0},
]


def test_overview(mock_client):
    mock_client.get_overview.return_value = make_result(body={
        "rabbitmq_version": "3.12.4",
        "cluster_name": "rabbit@prod",
        "object_totals": {"queues": 2, "exchanges": 7, "connections": 1,
                          "channels": 1, "consumers": 2},
    })

    result = runner.invoke(app, ["overview"])
    assert result.exit_code == 0
    assert "3.12.4" in result.output
    assert "rabbit@prod" in result.output
    assert "2 queues" in result.output


def test_global_options_override_settings(client_class, mock_client):
    mock_client.get_overview.return_value = make_result(body={})

    result = runner.invoke(
        app, ["--url", "http://rmq:15672/api", "--user", "admin", "overview"]
    )
    assert result.exit_code == 0
    client_class.assert_called_once_with(
        "http://rmq:15672/api", username="admin", password="guest"
    )


def test_list_queues(mock_client):
    mock_client.get_queues.return_value = make_result(body=QUEUES)

    result = runner.invoke(app, ["queues"])
    assert result.exit_code == 0
    assert "jobs" in result.output
    assert "mail" in result.output
    assert "running" in result.output


def test_list_queues_in_vhost_escapes_vhost(mock_client):
    mock_client.get_queues_in_vhost.return_value = make_result(body=QUEUES[:1])

    result = runner.invoke(app, ["queues", "--vhost", "/"])
    assert result.exit_code == 0
    mock_client.get_queues_in_vhost.assert_called_once_with(vhost="%2F")
    mock_client.get_queues.assert_not_called()


def test_list_queues_empty(mock_client):
    mock_client.get_queues.return_value = make_result(body=[])

    result = runner.invoke(app, ["queues"])
    assert result.exit_code == 0
    assert "No queues." in result.output


def test_list_exchanges(mock_client):
    mock_client.get_exchanges.return_value = make_result(body=[
        {"name": "", "vhost": "/", "type": "direct", "durable": True},
        {"name": "events", "vhost": "/", "type": "topic", "durable": True},
    ])

    result = runner.invoke(app, ["exchanges"])
    assert result.exit_code == 0
    assert "(default)" in result.output
    assert "events" in result.output


def test_list_vhosts(mock_client):
    mock_client.get_vhosts.return_value = make_result(body=[{"name": "/"}, {"name": "staging"}])

    result = runner.invoke(app, ["vhosts"])
    assert result.exit_code == 0
    assert "staging" in result.output


def test_list_users_joins_tags(mock_client):
    mock_client.get_users.return_value = make_result(body=[
        {"name": "admin", "tags": ["administrator", "monitoring"]},
        {"name": "app", "tags": ""},
    ])

    result = runner.invoke(app, ["users"])
    assert result.exit_code == 0
    assert "administrator,monitoring" in result.output


def test_list_nodes(mock_client):
    mock_client.get_nodes.return_value = make_result(body=[
        {"name": "rabbit@node1", "type": "disc", "running": True, "uptime": 1000},
    ])

    result = runner.invoke(app, ["nodes"])
    assert result.exit_code == 0
    assert "rabbit@node1" in result.output


def test_declare_queue(mock_client):
    mock_client.create_queue.return_value = make_result(201, method="PUT")

    result = runner.invoke(app, ["declare-queue", "jobs"])
    assert result.exit_code == 0
    mock_client.create_queue.assert_called_once_with(name="jobs", vhost="%2F", durable=True)


def test_declare_transient_queue(mock_client):
    mock_client.create_queue.return_value = make_result(201, method="PUT")

    result = runner.invoke(app, ["declare-queue", "tmp", "--vhost", "staging", "--transient"])
    assert result.exit_code == 0
    mock_client.create_queue.assert_called_once_with(name="tmp", vhost="staging", durable=False)


def test_delete_queue(mock_client):
    mock_client.delete_queue.return_value = make_result(204, method="DELETE")

    result = runner.invoke(app, ["delete-queue", "jobs"])
    assert result.exit_code == 0
    mock_client.delete_queue.assert_called_once_with(name="jobs", vhost="%2F")


def test_delete_missing_queue_fails(mock_client):
    mock_client.delete_queue.return_value = make_result(
        404, body={"error": "Object Not Found", "reason": "Not Found"}, method="DELETE"
    )

    result = runner.invoke(app, ["delete-queue", "nope"])
    assert result.exit_code == 1


def test_purge_queue(mock_client):
    mock_client.delete_queue_contents.return_value = make_result(204, method="DELETE")

    result = runner.invoke(app, ["purge-queue", "jobs", "--vhost", "staging"])
    assert result.exit_code == 0
    mock_client.delete_queue_contents.assert_called_once_with(name="jobs", vhost="staging")


def test_aliveness_ok(mock_client):
    mock_client.vhost_aliveness_test.return_value = make_result(body={"status": "ok"})

    result = runner.invoke(app, ["aliveness"])
    assert result.exit_code == 0
    assert "alive" in result.output
    mock_client.vhost_aliveness_test.assert_called_once_with(vhost="%2F")


def test_aliveness_failed(mock_client):
    mock_client.vhost_aliveness_test.return_value = make_result(
        body={"status": "failed", "reason": "timeout"}
    )

    result = runner.invoke(app, ["aliveness"])
    assert result.exit_code == 1


def test_raw_request(mock_client):
    mock_client.request.return_value = make_result(body={"rabbit_version": "3.12.4"})

    result = runner.invoke(app, ["request", "get", "/definitions"])
    assert result.exit_code == 0
    assert "rabbit_version" in result.output
    mock_client.request.assert_called_once_with("GET", "/definitions", data=None)


def test_raw_request_with_data(mock_client):
    mock_client.request.return_value = make_result(204, method="PUT")

    result = runner.invoke(
        app, ["request", "PUT", "/vhosts/staging", "--data", '{"tracing": true}']
    )
    assert result.exit_code == 0
    mock_client.request.assert_called_once_with("PUT", "/vhosts/staging", data={"tracing": True})


def test_raw_request_rejects_bad_method(mock_client):
    result = runner.invoke(app, ["request", "HEAD", "/overview"])
    assert result.exit_code == 2
    mock_client.request.assert_not_called()


def test_raw_request_rejects_bad_json(mock_client):
    result = runner.invoke(app, ["request", "POST", "/definitions", "--data", "{nope"])
    assert result.exit_code == 2
    mock_client.request.assert_not_called()


def test_raw_request_error_status(mock_client):
    mock_client.request.return_value = make_result(500, body=None)

    result = runner.invoke(app, ["request", "GET", "/definitions"])
    assert result.exit_code == 1


def test_connection_error_exits(mock_client):
    mock_client.get_overview.side_effect = httpx.ConnectError("connection refused")

    result = runner.invoke(app, ["overview"])
    assert result.exit_code == 1


def test_client_error_exits(mock_client):
    mock_client.delete_queue.side_effect = MissingParameter("name")

    result = runner.invoke(app, ["delete-queue", "jobs"])
    assert result.exit_code == 1


def test_config_masks_password():
    result = runner.invoke(app, ["--password", "hunter2", "config"])
    assert result.exit_code == 0
    assert "http://localhost:15672/api" in result.output
    assert "hunter2" not in result.output
    assert "*******" in result.output


def test_config_save(tmp_path):
    with patch("rabbitmq_management.cli.app.save_settings",
               return_value=tmp_path / "management.conf") as save:
        result = runner.invoke(app, ["--user", "ops", "config", "--save"])

    assert result.exit_code == 0
    save.assert_called_once_with(SETTINGS._replace(username="ops"))


BINDINGS = [
    {"source": "", "vhost": "/", "destination": "jobs", "destination_type": "queue",
     "routing_key": "jobs", "arguments": {}, "properties_key": "jobs"},
    {"source": "events", "vhost": "/", "destination": "audit", "destination_type": "queue",
     "routing_key": "user.*", "arguments": {}, "properties_key": "user.*"},
]

PERMISSIONS = [
    {"user": "guest", "vhost": "/", "configure": ".*", "write": ".*", "read": ".*"},
    {"user": "app", "vhost": "/", "configure": "^$", "write": "^jobs$", "read": "[a-z]+"},
]


def test_list_bindings(mock_client):
    mock_client.get_bindings.return_value = make_result(body=BINDINGS)

    result = runner.invoke(app, ["bindings"])
    assert result.exit_code == 0
    assert "(default)" in result.output
    assert "audit" in result.output
    assert "user.*" in result.output


def test_list_bindings_in_vhost(mock_client):
    mock_client.get_bindings_in_vhost.return_value = make_result(body=[])

    result = runner.invoke(app, ["bindings", "--vhost", "/"])
    assert result.exit_code == 0
    assert "No bindings." in result.output
    mock_client.get_bindings_in_vhost.assert_called_once_with(vhost="%2F")
    mock_client.get_bindings.assert_not_called()


def test_list_permissions(mock_client):
    mock_client.get_users_permissions.return_value = make_result(body=PERMISSIONS)

    result = runner.invoke(app, ["permissions"])
    assert result.exit_code == 0
    assert "guest" in result.output
    assert "^jobs$" in result.output
    assert "[a-z]+" in result.output


def test_list_permissions_for_vhost(mock_client):
    mock_client.get_vhost_permissions.return_value = make_result(body=PERMISSIONS)

    result = runner.invoke(app, ["permissions", "--vhost", "/"])
    assert result.exit_code == 0
    mock_client.get_vhost_permissions.assert_called_once_with(name="%2F")


def test_list_permissions_for_user_in_vhost(mock_client):
    mock_client.get_vhost_permissions.return_value = make_result(body=PERMISSIONS)

    result = runner.invoke(app, ["permissions", "--vhost", "/", "--user", "app"])
    assert result.exit_code == 0
    assert "app" in result.output
    assert "guest" not in result.output


def test_list_permissions_for_user(mock_client):
    mock_client.get_user_permissions.return_value = make_result(body=PERMISSIONS[1:])

    result = runner.invoke(app, ["permissions", "--user", "app"])
    assert result.exit_code == 0
    mock_client.get_user_permissions.assert_called_once_with(name="app")

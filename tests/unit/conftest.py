"""Shared fixtures for the management client tests."""

from __future__ import annotations

from pathlib import Path

import httpx
import pytest

from rabbitmq_management.client import ManagementClient

BASE_URL = "http://localhost:15672/api"
HTTP_RESPONSES = Path(__file__).parent / "http_response"


def response_file(request: httpx.Request) -> Path:
    """Map a request onto its canned response file.

    Layout: http_response/<host>/<path>.<METHOD>[.<key>-<value>...]
    The path is taken undecoded, so ``/queues/%2f`` maps to a file
    literally named ``%2f.GET``.
    """
    path = request.url.raw_path.decode("ascii").partition("?")[0]
    name = f"{path.lstrip('/')}.{request.method}"
    for key, value in request.url.params.multi_items():
        name += f".{key}-{value}"
    return HTTP_RESPONSES / request.url.host / name


def parse_http_response(raw: bytes) -> httpx.Response:
    """Parse a raw HTTP/1.1 response as stored in the fixture files."""
    head, _, body = raw.replace(b"\r\n", b"\n").partition(b"\n\n")
    status_line, *header_lines = head.decode("latin-1").split("\n")
    status_code = int(status_line.split()[1])

    headers = []
    for line in header_lines:
        name, _, value = line.partition(":")
        # Recomputed from the body
        if name.strip().lower() == "content-length":
            continue
        headers.append((name.strip(), value.strip()))

    return httpx.Response(status_code, headers=headers, content=body.rstrip(b"\n"))


def canned_response(request: httpx.Request) -> httpx.Response:
    """Answer from the fixture files, 404 when there is none."""
    path = response_file(request)
    if not path.is_file():
        return httpx.Response(404)
    return parse_http_response(path.read_bytes())


@pytest.fixture
def fixture_transport():
    return httpx.MockTransport(canned_response)


@pytest.fixture
def client(fixture_transport):
    with ManagementClient(BASE_URL, transport=fixture_transport) as c:
        yield c


@pytest.fixture
def sent():
    """Requests seen by recording_client, in order."""
    return []


@pytest.fixture
def recording_client(sent):
    """Client whose transport records each request and answers 200 {}."""
    def handler(request: httpx.Request) -> httpx.Response:
        sent.append(request)
        return httpx.Response(200, json={})

    with ManagementClient(BASE_URL, transport=httpx.MockTransport(handler)) as c:
        yield c

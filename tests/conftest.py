"""Pytest hooks and fixtures."""

import json
import os
from typing import Any, Callable

import httpx
import pytest

from bitcoind_rpc import BitcoinClient


def pytest_configure(config):
    """Register custom markers (also in pyproject.toml)."""
    config.addinivalue_line(
        "markers",
        "requires_node: talks to a real daemon at BITCOIND_RPC_URL (skipped unless BITCOIND_RPC_LIVE=1)",
    )


def pytest_collection_modifyitems(config, items):
    """Skip requires_node tests unless a live daemon was asked for."""
    if os.environ.get("BITCOIND_RPC_LIVE") == "1":
        return
    skip = pytest.mark.skip(reason="Requires a running daemon (set BITCOIND_RPC_LIVE=1)")
    for item in items:
        if "requires_node" in item.keywords:
            item.add_marker(skip)


def rpc_reply(result: Any = None, error: Any = None, rpc_id: Any = 0, status_code: int = 200) -> httpx.Response:
    return httpx.Response(status_code, json={"result": result, "error": error, "id": rpc_id})


class RecordingHandler:
    """httpx.MockTransport handler that records decoded request bodies."""

    def __init__(self, reply: Callable[[httpx.Request, dict], httpx.Response] | None = None):
        self.requests: list[httpx.Request] = []
        self.bodies: list[dict] = []
        self._reply = reply or (lambda request, body: rpc_reply(result=None, rpc_id=body["id"]))

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.requests.append(request)
        self.bodies.append(body)
        return self._reply(request, body)

    @property
    def ids(self) -> list[int]:
        return [body["id"] for body in self.bodies]


@pytest.fixture
def make_client():
    """Build a client whose HTTP traffic goes to a RecordingHandler."""
    created: list[BitcoinClient] = []

    def factory(reply=None, **config: Any) -> tuple[BitcoinClient, RecordingHandler]:
        handler = RecordingHandler(reply)
        client = BitcoinClient({"handler": httpx.MockTransport(handler), **config})
        created.append(client)
        return client, handler

    yield factory
    for client in created:
        client.close()

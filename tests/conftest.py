"""Shared fixtures: a fake node behind httpx.MockTransport."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Callable

import httpx
import pytest

from bitcoind.client import Bitcoind


@dataclass
class FakeNode:
    """Records every request and answers with a canned response."""

    responder: Callable[[httpx.Request], httpx.Response]
    requests: list[httpx.Request] = field(default_factory=list)

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responder(request)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    @property
    def last_body(self) -> dict[str, Any]:
        return json.loads(self.last.content)

    def http_client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self.handle))


def envelope(result: Any = None, error: Any = None, id: Any = 1) -> dict[str, Any]:
    return {"id": id, "result": result, "error": error}


def reply(payload: Any, status_code: int = 200) -> Callable[[httpx.Request], httpx.Response]:
    def responder(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, json=payload)

    return responder


def reply_raw(body: bytes, status_code: int = 200) -> Callable[[httpx.Request], httpx.Response]:
    def responder(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, content=body)

    return responder


@pytest.fixture()
def make_node() -> Callable[..., tuple[Bitcoind, FakeNode]]:
    """Build a Bitcoind wired to a FakeNode answering with ``responder``."""

    def factory(
        responder: Callable[[httpx.Request], httpx.Response],
        user: str = "alice",
        password: str = "secret",
        addr: str = "127.0.0.1:8332",
    ) -> tuple[Bitcoind, FakeNode]:
        fake = FakeNode(responder)
        node = Bitcoind(addr, user, password, http_client=fake.http_client())
        return node, fake

    return factory

"""
JSON-RPC transport for Bitcoin Core compatible nodes.

Lightweight alternative to python-bitcoinlib: uses httpx for HTTP and the
json module for the envelope. One call is one POST; nothing is retried,
batched or cached.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Optional
from urllib.parse import quote

import httpx

logger = logging.getLogger(__name__)

JSONRPC_VERSION = "1.0"

REQUEST_HEADERS = {
    "Content-Type": "application/json;charset=utf-8",
    "Accept": "application/json",
}


# ============ Errors ============


class BitcoindError(RuntimeError):
    """Base class for every failure surfaced by this package."""


class TransportError(BitcoindError):
    """The HTTP request could not be sent or its response could not be read."""


class DecodeError(BitcoindError):
    """The response body or result payload did not have the expected shape."""

    def __init__(self, message: str, errors: list[str] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or []


class RPCError(BitcoindError):
    """The node executed the call and reported a failure."""

    def __init__(self, code: int, message: str) -> None:
        super().__init__(f"{code}: {message}")
        self.code = code
        self.message = message

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "RPCError":
        code = payload.get("code", 0)
        message = payload.get("message", "")
        if code is None:
            code = 0
        if message is None:
            message = ""
        if isinstance(code, bool) or not isinstance(code, int):
            raise DecodeError(f"RPC error code must be an integer, got {code!r}")
        if not isinstance(message, str):
            raise DecodeError(f"RPC error message must be a string, got {message!r}")
        return cls(code, message)

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message}


# ============ Envelopes ============


@dataclass(frozen=True)
class RpcRequest:
    method: str
    params: Optional[list]
    id: int
    jsonrpc: str = JSONRPC_VERSION

    @classmethod
    def new(cls, method: str, params: Optional[list] = None) -> "RpcRequest":
        return cls(method=method, params=params, id=time.time_ns())

    def to_dict(self) -> dict[str, Any]:
        return {
            "method": self.method,
            "params": self.params,
            "id": self.id,
            "jsonrpc": self.jsonrpc,
        }

    def encode(self) -> bytes:
        return json.dumps(self.to_dict()).encode("utf-8")


@dataclass(frozen=True)
class RpcResponse:
    id: Any
    result: Any
    error: Optional[RPCError] = None

    @classmethod
    def from_dict(cls, payload: Any) -> "RpcResponse":
        if not isinstance(payload, dict):
            raise DecodeError(
                f"RPC response must be a JSON object, got {type(payload).__name__}"
            )
        raw_error = payload.get("error")
        if raw_error is None:
            error = None
        elif isinstance(raw_error, dict):
            error = RPCError.from_dict(raw_error)
        else:
            raise DecodeError(f"RPC error must be an object or null, got {raw_error!r}")
        return cls(id=payload.get("id"), result=payload.get("result"), error=error)

    @classmethod
    def decode(cls, body: bytes) -> "RpcResponse":
        try:
            payload = json.loads(body)
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise DecodeError(f"RPC response is not valid JSON: {exc}") from exc
        return cls.from_dict(payload)

    def unwrap(self) -> Any:
        """Return the raw result, or raise the node's error if it sent one."""
        if self.error is not None:
            raise self.error
        return self.result


# ============ Client ============


class RpcClient:
    """
    Client handle for one node.

    Holds the target address, optional credentials and the HTTP client used
    for every call. The handle keeps no per-call state, so it can be shared
    between threads as long as the HTTP client can.

    Args:
        addr: ``host:port`` of the node, or a full ``http(s)://`` URL
        user: RPC username (auth is sent only when user and password are set)
        password: RPC password
        http_client: httpx.Client to send requests with. When omitted the
            handle creates and owns one.
        timeout: Timeout in seconds for an owned client (None waits forever)

    Raises:
        ValueError: If timeout is zero or negative
    """

    def __init__(
        self,
        addr: str,
        user: str = "",
        password: str = "",
        http_client: Optional[httpx.Client] = None,
        timeout: Optional[float] = None,
    ) -> None:
        if timeout is not None and timeout <= 0:
            raise ValueError(f"timeout must be positive seconds or None, got {timeout!r}")
        self.addr = addr
        self.user = user
        self.password = password
        self._owns_http_client = http_client is None
        self._http = http_client if http_client is not None else httpx.Client(timeout=timeout)

    @property
    def base_url(self) -> str:
        if self.addr.startswith(("http://", "https://")):
            return self.addr.rstrip("/")
        return f"http://{self.addr}"

    @property
    def auth(self) -> Optional[httpx.BasicAuth]:
        if self.user and self.password:
            return httpx.BasicAuth(self.user, self.password)
        return None

    def url_for(self, account: str = "") -> str:
        """Build the endpoint URL, routed to a named wallet when given."""
        url = self.base_url
        if account:
            url += f"/wallet/{quote(account, safe='')}"
        return url

    def call(self, account: str, method: str, params: Optional[list] = None) -> RpcResponse:
        """
        Perform one JSON-RPC round trip.

        Args:
            account: Wallet name to route to ("" for node-level calls)
            method: RPC method name (e.g., "getbalance")
            params: Positional parameters, or None

        Returns:
            Parsed response envelope. An RPC error in the envelope is not
            raised here; see RpcResponse.unwrap.

        Raises:
            TransportError: If the request could not be sent or read
            DecodeError: If the body is not a JSON-RPC envelope
        """
        request = RpcRequest.new(method, params)
        url = self.url_for(account)
        logger.debug("RPC request: %s wallet=%r id=%d", method, account, request.id)

        try:
            response = self._http.post(
                url,
                content=request.encode(),
                headers=REQUEST_HEADERS,
                auth=self.auth,
            )
            body = response.read()
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.debug("RPC transport failure: %s -> %s", method, exc)
            raise TransportError(f"RPC request {method} to {url} failed: {exc}") from exc

        # Status codes are not checked: the node reports failures in the envelope.
        logger.debug(
            "RPC response: %s -> HTTP %d, %d bytes", method, response.status_code, len(body)
        )
        envelope = RpcResponse.decode(body)
        if envelope.error is not None:
            logger.debug("RPC error: %s -> %s", method, envelope.error)
        return envelope

    def result(self, account: str, method: str, params: Optional[list] = None) -> Any:
        """Perform a call and return its raw result, raising RPCError on failure."""
        return self.call(account, method, params).unwrap()

    def close(self) -> None:
        """Close the HTTP client if this handle created it."""
        if self._owns_http_client:
            self._http.close()

    def __enter__(self) -> "RpcClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

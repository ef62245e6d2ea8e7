"""Tests for the typed Bitcoind API against a fake node."""

from __future__ import annotations

from typing import Any, Callable

import httpx
import pytest

from bitcoind.client import Bitcoind
from bitcoind.config import RpcConfig
from bitcoind.models import Peer, ValidateAddressResponse, WalletInfo
from bitcoind.rpc import DecodeError, RPCError, TransportError
from conftest import envelope, reply, reply_raw


# (operation, expected method, expected params, expected wallet path, result to serve)
OPERATIONS: list[tuple[Callable[[Bitcoind], Any], str, Any, str, Any]] = [
    (lambda b: b.load_wallet("main"), "loadwallet", ["main"], "", {"name": "main"}),
    (
        lambda b: b.create_wallet("main"),
        "createwallet",
        ["main", False, False, "", False, False],
        "",
        {"name": "main"},
    ),
    (lambda b: b.unload_wallet("main"), "unloadwallet", ["main"], "", None),
    (lambda b: b.list_wallets(), "listwallets", None, "", ["main"]),
    (lambda b: b.get_balance("main", 6), "getbalance", ["*", 6], "/wallet/main", "2.5"),
    (
        lambda b: b.import_priv_key("cVpF924EspNh8KjYsfhgY96mmxvT6DgdWiTYMtMjuM74hJaU5psW", "main", True),
        "importprivkey",
        ["cVpF924EspNh8KjYsfhgY96mmxvT6DgdWiTYMtMjuM74hJaU5psW", "main", True],
        "/wallet/main",
        None,
    ),
    (lambda b: b.get_new_address("main"), "getnewaddress", ["main"], "/wallet/main", "bc1qaddr"),
    (lambda b: b.get_peer_info(), "getpeerinfo", None, "", []),
    (
        lambda b: b.encrypt_wallet("main", "hunter2"),
        "encryptwallet",
        ["hunter2"],
        "/wallet/main",
        "wallet encrypted",
    ),
    (
        lambda b: b.wallet_passphrase("main", "hunter2", 60),
        "walletpassphrase",
        ["hunter2", 60],
        "/wallet/main",
        None,
    ),
    (lambda b: b.wallet_lock("main"), "walletlock", None, "/wallet/main", None),
    (
        lambda b: b.send_to_address("main", "bc1qdest", 0.1, "rent", "landlord", True),
        "sendtoaddress",
        ["bc1qdest", 0.1, "rent", "landlord", True],
        "/wallet/main",
        "a" * 64,
    ),
    (lambda b: b.dump_priv_key("main", "1A2b3C"), "dumpprivkey", ["1A2b3C"], "/wallet/main", "KxKey"),
    (
        lambda b: b.list_descriptors("main", False),
        "listdescriptors",
        [False],
        "/wallet/main",
        {"wallet_name": "main", "descriptors": []},
    ),
    (lambda b: b.get_wallet_info("main"), "getwalletinfo", None, "/wallet/main", {"walletname": "main"}),
    (lambda b: b.validate_address("1A2b3C"), "validateaddress", ["1A2b3C"], "", {"isvalid": True}),
    (lambda b: b.get_block_count(), "getblockcount", None, "", 840000),
]

OPERATION_IDS = [op[1] for op in OPERATIONS]


class TestRequestMapping:
    """Every operation sends its fixed method, params and wallet route."""

    @pytest.mark.parametrize("operation,method,params,path,result", OPERATIONS, ids=OPERATION_IDS)
    def test_request(
        self,
        make_node: Callable[..., Any],
        operation: Callable[[Bitcoind], Any],
        method: str,
        params: Any,
        path: str,
        result: Any,
    ) -> None:
        node, fake = make_node(reply(envelope(result=result)))
        operation(node)

        assert len(fake.requests) == 1
        assert fake.last_body["method"] == method
        assert fake.last_body["params"] == params
        assert fake.last_body["jsonrpc"] == "1.0"
        assert fake.last.url.path == (path or "/")

    @pytest.mark.parametrize("operation,method,params,path,result", OPERATIONS, ids=OPERATION_IDS)
    def test_rpc_error_wins_over_result(
        self,
        make_node: Callable[..., Any],
        operation: Callable[[Bitcoind], Any],
        method: str,
        params: Any,
        path: str,
        result: Any,
    ) -> None:
        node, _ = make_node(
            reply(envelope(result=result, error={"code": -13, "message": "wallet locked"}))
        )
        with pytest.raises(RPCError) as excinfo:
            operation(node)
        assert excinfo.value.code == -13
        assert excinfo.value.message == "wallet locked"

    @pytest.mark.parametrize("operation,method,params,path,result", OPERATIONS, ids=OPERATION_IDS)
    def test_malformed_body(
        self,
        make_node: Callable[..., Any],
        operation: Callable[[Bitcoind], Any],
        method: str,
        params: Any,
        path: str,
        result: Any,
    ) -> None:
        node, _ = make_node(reply_raw(b"not json"))
        with pytest.raises(DecodeError):
            operation(node)


class TestResults:
    """Decoded results for each result shape."""

    def test_balance_scenario(self, make_node: Callable[..., Any]) -> None:
        node, fake = make_node(reply({"id": 1, "result": "2.50000000", "error": None}))
        assert node.get_balance("main", 6) == 2.5
        assert fake.last.url.path == "/wallet/main"
        assert fake.last_body["params"] == ["*", 6]

    def test_balance_numeric_result(self, make_node: Callable[..., Any]) -> None:
        node, _ = make_node(reply(envelope(result=1.5)))
        assert node.get_balance("main", 0) == 1.5

    def test_balance_wrong_shape(self, make_node: Callable[..., Any]) -> None:
        node, _ = make_node(reply(envelope(result={"mine": 1})))
        with pytest.raises(DecodeError):
            node.get_balance("main", 1)

    def test_validate_address_scenario(self, make_node: Callable[..., Any]) -> None:
        node, fake = make_node(
            reply(
                envelope(
                    result={
                        "isvalid": True,
                        "address": "1A2b3C",
                        "ismine": False,
                        "isscript": False,
                        "pubkey": "",
                        "iscompressed": False,
                        "account": "",
                    }
                )
            )
        )
        info = node.validate_address("1A2b3C")
        assert info == ValidateAddressResponse(isvalid=True, address="1A2b3C", ismine=False)
        assert "/wallet/" not in str(fake.last.url)

    def test_new_address(self, make_node: Callable[..., Any]) -> None:
        node, _ = make_node(reply(envelope(result="bc1qnewaddress")))
        assert node.get_new_address("main") == "bc1qnewaddress"

    def test_send_returns_txid(self, make_node: Callable[..., Any]) -> None:
        txid = "f" * 64
        node, _ = make_node(reply(envelope(result=txid)))
        assert node.send_to_address("main", "bc1qdest", 0.25) == txid

    def test_send_defaults(self, make_node: Callable[..., Any]) -> None:
        node, fake = make_node(reply(envelope(result="0" * 64)))
        node.send_to_address("main", "bc1qdest", 0.25)
        assert fake.last_body["params"] == ["bc1qdest", 0.25, "", "", False]

    def test_dump_priv_key_wrong_shape(self, make_node: Callable[..., Any]) -> None:
        node, _ = make_node(reply(envelope(result=None)))
        with pytest.raises(DecodeError):
            node.dump_priv_key("main", "1A2b3C")

    def test_peer_info(self, make_node: Callable[..., Any]) -> None:
        node, _ = make_node(
            reply(envelope(result=[{"id": 7, "addr": "203.0.113.5:8333", "inbound": False}]))
        )
        assert node.get_peer_info() == [Peer(id=7, addr="203.0.113.5:8333")]

    def test_wallet_info(self, make_node: Callable[..., Any]) -> None:
        node, _ = make_node(
            reply(envelope(result={"walletname": "main", "txcount": 3, "balance": 0.001}))
        )
        assert node.get_wallet_info("main") == WalletInfo(
            walletname="main", txcount=3, balance=0.001
        )

    def test_list_descriptors_discards_result(self, make_node: Callable[..., Any]) -> None:
        node, _ = make_node(reply(envelope(result={"wallet_name": "main", "descriptors": []})))
        assert node.list_descriptors("main", True) is None

    def test_list_descriptors_wrong_shape(self, make_node: Callable[..., Any]) -> None:
        node, _ = make_node(reply(envelope(result="nope")))
        with pytest.raises(DecodeError):
            node.list_descriptors("main", False)

    def test_wallet_ops_return_none(self, make_node: Callable[..., Any]) -> None:
        node, _ = make_node(reply(envelope(result={"name": "main", "warning": ""})))
        assert node.create_wallet("main") is None
        assert node.load_wallet("main") is None

    def test_raw_call(self, make_node: Callable[..., Any]) -> None:
        node, fake = make_node(reply(envelope(result={"chain": "regtest", "blocks": 101})))
        assert node.call("getblockchaininfo") == {"chain": "regtest", "blocks": 101}
        assert fake.last_body["params"] is None

    def test_raw_call_with_wallet(self, make_node: Callable[..., Any]) -> None:
        node, fake = make_node(reply(envelope(result=[])))
        node.call("listunspent", [1, 9999999], account="main")
        assert fake.last.url.path == "/wallet/main"
        assert fake.last_body["params"] == [1, 9999999]


class TestErrors:
    """Transport failures propagate unchanged."""

    def test_transport_error(self, make_node: Callable[..., Any]) -> None:
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("Connection refused", request=request)

        node, _ = make_node(refuse)
        with pytest.raises(TransportError):
            node.get_balance("main", 1)

    def test_errors_are_distinct(self) -> None:
        assert not issubclass(RPCError, TransportError)
        assert not issubclass(RPCError, DecodeError)
        assert not issubclass(DecodeError, TransportError)


class TestConstruction:
    """Handle construction never touches the network."""

    def test_new(self) -> None:
        with Bitcoind.new("127.0.0.1:18443", "user", "pass") as node:
            assert node.client.url_for("w") == "http://127.0.0.1:18443/wallet/w"

    def test_from_config(self, make_node: Callable[..., Any]) -> None:
        _, fake = make_node(reply(envelope(result=12)))
        config = RpcConfig(addr="10.0.0.2:8332", user="u", password="p")
        node = Bitcoind.from_config(config, http_client=fake.http_client())

        assert node.get_block_count() == 12
        assert fake.last.url.host == "10.0.0.2"
        assert fake.last.headers["Authorization"].startswith("Basic ")

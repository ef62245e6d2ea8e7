"""
Typed Bitcoin Core wallet and network API.

Each method maps to one RPC call: a fixed method name, its positional
parameters, and the shape its result is decoded into. Transport and decode
failures propagate unchanged; an error reported by the node is raised as
RPCError before any decoding happens.

Method semantics follow the Bitcoin Core RPC documentation:
https://developer.bitcoin.org/reference/rpc/
"""

from __future__ import annotations

from typing import Any, Optional

import httpx

from .config import RpcConfig
from .models import (
    Peer,
    ValidateAddressResponse,
    WalletInfo,
    decode_float,
    decode_int,
    decode_str,
    decode_str_list,
)
from .rpc import RpcClient
from .schemas import SchemaRegistry


class Bitcoind:
    """Typed client for one bitcoind node."""

    def __init__(
        self,
        addr: str,
        user: str = "",
        password: str = "",
        http_client: Optional[httpx.Client] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.client = RpcClient(addr, user, password, http_client=http_client, timeout=timeout)

    @classmethod
    def new(cls, addr: str, user: str = "", password: str = "", **kwargs: Any) -> "Bitcoind":
        """Return a ready-to-use handle. No connection is made until the first call."""
        return cls(addr, user, password, **kwargs)

    @classmethod
    def from_config(
        cls, config: RpcConfig, http_client: Optional[httpx.Client] = None
    ) -> "Bitcoind":
        return cls(
            config.addr,
            config.user,
            config.password,
            http_client=http_client,
            timeout=config.timeout,
        )

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> "Bitcoind":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ============ Raw access ============

    def call(self, method: str, params: Optional[list] = None, account: str = "") -> Any:
        """Call any RPC method and return its undecoded result."""
        return self.client.result(account, method, params)

    # ============ Wallet management ============

    def load_wallet(self, account: str) -> None:
        """Load a wallet from the node's wallet directory."""
        self.client.result("", "loadwallet", [account])

    def create_wallet(self, account: str) -> None:
        """
        Create a new wallet.

        Created with private keys enabled, not blank, no passphrase, no
        address reuse avoidance and legacy (non-descriptor) keys.
        """
        self.client.result("", "createwallet", [account, False, False, "", False, False])

    def unload_wallet(self, account: str) -> None:
        self.client.result("", "unloadwallet", [account])

    def list_wallets(self) -> list[str]:
        return decode_str_list(self.client.result("", "listwallets"))

    def get_wallet_info(self, account: str) -> WalletInfo:
        """Return an object containing various wallet state info."""
        return WalletInfo.from_dict(self.client.result(account, "getwalletinfo"))

    def encrypt_wallet(self, account: str, passphrase: str) -> None:
        """Encrypt the wallet with ``passphrase``."""
        self.client.result(account, "encryptwallet", [passphrase])

    def wallet_passphrase(self, account: str, passphrase: str, timeout: int) -> None:
        """Unlock the wallet for ``timeout`` seconds."""
        self.client.result(account, "walletpassphrase", [passphrase, timeout])

    def wallet_lock(self, account: str) -> None:
        self.client.result(account, "walletlock")

    def list_descriptors(self, account: str, private: bool) -> None:
        """Ask the node for the wallet's descriptors and discard them."""
        result = self.client.result(account, "listdescriptors", [private])
        SchemaRegistry.default().validate_instance(result, "listdescriptors")

    # ============ Balances and addresses ============

    def get_balance(self, account: str, minconf: int) -> float:
        """Return the wallet balance counting transactions with ``minconf`` confirmations."""
        return decode_float(self.client.result(account, "getbalance", ["*", minconf]))

    def get_new_address(self, account: str) -> str:
        """Return a new address labelled ``account``."""
        return decode_str(self.client.result(account, "getnewaddress", [account]))

    def validate_address(self, address: str) -> ValidateAddressResponse:
        """Return information about ``address``."""
        return ValidateAddressResponse.from_dict(
            self.client.result("", "validateaddress", [address])
        )

    # ============ Keys ============

    def import_priv_key(self, priv_key: str, account: str, rescan: bool) -> None:
        """
        Add a private key (as returned by dumpprivkey) to the wallet.

        With ``rescan`` the node scans the chain for existing transactions,
        which may take a while. The public key is derived from the private
        key, so it never needs importing separately.
        """
        self.client.result(account, "importprivkey", [priv_key, account, rescan])

    def dump_priv_key(self, account: str, address: str) -> str:
        """Return the private key, as a string, that controls ``address``."""
        return decode_str(self.client.result(account, "dumpprivkey", [address]))

    # ============ Transactions ============

    def send_to_address(
        self,
        from_account: str,
        to_address: str,
        amount: float,
        comment: str = "",
        comment_to: str = "",
        subfee: bool = False,
    ) -> str:
        """Send ``amount`` to ``to_address`` and return the transaction id."""
        return decode_str(
            self.client.result(
                from_account,
                "sendtoaddress",
                [to_address, amount, comment, comment_to, subfee],
            )
        )

    # ============ Network ============

    def get_peer_info(self) -> list[Peer]:
        """Return data about each connected node."""
        return Peer.list_from(self.client.result("", "getpeerinfo"))

    def get_block_count(self) -> int:
        return decode_int(self.client.result("", "getblockcount"))

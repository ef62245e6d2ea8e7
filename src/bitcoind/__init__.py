"""
bitcoind-rpc - Typed JSON-RPC client for Bitcoin Core nodes.

Uses httpx for transport and plain dataclasses for results instead of the
heavyweight python-bitcoinlib.
"""
__all__ = [
    # Client
    "Bitcoind",
    "RpcClient",
    "RpcRequest",
    "RpcResponse",
    # Results
    "Peer",
    "ValidateAddressResponse",
    "WalletInfo",
    # Errors
    "BitcoindError",
    "DecodeError",
    "RPCError",
    "TransportError",
    # Config
    "RpcConfig",
    "load_config",
]

from .client import Bitcoind
from .config import RpcConfig, load_config
from .models import Peer, ValidateAddressResponse, WalletInfo
from .rpc import (
    BitcoindError,
    DecodeError,
    RPCError,
    RpcClient,
    RpcRequest,
    RpcResponse,
    TransportError,
)

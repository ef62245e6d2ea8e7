from __future__ import annotations

import math
import re
from dataclasses import asdict, dataclass, fields
from typing import Any, Optional

from .rpc import DecodeError
from .schemas import SchemaRegistry

# Plain decimal or exponent notation; no underscores, whitespace or words.
_DECIMAL_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def _coerce(schema: dict[str, Any], name: str, value: Any) -> Any:
    json_types = schema["properties"][name]["type"]
    if "integer" in json_types:
        return int(value)
    if "number" in json_types:
        return float(value)
    return value


def _decode_struct(
    cls: type, payload: Any, schema_name: str, registry: SchemaRegistry | None = None
) -> Any:
    registry = registry or SchemaRegistry.default()
    registry.validate_instance(payload, schema_name)
    schema = registry.schemas[schema_name]
    values = {
        f.name: _coerce(schema, f.name, payload[f.name])
        for f in fields(cls)
        if payload.get(f.name) is not None
    }
    return cls(**values)


def decode_float(value: Any) -> float:
    """Decode a JSON number, or a JSON string holding one, to float."""
    if isinstance(value, str):
        if not _DECIMAL_RE.fullmatch(value):
            raise DecodeError(f"Expected a numeric string, got {value!r}")
        number = float(value)
    else:
        SchemaRegistry.default().validate_instance(value, "number")
        number = float(value)
    if not math.isfinite(number):
        raise DecodeError(f"Expected a finite number, got {value!r}")
    return number


def decode_str(value: Any) -> str:
    SchemaRegistry.default().validate_instance(value, "string")
    return value


def decode_int(value: Any) -> int:
    SchemaRegistry.default().validate_instance(value, "integer")
    return int(value)


def decode_str_list(value: Any) -> list[str]:
    SchemaRegistry.default().validate_instance(value, "string-list")
    return list(value)


@dataclass(frozen=True)
class ValidateAddressResponse:
    """Result of ``validateaddress``."""

    isvalid: bool = False
    address: str = ""
    ismine: bool = False
    isscript: bool = False
    pubkey: str = ""
    iscompressed: bool = False
    account: str = ""

    @classmethod
    def from_dict(
        cls, payload: Any, registry: SchemaRegistry | None = None
    ) -> "ValidateAddressResponse":
        return _decode_struct(cls, payload, "validateaddress", registry)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Peer:
    """One entry of ``getpeerinfo``."""

    id: int = 0
    addr: str = ""
    addrlocal: str = ""
    services: str = ""
    relaytxes: bool = False
    lastsend: int = 0
    lastrecv: int = 0
    bytessent: int = 0
    bytesrecv: int = 0
    conntime: int = 0
    timeoffset: int = 0
    pingtime: Optional[float] = None
    version: int = 0
    subver: str = ""
    inbound: bool = False
    startingheight: int = 0
    banscore: int = 0
    synced_headers: int = 0
    synced_blocks: int = 0
    connection_type: str = ""

    @classmethod
    def from_dict(cls, payload: Any, registry: SchemaRegistry | None = None) -> "Peer":
        return _decode_struct(cls, payload, "peer", registry)

    @classmethod
    def list_from(cls, payload: Any, registry: SchemaRegistry | None = None) -> list["Peer"]:
        registry = registry or SchemaRegistry.default()
        registry.validate_instance(payload, "getpeerinfo")
        return [cls.from_dict(item, registry) for item in payload]

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class WalletInfo:
    """
    Result of ``getwalletinfo``.

    ``unlocked_until`` is None for unencrypted wallets, 0 for locked ones and
    the expiry timestamp otherwise.
    """

    walletname: str = ""
    walletversion: int = 0
    balance: float = 0.0
    unconfirmed_balance: float = 0.0
    immature_balance: float = 0.0
    txcount: int = 0
    keypoololdest: int = 0
    keypoolsize: int = 0
    keypoolsize_hd_internal: int = 0
    unlocked_until: Optional[int] = None
    paytxfee: float = 0.0
    hdseedid: str = ""
    private_keys_enabled: bool = False
    avoid_reuse: bool = False
    descriptors: bool = False

    @classmethod
    def from_dict(cls, payload: Any, registry: SchemaRegistry | None = None) -> "WalletInfo":
        return _decode_struct(cls, payload, "getwalletinfo", registry)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


__all__ = [
    "Peer",
    "ValidateAddressResponse",
    "WalletInfo",
    "decode_float",
    "decode_int",
    "decode_str",
    "decode_str_list",
]

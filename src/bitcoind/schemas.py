from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import jsonschema

from .rpc import DecodeError

DRAFT = "https://json-schema.org/draft/2020-12/schema"


def nullable(json_type: str) -> dict[str, Any]:
    return {"type": [json_type, "null"]}


def object_schema(title: str, properties: dict[str, str]) -> dict[str, Any]:
    """Object whose listed keys may be missing or null; other keys are allowed."""
    return {
        "$schema": DRAFT,
        "title": title,
        "type": "object",
        "properties": {name: nullable(json_type) for name, json_type in properties.items()},
        "additionalProperties": True,
    }


VALIDATE_ADDRESS_SCHEMA = object_schema(
    "validateaddress",
    {
        "isvalid": "boolean",
        "address": "string",
        "ismine": "boolean",
        "isscript": "boolean",
        "pubkey": "string",
        "iscompressed": "boolean",
        "account": "string",
    },
)

PEER_SCHEMA = object_schema(
    "getpeerinfo entry",
    {
        "id": "integer",
        "addr": "string",
        "addrlocal": "string",
        "services": "string",
        "relaytxes": "boolean",
        "lastsend": "integer",
        "lastrecv": "integer",
        "bytessent": "integer",
        "bytesrecv": "integer",
        "conntime": "integer",
        "timeoffset": "integer",
        "pingtime": "number",
        "version": "integer",
        "subver": "string",
        "inbound": "boolean",
        "startingheight": "integer",
        "banscore": "integer",
        "synced_headers": "integer",
        "synced_blocks": "integer",
        "connection_type": "string",
    },
)

PEER_LIST_SCHEMA = {
    "$schema": DRAFT,
    "title": "getpeerinfo",
    "type": "array",
    "items": PEER_SCHEMA,
}

WALLET_INFO_SCHEMA = object_schema(
    "getwalletinfo",
    {
        "walletname": "string",
        "walletversion": "integer",
        "balance": "number",
        "unconfirmed_balance": "number",
        "immature_balance": "number",
        "txcount": "integer",
        "keypoololdest": "integer",
        "keypoolsize": "integer",
        "keypoolsize_hd_internal": "integer",
        "unlocked_until": "integer",
        "paytxfee": "number",
        "hdseedid": "string",
        "private_keys_enabled": "boolean",
        "avoid_reuse": "boolean",
        "descriptors": "boolean",
    },
)


@dataclass
class SchemaRegistry:
    """Compiled validators for result payloads, keyed by schema name."""

    schemas: dict[str, dict[str, Any]]
    _validators: dict[str, jsonschema.Validator] = field(default_factory=dict, repr=False)

    @classmethod
    def default(cls) -> "SchemaRegistry":
        return _DEFAULT

    def register(self, name: str, schema: dict[str, Any]) -> None:
        self.schemas[name] = schema
        self._validators.pop(name, None)

    def validator_for(self, name: str) -> jsonschema.Validator:
        validator = self._validators.get(name)
        if validator is None:
            schema = self.schemas[name]
            validator_cls = jsonschema.validators.validator_for(schema)
            validator_cls.check_schema(schema)
            validator = validator_cls(schema)
            self._validators[name] = validator
        return validator

    def validate_instance(self, instance: Any, name: str) -> None:
        validator = self.validator_for(name)
        errors = sorted(validator.iter_errors(instance), key=lambda e: list(e.path))
        if errors:
            formatted = [self._format_error(err) for err in errors]
            raise DecodeError(
                f"{name} result failed validation: {'; '.join(formatted)}",
                errors=formatted,
            )

    @staticmethod
    def _format_error(error: jsonschema.ValidationError) -> str:
        location = "/".join(str(part) for part in error.path) or "<root>"
        return f"{location}: {error.message}"


_DEFAULT = SchemaRegistry(
    schemas={
        "string": {"$schema": DRAFT, "type": "string"},
        "integer": {"$schema": DRAFT, "type": "integer"},
        "number": {"$schema": DRAFT, "type": "number"},
        "string-list": {"$schema": DRAFT, "type": "array", "items": {"type": "string"}},
        "listdescriptors": {"$schema": DRAFT, "type": "object"},
        "validateaddress": VALIDATE_ADDRESS_SCHEMA,
        "getpeerinfo": PEER_LIST_SCHEMA,
        "peer": PEER_SCHEMA,
        "getwalletinfo": WALLET_INFO_SCHEMA,
    }
)


__all__ = [
    "PEER_LIST_SCHEMA",
    "PEER_SCHEMA",
    "SchemaRegistry",
    "VALIDATE_ADDRESS_SCHEMA",
    "WALLET_INFO_SCHEMA",
]

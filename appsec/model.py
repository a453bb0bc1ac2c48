"""Records exchanged by the account and destination APIs."""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, ClassVar


def _non_empty(record: Any) -> dict[str, Any]:
    """JSON form of a record, leaving out empty fields."""
    return {
        name: getattr(record, attr)
        for name, attr in record.JSON_FIELDS.items()
        if getattr(record, attr)
    }


@dataclass
class Debug:
    """Status part of every API response: ``S`` for success, ``E`` for error."""

    sts: str = "S"
    msg: str = ""

    def to_dict(self) -> dict[str, str]:
        return {"sts": self.sts, "msg": self.msg}


@dataclass
class Account:
    """An account holder."""

    JSON_FIELDS: ClassVar[dict[str, str]] = {
        "email": "email",
        "accid": "acc_id",
        "accname": "acc_name",
        "appsecret": "secret",
    }

    email: str = ""
    acc_id: str = ""
    acc_name: str = ""
    secret: str = ""

    def to_dict(self) -> dict[str, str]:
        return _non_empty(self)


@dataclass
class Destination:
    """A destination that incoming data of an account is forwarded to."""

    JSON_FIELDS: ClassVar[dict[str, str]] = {
        "account_id": "account_id",
        "des_id": "des_id",
        "url": "url",
        "http_method": "http_method",
        "headers": "headers",
    }

    account_id: str = ""
    des_id: str = ""
    url: str = ""
    http_method: str = ""
    headers: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        result = _non_empty(self)
        if "headers" in result:
            result["headers"] = dict(result["headers"])
        return result


@dataclass
class ConstructData:
    """A request prepared for a destination."""

    url: str = ""
    method: str = ""
    jbody: str = ""
    headers: str = ""

    def to_dict(self) -> dict[str, str]:
        return {
            "url": self.url,
            "method": self.method,
            "jbody": self.jbody,
            "headers": self.headers,
        }


def _fields(data: Any, known: dict[str, str]) -> list[tuple[str, Any]]:
    """Decode a JSON object and pair its known keys, matched ignoring case, with attributes."""
    if isinstance(data, (bytes, bytearray)):
        data = bytes(data).decode("utf-8")
    if isinstance(data, str):
        data = json.loads(data)
    if data is None:
        return []
    if not isinstance(data, Mapping):
        raise ValueError("cannot unmarshal non-object JSON into a record")
    folded = {name.casefold(): attr for name, attr in known.items()}
    return [
        (folded[key.casefold()], value)
        for key, value in data.items()
        if key.casefold() in folded
    ]


def _text(value: Any, attr: str) -> str | None:
    if value is None or isinstance(value, str):
        return value
    raise ValueError(f"field {attr} must be a string")


def parse_account(data: Any) -> Account:
    """Build an Account from JSON text, bytes or a decoded mapping."""
    values = {}
    for attr, value in _fields(data, Account.JSON_FIELDS):
        text = _text(value, attr)
        if text is not None:
            values[attr] = text
    return Account(**values)


def parse_destination(data: Any) -> Destination:
    """Build a Destination from JSON text, bytes or a decoded mapping."""
    values: dict[str, Any] = {}
    for attr, value in _fields(data, Destination.JSON_FIELDS):
        if attr != "headers":
            text = _text(value, attr)
            if text is not None:
                values[attr] = text
        elif value is not None:
            if not isinstance(value, Mapping):
                raise ValueError("field headers must be an object")
            headers = values.setdefault("headers", {})
            for key, item in value.items():
                headers[key] = _text(item, "headers") or ""
    return Destination(**values)
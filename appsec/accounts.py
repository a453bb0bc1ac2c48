"""Storage of account holders."""

from __future__ import annotations

import base64
from contextlib import closing
from typing import Any

from .model import Account

DEFAULT_PLACEHOLDER = "%s"

_SELECT = "SELECT accname, email FROM account_holders WHERE accid = ?"
_INSERT = (
    "INSERT INTO account_holders "
    "(accid, accname, email, appsecret, createdby, createddate) "
    "VALUES (?, ?, ?, ?, ?, Now())"
)
_UPDATE = (
    "UPDATE account_holders "
    "SET email = ?, accname = ?, updatedby = ?, updateddate = Now() "
    "WHERE accid = ?"
)
_DELETE_DESTINATIONS = (
    "DELETE FROM destination "
    "WHERE accid = (SELECT id FROM account_holders WHERE accid = ?)"
)
_DELETE = "DELETE FROM account_holders WHERE accid = ?"


class AccountError(Exception):
    """Raised when an account operation cannot be carried out."""


def encode_secret(record: Account) -> str:
    """Application secret of an account: base64 of its id, name and e-mail."""
    raw = (record.acc_id + record.acc_name + record.email).encode("utf-8")
    return base64.b64encode(raw).decode("ascii")


class AccountService:
    """Reads and writes account holders through a DB-API connection.

    Queries use ``?`` markers, replaced by ``placeholder`` for the driver.
    """

    def __init__(self, conn: Any, placeholder: str = DEFAULT_PLACEHOLDER) -> None:
        self._conn = conn
        self._placeholder = placeholder

    def _sql(self, query: str) -> str:
        return query.replace("?", self._placeholder)

    def _write(self, query: str, params: tuple[Any, ...]) -> int:
        try:
            with closing(self._conn.cursor()) as cursor:
                cursor.execute(self._sql(query), params)
                count = cursor.rowcount
            self._conn.commit()
        except Exception as exc:
            raise AccountError(str(exc)) from exc
        return count

    def perform(self, record: Account, method: str) -> Account:
        """Carry out the action an HTTP method stands for on ``record``."""
        match method:
            case "GET":
                return self.get(record.acc_id)
            case "POST":
                self.insert(record)
            case "PUT":
                self.modify(record)
            case "DELETE":
                self.delete(record.acc_id)
            case _:
                raise AccountError(f"Invalid HTTP method - {method}")
        return Account()

    def get(self, acc_id: str) -> Account:
        """Name and e-mail of an account."""
        try:
            with closing(self._conn.cursor()) as cursor:
                cursor.execute(self._sql(_SELECT), (acc_id,))
                row = cursor.fetchone()
        except Exception:
            row = None
        if row is None:
            raise AccountError(f"Account not available - {acc_id}")
        name, email = row
        return Account(acc_name=name or "", email=email or "")

    def insert(self, record: Account) -> None:
        """Store a new account with its generated application secret."""
        self._write(
            _INSERT,
            (record.acc_id, record.acc_name, record.email,
             encode_secret(record), record.email),
        )

    def modify(self, record: Account) -> None:
        """Update the name and e-mail of an existing account."""
        params = (record.email, record.acc_name, record.email, record.acc_id)
        if self._write(_UPDATE, params) == 0:
            raise AccountError(
                f"Unable to update, Please provide valide Account ID - {record.acc_id}"
            )

    def delete(self, acc_id: str) -> None:
        """Remove an account together with its destinations, in one transaction."""
        try:
            if hasattr(self._conn, "begin"):
                self._conn.begin()
            with closing(self._conn.cursor()) as cursor:
                cursor.execute(self._sql(_DELETE_DESTINATIONS), (acc_id,))
                cursor.execute(self._sql(_DELETE), (acc_id,))
                removed = cursor.rowcount
        except Exception as exc:
            self._conn.rollback()
            raise AccountError(str(exc)) from exc
        self._conn.commit()
        if removed == 0:
            raise AccountError(
                f"Unable to remove, Please provide valide Account ID - {acc_id}"
            )
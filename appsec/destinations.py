"""Storage of the destinations that account data is forwarded to."""

from __future__ import annotations

import json
from contextlib import closing
from typing import Any

from .model import Destination, parse_destination

DEFAULT_PLACEHOLDER = "%s"
CREATED_BY = "AUTOBOT"

_SELECT_DESTINATION = (
    "SELECT d.desid, ah.accid, d.url, d.method, d.headers "
    "FROM account_holders ah, destination d "
    "WHERE ah.id = d.accid AND d.desid = ?"
)

_INSERT_DESTINATION = (
    "INSERT INTO destination (desid, accid, url, method, headers, createdby, createddate) "
    "SELECT ?, ?, ?, ?, ?, ?, Now() "
    "WHERE NOT EXISTS (SELECT 1 FROM destination d WHERE url = ? AND accid = ?)"
)

_UPDATE_DESTINATION = (
    "UPDATE destination "
    "SET accid = ?, url = ?, method = ?, headers = ?, updatedby = ?, updateddate = Now() "
    "WHERE desid = ?"
)

_DELETE_DESTINATION = "DELETE FROM destination WHERE desid = ?"

_ACCOUNT_KEY = "SELECT id FROM account_holders WHERE accid = ?"

_ACCOUNT_DESTINATIONS = (
    "SELECT d.desid, d.url, d.method "
    "FROM account_holders ah, destination d "
    "WHERE ah.id = d.accid AND ah.accid = ?"
)


class DestinationError(Exception):
    """Raised when a destination operation cannot be carried out."""


def validate_request(method: str, acc_id: str | None) -> None:
    """Check a request for the destinations of an account."""
    if not acc_id:
        raise DestinationError("Missing ACC_ID in header or empty")
    if method != "GET":
        raise DestinationError("GET method only allowed")


def _headers_json(headers: dict[str, str]) -> str:
    return json.dumps(headers, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


class DestinationService:
    """Reads and writes destinations through a DB-API connection.

    Queries are written with ``?`` markers, replaced by ``placeholder`` to
    suit the driver in use. The database must provide a ``Now()`` function.
    Database failures are raised as :class:`DestinationError`.
    """

    def __init__(self, conn: Any, placeholder: str = DEFAULT_PLACEHOLDER) -> None:
        self._conn = conn
        self._placeholder = placeholder

    def _sql(self, query: str) -> str:
        return query.replace("?", self._placeholder)

    def _query(self, query: str, params: tuple[Any, ...]) -> list[tuple[Any, ...]]:
        try:
            with closing(self._conn.cursor()) as cursor:
                cursor.execute(self._sql(query), params)
                return list(cursor.fetchall())
        except Exception as exc:
            raise DestinationError(str(exc)) from exc

    def _write(self, query: str, params: tuple[Any, ...]) -> int:
        try:
            with closing(self._conn.cursor()) as cursor:
                cursor.execute(self._sql(query), params)
                count = cursor.rowcount
            self._conn.commit()
        except Exception as exc:
            raise DestinationError(str(exc)) from exc
        return count

    def _account_key(self, acc_id: str) -> int:
        """Internal key of an account, or 0 when there is none."""
        try:
            rows = self._query(_ACCOUNT_KEY, (acc_id,))
        except DestinationError:
            return 0
        return int(rows[0][0]) if rows and rows[0][0] is not None else 0

    def _require_account(self, acc_id: str) -> int:
        key = self._account_key(acc_id)
        if key == 0:
            raise DestinationError(f"Account not available - {acc_id}")
        return key

    def perform(self, record: Destination, method: str) -> Destination:
        """Carry out the action an HTTP method stands for on ``record``."""
        match method:
            case "GET":
                return self.get(record.des_id)
            case "POST":
                self.insert(record)
            case "PUT":
                self.modify(record)
            case "DELETE":
                self.delete(record.des_id)
            case _:
                raise DestinationError(f"Invalid HTTP method - {method}")
        return Destination()

    def get(self, des_id: str) -> Destination:
        """A destination with the account it belongs to and its headers."""
        rows = self._query(_SELECT_DESTINATION, (des_id,))
        if not rows:
            raise DestinationError("no rows in result set")
        found_id, account_id, url, method, headers = rows[0]
        result = Destination(
            account_id=account_id or "",
            des_id=found_id or "",
            url=url or "",
            http_method=method or "",
        )
        if headers:
            try:
                result.headers = parse_destination({"headers": json.loads(headers)}).headers
            except ValueError as exc:
                raise DestinationError(str(exc)) from exc
        return result

    def insert(self, record: Destination) -> None:
        """Store a destination unless its account already has one with that URL."""
        key = self._require_account(record.account_id)
        added = self._write(
            _INSERT_DESTINATION,
            (
                record.des_id,
                key,
                record.url,
                record.http_method,
                _headers_json(record.headers),
                CREATED_BY,
                record.url,
                key,
            ),
        )
        if added == 0:
            raise DestinationError(f"URL already exist for the account - {record.url}")

    def modify(self, record: Destination) -> None:
        """Replace the account, URL, method and headers of a destination."""
        key = self._require_account(record.account_id)
        changed = self._write(
            _UPDATE_DESTINATION,
            (
                key,
                record.url,
                record.http_method,
                _headers_json(record.headers),
                CREATED_BY,
                record.des_id,
            ),
        )
        if changed == 0:
            raise DestinationError(
                f"Unable to update, Destination ID not available - {record.des_id}"
            )

    def delete(self, des_id: str) -> None:
        """Remove a destination."""
        removed = self._write(_DELETE_DESTINATION, (des_id,))
        if removed == 0:
            raise DestinationError(
                f"Unable to delete, Destination ID not available - {des_id}"
            )

    def list_for_account(self, acc_id: str) -> list[Destination]:
        """Id, URL and method of every destination of an account."""
        rows = self._query(_ACCOUNT_DESTINATIONS, (acc_id,))
        if not rows:
            raise DestinationError(
                f"Destinations are not available for the account - {acc_id}"
            )
        return [
            Destination(des_id=des_id or "", url=url or "", http_method=method or "")
            for des_id, url, method in rows
        ]
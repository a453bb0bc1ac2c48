import json
import sqlite3

import pytest

from appsec.destinations import DestinationError, DestinationService, validate_request
from appsec.model import Destination

SCHEMA = """
CREATE TABLE account_holders (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    accid TEXT, accname TEXT, email TEXT, appsecret TEXT,
    createdby TEXT, createddate TEXT, updatedby TEXT, updateddate TEXT
);
CREATE TABLE destination (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    desid TEXT, accid INTEGER, url TEXT, method TEXT, headers TEXT,
    createdby TEXT, createddate TEXT, updatedby TEXT, updateddate TEXT
);
INSERT INTO account_holders (accid, accname, email) VALUES ('a1', 'Alice', 'alice@example.com');
INSERT INTO account_holders (accid, accname, email) VALUES ('b2', 'Bob', 'bob@example.com');
"""


@pytest.fixture
def conn():
    connection = sqlite3.connect(":memory:")
    connection.create_function("Now", 0, lambda: "2024-01-01 00:00:00")
    connection.executescript(SCHEMA)
    yield connection
    connection.close()


@pytest.fixture
def service(conn):
    return DestinationService(conn, "?")


def _dest(des_id="d1", url="http://localhost/hook", account="a1", headers=None):
    return Destination(
        account_id=account,
        des_id=des_id,
        url=url,
        http_method="POST",
        headers=headers if headers is not None else {"Authorization": "Bearer token"},
    )


def test_insert_then_get_round_trip(service):
    record = _dest()
    service.insert(record)
    assert service.get("d1") == record


def test_insert_records_creator(service, conn):
    service.insert(_dest())
    fetched = service.get("d1")
    assert fetched.headers == {"Authorization": "Bearer token"}
    assert fetched.http_method == "POST"
    created_by, stored = conn.execute(
        "SELECT createdby, headers FROM destination WHERE desid = 'd1'"
    ).fetchone()
    assert created_by == "AUTOBOT"
    assert json.loads(stored) == {"Authorization": "Bearer token"}


def test_insert_unknown_account(service):
    with pytest.raises(DestinationError, match="Account not available - ghost"):
        service.insert(_dest(account="ghost"))


def test_insert_duplicate_url(service):
    service.insert(_dest())
    with pytest.raises(DestinationError, match="URL already exist for the account - http://localhost/hook"):
        service.insert(_dest(des_id="d2"))


def test_same_url_allowed_for_other_account(service):
    service.insert(_dest())
    service.insert(_dest(des_id="d2", account="b2"))
    assert service.get("d2").account_id == "b2"


def test_get_missing(service):
    with pytest.raises(DestinationError):
        service.get("missing")


def test_modify(service):
    service.insert(_dest())
    changed = Destination(
        account_id="b2", des_id="d1", url="http://localhost/other", http_method="PUT", headers={}
    )
    service.modify(changed)
    assert service.get("d1") == changed


def test_modify_missing(service):
    with pytest.raises(DestinationError, match="Unable to update, Destination ID not available - nope"):
        service.modify(_dest(des_id="nope"))


def test_modify_unknown_account(service):
    service.insert(_dest())
    with pytest.raises(DestinationError, match="Account not available - ghost"):
        service.modify(_dest(account="ghost"))


def test_delete(service):
    service.insert(_dest())
    service.delete("d1")
    with pytest.raises(DestinationError):
        service.get("d1")


def test_delete_missing(service):
    with pytest.raises(DestinationError, match="Unable to delete, Destination ID not available - nope"):
        service.delete("nope")


def test_list_for_account(service):
    service.insert(_dest(des_id="d1", url="http://localhost/one"))
    service.insert(_dest(des_id="d2", url="http://localhost/two"))
    service.insert(_dest(des_id="d3", url="http://localhost/three", account="b2"))
    found = service.list_for_account("a1")
    assert sorted(d.des_id for d in found) == ["d1", "d2"]
    assert all(d.account_id == "" and d.headers == {} for d in found)


def test_list_for_account_empty(service):
    with pytest.raises(DestinationError, match="Destinations are not available for the account - a1"):
        service.list_for_account("a1")


def test_perform_dispatch(service):
    assert service.perform(_dest(), "POST") == Destination()
    assert service.perform(Destination(des_id="d1"), "GET").url == "http://localhost/hook"
    service.perform(Destination(des_id="d1"), "DELETE")
    with pytest.raises(DestinationError):
        service.get("d1")


def test_perform_invalid_method(service):
    with pytest.raises(DestinationError, match="Invalid HTTP method - PATCH"):
        service.perform(_dest(), "PATCH")


def test_validate_request_missing_account():
    with pytest.raises(DestinationError, match="Missing ACC_ID in header or empty"):
        validate_request("GET", "")


def test_validate_request_wrong_method():
    with pytest.raises(DestinationError, match="GET method only allowed"):
        validate_request("POST", "a1")


def test_validate_request_accepts_get():
    assert validate_request("GET", "a1") is None
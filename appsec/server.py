"""HTTP server exposing the account and destination APIs."""

from __future__ import annotations

import argparse
import json
import logging
from collections.abc import Callable, Mapping
from typing import Any

from flask import Flask, Response, request

from . import db
from .accounts import DEFAULT_PLACEHOLDER, AccountError, AccountService
from .destinations import DestinationError, DestinationService, validate_request
from .model import Account, Debug, Destination, parse_account, parse_destination

logger = logging.getLogger(__name__)

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8888

ALLOWED_HEADERS = (
    "Accept, Content-Type, Content-Length, Accept-Encoding, X-CSRF-Token, Authorization"
)

_ANY_METHOD = ["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"]


def _respond(payload: Mapping[str, Any], extra_headers: Mapping[str, str] = {}) -> Response:
    headers = {
        "Access-Control-Allow-Origin": "*",
        "Access-Control-Allow-Headers": ALLOWED_HEADERS,
        **extra_headers,
    }
    body = json.dumps(payload, separators=(",", ":"), ensure_ascii=False)
    return Response(body, mimetype="application/json", headers=headers)


def _handle_record(
    name: str,
    codes: tuple[str, str, str],
    parse: Callable[[bytes], Any],
    perform: Callable[[Any, str], Any],
    empty: Callable[[], Any],
    errors: tuple[type[Exception], ...],
) -> Response:
    """Read a JSON record from the request, act on it and report the outcome."""
    logger.info("%s(+)", name)
    debug = Debug()
    result = empty()
    read_code, parse_code, action_code = codes
    try:
        try:
            body = request.get_data()
        except Exception as exc:
            raise _Failure(read_code, exc) from exc
        try:
            record = parse(body)
        except ValueError as exc:
            raise _Failure(parse_code, exc) from exc
        try:
            result = perform(record, request.method)
        except errors as exc:
            raise _Failure(action_code, exc) from exc
    except _Failure as failure:
        debug = Debug(sts="E", msg=f"{failure.code} : {failure.reason}")
        logger.info("%s", debug)
    response = _respond({**result.to_dict(), **debug.to_dict()})
    logger.info("%s(-)", name)
    return response


class _Failure(Exception):
    def __init__(self, code: str, reason: Exception) -> None:
        super().__init__(code, reason)
        self.code = code
        self.reason = reason


def create_app(conn: Any, placeholder: str = DEFAULT_PLACEHOLDER) -> Flask:
    """Build the application serving accounts and destinations stored in ``conn``."""
    accounts = AccountService(conn, placeholder)
    destinations = DestinationService(conn, placeholder)
    app = Flask(__name__)

    @app.route("/account", methods=_ANY_METHOD)
    def account_holder() -> Response:
        return _handle_record(
            "AccountHolder",
            ("AACH01", "AACH02", "AACH03"),
            parse_account,
            accounts.perform,
            Account,
            (AccountError,),
        )

    @app.route("/destination", methods=_ANY_METHOD)
    def designation() -> Response:
        return _handle_record(
            "Designation",
            ("DDT01", "DDT02", "DDT03"),
            parse_destination,
            destinations.perform,
            Destination,
            (DestinationError,),
        )

    @app.route("/getaccdest", methods=_ANY_METHOD)
    def account_destinations() -> Response:
        logger.info("GetAccDestination(+)")
        debug = Debug()
        found: list[Destination] | None = None
        acc_id = request.headers.get("ACC_ID", "")
        try:
            validate_request(request.method, acc_id)
        except DestinationError as exc:
            debug = Debug(sts="E", msg=f"DGAD01 : {exc}")
            logger.info("%s", debug)
        else:
            try:
                found = destinations.list_for_account(acc_id)
            except DestinationError as exc:
                debug = Debug(sts="E", msg=f"DGAD02 : {exc}")
                logger.info("%s", debug)
        data = None if found is None else [item.to_dict() for item in found]
        response = _respond(
            {"data": data, **debug.to_dict()},
            {"Access-Control-Allow-Methods": "GET, OPTIONS"},
        )
        logger.info("GetAccDestination(-)")
        return response

    return app


def main(argv: list[str] | None = None) -> int:
    """Connect to the database and serve the APIs until stopped."""
    parser = argparse.ArgumentParser(description="Account and destination API server.")
    parser.add_argument("--config", default=db.DEFAULT_CONFIG_PATH, help="database TOML file")
    parser.add_argument("--host", default=DEFAULT_HOST)
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO)
    try:
        conn = db.connect(db.load_db_config(args.config))
    except Exception as exc:
        logger.error("Error while connecting db - %s", exc)
        return 1
    try:
        logger.info("Server Started")
        create_app(conn, DEFAULT_PLACEHOLDER).run(host=args.host, port=args.port)
    finally:
        conn.close()
    return 0
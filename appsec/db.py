"""Database configuration and connection."""

from __future__ import annotations

import logging
import re
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pymysql

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "./toml/dbconfig.toml"

_INTEGER = re.compile(r"[+-]?\d+")


def read_toml_config(filename: str | Path) -> dict[str, Any] | None:
    """Read a TOML file; log the problem and return None if it cannot be read."""
    try:
        with open(filename, "rb") as handle:
            return tomllib.load(handle)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        logger.error("%s", exc)
        return None


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _integer(value: Any) -> int:
    text = _text(value)
    return int(text) if _INTEGER.fullmatch(text) else 0


@dataclass
class DatabaseConfig:
    """Settings for the MySQL connection."""

    server: str = ""
    port: int = 0
    user: str = ""
    password: str = ""
    database: str = ""
    max_open_conns: int = 0
    max_idle_conns: int = 0
    max_idle_time: int = 0

    def connection_string(self) -> str:
        """Data source name in the user:password@tcp(host:port)/database form."""
        return f"{self.user}:{self.password}@tcp({self.server}:{self.port})/{self.database}"


def load_db_config(filename: str | Path = DEFAULT_CONFIG_PATH) -> DatabaseConfig:
    """Load the database settings; numeric values that do not parse become 0."""
    raw = read_toml_config(filename)
    if raw is None:
        raise ValueError(f"cannot read database configuration from {filename}")
    return DatabaseConfig(
        server=_text(raw.get("Server")),
        port=_integer(raw.get("Port")),
        user=_text(raw.get("User")),
        password=_text(raw.get("Password")),
        database=_text(raw.get("Database")),
        max_open_conns=_integer(raw.get("MaxOpenConns")),
        max_idle_conns=_integer(raw.get("MaxIdleConns")),
        max_idle_time=_integer(raw.get("MaxIdleTime")),
    )


def connect(config: DatabaseConfig) -> pymysql.connections.Connection:
    """Open an autocommitting MySQL connection described by ``config``."""
    try:
        return pymysql.connect(
            host=config.server,
            port=config.port,
            user=config.user,
            password=config.password,
            database=config.database,
            autocommit=True,
        )
    except pymysql.MySQLError:
        logger.exception("Open connection failed")
        raise
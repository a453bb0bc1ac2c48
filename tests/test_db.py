from unittest import mock

import pymysql
import pytest

from appsec.db import DatabaseConfig, connect, load_db_config, read_toml_config

CONFIG_TEXT = """
Server = "localhost"
Port = 3306
User = "user"
Password = "password"
Database = "appscrt"
MaxOpenConns = 100
MaxIdleConns = 5
MaxIdleTime = 30
"""


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "dbconfig.toml"
    path.write_text(CONFIG_TEXT)
    return path


def test_read_toml_config_returns_table(config_file):
    data = read_toml_config(config_file)
    assert data["Server"] == "localhost"
    assert data["Port"] == 3306


def test_read_toml_config_missing_file_returns_none(tmp_path):
    assert read_toml_config(tmp_path / "missing.toml") is None


def test_read_toml_config_invalid_toml_returns_none(tmp_path):
    path = tmp_path / "bad.toml"
    path.write_text("Server = \n")
    assert read_toml_config(path) is None


def test_load_db_config(config_file):
    password = "password"
    assert load_db_config(config_file) == DatabaseConfig(
        server="localhost",
        port=3306,
        user="user",
        password=password,
        database="appscrt",
        max_open_conns=100,
        max_idle_conns=5,
        max_idle_time=30,
    )


def test_load_db_config_parses_numeric_strings(tmp_path):
    path = tmp_path / "dbconfig.toml"
    path.write_text('Port = "3307"\nMaxIdleConns = "-2"\n')
    config = load_db_config(path)
    assert config.port == 3307
    assert config.max_idle_conns == -2


def test_load_db_config_unparsable_numbers_become_zero(tmp_path):
    path = tmp_path / "dbconfig.toml"
    path.write_text('Port = "abc"\nMaxOpenConns = 1.5\nMaxIdleTime = true\n')
    config = load_db_config(path)
    assert (config.port, config.max_open_conns, config.max_idle_time) == (0, 0, 0)


def test_load_db_config_missing_file_raises(tmp_path):
    with pytest.raises(ValueError):
        load_db_config(tmp_path / "missing.toml")


def test_connection_string():
    password = "password"
    config = DatabaseConfig(
        server="localhost", port=3306, user="user", password=password, database="appscrt"
    )
    assert config.connection_string() == "user:password@tcp(localhost:3306)/appscrt"


def test_connect_passes_settings_to_driver(config_file):
    config = load_db_config(config_file)
    with mock.patch("appsec.db.pymysql.connect") as driver:
        result = connect(config)
    assert result is driver.return_value
    driver.assert_called_once_with(
        host="localhost",
        port=3306,
        user="user",
        password=config.password,
        database="appscrt",
        autocommit=True,
    )


def test_connect_propagates_driver_errors():
    with mock.patch(
        "appsec.db.pymysql.connect", side_effect=pymysql.err.OperationalError(2003, "down")
    ):
        with pytest.raises(pymysql.MySQLError):
            connect(DatabaseConfig(server="localhost"))
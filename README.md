# appsec

A small HTTP service that keeps a register of account holders and the
destinations (URL, HTTP method and headers) that belong to each account.
Data is stored in MySQL through PyMySQL; the web layer is Flask.

## Installation

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Configuration

`appsec.db.load_db_config` reads the connection settings from a TOML file,
by default `./toml/dbconfig.toml` relative to the working directory:

```toml
Server = "localhost"
Port = 3306
User = "user"
Password = "password"
Database = "appscrt"
MaxOpenConns = 100
MaxIdleConns = 5
MaxIdleTime = 30
```

Numeric values that do not parse as integers become `0`. The file is loaded
into a `DatabaseConfig`, whose `connection_string()` gives the
`user:password@tcp(host:port)/database` form. `MaxOpenConns`, `MaxIdleConns`
and `MaxIdleTime` are read into the config but not applied: `appsec.db.connect`
opens one autocommitting PyMySQL connection.

The database needs the `account_holders` and `destination` tables and must
provide a `Now()` function.

## Running

```
appsec
```

Options:

| Option     | Default                 | Meaning                  |
|------------|-------------------------|--------------------------|
| `--config` | `./toml/dbconfig.toml`  | database TOML file       |
| `--host`   | `0.0.0.0`               | address to listen on     |
| `--port`   | `8888`                  | port to listen on        |

If the database cannot be reached, the error is logged and the command exits
with status 1. The server runs on Flask's built-in server.

## Endpoints

Every response is a JSON object carrying `sts` (`"S"` on success, `"E"` on
error) and `msg` (empty on success, otherwise an error code followed by a
description). Responses allow any origin (`Access-Control-Allow-Origin: *`).
Methods other than those listed below are accepted by the routes and answered
with an `Invalid HTTP method` error.

### `/account`

The request body is a JSON account: `accid`, `accname` and `email` (key names
are matched ignoring case). A body is required for every method, `GET`
included.

| Method   | Action                                                        |
|----------|---------------------------------------------------------------|
| `GET`    | return `accname` and `email` for `accid`                      |
| `POST`   | create the account; its app secret is base64 of id+name+email |
| `PUT`    | update `accname` and `email` for `accid`                      |
| `DELETE` | remove the account and all its destinations in one transaction|

Error codes: `AACH01` (body could not be read), `AACH02` (body is not a valid
account), `AACH03` (the database action failed).

```
curl -X POST localhost:8888/account \
     -d '{"accid": "ACC1", "accname": "Demo", "email": "demo@example.com"}'
```

### `/destination`

The request body is a JSON destination: `des_id`, `account_id`, `url`,
`http_method` and `headers` (an object mapping header names to string values).

| Method   | Action                                                       |
|----------|--------------------------------------------------------------|
| `GET`    | return the destination with `des_id`, with its account id    |
| `POST`   | add a destination; a URL may appear only once per account    |
| `PUT`    | replace account, URL, method and headers of `des_id`         |
| `DELETE` | remove the destination with `des_id`                         |

Headers are stored as compact JSON with sorted keys. Error codes: `DDT01`,
`DDT02`, `DDT03`, with the same meaning as for `/account`.

### `/getaccdest`

`GET` only. Pass the account id in the `ACC_ID` header; the response lists the
account's destinations (`des_id`, `url`, `http_method`) under `data`. On error
`data` is `null`; `DGAD01` means the header was missing or the method was not
`GET`, `DGAD02` that the account has no destinations or the query failed.

```
curl -H "ACC_ID: ACC1" localhost:8888/getaccdest
```

## Using it as a library

- `appsec.server.create_app(conn, placeholder="%s")` builds the Flask
  application on top of any DB-API connection. Queries are written with `?`
  markers, replaced by `placeholder` for the driver in use.
- `appsec.accounts.AccountService` and `appsec.destinations.DestinationService`
  offer `get`, `insert`, `modify`, `delete` and `perform(record, method)`;
  `DestinationService.list_for_account(acc_id)` lists an account's
  destinations. Failures raise `AccountError` or `DestinationError`.
- `appsec.model` holds the `Account`, `Destination`, `Debug` and
  `ConstructData` records, with `parse_account` and `parse_destination` to
  build them from JSON.
- `appsec.apiutil.ApiClient` is a pooled `requests` client with a five-second
  default timeout. `call(url, method, json_data, headers, source)` sends a
  request (with a body unless the method is `GET`) and returns the response
  body as text, without checking the status code. It is usable as a context
  manager.

## What it does not do

The service only stores accounts and destinations. It has no endpoint that
receives incoming data and forwards it to an account's destinations; the
`ApiClient` for sending such requests is provided, but no route uses it.
There is no schema creation: the tables must already exist.
"""HTTP client used to forward data to destinations."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

import requests
from requests.adapters import HTTPAdapter
from requests.structures import CaseInsensitiveDict

MAX_IDLE_CONNS = 20
MAX_IDLE_CONNS_PER_HOST = 5
DEFAULT_TIMEOUT = 5.0


@dataclass(frozen=True)
class HeaderDetails:
    """One request header."""

    key: str
    value: str


class ApiClient:
    """A pooled HTTP client with a per-request timeout."""

    def __init__(self, timeout: float = DEFAULT_TIMEOUT) -> None:
        self.timeout = timeout
        self._session = requests.Session()
        adapter = HTTPAdapter(
            pool_connections=MAX_IDLE_CONNS, pool_maxsize=MAX_IDLE_CONNS_PER_HOST
        )
        self._session.mount("http://", adapter)
        self._session.mount("https://", adapter)

    def call(
        self,
        url: str,
        method: str,
        json_data: str = "",
        headers: Iterable[HeaderDetails] = (),
        source: str = "",
    ) -> str:
        """Send a request and return the response body as text.

        A body is sent unless ``method`` is exactly ``"GET"``. Later headers
        replace earlier ones with the same name. The status code is not checked;
        network failures raise ``requests.RequestException``. ``source`` only
        identifies the caller.
        """
        body = None if method == "GET" else json_data.encode("utf-8")
        request_headers: CaseInsensitiveDict[str] = CaseInsensitiveDict()
        for header in headers:
            request_headers[header.key] = header.value
        with self._session.request(
            method.upper(),
            url,
            data=body,
            headers=request_headers,
            timeout=self.timeout,
        ) as response:
            return response.content.decode("utf-8", errors="replace")

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> ApiClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
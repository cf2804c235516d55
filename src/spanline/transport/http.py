"""HTTP transport backed by ``httpx`` with bounded retries."""

from __future__ import annotations

import logging
import random
import time
from collections.abc import Callable
from typing import Any

import httpx

from spanline.config import SpanlineConfig
from spanline.exceptions import TransportError
from spanline.utils.jsonenc import sanitize

logger = logging.getLogger(__name__)

MAX_RETRIES = 3
RETRY_BASE_DELAY_MS = 100
RETRYABLE_STATUS_CODES = frozenset({408, 429, 500, 502, 503, 504})


class HttpTransport:
    """Synchronous JSON-over-HTTP transport.

    Implements the ``Transport`` protocol.  Requests that fail with a
    retryable status code (408, 429, 5xx gateway errors) are retried up to
    ``MAX_RETRIES`` times with exponential backoff plus jitter; any other
    failure raises ``TransportError`` immediately.

    Usage::

        transport = HttpTransport(SpanlineConfig.from_env())
        transport.post("v1/private/traces/batch", {"traces": [...]})

    Parameters:
        config: Supplies the base URL, timeout and credentials.
        client: Optional pre-built ``httpx.Client`` (mainly for tests using
            ``httpx.MockTransport``).  Its base URL and headers are used as-is.
        sleep: Function used to wait between retries.
    """

    __slots__ = ("_client", "_config", "_sleep")

    def __init__(
        self,
        config: SpanlineConfig,
        client: httpx.Client | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._config = config
        self._sleep = sleep
        self._client = client or httpx.Client(
            base_url=config.base_url or "",
            timeout=config.timeout_ms / 1000,
            headers=build_headers(config),
        )

    def post(self, path: str, body: dict[str, Any] | None = None) -> dict[str, Any]:
        return self._request("POST", path, body=body)

    def get(self, path: str, query: dict[str, Any] | None = None) -> dict[str, Any]:
        return self._request("GET", path, query=query)

    def put(self, path: str, body: dict[str, Any] | None = None) -> dict[str, Any]:
        return self._request("PUT", path, body=body)

    def patch(self, path: str, body: dict[str, Any] | None = None) -> dict[str, Any]:
        return self._request("PATCH", path, body=body)

    def delete(self, path: str) -> None:
        self._request("DELETE", path)

    def close(self) -> None:
        """Close the underlying connection pool."""
        self._client.close()

    def _request(
        self,
        method: str,
        path: str,
        body: dict[str, Any] | None = None,
        query: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        kwargs: dict[str, Any] = {}
        if body:
            kwargs["json"] = sanitize(body)
        if query:
            kwargs["params"] = {k: v for k, v in query.items() if v is not None}

        last_error: TransportError | None = None
        for attempt in range(1, MAX_RETRIES + 1):
            logger.debug("API request %s %s (attempt %d)", method, path, attempt)
            try:
                response = self._client.request(method, path, **kwargs)
            except httpx.HTTPError as exc:
                raise TransportError(f"HTTP request failed: {exc}") from exc

            if response.is_success:
                return _decode(response)

            last_error = TransportError(
                f"API request failed: {method} {path} returned {response.status_code}",
                status_code=response.status_code,
                response_body=response.text,
            )
            if response.status_code not in RETRYABLE_STATUS_CODES:
                raise last_error

            logger.warning(
                "API request failed with %d, retrying (attempt %d/%d)",
                response.status_code, attempt, MAX_RETRIES,
            )
            if attempt < MAX_RETRIES:
                self._sleep(_backoff_seconds(attempt))

        assert last_error is not None
        raise last_error

    def __repr__(self) -> str:
        return f"HttpTransport(base_url={self._config.base_url!r})"


def build_headers(config: SpanlineConfig) -> dict[str, str]:
    """Build the default request headers for ``config``."""
    headers = {
        "Content-Type": "application/json",
        "Accept": "application/json",
    }
    if config.api_key is not None:
        headers["authorization"] = config.api_key
    if config.workspace is not None:
        headers["Comet-Workspace"] = config.workspace
    return headers


def _backoff_seconds(attempt: int) -> float:
    delay_ms = RETRY_BASE_DELAY_MS * (2 ** (attempt - 1))
    jitter_ms = random.uniform(0, delay_ms * 0.1)
    return (delay_ms + jitter_ms) / 1000


def _decode(response: httpx.Response) -> dict[str, Any]:
    if not response.content:
        return {}
    try:
        data = response.json()
    except ValueError as exc:
        raise TransportError(
            "Response body is not valid JSON",
            status_code=response.status_code,
            response_body=response.text,
        ) from exc
    return data if isinstance(data, dict) else {"content": data}

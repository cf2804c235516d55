"""Tests for HttpTransport using httpx.MockTransport."""

from __future__ import annotations

import json
from collections.abc import Callable
from datetime import UTC, datetime

import httpx
import pytest

from spanline.config import SpanlineConfig
from spanline.exceptions import TransportError
from spanline.protocols.transport import Transport
from spanline.transport.http import MAX_RETRIES, HttpTransport, build_headers

Handler = Callable[[httpx.Request], httpx.Response]


def _make_transport(
    handler: Handler,
    sleeps: list[float] | None = None,
    config: SpanlineConfig | None = None,
) -> HttpTransport:
    config = config or SpanlineConfig(base_url="http://collector.test/api")
    client = httpx.Client(
        base_url=config.base_url or "",
        transport=httpx.MockTransport(handler),
        headers=build_headers(config),
    )
    recorded = sleeps if sleeps is not None else []
    return HttpTransport(config, client=client, sleep=recorded.append)


class TestRequests:
    def test_satisfies_protocol(self) -> None:
        transport = _make_transport(lambda request: httpx.Response(200))
        assert isinstance(transport, Transport)

    def test_post_sends_json_and_decodes_response(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"ok": True})

        transport = _make_transport(handler)
        result = transport.post("v1/private/traces/batch", {"traces": [{"id": "t"}]})

        assert result == {"ok": True}
        [request] = seen
        assert request.method == "POST"
        assert request.url == "http://collector.test/api/v1/private/traces/batch"
        assert json.loads(request.content) == {"traces": [{"id": "t"}]}

    def test_body_is_sanitised(self) -> None:
        bodies: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append(json.loads(request.content))
            return httpx.Response(204)

        transport = _make_transport(handler)
        transport.put("x", {"when": datetime(2024, 1, 1, tzinfo=UTC)})

        assert bodies == [{"when": "2024-01-01T00:00:00.000000Z"}]

    def test_get_drops_none_query_params(self) -> None:
        urls: list[httpx.URL] = []

        def handler(request: httpx.Request) -> httpx.Response:
            urls.append(request.url)
            return httpx.Response(200, json={"content": []})

        transport = _make_transport(handler)
        transport.get("v1/private/traces", {"page": 1, "filter": None})

        assert urls[0].params.get("page") == "1"
        assert "filter" not in urls[0].params

    def test_empty_response_body(self) -> None:
        transport = _make_transport(lambda request: httpx.Response(204))
        assert transport.patch("x", {"a": 1}) == {}
        assert transport.delete("x") is None

    def test_list_response_is_wrapped(self) -> None:
        transport = _make_transport(lambda request: httpx.Response(200, json=[1, 2]))
        assert transport.get("x") == {"content": [1, 2]}

    def test_invalid_json_raises(self) -> None:
        transport = _make_transport(lambda request: httpx.Response(200, text="not json"))
        with pytest.raises(TransportError, match="not valid JSON"):
            transport.get("x")


class TestHeaders:
    def test_credentials(self) -> None:
        headers = build_headers(SpanlineConfig(api_key="key", workspace="ws"))
        assert headers["authorization"] == "key"
        assert headers["Comet-Workspace"] == "ws"
        assert headers["Content-Type"] == "application/json"

    def test_no_credentials(self) -> None:
        headers = build_headers(SpanlineConfig())
        assert "authorization" not in headers
        assert "Comet-Workspace" not in headers

    def test_headers_reach_the_wire(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200)

        config = SpanlineConfig(api_key="key", workspace="ws", base_url="http://collector.test/")
        _make_transport(handler, config=config).post("v1/private/auth", {})

        assert seen[0].headers["authorization"] == "key"
        assert seen[0].headers["comet-workspace"] == "ws"


class TestRetries:
    def test_retryable_status_is_retried_until_success(self) -> None:
        statuses = iter([503, 429, 200])
        sleeps: list[float] = []
        transport = _make_transport(lambda request: httpx.Response(next(statuses)), sleeps)

        assert transport.post("x", {"a": 1}) == {}
        assert len(sleeps) == 2
        assert sleeps[1] > sleeps[0]

    def test_gives_up_after_max_retries(self) -> None:
        attempts: list[int] = []
        sleeps: list[float] = []

        def handler(request: httpx.Request) -> httpx.Response:
            attempts.append(1)
            return httpx.Response(500, text="oops")

        transport = _make_transport(handler, sleeps)
        with pytest.raises(TransportError) as exc_info:
            transport.post("x", {"a": 1})

        assert len(attempts) == MAX_RETRIES
        assert len(sleeps) == MAX_RETRIES - 1
        assert exc_info.value.status_code == 500
        assert exc_info.value.response_body == "oops"

    def test_client_error_is_not_retried(self) -> None:
        attempts: list[int] = []

        def handler(request: httpx.Request) -> httpx.Response:
            attempts.append(1)
            return httpx.Response(401)

        transport = _make_transport(handler)
        with pytest.raises(TransportError) as exc_info:
            transport.post("x", {"a": 1})

        assert len(attempts) == 1
        assert exc_info.value.status_code == 401

    def test_network_error_becomes_transport_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        transport = _make_transport(handler)
        with pytest.raises(TransportError, match="HTTP request failed") as exc_info:
            transport.get("x")

        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)
        assert exc_info.value.status_code == 0


class TestLifecycle:
    def test_close_closes_the_client(self) -> None:
        client = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(200)))
        transport = HttpTransport(SpanlineConfig(), client=client)
        transport.close()
        assert client.is_closed

    def test_repr(self) -> None:
        transport = _make_transport(lambda request: httpx.Response(200))
        assert "collector.test" in repr(transport)

"""Tests for HertzApiAdapter."""

from __future__ import annotations

import json

import httpx
import pytest

from rental_search.domain.ports.pricing_api import FetchHttpError, FetchOk, FetchTransportError
from rental_search.infrastructure.hertz_api_adapter import HertzApiAdapter

ENDPOINT = "https://pricing.test/makeReservation"


def adapter_for(handler) -> HertzApiAdapter:
    return HertzApiAdapter(client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))


@pytest.mark.asyncio
async def test_success_returns_body_and_headers() -> None:
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["body"] = json.loads(request.content)
        seen["accept"] = request.headers["accept"]
        return httpx.Response(200, json={"data": {"model": {}}}, headers={"X-Request-Id": "r-1"})

    adapter = adapter_for(handler)
    outcome = await adapter.post(ENDPOINT, {"itinerary": {"age": "25"}})

    assert isinstance(outcome, FetchOk)
    assert outcome.status == 200
    assert outcome.body == {"data": {"model": {}}}
    assert outcome.headers["x-request-id"] == "r-1"
    assert seen == {"method": "POST", "body": {"itinerary": {"age": "25"}}, "accept": "application/json"}


@pytest.mark.asyncio
async def test_http_error_is_returned_not_raised() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(429, headers={"Retry-After": "30"}, text="slow down")

    outcome = await adapter_for(handler).post(ENDPOINT, {})

    assert isinstance(outcome, FetchHttpError)
    assert outcome.status == 429
    assert outcome.status_text == "Too Many Requests"
    assert outcome.headers["retry-after"] == "30"


@pytest.mark.asyncio
async def test_connect_error_becomes_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("Name or service not known", request=request)

    outcome = await adapter_for(handler).post(ENDPOINT, {})

    assert isinstance(outcome, FetchTransportError)
    assert outcome.kind == "ConnectError"
    assert "Name or service not known" in outcome.message


@pytest.mark.asyncio
async def test_timeout_becomes_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    outcome = await adapter_for(handler).post(ENDPOINT, {})

    assert isinstance(outcome, FetchTransportError)
    assert outcome.kind == "ReadTimeout"


@pytest.mark.asyncio
async def test_invalid_json_becomes_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>maintenance</html>")

    outcome = await adapter_for(handler).post(ENDPOINT, {})

    assert isinstance(outcome, FetchTransportError)
    assert outcome.kind == "InvalidJSON"


@pytest.mark.asyncio
async def test_injected_client_is_not_closed() -> None:
    client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200, json={})))

    async with HertzApiAdapter(client=client) as adapter:
        await adapter.post(ENDPOINT, {})

    assert client.is_closed is False
    await client.aclose()

"""Tests for response classification."""

from __future__ import annotations

from rental_search.domain.ports.pricing_api import FetchHttpError, FetchOk, FetchTransportError
from rental_search.domain.services.classifier import (
    RateLimitInfo,
    classify,
    describe_rate_limit,
    extract_headers,
)


def test_rate_limited_response_keeps_retry_after() -> None:
    outcome = FetchHttpError(
        status=429,
        status_text="Too Many Requests",
        headers={"Retry-After": "30", "Content-Type": "application/json"},
    )

    result = classify(outcome)

    assert result.success is False
    assert result.status == 429
    assert result.status_text == "Too Many Requests"
    assert result.headers == {"retry-after": "30"}
    assert result.rate_limit.retry_after == "30"
    assert result.rate_limited is True
    assert result.body is None


def test_service_unavailable_is_rate_limit_signal() -> None:
    assert classify(FetchHttpError(status=503)).rate_limited is True
    assert classify(FetchHttpError(status=500)).rate_limited is False


def test_transport_error_has_no_status() -> None:
    outcome = FetchTransportError(kind="ConnectError", message="Name or service not known")

    result = classify(outcome)

    assert result.success is False
    assert result.status is None
    assert result.error_kind == "ConnectError"
    assert result.message == "Name or service not known"
    assert result.headers == {}
    assert result.rate_limited is False


def test_success_carries_body_and_headers() -> None:
    body = {"data": {}}
    outcome = FetchOk(status=200, headers={"X-Request-Id": "abc", "Server": "edge"}, body=body)

    result = classify(outcome)

    assert result.success is True
    assert result.status == 200
    assert result.body is body
    assert result.headers == {"x-request-id": "abc", "server": "edge"}
    assert result.rate_limit.request_id == "abc"


def test_ok_outcome_with_non_2xx_status_is_unsuccessful() -> None:
    result = classify(FetchOk(status=302, body={"data": {}}))

    assert result.success is False
    assert result.status == 302
    assert result.body is None


def test_synonym_headers_first_match_wins() -> None:
    headers = extract_headers(
        {
            "RateLimit-Remaining": "1",
            "X-RateLimit-Remaining": "7",
            "x-rate-limit-limit": "100",
            "ratelimit-limit": "50",
            "X-Rate-Limit-Reset": "1767225600",
        }
    )

    result = classify(FetchHttpError(status=429, headers=headers))

    assert result.rate_limit.remaining == "7"
    assert result.rate_limit.limit == "100"
    assert result.rate_limit.reset == "1767225600"


def test_describe_rate_limit_lines() -> None:
    info = RateLimitInfo(retry_after="30", limit="100", remaining="3", reset="soon", request_id="r-1")

    assert describe_rate_limit(info) == [
        "Retry after: 30 seconds",
        "Rate limit: 3/100 remaining",
        "Reset: soon",
        "Request ID: r-1",
    ]


def test_describe_rate_limit_remaining_only_and_timestamp_reset() -> None:
    lines = describe_rate_limit(RateLimitInfo(remaining="4", reset="1767225600"))

    assert lines[0] == "Requests remaining: 4"
    assert lines[1].startswith("Reset at: ")


def test_describe_empty_info() -> None:
    assert describe_rate_limit(RateLimitInfo()) == []
    assert RateLimitInfo().is_empty is True

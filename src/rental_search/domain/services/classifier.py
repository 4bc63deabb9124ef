"""Classification of raw fetch outcomes into success / failure with rate-limit data."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from ..ports.pricing_api import FetchHttpError, FetchOk, FetchOutcome, FetchTransportError

RATE_LIMIT_STATUSES = frozenset({429, 503})

RELEVANT_HEADERS: tuple[str, ...] = (
    "retry-after",
    "x-ratelimit-limit",
    "x-ratelimit-remaining",
    "x-ratelimit-reset",
    "x-rate-limit-limit",
    "x-rate-limit-remaining",
    "x-rate-limit-reset",
    "ratelimit-limit",
    "ratelimit-remaining",
    "ratelimit-reset",
    "x-request-id",
    "x-response-time",
    "date",
    "server",
)

_LIMIT_VARIANTS = ("x-ratelimit-limit", "x-rate-limit-limit", "ratelimit-limit")
_REMAINING_VARIANTS = ("x-ratelimit-remaining", "x-rate-limit-remaining", "ratelimit-remaining")
_RESET_VARIANTS = ("x-ratelimit-reset", "x-rate-limit-reset", "ratelimit-reset")


@dataclass(frozen=True, slots=True)
class RateLimitInfo:
    """Rate-limit hints merged across header synonyms."""

    retry_after: str | None = None
    limit: str | None = None
    remaining: str | None = None
    reset: str | None = None
    request_id: str | None = None

    @property
    def is_empty(self) -> bool:
        return not any(
            (self.retry_after, self.limit, self.remaining, self.reset, self.request_id)
        )


@dataclass(frozen=True, slots=True)
class ClassifiedResponse:
    """Result of classifying one fetch outcome."""

    success: bool
    status: int | None = None
    status_text: str = ""
    headers: dict[str, str] = field(default_factory=dict)
    rate_limit: RateLimitInfo = field(default_factory=RateLimitInfo)
    body: Any = None
    error_kind: str | None = None
    message: str | None = None

    @property
    def rate_limited(self) -> bool:
        return self.status in RATE_LIMIT_STATUSES


def extract_headers(headers: Mapping[str, str] | None) -> dict[str, str]:
    """Keep only the allow-listed headers, keyed by lower-case name."""
    if not headers:
        return {}
    lowered: dict[str, str] = {}
    for name, value in headers.items():
        key = str(name).lower()
        # first occurrence wins when a header is repeated with different casing
        lowered.setdefault(key, str(value))
    return {name: lowered[name] for name in RELEVANT_HEADERS if lowered.get(name)}


def _first(headers: dict[str, str], variants: tuple[str, ...]) -> str | None:
    for name in variants:
        if name in headers:
            return headers[name]
    return None


def rate_limit_info(headers: dict[str, str]) -> RateLimitInfo:
    return RateLimitInfo(
        retry_after=headers.get("retry-after"),
        limit=_first(headers, _LIMIT_VARIANTS),
        remaining=_first(headers, _REMAINING_VARIANTS),
        reset=_first(headers, _RESET_VARIANTS),
        request_id=headers.get("x-request-id"),
    )


def classify(outcome: FetchOutcome) -> ClassifiedResponse:
    """Turn a fetch outcome into a ClassifiedResponse; never raises on HTTP errors."""
    if isinstance(outcome, FetchTransportError):
        return ClassifiedResponse(
            success=False,
            error_kind=outcome.kind,
            message=outcome.message,
        )

    headers = extract_headers(outcome.headers)
    info = rate_limit_info(headers)

    if isinstance(outcome, FetchHttpError) or not 200 <= outcome.status < 300:
        return ClassifiedResponse(
            success=False,
            status=outcome.status,
            status_text=getattr(outcome, "status_text", ""),
            headers=headers,
            rate_limit=info,
        )

    if isinstance(outcome, FetchOk):
        return ClassifiedResponse(
            success=True,
            status=outcome.status,
            headers=headers,
            rate_limit=info,
            body=outcome.body,
        )

    raise TypeError(f"Unsupported fetch outcome: {type(outcome).__name__}")


def describe_rate_limit(info: RateLimitInfo) -> list[str]:
    """Render rate-limit hints as operator-facing lines."""
    lines: list[str] = []
    if info.retry_after:
        lines.append(f"Retry after: {info.retry_after} seconds")

    if info.remaining is not None and info.limit is not None:
        lines.append(f"Rate limit: {info.remaining}/{info.limit} remaining")
    elif info.remaining is not None:
        lines.append(f"Requests remaining: {info.remaining}")

    if info.reset:
        try:
            reset_at = datetime.fromtimestamp(int(info.reset))
        except (ValueError, OverflowError, OSError):
            lines.append(f"Reset: {info.reset}")
        else:
            lines.append(f"Reset at: {reset_at:%H:%M:%S}")

    if info.request_id:
        lines.append(f"Request ID: {info.request_id}")
    return lines

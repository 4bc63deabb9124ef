"""Adapter exposing the Hertz reservation endpoint through PricingApiProtocol."""

from __future__ import annotations

import logging

import httpx

from ..domain.ports.pricing_api import (
    FetchHttpError,
    FetchOk,
    FetchOutcome,
    FetchTransportError,
    RequestBody,
)

logger = logging.getLogger(__name__)

_DEFAULT_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
}


class HertzApiAdapter:
    """
    Thin async wrapper posting JSON to the pricing endpoint with httpx.

    Every call returns a FetchOutcome: non-2xx statuses and transport
    failures are reported as data, never raised.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        timeout: float | None = None,
    ) -> None:
        """
        Initialize adapter with optional httpx client.

        Args:
            client: Preconfigured AsyncClient (tests inject a MockTransport here)
            timeout: Request timeout in seconds (default from config)
        """
        from rental_search.config import get_settings

        if timeout is None:
            timeout = get_settings().request_timeout
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            headers=_DEFAULT_HEADERS,
            timeout=httpx.Timeout(timeout),
        )

    async def post(self, endpoint: str, json_body: RequestBody) -> FetchOutcome:
        """Send one reservation search request."""
        try:
            response = await self._client.post(
                endpoint, json=json_body, headers=_DEFAULT_HEADERS
            )
        except httpx.TimeoutException as e:
            logger.warning("pricing request timed out", extra={"error": str(e)})
            return FetchTransportError(kind=type(e).__name__, message=str(e) or "timeout")
        except httpx.TransportError as e:
            logger.warning("pricing request failed", extra={"error": str(e)})
            return FetchTransportError(kind=type(e).__name__, message=str(e))

        headers = {name.lower(): value for name, value in response.headers.items()}

        if not response.is_success:
            return FetchHttpError(
                status=response.status_code,
                status_text=response.reason_phrase,
                headers=headers,
            )

        try:
            body = response.json()
        except ValueError as e:
            logger.warning(
                "pricing response is not valid JSON",
                extra={"status": response.status_code, "error": str(e)},
            )
            return FetchTransportError(kind="InvalidJSON", message=str(e))

        return FetchOk(status=response.status_code, headers=headers, body=body)

    async def close(self) -> None:
        """Shut down the underlying HTTPX client if this adapter created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> HertzApiAdapter:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

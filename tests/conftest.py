"""Shared pytest fixtures."""

from __future__ import annotations

from collections.abc import Callable
from copy import deepcopy
from datetime import date
from typing import Any

import pytest

from rental_search.domain.models import ReservationParameters, SearchConfiguration
from rental_search.domain.ports.pricing_api import FetchOk, FetchOutcome

BASE_RESPONSE: dict[str, Any] = {
    "data": {
        "model": {
            "vehicles": [
                {
                    "name": "VW Golf or similar",
                    "carGroup": "CDMR",
                    "sipp": "CDMR",
                    "carTypeDisplay": "Compact",
                    "passengers": "5",
                    "luggage": "3",
                    "transmission": "Manual",
                    "fuel": "5.1 l/100km",
                    "ev": 0,
                    "quotes": [
                        {
                            "price": "450.00",
                            "currency": "CHF",
                            "prepaid": 0,
                            "rateCode": "BEST",
                            "soldout": 0,
                            "unavailable": 0,
                        },
                        {
                            "price": "420.00",
                            "currency": "CHF",
                            "prepaid": 1,
                            "rateCode": "PREPAY",
                            "discountAmount": "30.00",
                        },
                    ],
                },
                {
                    "name": "Tesla Model 3",
                    "carGroup": "FEAE",
                    "sipp": "FEAE",
                    "carTypeDisplay": "Fullsize Electric",
                    "passengers": "5",
                    "luggage": "2",
                    "transmission": "Automatic",
                    "fuel": "Electric",
                    "ev": 1,
                    "quotes": [
                        {"price": "610.50", "currency": "CHF", "prepaid": 0, "rateCode": "BEST"},
                    ],
                },
            ]
        }
    }
}


@pytest.fixture
def response_builder() -> Callable[[], dict[str, Any]]:
    """Return a factory that produces independent copies of the sample response."""

    def _builder() -> dict[str, Any]:
        return deepcopy(BASE_RESPONSE)

    return _builder


def _priced_body(price: str, name: str = "Fiat 500", currency: str = "CHF") -> dict[str, Any]:
    """Response body with a single vehicle and a single quote."""
    return {
        "data": {
            "model": {
                "vehicles": [
                    {"name": name, "carGroup": "MCMR", "quotes": [{"price": price, "currency": currency}]}
                ]
            }
        }
    }


@pytest.fixture
def search_config() -> Callable[..., SearchConfiguration]:
    """Factory for search configurations with zero pacing by default."""

    def _factory(
        pickup_start: date = date(2026, 3, 1),
        pickup_end: date = date(2026, 3, 2),
        return_start: date = date(2026, 3, 10),
        return_end: date = date(2026, 3, 10),
        min_days: int = 7,
        delay_ms: int = 0,
    ) -> SearchConfiguration:
        return SearchConfiguration(
            pickup_start=pickup_start,
            pickup_end=pickup_end,
            return_start=return_start,
            return_end=return_end,
            min_days=min_days,
            delay_ms=delay_ms,
            endpoint="https://pricing.test/makeReservation",
            reservation=ReservationParameters(
                pickup_location="DWHX90",
                pickup_location_name="Darmstadt - Hauptbahnhof",
            ),
        )

    return _factory


class FakePricingApi:
    """Replays scripted outcomes and records every request body."""

    def __init__(
        self,
        outcomes: list[FetchOutcome | Exception] | None = None,
        default: FetchOutcome | None = None,
    ) -> None:
        self.outcomes = list(outcomes or [])
        self.default = default or FetchOk(status=200, body=_priced_body("100.00"))
        self.requests: list[tuple[str, dict[str, Any]]] = []
        self.on_request: Callable[[int], None] | None = None

    async def post(self, endpoint: str, json_body: dict[str, Any]) -> FetchOutcome:
        self.requests.append((endpoint, json_body))
        if self.on_request is not None:
            self.on_request(len(self.requests))
        outcome = self.outcomes.pop(0) if self.outcomes else self.default
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.fixture
def fake_api_factory() -> Callable[..., FakePricingApi]:
    return FakePricingApi


@pytest.fixture
def priced_body() -> Callable[..., dict[str, Any]]:
    """Factory for single-quote response bodies."""
    return _priced_body

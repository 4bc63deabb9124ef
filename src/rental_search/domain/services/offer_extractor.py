"""Extraction of the cheapest valid quote from a pricing response payload."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any

from ..models import Offer

ResponseBody = Any

_TRUE_FLAGS = (1, "1", True)


@dataclass(slots=True)
class CheapestOfferExtractor:
    """Pure helpers walking ``data.model.vehicles[].quotes[]`` defensively."""

    default_currency: str = "CHF"

    def extract_cheapest(self, body: ResponseBody) -> Offer | None:
        """Return the lowest-priced available offer, or None when nothing is priced."""
        best: tuple[Decimal, Mapping[str, Any], Mapping[str, Any]] | None = None
        for vehicle, quote, price in self._iter_priced_quotes(body):
            # strict comparison keeps the first quote on ties
            if best is None or price < best[0]:
                best = (price, vehicle, quote)

        if best is None:
            return None
        price, vehicle, quote = best
        return self._build_offer(price, vehicle, quote)

    def _iter_priced_quotes(
        self, body: ResponseBody
    ) -> Iterator[tuple[Mapping[str, Any], Mapping[str, Any], Decimal]]:
        for vehicle in self._vehicles(body):
            quotes = vehicle.get("quotes")
            if not isinstance(quotes, list):
                continue
            for quote in quotes:
                if not isinstance(quote, Mapping) or not self._is_available(quote):
                    continue
                price = _positive_decimal(quote.get("price"))
                if price is None:
                    continue
                yield vehicle, quote, price

    def _build_offer(
        self,
        price: Decimal,
        vehicle: Mapping[str, Any],
        quote: Mapping[str, Any],
    ) -> Offer:
        currency = _text(quote.get("currency"))
        return Offer(
            price=price,
            currency=currency or self.default_currency,
            currency_defaulted=not currency,
            name=_text(vehicle.get("name")) or "Unknown",
            group=_text(vehicle.get("carGroup")) or "N/A",
            sipp=_text(vehicle.get("sipp")),
            vehicle_type=_text(vehicle.get("carTypeDisplay")),
            passengers=_text(vehicle.get("passengers")),
            luggage=_text(vehicle.get("luggage")),
            transmission=_text(vehicle.get("transmission")),
            fuel=_text(vehicle.get("fuel")),
            electric=vehicle.get("ev") in _TRUE_FLAGS,
            prepaid=quote.get("prepaid") in _TRUE_FLAGS,
            rate_code=_text(quote.get("rateCode")),
            discount=_text(quote.get("discountAmount")),
        )

    @staticmethod
    def _vehicles(body: ResponseBody) -> list[Mapping[str, Any]]:
        if not isinstance(body, Mapping):
            return []
        data = body.get("data")
        model = data.get("model") if isinstance(data, Mapping) else None
        vehicles = model.get("vehicles") if isinstance(model, Mapping) else None
        if not isinstance(vehicles, list):
            return []
        return [vehicle for vehicle in vehicles if isinstance(vehicle, Mapping)]

    @staticmethod
    def _is_available(quote: Mapping[str, Any]) -> bool:
        if quote.get("soldout") in _TRUE_FLAGS:
            return False
        if quote.get("unavailable") in _TRUE_FLAGS:
            return False
        return True


def _positive_decimal(value: Any) -> Decimal | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        price = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not price.is_finite() or price <= 0:
        return None
    return price


def _text(value: Any) -> str:
    if value is None or isinstance(value, bool):
        return ""
    return str(value).strip()

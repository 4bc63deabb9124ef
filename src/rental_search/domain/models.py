"""Domain models shared by the search engine, the reporter and the API."""

from __future__ import annotations

from datetime import date
from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

CENTS = Decimal("0.01")


def to_cents(value: Decimal) -> Decimal:
    """Round half-up to two decimal places, widening precision for huge amounts."""
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, value.adjusted() + 3)
        return value.quantize(CENTS, ROUND_HALF_UP)


class DateCombination(BaseModel):
    """One (pickup, return) pair under test."""

    model_config = ConfigDict(frozen=True)

    pickup_date: date
    return_date: date
    days: int = Field(gt=0)

    @model_validator(mode="after")
    def _check_order(self) -> DateCombination:
        if self.return_date <= self.pickup_date:
            raise ValueError("return_date must be after pickup_date")
        return self


class ReservationParameters(BaseModel):
    """Fixed reservation fields sent with every request."""

    model_config = ConfigDict(frozen=True)

    pickup_location: str
    pickup_location_name: str = ""
    return_location: str = ""
    return_location_name: str = ""
    pickup_time: str = "12:00"
    return_time: str = "12:00"
    age: str = "25"
    cdp: str = ""
    rq: str = "BEST"
    promo_code: str = ""


class SearchConfiguration(BaseModel):
    """Everything a single search run needs; never mutated during a run."""

    model_config = ConfigDict(frozen=True)

    pickup_start: date
    pickup_end: date
    return_start: date
    return_end: date
    min_days: int = Field(ge=1)
    delay_ms: int = Field(ge=0)
    endpoint: str
    reservation: ReservationParameters


class Offer(BaseModel):
    """Cheapest valid priced quote found in one API response."""

    price: Decimal
    currency: str
    currency_defaulted: bool = False
    name: str = "Unknown"
    group: str = "N/A"
    sipp: str = ""
    vehicle_type: str = ""
    passengers: str = ""
    luggage: str = ""
    transmission: str = ""
    fuel: str = ""
    electric: bool = False
    prepaid: bool = False
    rate_code: str = ""
    discount: str = ""


class TransportFailure(BaseModel):
    kind: Literal["transport_error"] = "transport_error"
    error_type: str
    message: str


class HttpFailure(BaseModel):
    kind: Literal["http_error"] = "http_error"
    status: int
    status_text: str = ""
    headers: dict[str, str] = Field(default_factory=dict)
    rate_limited: bool = False


class NoOfferFailure(BaseModel):
    kind: Literal["no_offers"] = "no_offers"
    status: int | None = None
    message: str = "No offers in response"


class UnexpectedFailure(BaseModel):
    kind: Literal["unexpected_error"] = "unexpected_error"
    error_type: str
    message: str


RowError = Annotated[
    Union[TransportFailure, HttpFailure, NoOfferFailure, UnexpectedFailure],
    Field(discriminator="kind"),
]


def describe_error(error: RowError) -> str:
    """Return a short, human readable description of a row error."""
    if isinstance(error, HttpFailure):
        text = f"HTTP {error.status}"
        return f"{text} {error.status_text}" if error.status_text else text
    if isinstance(error, NoOfferFailure):
        return error.message
    return f"{error.error_type}: {error.message}"


class ResultRow(BaseModel):
    """Outcome of one attempted combination, either priced or failed."""

    pickup_date: date
    return_date: date
    days: int
    total_price: Decimal | None = None
    price_per_day: Decimal | None = None
    currency: str
    offer: Offer | None = None
    status: int | None = None
    error: RowError | None = None

    @model_validator(mode="after")
    def _check_signal(self) -> ResultRow:
        if (self.offer is None) == (self.error is None):
            raise ValueError("a result row carries either an offer or an error")
        if self.offer is not None and (self.total_price is None or self.price_per_day is None):
            raise ValueError("a priced row needs total_price and price_per_day")
        return self

    @property
    def is_priced(self) -> bool:
        return self.offer is not None

    def to_record(self) -> dict[str, Any]:
        """Flatten the row into a JSON-friendly record."""
        offer = self.offer
        return {
            "pickup": self.pickup_date.isoformat(),
            "return": self.return_date.isoformat(),
            "days": self.days,
            "total_price": float(self.total_price) if self.total_price is not None else None,
            "price_per_day": (
                float(self.price_per_day) if self.price_per_day is not None else None
            ),
            "currency": self.currency,
            "car_name": offer.name if offer else None,
            "car_group": offer.group if offer else None,
            "sipp": offer.sipp if offer else None,
            "car_type": offer.vehicle_type if offer else None,
            "passengers": offer.passengers if offer else None,
            "luggage": offer.luggage if offer else None,
            "transmission": offer.transmission if offer else None,
            "fuel": offer.fuel if offer else None,
            "electric": offer.electric if offer else None,
            "prepaid": offer.prepaid if offer else None,
            "rate_code": offer.rate_code if offer else None,
            "discount": offer.discount if offer else None,
            "status": self.status,
            "error_kind": self.error.kind if self.error else None,
            "error": describe_error(self.error) if self.error else None,
        }


class PriceStatistics(BaseModel):
    """Statistics over priced rows only."""

    average_total: Decimal
    average_per_day: Decimal
    min_total: Decimal
    max_total: Decimal
    min_per_day: Decimal
    max_per_day: Decimal
    savings: Decimal
    savings_percent: float


class Report(BaseModel):
    """Ranked results and summary statistics for one search run."""

    rows: list[ResultRow]
    best: ResultRow | None = None
    top: list[ResultRow] = Field(default_factory=list)
    total_searches: int
    with_price: int
    without_price: int
    statistics: PriceStatistics | None = None
    currencies: list[str] = Field(default_factory=list)

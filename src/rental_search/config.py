"""Application configuration using Pydantic Settings."""

from __future__ import annotations

from datetime import date
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from rental_search.domain.models import ReservationParameters, SearchConfiguration
from rental_search.domain.services.date_combinations import parse_date


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_prefix="RENTAL_SEARCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Server settings
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, description="Server port", gt=0, le=65535)
    reload: bool = Field(default=False, description="Enable auto-reload in development")

    # Pricing endpoint
    api_endpoint: str = Field(
        default="https://www.hertz.com/rentacar/rest/hertz/v2/reservations/makeReservation",
        description="Reservation search endpoint",
    )
    request_timeout: float = Field(
        default=30.0,
        description="Timeout for a single pricing request (seconds)",
        gt=0,
        le=300,
    )

    # Reservation parameters sent with every request
    pickup_location: str = Field(default="DWHX90", description="Pickup location code")
    pickup_location_name: str = Field(
        default="Darmstadt - Hauptbahnhof", description="Pickup location display name"
    )
    return_location: str = Field(
        default="", description="Return location code (empty = same as pickup)"
    )
    return_location_name: str = Field(default="", description="Return location display name")
    pickup_time: str = Field(default="12:00", pattern=r"^\d{2}:\d{2}$")
    return_time: str = Field(default="12:00", pattern=r"^\d{2}:\d{2}$")
    age: str = Field(default="25", description="Driver age")
    cdp: str = Field(default="", description="Corporate discount program code")
    rq: str = Field(default="BEST", description="Rate qualifier")
    promo_code: str = Field(default="", description="Promotional coupon code")

    # Search settings
    min_days: int = Field(default=12, description="Minimum trip length (days)", ge=1, le=365)
    delay_ms: int = Field(
        default=2000,
        description="Pause between two consecutive requests (milliseconds)",
        ge=0,
        le=600_000,
    )
    default_currency: str = Field(
        default="CHF",
        description="Currency assumed when a quote does not carry one",
        min_length=3,
        max_length=3,
    )
    summary_every: int = Field(
        default=10,
        description="Emit an aggregate progress summary every N combinations",
        gt=0,
        le=1000,
    )
    report_top_n: int = Field(
        default=20,
        description="Number of rows in the ranked report table",
        gt=0,
        le=1000,
    )

    # Logging settings
    log_level: str = Field(
        default="INFO",
        description="Logging level",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
    )

    # Task store settings
    task_cache_ttl: int = Field(
        default=3600,
        description="How long finished searches are kept in memory (seconds)",
        gt=0,
        le=86400,
    )
    task_cache_size: int = Field(
        default=100,
        description="Maximum number of searches kept in memory",
        gt=0,
        le=10000,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get application settings (singleton).

    Returns:
        Settings instance
    """
    return Settings()


def build_search_configuration(
    pickup_start: str | date,
    pickup_end: str | date,
    return_start: str | date,
    return_end: str | date,
    *,
    min_days: int | None = None,
    delay_ms: int | None = None,
    settings: Settings | None = None,
) -> SearchConfiguration:
    """
    Combine settings with the operator's date ranges.

    Args:
        pickup_start: First pickup date (DD/MM/YYYY or date)
        pickup_end: Last pickup date
        return_start: First return date
        return_end: Last return date
        min_days: Minimum trip length override
        delay_ms: Pause between requests override
        settings: Settings to use (default from environment)

    Returns:
        Immutable search configuration

    Raises:
        ParseError: If a date string is malformed
    """
    settings = settings or get_settings()
    return SearchConfiguration(
        pickup_start=parse_date(pickup_start),
        pickup_end=parse_date(pickup_end),
        return_start=parse_date(return_start),
        return_end=parse_date(return_end),
        min_days=min_days if min_days is not None else settings.min_days,
        delay_ms=delay_ms if delay_ms is not None else settings.delay_ms,
        endpoint=settings.api_endpoint,
        reservation=ReservationParameters(
            pickup_location=settings.pickup_location,
            pickup_location_name=settings.pickup_location_name,
            return_location=settings.return_location,
            return_location_name=settings.return_location_name,
            pickup_time=settings.pickup_time,
            return_time=settings.return_time,
            age=settings.age,
            cdp=settings.cdp,
            rq=settings.rq,
            promo_code=settings.promo_code,
        ),
    )

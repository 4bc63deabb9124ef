"""Dependency wiring for FastAPI endpoints."""

from __future__ import annotations

from functools import lru_cache

from fastapi import Depends

from rental_search.config import Settings, get_settings
from rental_search.domain.ports.pricing_api import (
    PricingApiProtocol,
    ProgressReporterProtocol,
    RequestBuilderProtocol,
)
from rental_search.domain.services.background_task import BackgroundTaskService
from rental_search.domain.services.offer_extractor import CheapestOfferExtractor
from rental_search.domain.services.price_search import FixedDelayPacer, Pacer, PriceSearchService
from rental_search.infrastructure.background_task_manager import BackgroundTaskManager
from rental_search.infrastructure.cache_service import CacheService
from rental_search.infrastructure.hertz_api_adapter import HertzApiAdapter
from rental_search.infrastructure.progress_reporter import LoggingProgressReporter
from rental_search.infrastructure.request_builder import HertzRequestBuilder


@lru_cache(maxsize=1)
def get_pricing_api() -> PricingApiProtocol:
    """Return the shared httpx-backed pricing adapter."""
    return HertzApiAdapter()


async def close_pricing_api() -> None:
    """Close the shared adapter if one was created and forget it."""
    if get_pricing_api.cache_info().currsize:
        adapter = get_pricing_api()
        get_pricing_api.cache_clear()
        if isinstance(adapter, HertzApiAdapter):
            await adapter.close()


@lru_cache(maxsize=1)
def get_request_builder() -> RequestBuilderProtocol:
    return HertzRequestBuilder()


def get_extractor(settings: Settings = Depends(get_settings)) -> CheapestOfferExtractor:
    return CheapestOfferExtractor(default_currency=settings.default_currency)


def get_progress_reporter() -> ProgressReporterProtocol:
    return LoggingProgressReporter()


def get_pacer() -> Pacer:
    """Pause for each run's configured delay."""
    return FixedDelayPacer()


@lru_cache(maxsize=1)
def get_cache_service() -> CacheService:
    """Return cache service instance (singleton)."""
    return CacheService()


def get_price_search_service(
    pricing_api: PricingApiProtocol = Depends(get_pricing_api),
    request_builder: RequestBuilderProtocol = Depends(get_request_builder),
    extractor: CheapestOfferExtractor = Depends(get_extractor),
    progress: ProgressReporterProtocol = Depends(get_progress_reporter),
    pacer: Pacer = Depends(get_pacer),
    settings: Settings = Depends(get_settings),
) -> PriceSearchService:
    """Assemble the domain service."""
    return PriceSearchService(
        pricing_api=pricing_api,
        request_builder=request_builder,
        extractor=extractor,
        progress=progress,
        pacer=pacer,
        summary_every=settings.summary_every,
    )


def get_background_task_service(
    price_search_service: PriceSearchService = Depends(get_price_search_service),
    settings: Settings = Depends(get_settings),
) -> BackgroundTaskService:
    """Assemble background task service."""
    return BackgroundTaskService(
        price_search_service=price_search_service,
        report_top_n=settings.report_top_n,
    )


def get_background_task_manager(
    task_service: BackgroundTaskService = Depends(get_background_task_service),
    cache_service: CacheService = Depends(get_cache_service),
) -> BackgroundTaskManager:
    """Assemble background task manager."""
    return BackgroundTaskManager(task_service=task_service, cache_service=cache_service)

"""Application service driving the sequential price search over date combinations."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Protocol
from uuid import uuid4

from ..models import (
    DateCombination,
    HttpFailure,
    NoOfferFailure,
    ResultRow,
    SearchConfiguration,
    TransportFailure,
    UnexpectedFailure,
    describe_error,
    to_cents,
)
from ..ports.pricing_api import (
    PricingApiProtocol,
    ProgressReporterProtocol,
    RequestBuilderProtocol,
)
from .classifier import ClassifiedResponse, classify, describe_rate_limit
from .date_combinations import generate_date_combinations
from .offer_extractor import CheapestOfferExtractor

logger = logging.getLogger(__name__)


class CancellationToken:
    """Cooperative stop flag owned by one search run."""

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        """Request a stop; calling it again is a no-op."""
        self._event.set()

    async def wait(self) -> None:
        await self._event.wait()


@dataclass
class SearchRun:
    """State of one orchestrator invocation."""

    config: SearchConfiguration
    combinations: list[DateCombination]
    token: CancellationToken = field(default_factory=CancellationToken)
    run_id: str = field(default_factory=lambda: uuid4().hex)
    rows: list[ResultRow] = field(default_factory=list)
    success_count: int = 0
    error_count: int = 0
    rate_limit_warnings: int = 0
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    finished: bool = False
    cancelled: bool = False
    _started_monotonic: float = field(default_factory=time.monotonic, repr=False)
    _finished_monotonic: float | None = field(default=None, repr=False)

    @property
    def total(self) -> int:
        return len(self.combinations)

    @property
    def attempted(self) -> int:
        return len(self.rows)

    @property
    def elapsed(self) -> float:
        end = self._finished_monotonic if self._finished_monotonic is not None else time.monotonic()
        return end - self._started_monotonic

    @property
    def estimated_remaining(self) -> float:
        """Average time per processed combination times what is left."""
        if not self.attempted:
            return self.total * self.config.delay_ms / 1000
        return self.elapsed / self.attempted * (self.total - self.attempted)

    def mark_finished(self) -> None:
        self.finished = True
        self._finished_monotonic = time.monotonic()


@dataclass(frozen=True, slots=True)
class CombinationProgress:
    """Observation emitted after each combination."""

    run_id: str
    index: int
    total: int
    combination: DateCombination
    row: ResultRow
    outcome: str
    rate_limit_lines: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class AggregateProgress:
    """Periodic summary of a running search."""

    run_id: str
    attempted: int
    total: int
    elapsed: float
    estimated_remaining: float
    success_count: int
    error_count: int
    rate_limit_warning_count: int


class Pacer(Protocol):
    """Pause step between two requests."""

    async def pace(self, run: SearchRun) -> None: ...


class FixedDelayPacer:
    """Waits a fixed interval, returning early when the run is cancelled."""

    def __init__(self, delay_ms: int | None = None) -> None:
        self._delay_ms = delay_ms

    async def pace(self, run: SearchRun) -> None:
        delay_ms = self._delay_ms if self._delay_ms is not None else run.config.delay_ms
        if delay_ms <= 0:
            await asyncio.sleep(0)
            return
        try:
            await asyncio.wait_for(run.token.wait(), timeout=delay_ms / 1000)
        except asyncio.TimeoutError:
            pass


class NullProgressReporter:
    """Progress reporter that ignores every event."""

    def on_run_started(self, run: SearchRun) -> None:
        pass

    def on_combination(self, event: CombinationProgress) -> None:
        pass

    def on_summary(self, event: AggregateProgress) -> None:
        pass

    def on_run_finished(self, run: SearchRun) -> None:
        pass


class PriceSearchService:
    """Query the pricing API once per combination and record one row each."""

    def __init__(
        self,
        pricing_api: PricingApiProtocol,
        request_builder: RequestBuilderProtocol,
        extractor: CheapestOfferExtractor | None = None,
        progress: ProgressReporterProtocol | None = None,
        pacer: Pacer | None = None,
        summary_every: int = 10,
    ) -> None:
        if summary_every <= 0:
            raise ValueError(f"summary_every must be positive, got {summary_every}")
        self._pricing_api = pricing_api
        self._request_builder = request_builder
        self._extractor = extractor or CheapestOfferExtractor()
        self._progress = progress or NullProgressReporter()
        self._pacer = pacer or FixedDelayPacer()
        self._summary_every = summary_every

    def prepare(
        self,
        config: SearchConfiguration,
        token: CancellationToken | None = None,
    ) -> SearchRun:
        """Generate the combinations for a run; no request is issued here."""
        combinations = generate_date_combinations(
            config.pickup_start,
            config.pickup_end,
            config.return_start,
            config.return_end,
            config.min_days,
        )
        return SearchRun(
            config=config,
            combinations=combinations,
            token=token or CancellationToken(),
        )

    async def run(
        self,
        config: SearchConfiguration,
        token: CancellationToken | None = None,
    ) -> list[ResultRow]:
        """Execute a whole search and return rows in processing order."""
        search_run = self.prepare(config, token)
        await self.execute(search_run)
        return list(search_run.rows)

    async def execute(self, run: SearchRun) -> SearchRun:
        """Process combinations in order until done or cancelled."""
        self._progress.on_run_started(run)

        for index, combination in enumerate(run.combinations, start=1):
            if run.token.cancelled:
                run.cancelled = True
                logger.info(
                    "search stopped by operator",
                    extra={"run_id": run.run_id, "attempted": run.attempted, "total": run.total},
                )
                break

            row, response = await self._process(run, combination)
            self._record(run, row)

            self._progress.on_combination(
                CombinationProgress(
                    run_id=run.run_id,
                    index=index,
                    total=run.total,
                    combination=combination,
                    row=row,
                    outcome=self._summarize_row(row),
                    rate_limit_lines=(
                        tuple(describe_rate_limit(response.rate_limit)) if response else ()
                    ),
                )
            )
            if index % self._summary_every == 0:
                self._progress.on_summary(self._aggregate(run))

            if index < run.total and not run.token.cancelled:
                await self._pacer.pace(run)

        run.mark_finished()
        self._progress.on_run_finished(run)
        return run

    async def _process(
        self,
        run: SearchRun,
        combination: DateCombination,
    ) -> tuple[ResultRow, ClassifiedResponse | None]:
        try:
            body = self._request_builder.build(run.config, combination)
            outcome = await self._pricing_api.post(run.config.endpoint, body)
            response = classify(outcome)
            if not response.success:
                return self._failure_row(combination, response), response

            offer = self._extractor.extract_cheapest(response.body)
            if offer is None:
                return (
                    self._row(
                        combination,
                        status=response.status,
                        error=NoOfferFailure(status=response.status),
                    ),
                    response,
                )

            price_per_day = to_cents(offer.price / combination.days)
            row = ResultRow(
                pickup_date=combination.pickup_date,
                return_date=combination.return_date,
                days=combination.days,
                total_price=offer.price,
                price_per_day=price_per_day,
                currency=offer.currency,
                offer=offer,
                status=response.status,
            )
            return row, response
        except Exception as e:
            logger.error(
                "unexpected error processing combination",
                exc_info=True,
                extra={
                    "run_id": run.run_id,
                    "pickup": combination.pickup_date.isoformat(),
                    "return": combination.return_date.isoformat(),
                    "error": str(e),
                },
            )
            failure = UnexpectedFailure(error_type=type(e).__name__, message=str(e))
            return self._row(combination, error=failure), None

    def _failure_row(
        self,
        combination: DateCombination,
        response: ClassifiedResponse,
    ) -> ResultRow:
        if response.status is None:
            failure = TransportFailure(
                error_type=response.error_kind or "TransportError",
                message=response.message or "",
            )
            return self._row(combination, error=failure)

        failure = HttpFailure(
            status=response.status,
            status_text=response.status_text,
            headers=response.headers,
            rate_limited=response.rate_limited,
        )
        return self._row(combination, status=response.status, error=failure)

    def _row(
        self,
        combination: DateCombination,
        *,
        error: TransportFailure | HttpFailure | NoOfferFailure | UnexpectedFailure,
        status: int | None = None,
    ) -> ResultRow:
        return ResultRow(
            pickup_date=combination.pickup_date,
            return_date=combination.return_date,
            days=combination.days,
            currency=self._extractor.default_currency,
            status=status,
            error=error,
        )

    @staticmethod
    def _record(run: SearchRun, row: ResultRow) -> None:
        run.rows.append(row)
        if row.is_priced:
            run.success_count += 1
            return
        run.error_count += 1
        if isinstance(row.error, HttpFailure) and row.error.rate_limited:
            run.rate_limit_warnings += 1

    @staticmethod
    def _summarize_row(row: ResultRow) -> str:
        if row.offer is None:
            return describe_error(row.error)
        offer = row.offer
        prefix = "[EV] " if offer.electric else ""
        return (
            f"{prefix}{offer.name}: {row.total_price} {row.currency} "
            f"({row.price_per_day} {row.currency}/day)"
        )

    @staticmethod
    def _aggregate(run: SearchRun) -> AggregateProgress:
        return AggregateProgress(
            run_id=run.run_id,
            attempted=run.attempted,
            total=run.total,
            elapsed=run.elapsed,
            estimated_remaining=run.estimated_remaining,
            success_count=run.success_count,
            error_count=run.error_count,
            rate_limit_warning_count=run.rate_limit_warnings,
        )

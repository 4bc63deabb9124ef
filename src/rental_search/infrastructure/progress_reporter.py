"""Progress reporter writing search observations to the application log."""

from __future__ import annotations

import logging

from ..domain.models import HttpFailure
from ..domain.services.date_combinations import format_date
from ..domain.services.price_search import AggregateProgress, CombinationProgress, SearchRun

logger = logging.getLogger(__name__)


class LoggingProgressReporter:
    """Log per-combination results, periodic summaries and rate-limit warnings."""

    def on_run_started(self, run: SearchRun) -> None:
        config = run.config
        logger.info(
            "search started: %s, pickup %s - %s, return %s - %s, "
            "min %d days, %d ms between requests, %d combinations",
            config.reservation.pickup_location_name or config.reservation.pickup_location,
            format_date(config.pickup_start),
            format_date(config.pickup_end),
            format_date(config.return_start),
            format_date(config.return_end),
            config.min_days,
            config.delay_ms,
            run.total,
            extra={"run_id": run.run_id},
        )

    def on_combination(self, event: CombinationProgress) -> None:
        extra = {"run_id": event.run_id}
        percentage = event.index / event.total * 100 if event.total else 100.0
        message = "[%d/%d] (%.1f%%) %s -> %s (%d days): %s"
        args = (
            event.index,
            event.total,
            percentage,
            format_date(event.combination.pickup_date),
            format_date(event.combination.return_date),
            event.combination.days,
            event.outcome,
        )
        if event.row.is_priced:
            logger.info(message, *args, extra=extra)
        else:
            logger.warning(message, *args, extra=extra)

        error = event.row.error
        if isinstance(error, HttpFailure) and error.rate_limited:
            logger.warning("RATE LIMITED (HTTP %d)", error.status, extra=extra)
        for line in event.rate_limit_lines:
            logger.info("  %s", line, extra=extra)
        if isinstance(error, HttpFailure):
            for name, value in error.headers.items():
                logger.debug("  header %s: %s", name, value, extra=extra)

    def on_summary(self, event: AggregateProgress) -> None:
        extra = {"run_id": event.run_id}
        logger.info(
            "elapsed: %.0fs | est. remaining: %.0fs | success: %d | errors: %d",
            event.elapsed,
            event.estimated_remaining,
            event.success_count,
            event.error_count,
            extra=extra,
        )
        if event.rate_limit_warning_count:
            logger.warning(
                "rate limit warnings: %d", event.rate_limit_warning_count, extra=extra
            )

    def on_run_finished(self, run: SearchRun) -> None:
        extra = {"run_id": run.run_id}
        verb = "stopped" if run.cancelled else "completed"
        logger.info(
            "search %s in %.1f minutes (%d/%d combinations)",
            verb,
            run.elapsed / 60,
            run.attempted,
            run.total,
            extra=extra,
        )
        logger.info(
            "results: %d with prices, %d without prices",
            run.success_count,
            run.error_count,
            extra=extra,
        )
        if run.rate_limit_warnings:
            logger.warning(
                "rate limit warnings encountered: %d", run.rate_limit_warnings, extra=extra
            )

"""Background task service for asynchronous price search processing."""

from __future__ import annotations

import logging

from ..models import Report, SearchConfiguration
from .price_search import CancellationToken, PriceSearchService, SearchRun
from .report import summarize

logger = logging.getLogger(__name__)


class TaskStatus:
    """Task status constants."""

    PROCESSING = "processing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


class BackgroundTaskService:
    """
    Service for managing background price search tasks.

    Handles task lifecycle: creation, execution, and report building.
    """

    def __init__(
        self,
        price_search_service: PriceSearchService,
        report_top_n: int = 20,
    ) -> None:
        """
        Initialize background task service.

        Args:
            price_search_service: Service running the search loop
            report_top_n: Size of the ranked table in reports
        """
        self._price_search_service = price_search_service
        self._report_top_n = report_top_n

    def start_task(self, config: SearchConfiguration) -> SearchRun:
        """
        Prepare a search run without issuing any request.

        Args:
            config: Search configuration

        Returns:
            Prepared run; its run_id doubles as task id
        """
        run = self._price_search_service.prepare(config, CancellationToken())

        logger.info(
            "Background task started",
            extra={
                "run_id": run.run_id,
                "total": run.total,
                "status": TaskStatus.PROCESSING,
            },
        )

        return run

    async def execute_search(self, run: SearchRun) -> Report:
        """
        Execute a prepared run and summarize its rows.

        Args:
            run: Run returned by start_task

        Returns:
            Report built from the recorded rows
        """
        try:
            await self._price_search_service.execute(run)
            report = summarize(run.rows, top_n=self._report_top_n)
            logger.info(
                "Background task completed",
                extra={
                    "run_id": run.run_id,
                    "cancelled": run.cancelled,
                    "with_price": report.with_price,
                },
            )
            return report
        except Exception as e:
            logger.error(
                "Background task failed",
                extra={"run_id": run.run_id, "error": str(e)},
                exc_info=True,
            )
            raise

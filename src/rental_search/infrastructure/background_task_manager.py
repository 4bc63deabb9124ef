"""Background task manager for running, stopping and reading search tasks."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from ..domain.models import Report, SearchConfiguration
from ..domain.services.background_task import BackgroundTaskService, TaskStatus
from ..domain.services.price_search import SearchRun
from .cache_service import CacheService

logger = logging.getLogger(__name__)


class TaskNotFoundError(Exception):
    """Raised when task is not found in cache."""

    pass


class TaskFailedError(Exception):
    """Raised when task execution failed."""

    def __init__(self, error: str) -> None:
        """
        Initialize task failed error.

        Args:
            error: Error message from task execution
        """
        self.error = error
        super().__init__(f"Task failed: {error}")


class TaskResultMissingError(Exception):
    """Raised when task finished but its report is missing."""

    pass


class TaskNotFinishedError(Exception):
    """Raised when a report is requested while the task is still running."""

    pass


def _progress(run: SearchRun) -> dict[str, Any]:
    return {
        "attempted": run.attempted,
        "total": run.total,
        "success_count": run.success_count,
        "error_count": run.error_count,
        "rate_limit_warnings": run.rate_limit_warnings,
        "elapsed": round(run.elapsed, 1),
        "estimated_remaining": round(run.estimated_remaining, 1),
        "stop_requested": run.token.cancelled,
    }


class BackgroundTaskManager:
    """
    Manager for background search tasks with in-memory result storage.

    Coordinates task execution, cooperative stopping and report storage
    using CacheService.
    """

    def __init__(
        self,
        task_service: BackgroundTaskService,
        cache_service: CacheService,
    ) -> None:
        """
        Initialize task manager.

        Args:
            task_service: Service for executing searches
            cache_service: Service for storing task state
        """
        self._task_service = task_service
        self._cache_service = cache_service

    def start_task(self, config: SearchConfiguration) -> SearchRun:
        """
        Start background search task.

        Must be called from a running event loop.

        Args:
            config: Search configuration

        Returns:
            The prepared run (run_id is the task id)
        """
        run = self._task_service.start_task(config)

        # Запускаем обработку в фоне и храним ссылку на задачу
        handle = asyncio.create_task(self._process_task(run))
        self._cache_service.set_task(
            run.run_id,
            {
                "status": TaskStatus.PROCESSING,
                "run": run,
                "report": None,
                "error": None,
                "handle": handle,
            },
            active=True,
        )
        return run

    async def _process_task(self, run: SearchRun) -> None:
        """
        Process task in background and store its report.

        Args:
            run: Prepared search run
        """
        try:
            report = await self._task_service.execute_search(run)

            status = TaskStatus.CANCELLED if run.cancelled else TaskStatus.COMPLETED
            self._cache_service.finish_task(
                run.run_id, status=status, report=report, handle=None
            )

            logger.info(
                "Task processing finished",
                extra={"run_id": run.run_id, "status": status},
            )

        except Exception as e:
            self._cache_service.finish_task(
                run.run_id, status=TaskStatus.FAILED, error=str(e), handle=None
            )

            logger.error(
                "Task processing failed",
                extra={
                    "run_id": run.run_id,
                    "status": TaskStatus.FAILED,
                    "error": str(e),
                },
                exc_info=True,
            )

    def get_task_result(self, task_id: str) -> dict[str, Any] | None:
        """
        Get task data from cache.

        Args:
            task_id: Task identifier

        Returns:
            Task data dict or None if not found
        """
        return self._cache_service.get_task(task_id)

    def _require_task(self, task_id: str) -> dict[str, Any]:
        task_data = self.get_task_result(task_id)
        if task_data is None:
            logger.warning("Task not found", extra={"run_id": task_id})
            raise TaskNotFoundError(f"Task {task_id} not found")
        return task_data

    def stop_task(self, task_id: str) -> dict[str, Any]:
        """
        Request a cooperative stop of a running task.

        Idempotent; has no effect on a task that already finished.

        Args:
            task_id: Task identifier

        Returns:
            Dict with task id, status and whether a stop is pending

        Raises:
            TaskNotFoundError: If task is not found in cache
        """
        task_data = self._require_task(task_id)
        status = task_data.get("status")
        run: SearchRun | None = task_data.get("run")

        if status == TaskStatus.PROCESSING and run is not None:
            run.token.cancel()
            logger.info(
                "Stop requested, search halts after the current request",
                extra={"run_id": task_id},
            )

        return {
            "task_id": task_id,
            "status": status,
            "stop_requested": (
                status == TaskStatus.PROCESSING
                and run is not None
                and run.token.cancelled
            ),
        }

    def get_task_response(self, task_id: str) -> dict[str, Any] | Report:
        """
        Get task response with proper status handling.

        Args:
            task_id: Task identifier

        Returns:
            Progress dict for PROCESSING status or Report once finished

        Raises:
            TaskNotFoundError: If task is not found in cache
            TaskResultMissingError: If task finished but report is missing
            TaskFailedError: If task execution failed
        """
        task_data = self._require_task(task_id)
        status = task_data.get("status")

        if status == TaskStatus.PROCESSING:
            return {
                "task_id": task_id,
                "status": TaskStatus.PROCESSING,
                "progress": _progress(task_data["run"]),
            }

        return self.get_report(task_id)

    def get_report(self, task_id: str) -> Report:
        """
        Get the report of a finished task.

        Args:
            task_id: Task identifier

        Returns:
            Report of a completed or cancelled task

        Raises:
            TaskNotFoundError: If task is not found in cache
            TaskNotFinishedError: If task is still processing
            TaskResultMissingError: If task finished but report is missing
            TaskFailedError: If task execution failed
        """
        task_data = self._require_task(task_id)
        status = task_data.get("status")

        if status == TaskStatus.PROCESSING:
            raise TaskNotFinishedError(f"Task {task_id} is still processing")

        if status in (TaskStatus.COMPLETED, TaskStatus.CANCELLED):
            report = task_data.get("report")
            if report is None:
                logger.error(
                    "Task finished but report is missing",
                    extra={"run_id": task_id},
                )
                raise TaskResultMissingError(
                    f"Task {task_id} finished but report is missing"
                )
            return report

        if status == TaskStatus.FAILED:
            error = task_data.get("error", "Unknown error")
            logger.warning("Task failed", extra={"run_id": task_id, "error": error})
            raise TaskFailedError(error)

        logger.error(
            "Unknown task status",
            extra={"run_id": task_id, "status": status},
        )
        raise ValueError(f"Unknown task status: {status}")

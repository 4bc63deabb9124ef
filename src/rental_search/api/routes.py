"""API routes for the Rental Search service."""

from __future__ import annotations

import logging
from typing import Any, Literal

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import PlainTextResponse, Response

from rental_search.api.dependencies import get_background_task_manager
from rental_search.api.schemas import StartSearchRequest, StartSearchResponse, StopSearchResponse
from rental_search.config import Settings, build_search_configuration, get_settings
from rental_search.domain.models import Report
from rental_search.domain.services.background_task import TaskStatus
from rental_search.domain.services.date_combinations import ParseError
from rental_search.domain.services.report import export_csv, export_json, render_markdown
from rental_search.infrastructure.background_task_manager import (
    BackgroundTaskManager,
    TaskFailedError,
    TaskNotFinishedError,
    TaskNotFoundError,
    TaskResultMissingError,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _finished_report(task_manager: BackgroundTaskManager, task_id: str) -> Report:
    try:
        return task_manager.get_report(task_id)
    except TaskNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from None
    except TaskNotFinishedError as e:
        raise HTTPException(status_code=409, detail=str(e)) from None
    except (TaskResultMissingError, TaskFailedError) as e:
        raise HTTPException(status_code=500, detail=str(e)) from None


@router.post("/start_search", response_model=StartSearchResponse, tags=["tasks"])
async def start_search(
    request: StartSearchRequest,
    task_manager: BackgroundTaskManager = Depends(get_background_task_manager),
    settings: Settings = Depends(get_settings),
) -> StartSearchResponse:
    """
    Start a background search over the requested date ranges.

    Returns task_id that can be used with /stop_search, /get_result,
    /get_report and /export.
    """
    logger.info("start_search called", extra={"event": "start_task"})
    try:
        config = build_search_configuration(
            request.pickup_start,
            request.pickup_end,
            request.return_start,
            request.return_end,
            min_days=request.min_days,
            delay_ms=request.delay_ms,
            settings=settings,
        )
    except ParseError as e:
        raise HTTPException(status_code=422, detail=str(e)) from None

    run = task_manager.start_task(config)
    logger.info(
        "start_search finished",
        extra={"event": "task_started", "run_id": run.run_id, "total": run.total},
    )
    return StartSearchResponse(task_id=run.run_id, status=TaskStatus.PROCESSING, total=run.total)


@router.post("/stop_search", response_model=StopSearchResponse, tags=["tasks"])
async def stop_search(
    task_id: str = Query(description="Task identifier returned by /start_search"),
    task_manager: BackgroundTaskManager = Depends(get_background_task_manager),
) -> StopSearchResponse:
    """Ask a running search to stop after its in-flight request."""
    try:
        return StopSearchResponse(**task_manager.stop_task(task_id))
    except TaskNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from None


@router.get("/get_result", tags=["tasks"])
async def get_result(
    task_id: str = Query(description="Task identifier returned by /start_search"),
    task_manager: BackgroundTaskManager = Depends(get_background_task_manager),
) -> dict[str, Any] | Report:
    """
    Get progress of a running search or the report of a finished one.
    """
    logger.info("get_result called", extra={"event": "get_result", "run_id": task_id})

    try:
        return task_manager.get_task_response(task_id)
    except TaskNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from None
    except TaskResultMissingError as e:
        raise HTTPException(status_code=500, detail=str(e)) from None
    except TaskFailedError as e:
        raise HTTPException(status_code=500, detail=str(e)) from None


@router.get("/get_report", response_class=PlainTextResponse, tags=["reports"])
async def get_report(
    task_id: str = Query(description="Task identifier returned by /start_search"),
    task_manager: BackgroundTaskManager = Depends(get_background_task_manager),
) -> PlainTextResponse:
    """Markdown report with best deal, ranked table and statistics."""
    report = _finished_report(task_manager, task_id)
    return PlainTextResponse(render_markdown(report), media_type="text/markdown")


@router.get("/export", tags=["reports"])
async def export(
    task_id: str = Query(description="Task identifier returned by /start_search"),
    format: Literal["json", "csv"] = Query(default="json"),
    task_manager: BackgroundTaskManager = Depends(get_background_task_manager),
) -> Response:
    """Download all rows as JSON or priced rows as CSV."""
    report = _finished_report(task_manager, task_id)
    if format == "csv":
        content, media_type = export_csv(report), "text/csv"
    else:
        content, media_type = export_json(report), "application/json"
    return Response(
        content=content,
        media_type=media_type,
        headers={
            "Content-Disposition": f'attachment; filename="rental-prices-{task_id}.{format}"'
        },
    )

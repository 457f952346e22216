"""
app/api/routers/scraper_executions.py

Read-only admin endpoints for discovery run audit records.
"""

from __future__ import annotations

from dataclasses import asdict
from datetime import date
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.schemas.scraper_executions import ScraperExecutionResponse, ScraperExecutionStatsResponse
from db.models.scraper_execution import ScraperExecution
from db.repositories.scraper_execution_repository import MAX_LIST_LIMIT, ScraperExecutionRepository
from db.session import get_db

router = APIRouter(prefix="/admin/scraper_executions", tags=["scraper-executions"])

ExecutionStatus = Literal["pending", "success", "partial_success", "failure"]


@router.get("", response_model=list[ScraperExecutionResponse])
def list_scraper_executions(
    status_filter: ExecutionStatus | None = Query(default=None, alias="status", description="Optional status filter"),
    start_date: date | None = Query(default=None, description="Runs started on or after this UTC day"),
    end_date: date | None = Query(default=None, description="Runs started on or before this UTC day"),
    limit: int = Query(default=MAX_LIST_LIMIT, ge=1, le=MAX_LIST_LIMIT),
    db: Session = Depends(get_db),
) -> list[ScraperExecutionResponse]:
    """
    Most recent runs first. Filters combine conjunctively.
    """

    executions = ScraperExecutionRepository(db).list_executions(
        status=status_filter,
        start_date=start_date,
        end_date=end_date,
        limit=limit,
    )
    return [_to_response(execution) for execution in executions]


@router.get("/stats", response_model=ScraperExecutionStatsResponse)
def get_scraper_execution_stats(db: Session = Depends(get_db)) -> ScraperExecutionStatsResponse:
    stats = ScraperExecutionRepository(db).get_stats()
    return ScraperExecutionStatsResponse(**asdict(stats))


@router.get("/{execution_id}", response_model=ScraperExecutionResponse)
def get_scraper_execution(execution_id: int, db: Session = Depends(get_db)) -> ScraperExecutionResponse:
    execution = ScraperExecutionRepository(db).get_execution(execution_id)
    if execution is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Execution not found",
        )
    return _to_response(execution)


def _to_response(execution: ScraperExecution) -> ScraperExecutionResponse:
    return ScraperExecutionResponse(
        id=execution.id,
        started_at=execution.started_at,
        finished_at=execution.finished_at,
        status=execution.status,
        commanders_attempted=execution.commanders_attempted,
        commanders_succeeded=execution.commanders_succeeded,
        commanders_failed=execution.commanders_failed,
        execution_time_seconds=execution.execution_time_seconds,
        success_rate=execution.success_rate,
        error_summary=execution.error_summary,
        created_at=execution.created_at,
        updated_at=execution.updated_at,
    )

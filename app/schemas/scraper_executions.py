"""
app/schemas/scraper_executions.py

Response schemas for the discovery run audit endpoints.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class ScraperExecutionResponse(BaseModel):
    """
    API response model for one discovery run.
    """

    id: int
    started_at: datetime
    finished_at: datetime | None = None
    status: str
    commanders_attempted: int = Field(..., ge=0)
    commanders_succeeded: int = Field(..., ge=0)
    commanders_failed: int = Field(..., ge=0)
    execution_time_seconds: float | None = None
    success_rate: float
    error_summary: str | None = None
    created_at: datetime
    updated_at: datetime


class ScraperExecutionStatsResponse(BaseModel):
    total_executions: int = Field(..., ge=0)
    successful_executions: int = Field(..., ge=0)
    failed_executions: int = Field(..., ge=0)
    partial_success_executions: int = Field(..., ge=0)
    success_rate: float

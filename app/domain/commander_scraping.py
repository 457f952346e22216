"""
app/domain/commander_scraping.py

Domain models for commander discovery orchestration.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class DiscoveryRunSummary:
    """
    Outcome of one discovery run, mirroring its persisted execution record.
    """

    execution_id: int
    status: str
    commanders_attempted: int
    commanders_succeeded: int
    commanders_failed: int
    decklist_jobs_scheduled: int
    execution_time_seconds: float | None = None
    error_summary: str | None = None

"""
app/schemas package marker.
"""

from app.schemas.commanders import (
    CommanderDetailResponse,
    CommanderSummaryResponse,
    DecklistCardResponse,
)
from app.schemas.scraper_executions import ScraperExecutionResponse, ScraperExecutionStatsResponse

__all__ = [
    "CommanderDetailResponse",
    "CommanderSummaryResponse",
    "DecklistCardResponse",
    "ScraperExecutionResponse",
    "ScraperExecutionStatsResponse",
]

"""
Schemas for the commander read endpoints.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class DecklistCardResponse(BaseModel):
    card_name: str
    category: str
    is_commander: bool
    external_card_id: str | None = None


class CommanderSummaryResponse(BaseModel):
    id: int
    name: str
    rank: int = Field(..., ge=1)
    source_url: str
    last_scraped_at: datetime | None = None
    card_count: int = Field(..., ge=0)


class CommanderDetailResponse(CommanderSummaryResponse):
    cards: list[DecklistCardResponse] = Field(default_factory=list)

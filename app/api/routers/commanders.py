"""
Commander read endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.schemas.commanders import CommanderDetailResponse, CommanderSummaryResponse, DecklistCardResponse
from db.models.commander import Commander
from db.repositories.commander_repository import CommanderRepository
from db.session import get_db

router = APIRouter(tags=["commanders"])


@router.get("/commanders", response_model=list[CommanderSummaryResponse])
def list_commanders(db: Session = Depends(get_db)) -> list[CommanderSummaryResponse]:
    return [_to_summary(commander) for commander in CommanderRepository(db).list_commanders()]


@router.get("/commanders/{commander_id}", response_model=CommanderDetailResponse)
def get_commander(commander_id: int, db: Session = Depends(get_db)) -> CommanderDetailResponse:
    commander = CommanderRepository(db).get_commander(commander_id)
    if commander is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Commander not found: {commander_id}",
        )

    contents = commander.decklist.contents if commander.decklist is not None else []
    return CommanderDetailResponse(
        **_to_summary(commander).model_dump(),
        cards=[DecklistCardResponse(**entry) for entry in contents],
    )


def _to_summary(commander: Commander) -> CommanderSummaryResponse:
    return CommanderSummaryResponse(
        id=commander.id,
        name=commander.name,
        rank=commander.rank,
        source_url=commander.source_url,
        last_scraped_at=commander.last_scraped_at,
        card_count=commander.card_count,
    )

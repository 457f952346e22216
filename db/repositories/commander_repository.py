"""
Repository for commander upserts and decklist replacement.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Any

from sqlalchemy import Select, select
from sqlalchemy.orm import Session, selectinload

from db.base import utcnow
from db.models.commander import Commander, Decklist
from db.repositories.errors import CommanderNotFoundError, CommanderValidationError


class CommanderRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def get_commander(self, commander_id: int) -> Commander | None:
        return self._session.get(Commander, commander_id)

    def get_by_name(self, name: str) -> Commander | None:
        stmt = select(Commander).where(Commander.name == name)
        return self._session.scalars(stmt).one_or_none()

    def list_commanders(self) -> list[Commander]:
        stmt: Select[tuple[Commander]] = (
            select(Commander)
            .options(selectinload(Commander.decklist))
            .order_by(Commander.rank.asc(), Commander.name.asc())
        )
        return list(self._session.scalars(stmt).all())

    def upsert_commander(self, *, name: str, rank: int, source_url: str) -> Commander:
        """
        Create a commander or refresh rank/url of the existing one.

        ``last_scraped_at`` is never touched here.
        """

        clean_name, clean_url = _validate_listing(name=name, rank=rank, source_url=source_url)

        commander = self.get_by_name(clean_name)
        if commander is None:
            commander = Commander(
                name=clean_name,
                rank=rank,
                source_url=clean_url,
                last_scraped_at=None,
            )
            self._session.add(commander)
        else:
            commander.rank = rank
            commander.source_url = clean_url
        self._session.flush()
        return commander

    def replace_decklist(
        self,
        *,
        commander_id: int,
        contents: Sequence[dict[str, Any]],
        scraped_at: datetime | None = None,
    ) -> Decklist:
        """
        Swap the commander's decklist contents and stamp ``last_scraped_at``.
        """

        commander = self.get_commander(commander_id)
        if commander is None:
            raise CommanderNotFoundError(f"Commander not found: {commander_id}")

        decklist = commander.decklist
        if decklist is None:
            decklist = Decklist(commander=commander, contents=list(contents))
            self._session.add(decklist)
        else:
            decklist.contents = list(contents)
        commander.last_scraped_at = scraped_at or utcnow()
        self._session.flush()
        return decklist


def _validate_listing(*, name: str, rank: int, source_url: str) -> tuple[str, str]:
    clean_name = (name or "").strip() if isinstance(name, str) else ""
    if not clean_name:
        raise CommanderValidationError("Commander name must not be blank.")
    if isinstance(rank, bool) or not isinstance(rank, int) or rank < 1:
        raise CommanderValidationError(
            f"Commander rank must be a positive integer (name={clean_name!r}, rank={rank!r})."
        )
    clean_url = (source_url or "").strip() if isinstance(source_url, str) else ""
    if not clean_url:
        raise CommanderValidationError(f"Commander source_url must not be blank (name={clean_name!r}).")
    return clean_name, clean_url

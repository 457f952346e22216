"""
app/services/decklist_scrape.py

Detail phase: fetch one commander's decklist and replace the stored contents.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any

from app.scraping.base import SourceClient
from app.scraping.logging_utils import log_error, log_event
from app.scraping.types import DecklistCard
from db.base import utcnow
from db.repositories.commander_repository import CommanderRepository
from db.repositories.errors import CommanderNotFoundError
from db.session import SessionFactory, session_scope

logger = logging.getLogger(__name__)

COMPONENT = "DecklistScrapeJob"


@dataclass(frozen=True)
class _CommanderRef:
    id: int
    name: str
    source_url: str


def normalize_decklist_entries(
    cards: Sequence[DecklistCard],
    commander_name: str,
) -> list[dict[str, Any]]:
    """
    Serialize cards so exactly one entry is flagged as the commander.

    The flag goes to the entry whose name matches the commander, otherwise to
    the first entry the source flagged, otherwise to the first entry.
    """

    if not cards:
        return []

    wanted = commander_name.strip().casefold()
    flagged_index = next(
        (i for i, card in enumerate(cards) if card.card_name.strip().casefold() == wanted),
        None,
    )
    if flagged_index is None:
        flagged_index = next((i for i, card in enumerate(cards) if card.is_commander), 0)

    return [
        replace(card, is_commander=(index == flagged_index)).to_dict()
        for index, card in enumerate(cards)
    ]


class DecklistScrapeJob:
    """
    Independent per-commander job. Errors propagate to the job runner.
    """

    def __init__(
        self,
        *,
        session_factory: SessionFactory,
        client: SourceClient,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._session_factory = session_factory
        self._client = client
        self._clock = clock

    def run(self, commander_id: int) -> int | None:
        commander = self._load_commander(commander_id)
        if commander is None:
            self._log_skipped(commander_id)
            return None

        log_event(
            logger,
            logging.INFO,
            "decklist_scrape_started",
            component=COMPONENT,
            commander_id=commander.id,
            commander_name=commander.name,
        )

        try:
            cards = self._client.fetch_commander_decklist(commander.source_url)
        except Exception as exc:
            log_error(
                logger,
                exc,
                component=COMPONENT,
                commander_id=commander.id,
                commander_name=commander.name,
                source_url=commander.source_url,
            )
            raise

        contents = normalize_decklist_entries(cards, commander.name)
        scraped_at = self._clock()

        with session_scope(self._session_factory) as db:
            try:
                CommanderRepository(db).replace_decklist(
                    commander_id=commander.id,
                    contents=contents,
                    scraped_at=scraped_at,
                )
                db.commit()
            except CommanderNotFoundError:
                # Deleted while the fetch was in flight.
                db.rollback()
                self._log_skipped(commander_id)
                return None
            except Exception:
                db.rollback()
                raise

        log_event(
            logger,
            logging.INFO,
            "decklist_scrape_completed",
            component=COMPONENT,
            commander_id=commander.id,
            commander_name=commander.name,
            cards_count=len(contents),
        )
        return len(contents)

    def _load_commander(self, commander_id: int) -> _CommanderRef | None:
        with session_scope(self._session_factory) as db:
            commander = CommanderRepository(db).get_commander(commander_id)
            if commander is None:
                return None
            return _CommanderRef(id=commander.id, name=commander.name, source_url=commander.source_url)

    @staticmethod
    def _log_skipped(commander_id: int) -> None:
        log_event(
            logger,
            logging.WARNING,
            "decklist_scrape_skipped",
            component=COMPONENT,
            commander_id=commander_id,
            reason="commander_not_found",
        )

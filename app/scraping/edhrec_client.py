"""
EDHREC source client.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

import requests

from app.config import EdhrecSettings
from app.scraping.base import JSONSourceClient
from app.scraping.card_resolver import CardResolver, NullCardResolver
from app.scraping.logging_utils import log_event
from app.scraping.parsing.edhrec_json import EdhrecJSONParser
from app.scraping.rate_limiter import SourceRateLimiter
from app.scraping.types import CommanderListing, DecklistCard

logger = logging.getLogger(__name__)

EDHREC_SOURCE_KEY = "edhrec"


class EdhrecClient(JSONSourceClient):
    """
    Fetches the weekly top commanders and per-commander average decklists.
    """

    source_key = EDHREC_SOURCE_KEY

    def __init__(
        self,
        *,
        settings: EdhrecSettings,
        rate_limiter: SourceRateLimiter,
        session: requests.Session | None = None,
        card_resolver: CardResolver | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        super().__init__(
            session=session or requests.Session(),
            rate_limiter=rate_limiter,
            user_agent=settings.user_agent,
            timeout_seconds=settings.timeout_seconds,
            max_retries=settings.max_retries,
            backoff_initial_seconds=settings.backoff_initial_seconds,
            backoff_multiplier=settings.backoff_multiplier,
            cache_ttl_seconds=settings.cache_ttl_seconds,
            sleep=sleep,
        )
        self.settings = settings
        self.card_resolver = card_resolver or NullCardResolver()

    def fetch_top_commanders(self) -> list[CommanderListing]:
        payload = self.fetch_json(self.settings.top_commanders_url)
        commanders = EdhrecJSONParser.parse_top_commanders(
            payload,
            base_url=self.settings.base_url,
            limit=self.settings.expected_commander_count,
        )
        log_event(
            logger,
            logging.INFO,
            "top_commanders_fetched",
            source=self.source_key,
            commanders=len(commanders),
        )
        return commanders

    def fetch_commander_decklist(self, url: str) -> list[DecklistCard]:
        slug = EdhrecJSONParser.slug_from_url(url)
        payload = self.fetch_json(self.settings.decklist_url(slug))
        cards = EdhrecJSONParser.parse_decklist(
            payload,
            expected_size=self.settings.expected_decklist_size,
        )
        resolved = [
            DecklistCard(
                card_name=card.card_name,
                category=card.category,
                is_commander=card.is_commander,
                external_card_id=self.card_resolver.resolve(card.card_name),
            )
            for card in cards
        ]
        log_event(
            logger,
            logging.INFO,
            "decklist_fetched",
            source=self.source_key,
            slug=slug,
            cards=len(resolved),
            unresolved=sum(1 for card in resolved if card.external_card_id is None),
        )
        return resolved

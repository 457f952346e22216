"""
Parsing layer for EDHREC JSON pages.
"""

from __future__ import annotations

import logging
from typing import Any

from app.scraping.errors import ParseError
from app.scraping.types import CommanderListing, DecklistCard

logger = logging.getLogger(__name__)

COMMANDERS_CATEGORY = "commanders"
UNKNOWN_CATEGORY = "Unknown"


class EdhrecJSONParser:
    """
    Deterministic extraction of commanders and decklists from EDHREC payloads.

    Both page kinds nest their data under ``container.json_dict.cardlists``.
    """

    @classmethod
    def parse_top_commanders(
        cls,
        payload: Any,
        *,
        base_url: str,
        limit: int,
    ) -> list[CommanderListing]:
        cardlists = cls._cardlists(payload)
        cardviews = cardlists[0].get("cardviews") if cardlists else None
        if not isinstance(cardviews, list) or not cardviews:
            raise ParseError("Could not find commander data in JSON - API structure may have changed")

        commanders: list[CommanderListing] = []
        for cardview in cardviews:
            if len(commanders) >= limit:
                break
            if not isinstance(cardview, dict):
                continue
            name = str(cardview.get("name") or "").strip()
            href = str(cardview.get("url") or "").strip()
            if not name or not href:
                logger.warning("EdhrecJSONParser: skipping cardview without name/url: %r", cardview)
                continue
            commanders.append(
                CommanderListing(
                    name=name,
                    rank=len(commanders) + 1,
                    url=cls.absolute_url(base_url, href),
                )
            )

        if not commanders:
            raise ParseError("No commanders could be parsed from JSON")
        if len(commanders) < limit:
            logger.warning(
                "EdhrecJSONParser: found only %d commanders (expected %d)",
                len(commanders),
                limit,
            )
        return commanders

    @classmethod
    def parse_decklist(cls, payload: Any, *, expected_size: int = 0) -> list[DecklistCard]:
        cardlists = cls._cardlists(payload)
        if not cardlists:
            raise ParseError("Could not find decklist data in JSON - API structure may have changed")

        cards: list[DecklistCard] = []
        for cardlist in cardlists:
            category = str(cardlist.get("tag") or cardlist.get("header") or UNKNOWN_CATEGORY).strip()
            is_commander_category = category.lower() == COMMANDERS_CATEGORY
            for cardview in cardlist.get("cardviews") or []:
                if not isinstance(cardview, dict):
                    continue
                name = str(cardview.get("name") or "").strip()
                if not name:
                    continue
                cards.append(
                    DecklistCard(
                        card_name=name,
                        category=category or UNKNOWN_CATEGORY,
                        is_commander=is_commander_category,
                    )
                )

        if expected_size and len(cards) != expected_size:
            if len(cards) < expected_size:
                raise ParseError(
                    f"Decklist incomplete - only {len(cards)} cards found (expected {expected_size})"
                )
            raise ParseError(
                f"Decklist has too many cards - {len(cards)} found (expected {expected_size})"
            )
        if not cards:
            raise ParseError("No cards could be parsed from decklist JSON")

        # Commander entries first, otherwise source order.
        return sorted(cards, key=lambda card: not card.is_commander)

    @staticmethod
    def slug_from_url(url: str) -> str:
        slug = (url or "").rstrip("/").split("/")[-1].split("?")[0]
        if slug.endswith(".json"):
            slug = slug[: -len(".json")]
        if not slug:
            raise ParseError(f"Cannot derive commander slug from url '{url}'")
        return slug

    @staticmethod
    def absolute_url(base_url: str, href: str) -> str:
        if href.startswith("http://") or href.startswith("https://"):
            return href
        if not href.startswith("/"):
            href = f"/{href}"
        return f"{base_url.rstrip('/')}{href}"

    @staticmethod
    def _cardlists(payload: Any) -> list[dict[str, Any]]:
        if not isinstance(payload, dict):
            raise ParseError("Unexpected JSON document: expected an object at the top level")
        container = payload.get("container") or {}
        json_dict = container.get("json_dict") if isinstance(container, dict) else None
        cardlists = (json_dict or {}).get("cardlists") if isinstance(json_dict, dict) else None
        if not isinstance(cardlists, list):
            return []
        return [cardlist for cardlist in cardlists if isinstance(cardlist, dict)]

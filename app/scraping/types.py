"""
Shared scraping runtime data models.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any


@dataclass(frozen=True)
class CommanderListing:
    """
    One entry of the ranked commander list as reported by the source.
    """

    name: str
    rank: int
    url: str


@dataclass(frozen=True)
class DecklistCard:
    """
    One card of a commander's decklist.
    """

    card_name: str
    category: str
    is_commander: bool
    external_card_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

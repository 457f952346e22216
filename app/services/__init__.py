"""
app/services package marker.
"""

from app.services.commander_discovery import CommanderDiscoveryJob, resolve_execution_status
from app.services.decklist_scrape import DecklistScrapeJob, normalize_decklist_entries

__all__ = [
    "CommanderDiscoveryJob",
    "DecklistScrapeJob",
    "normalize_decklist_entries",
    "resolve_execution_status",
]

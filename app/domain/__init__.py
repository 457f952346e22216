"""
app/domain package marker.
"""

from app.domain.commander_scraping import DiscoveryRunSummary

__all__ = [
    "DiscoveryRunSummary",
]

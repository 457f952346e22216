"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.commander import Commander, Decklist
from db.models.scraper_execution import ScraperExecution, ScraperExecutionStatus

__all__ = [
    "Commander",
    "Decklist",
    "ScraperExecution",
    "ScraperExecutionStatus",
]

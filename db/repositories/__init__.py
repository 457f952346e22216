"""
Repository layer exports.
"""

from db.repositories.commander_repository import CommanderRepository
from db.repositories.errors import (
    CommanderNotFoundError,
    CommanderRepositoryError,
    CommanderValidationError,
)
from db.repositories.scraper_execution_repository import (
    ScraperExecutionRepository,
    ScraperExecutionStats,
)

__all__ = [
    "CommanderRepository",
    "ScraperExecutionRepository",
    "ScraperExecutionStats",
    "CommanderRepositoryError",
    "CommanderValidationError",
    "CommanderNotFoundError",
]

"""
Repository-layer exceptions for commander persistence.
"""

from __future__ import annotations


class CommanderRepositoryError(Exception):
    """Base exception for commander repository failures."""


class CommanderValidationError(CommanderRepositoryError):
    """Raised when a discovered commander fails validation before upsert."""


class CommanderNotFoundError(CommanderRepositoryError):
    """Raised when a referenced commander does not exist."""

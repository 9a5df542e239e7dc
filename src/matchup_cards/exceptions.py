"""Custom exception types for the application."""

from __future__ import annotations


class DataSourceError(RuntimeError):
    """Raised when an external data source cannot be reached or parsed."""


class CriticalSourceFailure(DataSourceError):
    """Raised when the player directory is unavailable and search is disabled."""


class NonCriticalSourceFailure(DataSourceError):
    """Raised when an optional source fails; always absorbed by the snapshot loader."""


class SelectionRejected(RuntimeError):
    """Base class for user-facing selection rejections. No state is mutated."""


class DuplicateSelection(SelectionRejected):
    """Raised when the player already has a card on the board."""


class CapacityExceeded(SelectionRejected):
    """Raised when the board is already showing the maximum number of cards."""


class PlayerNotFoundError(LookupError):
    """Raised when a player ID is absent from the directory snapshot."""

"""Top-level package for the NFL matchup card toolkit."""

from .aggregator import aggregate, aggregate_from_snapshots
from .config import get_settings
from .data_models import MatchupView, Player
from .selection import CardBoard, search_players
from .snapshots import SourceSnapshots, load_snapshots, load_snapshots_sync

__all__ = [
    "aggregate",
    "aggregate_from_snapshots",
    "get_settings",
    "MatchupView",
    "Player",
    "CardBoard",
    "search_players",
    "SourceSnapshots",
    "load_snapshots",
    "load_snapshots_sync",
]

"""Player search and the capacity-bounded board of displayed matchup cards."""

from __future__ import annotations

from typing import Iterator, List, Mapping, Optional

from .aggregator import aggregate_from_snapshots
from .config import Settings, get_settings
from .data_models import OFFENSIVE_POSITIONS, MatchupView, Player
from .exceptions import CapacityExceeded, CriticalSourceFailure, DuplicateSelection, PlayerNotFoundError
from .logging_utils import configure_logging
from .snapshots import SourceSnapshots
from .teams import NameMatcher, get_name_matcher

LOGGER = configure_logging(__name__)


def search_players(
    players: Mapping[str, Player],
    query: str,
    *,
    limit: int = 7,
    min_length: int = 2,
) -> List[Player]:
    """Return up to ``limit`` active QB/RB/WR/TE players whose name contains ``query``.

    Matching is a case-insensitive substring test on the full name. Results keep
    directory order; queries shorter than ``min_length`` return nothing.
    """

    text = (query or "").strip().lower()
    if len(text) < min_length:
        return []

    results: List[Player] = []
    for player in players.values():
        if not player.active or player.position not in OFFENSIVE_POSITIONS:
            continue
        if text not in player.full_name.lower():
            continue
        results.append(player)
        if len(results) >= limit:
            break
    return results


class CardBoard:
    """Tracks which players have a card on screen and builds cards on selection.

    A selection is rejected before any aggregation when the player is already on
    the board (or mid-construction) or when the board is full.
    """

    def __init__(
        self,
        snapshots: SourceSnapshots,
        settings: Settings | None = None,
        *,
        capacity: Optional[int] = None,
        name_matcher: Optional[NameMatcher] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.snapshots = snapshots
        self.capacity = capacity if capacity is not None else self.settings.MAX_DISPLAYED_CARDS
        self.name_matcher = name_matcher or get_name_matcher(
            self.settings.NAME_MATCHER, self.settings.FUZZY_MATCH_THRESHOLD
        )
        self._cards: dict[str, MatchupView] = {}
        self._pending: set[str] = set()

    def __len__(self) -> int:
        return len(self._cards)

    def __contains__(self, player_id: object) -> bool:
        return player_id in self._cards

    def __iter__(self) -> Iterator[MatchupView]:
        return iter(self.views)

    @property
    def views(self) -> tuple[MatchupView, ...]:
        """Displayed cards in selection order."""

        return tuple(self._cards.values())

    @property
    def is_full(self) -> bool:
        return len(self._cards) + len(self._pending) >= self.capacity

    def search(self, query: str) -> List[Player]:
        if not self.snapshots.directory_available:
            raise CriticalSourceFailure(self.snapshots.directory_error or "Player directory unavailable")
        return search_players(
            self.snapshots.players,
            query,
            limit=self.settings.SEARCH_LIMIT,
            min_length=self.settings.MIN_QUERY_LENGTH,
        )

    def select(self, player_id: str) -> MatchupView:
        """Build and display the card for ``player_id``."""

        if player_id in self._cards or player_id in self._pending:
            raise DuplicateSelection(f"Player {player_id} is already displayed.")
        if self.is_full:
            raise CapacityExceeded(f"Maximum of {self.capacity} players can be displayed.")

        player = self.snapshots.players.get(player_id)
        if player is None:
            raise PlayerNotFoundError(f"Player {player_id} is not in the directory.")

        self._pending.add(player_id)
        try:
            view = aggregate_from_snapshots(
                player,
                self.snapshots,
                name_matcher=self.name_matcher,
                tz_name=self.settings.DISPLAY_TIMEZONE,
            )
        finally:
            self._pending.discard(player_id)

        self._cards[player_id] = view
        LOGGER.info("Displaying %s (%s); %d/%d cards in use.", player.full_name, player_id, len(self._cards), self.capacity)
        return view

    def dismiss(self, player_id: str) -> Optional[MatchupView]:
        """Remove a card and free its slot; unknown IDs are a no-op."""

        view = self._cards.pop(player_id, None)
        if view is not None:
            LOGGER.info("Dismissed %s; %d/%d cards in use.", player_id, len(self._cards), self.capacity)
        return view

    def reload(self, snapshots: SourceSnapshots) -> None:
        """Swap in a freshly loaded snapshot bundle. Existing cards are kept as built."""

        self.snapshots = snapshots

"""Identity resolution between the key spaces used by the different sources.

The directory and ESPN identify teams by abbreviation, The Odds API by full team
name, and sportsbooks identify players only by a free-text description. The
helpers here translate between those spaces. They never raise for unknown input;
callers get ``None`` (or ``False``) and render the field as ``"N/A"``.

Player matching is a heuristic. ``matches_player_name`` requires both the first
and last name to appear in the description, which produces false positives for
players sharing a name and false negatives for nicknames ("Hollywood Brown").
``fuzzy_matches_player_name`` trades those failure modes for a score threshold.
Both share the ``NameMatcher`` signature so callers can swap them.
"""

from __future__ import annotations

import re
import unicodedata
from types import MappingProxyType
from typing import Callable, List, Mapping, Optional

from rapidfuzz import fuzz

from .data_models import Player

NameMatcher = Callable[[str, Player], bool]

TEAM_FULL_NAMES: Mapping[str, str] = MappingProxyType(
    {
        "ARI": "Arizona Cardinals",
        "ATL": "Atlanta Falcons",
        "BAL": "Baltimore Ravens",
        "BUF": "Buffalo Bills",
        "CAR": "Carolina Panthers",
        "CHI": "Chicago Bears",
        "CIN": "Cincinnati Bengals",
        "CLE": "Cleveland Browns",
        "DAL": "Dallas Cowboys",
        "DEN": "Denver Broncos",
        "DET": "Detroit Lions",
        "GB": "Green Bay Packers",
        "HOU": "Houston Texans",
        "IND": "Indianapolis Colts",
        "JAX": "Jacksonville Jaguars",
        "KC": "Kansas City Chiefs",
        "LAC": "Los Angeles Chargers",
        "LAR": "Los Angeles Rams",
        "LV": "Las Vegas Raiders",
        "MIA": "Miami Dolphins",
        "MIN": "Minnesota Vikings",
        "NE": "New England Patriots",
        "NO": "New Orleans Saints",
        "NYG": "New York Giants",
        "NYJ": "New York Jets",
        "PHI": "Philadelphia Eagles",
        "PIT": "Pittsburgh Steelers",
        "SEA": "Seattle Seahawks",
        "SF": "San Francisco 49ers",
        "TB": "Tampa Bay Buccaneers",
        "TEN": "Tennessee Titans",
        "WAS": "Washington Commanders",
    }
)

# Provider-specific abbreviations that differ from the directory's.
ABBR_ALIASES: Mapping[str, str] = MappingProxyType(
    {
        "WSH": "WAS",
        "JAC": "JAX",
        "LA": "LAR",
        "STL": "LAR",
        "SD": "LAC",
        "OAK": "LV",
        "LVR": "LV",
        "GNB": "GB",
        "KAN": "KC",
        "NWE": "NE",
        "NOR": "NO",
        "SFO": "SF",
        "TAM": "TB",
    }
)

_SUFFIXES = {"jr", "sr", "ii", "iii", "iv", "v"}
_WHITESPACE_RE = re.compile(r"\s+")
_PUNCT_RE = re.compile(r"[^a-z0-9\s]")


def _team_key(value: str) -> str:
    return _WHITESPACE_RE.sub(" ", value.strip()).casefold()


_FULL_NAME_LOOKUP: Mapping[str, str] = MappingProxyType(
    {_team_key(full): abbr for abbr, full in TEAM_FULL_NAMES.items()}
)


def canonical_abbr(abbr: Optional[str]) -> Optional[str]:
    """Return the directory abbreviation for ``abbr`` or any known provider alias."""

    if not abbr:
        return None
    code = abbr.strip().upper()
    code = ABBR_ALIASES.get(code, code)
    return code if code in TEAM_FULL_NAMES else None


def team_abbr_to_full_name(abbr: Optional[str]) -> Optional[str]:
    """Look up the full team name for an abbreviation; ``None`` when unknown."""

    code = canonical_abbr(abbr)
    if code is None:
        return None
    return TEAM_FULL_NAMES[code]


def full_name_to_abbr(full_name: Optional[str]) -> Optional[str]:
    """Inverse of :func:`team_abbr_to_full_name`.

    Exact match on the whole name, ignoring case and surrounding whitespace.
    "New York" or "Los Angeles" alone resolve to nothing.
    """

    if not full_name:
        return None
    return _FULL_NAME_LOOKUP.get(_team_key(full_name))


def resolve_team(identifier: Optional[str]) -> Optional[str]:
    """Resolve an abbreviation, provider alias, or full name to an abbreviation."""

    return canonical_abbr(identifier) or full_name_to_abbr(identifier)


def matchup_key(home: Optional[str], away: Optional[str]) -> Optional[str]:
    """Source-independent key for a game, e.g. ``"DEN@KC"``.

    ESPN and The Odds API use different event IDs, so props fetched from one are
    joined to games from the other through the resolved team pair.
    """

    home_abbr = resolve_team(home)
    away_abbr = resolve_team(away)
    if home_abbr is None or away_abbr is None:
        return None
    return f"{away_abbr}@{home_abbr}"


def normalize_name(value: Optional[str]) -> str:
    """Return a normalized representation of a player's name."""
    if value is None:
        return ""
    text = str(value)
    if not text or text.lower() == "nan":
        return ""
    text = unicodedata.normalize("NFKD", text)
    text = text.encode("ascii", "ignore").decode("ascii")
    text = text.lower()
    text = _PUNCT_RE.sub(" ", text)
    tokens: List[str] = [token for token in text.split() if token]
    while tokens and tokens[-1] in _SUFFIXES:
        tokens.pop()
    normalized = " ".join(tokens)
    return _WHITESPACE_RE.sub(" ", normalized).strip()


def _name_parts(player: Player) -> tuple[str, str]:
    first = normalize_name(player.first_name)
    last = normalize_name(player.last_name)
    if first and last:
        return first, last
    tokens = normalize_name(player.full_name).split()
    if len(tokens) < 2:
        return "", ""
    return tokens[0], " ".join(tokens[1:])


def matches_player_name(description: str, player: Player) -> bool:
    """True when both the player's first and last name appear in ``description``."""

    first, last = _name_parts(player)
    if not first or not last:
        return False
    text = normalize_name(description)
    return first in text and last in text


def fuzzy_matches_player_name(description: str, player: Player, threshold: float = 90.0) -> bool:
    """Score-based alternative to :func:`matches_player_name` using rapidfuzz."""

    text = normalize_name(description)
    target = normalize_name(player.full_name)
    if not text or not target:
        return False
    return fuzz.token_sort_ratio(text, target) >= threshold


def get_name_matcher(kind: str = "substring", threshold: float = 90.0) -> NameMatcher:
    """Return the matcher configured by ``NAME_MATCHER``."""

    if kind == "substring":
        return matches_player_name
    if kind == "fuzzy":
        return lambda description, player: fuzzy_matches_player_name(description, player, threshold)
    raise ValueError(f"Unknown name matcher {kind!r}")

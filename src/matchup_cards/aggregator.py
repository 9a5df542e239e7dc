"""Join one player against the source snapshots to build a matchup card.

:func:`aggregate` is a pure function of its inputs. Every stage falls back to the
``"N/A"`` sentinel for the fields it owns instead of aborting; the only terminal
case is a free agent. When several events, bookmakers or props could match, the
first one in source order wins. That is a simplification, not a claim that the
first line is the best one.
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import TYPE_CHECKING, Iterable, Mapping, NamedTuple, Optional, Sequence
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .data_models import (
    BYE,
    FREE_AGENT,
    NA,
    Bookmaker,
    DefensiveProfile,
    MatchupView,
    Player,
    PlayerProp,
    ScheduleEvent,
    StatLine,
)
from .logging_utils import configure_logging
from .teams import NameMatcher, matches_player_name, matchup_key, resolve_team

if TYPE_CHECKING:
    from .snapshots import SourceSnapshots

LOGGER = configure_logging(__name__)

DEFAULT_TIMEZONE = "America/New_York"
GAME_TIME_FORMAT = "%a %b %d, %I:%M %p %Z"


class DefenseFields(NamedTuple):
    efficiency_field: str
    efficiency_label: str
    rank_field: str


POSITION_DEFENSE_FIELDS: Mapping[str, DefenseFields] = {
    "QB": DefenseFields("pass_efficiency", "Pass EPA/play allowed", "qb_rank"),
    "RB": DefenseFields("run_efficiency", "Rush EPA/play allowed", "rb_rank"),
    "WR": DefenseFields("pass_efficiency", "Pass EPA/play allowed", "wr_rank"),
    "TE": DefenseFields("pass_efficiency", "Pass EPA/play allowed", "te_rank"),
}

# Odds API player markets -> card labels. Markets outside this map are dropped.
PROP_LABELS: Mapping[str, str] = {
    "player_pass_yds": "Pass Yds",
    "player_pass_tds": "Pass TDs",
    "player_pass_completions": "Completions",
    "player_pass_attempts": "Pass Attempts",
    "player_pass_interceptions": "Interceptions",
    "player_rush_yds": "Rush Yds",
    "player_rush_attempts": "Rush Attempts",
    "player_receptions": "Receptions",
    "player_reception_yds": "Rec Yds",
}

# Weekly projection stat keys -> card labels, in display order.
PROJECTION_LABELS: Mapping[str, str] = {
    "rec_yd": "Rec Yds",
    "rec": "Receptions",
    "pass_yd": "Pass Yds",
    "pass_td": "Pass TDs",
    "rush_yd": "Rush Yds",
    "rush_td": "Rush TDs",
}


def format_efficiency(value: Optional[float]) -> str:
    """Render an efficiency metric with three decimals, or ``"N/A"``."""

    if value is None or not math.isfinite(value):
        return NA
    return f"{value:.3f}"


def _format_points(points: float) -> str:
    if points == int(points):
        return str(int(points))
    text = f"{points:.2f}".rstrip("0").rstrip(".")
    return text or "0"


def format_spread(team: str, points: float) -> str:
    """``"KC -3.5"``, ``"KC +3.5"``, ``"KC 0"``."""

    sign = "+" if points > 0 else ""
    return f"{team} {sign}{_format_points(points)}"


def format_game_time(kickoff: Optional[datetime], tz_name: str = DEFAULT_TIMEZONE) -> str:
    if kickoff is None:
        return NA
    try:
        zone = ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        LOGGER.warning("Unknown display timezone %r; falling back to %s", tz_name, DEFAULT_TIMEZONE)
        zone = ZoneInfo(DEFAULT_TIMEZONE)
    return kickoff.astimezone(zone).strftime(GAME_TIME_FORMAT)


def find_game(team: str, schedule: Iterable[ScheduleEvent]) -> Optional[ScheduleEvent]:
    """Return the first event where either side resolves to ``team``."""

    for event in schedule:
        if resolve_team(event.home_team) == team or resolve_team(event.away_team) == team:
            return event
    return None


def _opponent_identifier(team: str, event: ScheduleEvent) -> str:
    if resolve_team(event.home_team) == team:
        return event.away_team
    return event.home_team


def extract_spread(team: str, bookmakers: Sequence[Bookmaker]) -> str:
    for bookmaker in bookmakers:
        market = bookmaker.market("spreads")
        if market is None:
            continue
        for outcome in market.outcomes:
            if outcome.point is not None and resolve_team(outcome.name) == team:
                return format_spread(team, outcome.point)
    return NA


def extract_total(bookmakers: Sequence[Bookmaker]) -> float | str:
    for bookmaker in bookmakers:
        market = bookmaker.market("totals")
        if market is None:
            continue
        for outcome in market.outcomes:
            if outcome.point is not None:
                return outcome.point
    return NA


def collect_props(
    player: Player,
    props: Iterable[PlayerProp],
    name_matcher: NameMatcher = matches_player_name,
) -> tuple[StatLine, ...]:
    """Keep recognized props for ``player`` in source order, first-seen-wins per label.

    Books list the same line once per side and once per book; only the first
    entry for each label survives.
    """

    seen: set[str] = set()
    lines: list[StatLine] = []
    for prop in props:
        label = PROP_LABELS.get(prop.market)
        if label is None or label in seen:
            continue
        if not name_matcher(prop.description, player):
            continue
        seen.add(label)
        lines.append(StatLine(label=label, value=prop.point))
    return tuple(lines)


def collect_projections(projection: Optional[Mapping[str, float]]) -> tuple[StatLine, ...]:
    """Allow-listed projection stats; zero or missing values are skipped."""

    if not projection:
        return ()
    lines: list[StatLine] = []
    for key, label in PROJECTION_LABELS.items():
        value = projection.get(key)
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not value:
            continue
        lines.append(StatLine(label=label, value=float(value)))
    return tuple(lines)


def aggregate(
    player: Player,
    schedule: Sequence[ScheduleEvent],
    defense: Mapping[str, DefensiveProfile],
    projections: Optional[Mapping[str, Mapping[str, float]]] = None,
    *,
    props: Optional[Mapping[str, Sequence[PlayerProp]]] = None,
    name_matcher: NameMatcher = matches_player_name,
    tz_name: str = DEFAULT_TIMEZONE,
) -> MatchupView:
    """Build the :class:`MatchupView` for ``player`` from the snapshot inputs.

    ``props`` holds separately fetched prop lists keyed by
    :func:`~matchup_cards.teams.matchup_key`; they are scanned after the event's
    own props.
    """

    identity = {
        "player_id": player.player_id,
        "full_name": player.full_name,
        "position": player.position,
        "team": player.team,
    }

    if player.team is None:
        return MatchupView(**identity, error=FREE_AGENT)

    team = resolve_team(player.team)
    if team is None:
        LOGGER.debug("Directory team %r for %s does not resolve", player.team, player.player_id)

    fields = POSITION_DEFENSE_FIELDS.get(player.position)
    view: dict[str, object] = {}
    if fields is not None:
        view["efficiency_label"] = fields.efficiency_label
        view["rank_label"] = f"FPs to {player.position}"

    event = find_game(team, schedule) if team is not None else None
    opponent: Optional[str] = None
    if event is None:
        view["opponent"] = BYE if team is not None else NA
    else:
        opponent = resolve_team(_opponent_identifier(team, event))
        view["opponent"] = opponent or NA
        view["game_time"] = format_game_time(event.kickoff, tz_name)
        view["spread"] = extract_spread(team, event.bookmakers)
        view["total"] = extract_total(event.bookmakers)

    profile = defense.get(opponent) if opponent is not None else None
    if profile is not None and fields is not None:
        view["efficiency"] = format_efficiency(getattr(profile, fields.efficiency_field))
        rank = getattr(profile, fields.rank_field)
        if rank is not None:
            view["defense_rank"] = rank

    if event is not None:
        candidates: list[PlayerProp] = list(event.props)
        key = matchup_key(event.home_team, event.away_team)
        if props and key is not None:
            candidates.extend(props.get(key, ()))
        view["props"] = collect_props(player, candidates, name_matcher)

    view["projections"] = collect_projections((projections or {}).get(player.player_id))

    return MatchupView(**identity, **view)


def aggregate_from_snapshots(
    player: Player,
    snapshots: SourceSnapshots,
    *,
    name_matcher: NameMatcher = matches_player_name,
    tz_name: str = DEFAULT_TIMEZONE,
) -> MatchupView:
    """Run :func:`aggregate` against an injected :class:`SourceSnapshots` bundle."""

    return aggregate(
        player,
        snapshots.schedule,
        snapshots.defense,
        snapshots.projections,
        props=snapshots.props,
        name_matcher=name_matcher,
        tz_name=tz_name,
    )

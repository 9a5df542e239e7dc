"""Parsers that turn raw source payloads into typed, immutable records.

Each parser tolerates malformed individual records: a bad record is logged and
skipped, the rest of the payload survives. A payload whose top-level shape is
wrong raises ``ValueError`` so the snapshot loader can fall back to its default.
"""

from __future__ import annotations

import math
import re
from datetime import datetime
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Optional

import pandas as pd
from pydantic import ValidationError

from .data_models import Bookmaker, DefensiveProfile, Market, Outcome, Player, PlayerProp, ScheduleEvent
from .logging_utils import configure_logging
from .teams import resolve_team

LOGGER = configure_logging(__name__)

_ESPN_DETAILS_RE = re.compile(r"^\s*([A-Za-z]{2,4})\s+([+-]?\d+(?:\.\d+)?)\s*$")


def _safe_float(value: Any) -> Optional[float]:
    """Convert ``value`` to a finite float, or ``None``."""

    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def _safe_int(value: Any) -> Optional[int]:
    number = _safe_float(value)
    if number is None:
        return None
    return int(number)


RANK_RANGE = range(1, 33)


def _rank(team: str, column: str, value: Any) -> Optional[int]:
    """A 1-32 rank, or ``None`` for blank or out-of-range cells."""

    rank = _safe_int(value)
    if rank is not None and rank not in RANK_RANGE:
        LOGGER.warning("Ignoring out-of-range %s %r for %s", column, value, team)
        return None
    return rank


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-ish kickoff timestamp into an aware UTC datetime."""

    if not value:
        return None
    try:
        stamp = pd.to_datetime(value, utc=True)
    except (TypeError, ValueError):
        LOGGER.debug("Unparseable timestamp %r", value)
        return None
    if pd.isna(stamp):
        return None
    return stamp.to_pydatetime()


def parse_players(payload: Any) -> Mapping[str, Player]:
    """Build the directory from Sleeper's ``/players/nfl`` mapping."""

    if not isinstance(payload, Mapping):
        raise ValueError("Player directory payload must be a mapping of id -> record")

    players: dict[str, Player] = {}
    skipped = 0
    for key, record in payload.items():
        if not isinstance(record, Mapping):
            skipped += 1
            continue
        first = record.get("first_name") or ""
        last = record.get("last_name") or ""
        full_name = record.get("full_name") or f"{first} {last}".strip()
        try:
            player = Player(
                player_id=str(record.get("player_id") or key),
                full_name=full_name,
                first_name=first,
                last_name=last,
                position=record.get("position"),
                team=record.get("team"),
                active=bool(record.get("active")),
            )
        except ValidationError:
            skipped += 1
            continue
        players[player.player_id] = player

    if skipped:
        LOGGER.debug("Skipped %d malformed directory records", skipped)
    return MappingProxyType(players)


def parse_nfl_state(payload: Any) -> tuple[str, int]:
    """Return ``(season, week)`` from Sleeper's ``/state/nfl`` payload."""

    if not isinstance(payload, Mapping):
        raise ValueError("NFL state payload must be a mapping")
    season = payload.get("season")
    week = _safe_int(payload.get("display_week") or payload.get("week"))
    if not season or not week:
        raise ValueError(f"NFL state payload is missing season/week: {payload!r}")
    return str(season), week


def parse_projections(payload: Any) -> Mapping[str, Mapping[str, float]]:
    """Accept either ``{id: stats}`` or ``[{"player_id": id, "stats": stats}]``."""

    if isinstance(payload, Mapping):
        items: Iterable[tuple[Any, Any]] = payload.items()
    elif isinstance(payload, list):
        items = (
            (entry.get("player_id"), entry.get("stats"))
            for entry in payload
            if isinstance(entry, Mapping)
        )
    else:
        raise ValueError("Projections payload must be a mapping or a list")

    projections: dict[str, Mapping[str, float]] = {}
    for player_id, stats in items:
        if not player_id or not isinstance(stats, Mapping):
            continue
        numeric = {}
        for stat_key, raw in stats.items():
            value = _safe_float(raw)
            if value is not None:
                numeric[str(stat_key)] = value
        projections.setdefault(str(player_id), MappingProxyType(numeric))
    return MappingProxyType(projections)


def _espn_bookmakers(odds: Any, home: str, away: str) -> tuple[Bookmaker, ...]:
    if not isinstance(odds, list):
        return ()

    bookmakers: list[Bookmaker] = []
    for entry in odds:
        if not isinstance(entry, Mapping):
            continue
        provider = entry.get("provider") if isinstance(entry.get("provider"), Mapping) else {}
        name = str(provider.get("name") or "ESPN")
        markets: list[Market] = []

        details = str(entry.get("details") or "").strip()
        if details.upper() in {"EVEN", "PK", "PICK"}:
            markets.append(
                Market(key="spreads", outcomes=(Outcome(name=home, point=0.0), Outcome(name=away, point=0.0)))
            )
        else:
            match = _ESPN_DETAILS_RE.match(details)
            if match:
                favorite = match.group(1).upper()
                points = float(match.group(2))
                other = away if resolve_team(favorite) == resolve_team(home) else home
                markets.append(
                    Market(
                        key="spreads",
                        outcomes=(Outcome(name=favorite, point=points), Outcome(name=other, point=-points)),
                    )
                )

        total = _safe_float(entry.get("overUnder"))
        if total is not None:
            markets.append(
                Market(key="totals", outcomes=(Outcome(name="Over", point=total), Outcome(name="Under", point=total)))
            )

        if markets:
            bookmakers.append(Bookmaker(key=name.lower().replace(" ", "_"), title=name, markets=tuple(markets)))
    return tuple(bookmakers)


def parse_espn_scoreboard(payload: Any) -> tuple[ScheduleEvent, ...]:
    """Parse ESPN's scoreboard; teams are identified by abbreviation."""

    if not isinstance(payload, Mapping) or not isinstance(payload.get("events"), list):
        raise ValueError("ESPN scoreboard payload must contain an 'events' list")

    events: list[ScheduleEvent] = []
    for raw in payload["events"]:
        try:
            competition = raw["competitions"][0]
            competitors = competition["competitors"]
            by_side = {c.get("homeAway"): c for c in competitors}
            home = by_side.get("home") or competitors[0]
            away = by_side.get("away") or competitors[1]
            home_abbr = home["team"]["abbreviation"]
            away_abbr = away["team"]["abbreviation"]
            events.append(
                ScheduleEvent(
                    event_id=str(raw.get("id") or competition.get("id") or ""),
                    home_team=home_abbr,
                    away_team=away_abbr,
                    kickoff=parse_timestamp(competition.get("date") or raw.get("date")),
                    bookmakers=_espn_bookmakers(competition.get("odds"), home_abbr, away_abbr),
                )
            )
        except (AttributeError, KeyError, IndexError, TypeError, ValidationError) as exc:
            LOGGER.warning("Skipping malformed ESPN event %s: %s", raw.get("id") if isinstance(raw, Mapping) else raw, exc)
    return tuple(events)


def _parse_bookmakers(raw_bookmakers: Any) -> tuple[Bookmaker, ...]:
    bookmakers: list[Bookmaker] = []
    for bookmaker in raw_bookmakers or []:
        if not isinstance(bookmaker, Mapping):
            continue
        markets: list[Market] = []
        for market in bookmaker.get("markets") or []:
            if not isinstance(market, Mapping) or not market.get("key"):
                continue
            outcomes = tuple(
                Outcome(
                    name=str(outcome.get("name") or ""),
                    description=outcome.get("description"),
                    point=_safe_float(outcome.get("point")),
                    price=_safe_int(outcome.get("price")),
                )
                for outcome in market.get("outcomes") or []
                if isinstance(outcome, Mapping)
            )
            markets.append(Market(key=str(market["key"]), outcomes=outcomes))
        bookmakers.append(
            Bookmaker(
                key=str(bookmaker.get("key") or ""),
                title=str(bookmaker.get("title") or ""),
                markets=tuple(markets),
            )
        )
    return tuple(bookmakers)


def parse_odds_events(payload: Any) -> tuple[ScheduleEvent, ...]:
    """Parse The Odds API ``/odds`` response; teams are full names."""

    if not isinstance(payload, list):
        raise ValueError("Odds API events payload must be a list")

    events: list[ScheduleEvent] = []
    for raw in payload:
        try:
            events.append(
                ScheduleEvent(
                    event_id=str(raw["id"]),
                    home_team=raw["home_team"],
                    away_team=raw["away_team"],
                    kickoff=parse_timestamp(raw.get("commence_time")),
                    bookmakers=_parse_bookmakers(raw.get("bookmakers")),
                )
            )
        except (KeyError, TypeError, ValidationError) as exc:
            LOGGER.warning("Skipping malformed Odds API event: %s", exc)
    return tuple(events)


def parse_event_props(payload: Any) -> tuple[PlayerProp, ...]:
    """Flatten a per-event player-prop payload into props, preserving source order."""

    if not isinstance(payload, Mapping):
        raise ValueError("Event props payload must be a mapping")

    props: list[PlayerProp] = []
    for bookmaker in _parse_bookmakers(payload.get("bookmakers")):
        for market in bookmaker.markets:
            for outcome in market.outcomes:
                if not outcome.description or outcome.point is None:
                    continue
                props.append(
                    PlayerProp(
                        description=outcome.description,
                        market=market.key,
                        point=outcome.point,
                        side=outcome.name,
                        bookmaker=bookmaker.title or bookmaker.key,
                    )
                )
    return tuple(props)


def defense_from_dataframe(df: pd.DataFrame) -> Mapping[str, DefensiveProfile]:
    """Index a defensive table by team abbreviation.

    The ``team`` column may hold abbreviations, aliases, or full names. Missing
    metric columns, blank cells and ranks outside 1-32 become ``None``; the first
    row per team wins.
    """

    columns = {str(column).strip().lower(): column for column in df.columns}
    if "team" not in columns:
        raise ValueError("Defensive table is missing the 'team' column")

    profiles: dict[str, DefensiveProfile] = {}
    for record in df.to_dict(orient="records"):
        row = {key: record.get(original) for key, original in columns.items()}
        abbr = resolve_team(str(row.get("team") or ""))
        if abbr is None:
            LOGGER.warning("Skipping defensive row for unknown team %r", row.get("team"))
            continue
        if abbr in profiles:
            continue
        try:
            profiles[abbr] = DefensiveProfile(
                team=abbr,
                pass_efficiency=_safe_float(row.get("pass_efficiency")),
                run_efficiency=_safe_float(row.get("run_efficiency")),
                qb_rank=_rank(abbr, "qb_rank", row.get("qb_rank")),
                rb_rank=_rank(abbr, "rb_rank", row.get("rb_rank")),
                wr_rank=_rank(abbr, "wr_rank", row.get("wr_rank")),
                te_rank=_rank(abbr, "te_rank", row.get("te_rank")),
            )
        except ValidationError as exc:
            LOGGER.warning("Skipping invalid defensive row for %s: %s", abbr, exc)
    return MappingProxyType(profiles)

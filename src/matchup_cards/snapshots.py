"""Startup loading of the read-only source snapshots.

All feeds are fetched concurrently on one event loop; the blocking ``requests``
calls run in worker threads and every call is bounded by
``SOURCE_DEADLINE_SECONDS``. Two chains are sequential: NFL state -> weekly
projections, and Odds API event list -> per-event props.

The player directory is critical. When it fails the snapshot records
``directory_error`` and search is disabled. Every other source falls back to an
empty collection, which the aggregator cannot tell apart from a source that
simply has no entry for the player.
"""

from __future__ import annotations

import asyncio
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Awaitable, Callable, Mapping, Optional, TypeVar

from .config import Settings, get_settings
from .data_models import DefensiveProfile, Player, PlayerProp, ScheduleEvent
from .exceptions import NonCriticalSourceFailure
from .logging_utils import configure_logging
from .normalize import (
    defense_from_dataframe,
    parse_espn_scoreboard,
    parse_event_props,
    parse_nfl_state,
    parse_odds_events,
    parse_players,
    parse_projections,
)
from .sources import SourceClient
from .teams import matchup_key

LOGGER = configure_logging(__name__)

T = TypeVar("T")

_EMPTY: Mapping[str, Any] = MappingProxyType({})

# Enough for the fixed sources plus one props request per game on a full slate.
FETCH_WORKERS = 24


@dataclass(frozen=True)
class SourceSnapshots:
    """Immutable bundle of every source, injected into the aggregator and board."""

    players: Mapping[str, Player] = field(default_factory=lambda: _EMPTY)
    schedule: tuple[ScheduleEvent, ...] = ()
    props: Mapping[str, tuple[PlayerProp, ...]] = field(default_factory=lambda: _EMPTY)
    defense: Mapping[str, DefensiveProfile] = field(default_factory=lambda: _EMPTY)
    projections: Mapping[str, Mapping[str, float]] = field(default_factory=lambda: _EMPTY)
    directory_error: Optional[str] = None
    failures: tuple[str, ...] = ()
    loaded_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def directory_available(self) -> bool:
        return self.directory_error is None

    @classmethod
    def from_collections(
        cls,
        players: Mapping[str, Player] | None = None,
        schedule: tuple[ScheduleEvent, ...] | list[ScheduleEvent] = (),
        props: Mapping[str, tuple[PlayerProp, ...]] | None = None,
        defense: Mapping[str, DefensiveProfile] | None = None,
        projections: Mapping[str, Mapping[str, float]] | None = None,
    ) -> "SourceSnapshots":
        """Build a snapshot from plain collections, freezing them on the way in."""

        return cls(
            players=MappingProxyType(dict(players or {})),
            schedule=tuple(schedule),
            props=MappingProxyType({key: tuple(value) for key, value in (props or {}).items()}),
            defense=MappingProxyType(dict(defense or {})),
            projections=MappingProxyType(
                {key: MappingProxyType(dict(value)) for key, value in (projections or {}).items()}
            ),
        )


class _FetchPool:
    """Worker threads for the blocking fetches, owned by one snapshot load.

    A fetch that overruns its deadline keeps its thread, but the load no longer
    waits for it: :meth:`shutdown` returns immediately and drops queued work.
    """

    def __init__(self, deadline: float, max_workers: int = FETCH_WORKERS) -> None:
        self.deadline = deadline
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="source-fetch")
        self._futures: list[Future[Any]] = []

    async def run(self, func: Callable[..., T], *args: Any) -> T:
        """Run a blocking fetch in a worker thread under the load deadline."""

        future = self._executor.submit(func, *args)
        self._futures.append(future)
        return await asyncio.wait_for(asyncio.wrap_future(future), timeout=self.deadline)

    def shutdown(self, on_idle: Optional[Callable[[], None]] = None) -> None:
        """Stop accepting work; call ``on_idle`` once no fetch is still running."""

        self._executor.shutdown(wait=False, cancel_futures=True)
        if on_idle is None:
            return

        running = [future for future in self._futures if not future.done()]
        if not running:
            on_idle()
            return

        LOGGER.debug("%d overdue fetches still running; deferring client close.", len(running))
        lock = threading.Lock()
        remaining = [len(running)]

        def _finished(_: Future[Any]) -> None:
            with lock:
                remaining[0] -= 1
                last = remaining[0] == 0
            if last:
                on_idle()

        for future in running:
            future.add_done_callback(_finished)


async def _load_directory(client: SourceClient, pool: _FetchPool) -> Mapping[str, Player]:
    payload = await pool.run(client.fetch_players)
    players = parse_players(payload)
    LOGGER.info("Loaded %d directory records.", len(players))
    return players


async def _load_schedule(client: SourceClient, settings: Settings, pool: _FetchPool) -> tuple[ScheduleEvent, ...]:
    if settings.SCHEDULE_SOURCE == "odds_api":
        events = parse_odds_events(await pool.run(client.fetch_odds_schedule))
    else:
        events = parse_espn_scoreboard(await pool.run(client.fetch_espn_scoreboard))
    LOGGER.info("Loaded %d scheduled games from %s.", len(events), settings.SCHEDULE_SOURCE)
    return events


async def _load_props(
    client: SourceClient, settings: Settings, pool: _FetchPool
) -> Mapping[str, tuple[PlayerProp, ...]]:
    if not settings.PROPS_AVAILABLE:
        LOGGER.info("Player props disabled or ODDS_API_KEY unset; skipping props.")
        return _EMPTY

    events = await pool.run(client.fetch_odds_event_list)
    if not isinstance(events, list):
        raise ValueError("Odds API event list payload must be a list")

    targets: list[tuple[str, str]] = []
    for event in events:
        if not isinstance(event, Mapping) or not event.get("id"):
            continue
        key = matchup_key(event.get("home_team"), event.get("away_team"))
        if key is None:
            LOGGER.warning("Skipping props for unresolved matchup %s at %s", event.get("away_team"), event.get("home_team"))
            continue
        targets.append((key, str(event["id"])))

    results = await asyncio.gather(
        *(pool.run(client.fetch_event_props, event_id, settings.PROP_MARKETS) for _, event_id in targets),
        return_exceptions=True,
    )

    props: dict[str, tuple[PlayerProp, ...]] = {}
    for (key, event_id), result in zip(targets, results):
        if isinstance(result, Exception):
            LOGGER.warning("Props unavailable for event %s: %s", event_id, result)
            continue
        if isinstance(result, BaseException):
            raise result
        try:
            parsed = parse_event_props(result)
        except ValueError as exc:
            LOGGER.warning("Malformed props payload for event %s: %s", event_id, exc)
            continue
        if parsed:
            props.setdefault(key, parsed)
    LOGGER.info("Loaded props for %d of %d games.", len(props), len(targets))
    return MappingProxyType(props)


async def _load_defense(client: SourceClient, settings: Settings, pool: _FetchPool) -> Mapping[str, DefensiveProfile]:
    frame = await pool.run(client.load_defense_table, settings.DEFENSE_SOURCE)
    defense = defense_from_dataframe(frame)
    LOGGER.info("Loaded defensive profiles for %d teams.", len(defense))
    return defense


async def _load_projections(client: SourceClient, pool: _FetchPool) -> Mapping[str, Mapping[str, float]]:
    season, week = parse_nfl_state(await pool.run(client.fetch_nfl_state))
    projections = parse_projections(await pool.run(client.fetch_projections, season, week))
    LOGGER.info("Loaded week %s projections for %d players.", week, len(projections))
    return projections


def _describe(exc: BaseException) -> str:
    if isinstance(exc, asyncio.TimeoutError):
        return "timed out"
    return str(exc) or type(exc).__name__


def _absorb(name: str, result: Any, default: T, failures: list[str]) -> T:
    if isinstance(result, Exception):
        failure = NonCriticalSourceFailure(f"{name} source unavailable: {_describe(result)}")
        LOGGER.warning("%s; continuing with an empty %s snapshot.", failure, name)
        failures.append(str(failure))
        return default
    if isinstance(result, BaseException):
        raise result
    return result


async def load_snapshots(
    client: SourceClient | None = None,
    settings: Settings | None = None,
) -> SourceSnapshots:
    """Fetch every source concurrently and freeze the results."""

    settings = settings or get_settings()
    own_client = client is None
    client = client or SourceClient(settings)
    pool = _FetchPool(settings.SOURCE_DEADLINE_SECONDS)

    tasks: list[Awaitable[Any]] = [
        _load_directory(client, pool),
        _load_schedule(client, settings, pool),
        _load_props(client, settings, pool),
        _load_defense(client, settings, pool),
        _load_projections(client, pool),
    ]
    try:
        directory, schedule, props, defense, projections = await asyncio.gather(*tasks, return_exceptions=True)
    finally:
        # The session is only closed once no worker can still be using it.
        pool.shutdown(on_idle=client.close if own_client else None)

    directory_error: Optional[str] = None
    if isinstance(directory, Exception):
        directory_error = f"Player directory unavailable: {_describe(directory)}"
        LOGGER.error("%s; player search is disabled.", directory_error)
        directory = _EMPTY
    elif isinstance(directory, BaseException):
        raise directory

    failures: list[str] = []
    return SourceSnapshots(
        players=directory,
        schedule=_absorb("schedule", schedule, (), failures),
        props=_absorb("props", props, _EMPTY, failures),
        defense=_absorb("defense", defense, _EMPTY, failures),
        projections=_absorb("projections", projections, _EMPTY, failures),
        directory_error=directory_error,
        failures=tuple(failures),
    )


def load_snapshots_sync(
    client: SourceClient | None = None,
    settings: Settings | None = None,
) -> SourceSnapshots:
    """Synchronous wrapper for :func:`load_snapshots` for non-async callers."""

    return asyncio.run(load_snapshots(client, settings))

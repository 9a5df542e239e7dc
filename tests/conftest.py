"""Shared builders for players, games, and snapshot bundles."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from matchup_cards.config import Settings
from matchup_cards.data_models import Bookmaker, DefensiveProfile, Market, Outcome, Player, PlayerProp, ScheduleEvent
from matchup_cards.snapshots import SourceSnapshots

KICKOFF = datetime(2024, 9, 8, 17, 0, tzinfo=timezone.utc)


def make_player(**overrides: object) -> Player:
    base: dict[str, object] = {
        "player_id": "4046",
        "full_name": "Patrick Mahomes",
        "first_name": "Patrick",
        "last_name": "Mahomes",
        "position": "QB",
        "team": "KC",
        "active": True,
    }
    base.update(overrides)
    return Player(**base)


def make_bookmaker(
    home: str = "KC",
    away: str = "DEN",
    home_spread: float | None = -3.5,
    total: float | None = 47.5,
    key: str = "draftkings",
) -> Bookmaker:
    markets = []
    if home_spread is not None:
        markets.append(
            Market(
                key="spreads",
                outcomes=(Outcome(name=home, point=home_spread), Outcome(name=away, point=-home_spread)),
            )
        )
    if total is not None:
        markets.append(
            Market(key="totals", outcomes=(Outcome(name="Over", point=total), Outcome(name="Under", point=total)))
        )
    return Bookmaker(key=key, title=key.title(), markets=tuple(markets))


def make_event(
    home: str = "KC",
    away: str = "DEN",
    *,
    bookmakers: tuple[Bookmaker, ...] | None = None,
    props: tuple[PlayerProp, ...] = (),
    event_id: str = "evt-1",
) -> ScheduleEvent:
    if bookmakers is None:
        bookmakers = (make_bookmaker(home, away),)
    return ScheduleEvent(
        event_id=event_id,
        home_team=home,
        away_team=away,
        kickoff=KICKOFF,
        bookmakers=bookmakers,
        props=props,
    )


def make_prop(description: str = "Patrick Mahomes", market: str = "player_pass_yds", point: float = 265.5, **kw: str) -> PlayerProp:
    return PlayerProp(description=description, market=market, point=point, side=kw.get("side", "Over"), bookmaker=kw.get("bookmaker", "DraftKings"))


@pytest.fixture()
def mahomes() -> Player:
    return make_player()


@pytest.fixture()
def den_defense() -> dict[str, DefensiveProfile]:
    return {
        "DEN": DefensiveProfile(
            team="DEN",
            pass_efficiency=-0.0412,
            run_efficiency=0.0871,
            qb_rank=31,
            rb_rank=4,
            wr_rank=14,
            te_rank=11,
        )
    }


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        ODDS_API_KEY="test-key",
        SCHEDULE_SOURCE="espn",
        SOURCE_DEADLINE_SECONDS=5,
        HTTP_MAX_ATTEMPTS=3,
        NAME_MATCHER="substring",
        MAX_DISPLAYED_CARDS=6,
        SEARCH_LIMIT=7,
        DISPLAY_TIMEZONE="America/New_York",
    )


@pytest.fixture()
def roster() -> dict[str, Player]:
    players = [
        make_player(),
        make_player(player_id="4881", full_name="Travis Kelce", first_name="Travis", last_name="Kelce", position="TE"),
        make_player(player_id="4035", full_name="Javonte Williams", first_name="Javonte", last_name="Williams", position="RB", team="DEN"),
        make_player(player_id="6794", full_name="Courtland Sutton", first_name="Courtland", last_name="Sutton", position="WR", team="DEN"),
        make_player(player_id="4984", full_name="Josh Allen", first_name="Josh", last_name="Allen", position="QB", team="BUF"),
        make_player(player_id="2216", full_name="Mike Evans", first_name="Mike", last_name="Evans", position="WR", team="TB"),
        make_player(player_id="5850", full_name="Josh Jacobs", first_name="Josh", last_name="Jacobs", position="RB", team="GB"),
        make_player(player_id="1234", full_name="Free Agent Guy", first_name="Free", last_name="Guy", position="WR", team=None),
        make_player(player_id="7777", full_name="Josh Lambo", first_name="Josh", last_name="Lambo", position="K", team="JAX"),
        make_player(player_id="8888", full_name="Josh Retired", first_name="Josh", last_name="Retired", position="QB", active=False),
    ]
    return {player.player_id: player for player in players}


@pytest.fixture()
def snapshots(roster: dict[str, Player], den_defense: dict[str, DefensiveProfile]) -> SourceSnapshots:
    return SourceSnapshots.from_collections(
        players=roster,
        schedule=[make_event(), make_event("BUF", "MIA", event_id="evt-2")],
        props={"DEN@KC": (make_prop(),)},
        defense=den_defense,
        projections={"4046": {"pass_yd": 281.2, "pass_td": 2.1, "rush_yd": 18.0}},
    )

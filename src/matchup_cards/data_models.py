"""Typed data models for players, games, defensive profiles, and matchup cards."""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

NA = "N/A"
BYE = "BYE"
FREE_AGENT = "Free Agent"

OFFENSIVE_POSITIONS: tuple[str, ...] = ("QB", "RB", "WR", "TE")

HEADSHOT_URL = "https://sleepercdn.com/content/nfl/players/thumb/{player_id}.jpg"
DEFAULT_HEADSHOT_URL = "https://sleepercdn.com/images/v2/icons/player_default.webp"

NotAvailable = Literal["N/A"]


class Player(BaseModel):
    """Directory record for a single player."""

    model_config = ConfigDict(frozen=True)

    player_id: str = Field(..., min_length=1, description="Directory player identifier.")
    full_name: str = Field(..., min_length=1)
    first_name: str = ""
    last_name: str = ""
    position: str = Field("", description="Roster position code, e.g. QB.")
    team: Optional[str] = Field(None, description="Team abbreviation; None for free agents.")
    active: bool = False

    @field_validator("player_id", "full_name", "first_name", "last_name")
    @classmethod
    def _strip_strings(cls, value: str) -> str:
        return value.strip()

    @field_validator("position", mode="before")
    @classmethod
    def _upper_position(cls, value: object) -> str:
        if value is None:
            return ""
        if not isinstance(value, str):
            raise ValueError(f"position must be a string, got {type(value).__name__}")
        return value.strip().upper()

    @field_validator("team", mode="before")
    @classmethod
    def _blank_team_is_free_agent(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        text = str(value).strip().upper()
        return text or None

    @property
    def headshot_url(self) -> str:
        # Team defenses use their abbreviation as ID and have no thumbnail.
        if not self.player_id.isdigit():
            return DEFAULT_HEADSHOT_URL
        return HEADSHOT_URL.format(player_id=self.player_id)

    @property
    def team_label(self) -> str:
        """Roster line shown under the player's name, e.g. ``"QB, KC"``."""

        return f"{self.position}, {self.team or 'FA'}"


class Outcome(BaseModel):
    """One priced outcome inside a bookmaker market."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: Optional[str] = None
    point: Optional[float] = None
    price: Optional[int] = None


class Market(BaseModel):
    model_config = ConfigDict(frozen=True)

    key: str
    outcomes: tuple[Outcome, ...] = ()


class Bookmaker(BaseModel):
    model_config = ConfigDict(frozen=True)

    key: str
    title: str = ""
    markets: tuple[Market, ...] = ()

    def market(self, key: str) -> Optional[Market]:
        """Return the first market with ``key`` in source order."""

        for market in self.markets:
            if market.key == key:
                return market
        return None


class PlayerProp(BaseModel):
    """A single sportsbook prop line, tied to a player only by name."""

    model_config = ConfigDict(frozen=True)

    description: str = Field(..., description="Player name as listed by the book.")
    market: str = Field(..., description="Prop market key, e.g. player_pass_yds.")
    point: float = Field(..., description="Posted over/under value.")
    side: str = ""
    bookmaker: str = ""

    @field_validator("description", "market", "side", "bookmaker")
    @classmethod
    def _strip_strings(cls, value: str) -> str:
        return value.strip()


class ScheduleEvent(BaseModel):
    """One game from the schedule/odds provider."""

    model_config = ConfigDict(frozen=True)

    event_id: str
    home_team: str = Field(..., description="Abbreviation or full team name, depending on source.")
    away_team: str
    kickoff: Optional[datetime] = None
    bookmakers: tuple[Bookmaker, ...] = ()
    props: tuple[PlayerProp, ...] = ()

    @field_validator("event_id", "home_team", "away_team")
    @classmethod
    def _strip_strings(cls, value: str) -> str:
        return value.strip()


class DefensiveProfile(BaseModel):
    """Per-team defensive efficiency and fantasy-points-allowed ranks."""

    model_config = ConfigDict(frozen=True)

    team: str
    pass_efficiency: Optional[float] = Field(None, description="Pass EPA per play allowed.")
    run_efficiency: Optional[float] = Field(None, description="Rush EPA per play allowed.")
    qb_rank: Optional[int] = Field(None, ge=1, le=32)
    rb_rank: Optional[int] = Field(None, ge=1, le=32)
    wr_rank: Optional[int] = Field(None, ge=1, le=32)
    te_rank: Optional[int] = Field(None, ge=1, le=32)


class StatLine(BaseModel):
    """Label/value pair shown in the props and projections lists of a card."""

    model_config = ConfigDict(frozen=True)

    label: str
    value: float


class MatchupView(BaseModel):
    """Normalized, display-ready matchup card for one player."""

    model_config = ConfigDict(frozen=True)

    player_id: str
    full_name: str
    position: str
    team: Optional[str] = None
    opponent: str = NA
    game_time: str = NA
    spread: str = NA
    total: Union[float, NotAvailable] = NA
    defense_rank: Union[int, NotAvailable] = NA
    rank_label: str = ""
    efficiency: str = NA
    efficiency_label: str = ""
    props: tuple[StatLine, ...] = ()
    projections: tuple[StatLine, ...] = ()
    error: Optional[str] = None

    @property
    def is_free_agent(self) -> bool:
        return self.error == FREE_AGENT

    @property
    def is_bye(self) -> bool:
        return self.opponent == BYE

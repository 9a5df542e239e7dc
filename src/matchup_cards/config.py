"""Application configuration and environment loading utilities (Pydantic v2)."""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Annotated, Optional

from dotenv import load_dotenv
from pydantic import Field, computed_field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

log = logging.getLogger(__name__)

# Load .env if present (non-fatal if missing)
load_dotenv(dotenv_path=Path(".env"), override=False)

BUNDLED_DEFENSE_PATH = Path(__file__).resolve().parent / "data" / "defense.csv"

PROP_MARKETS_DEFAULT = [
    "player_pass_yds",
    "player_pass_tds",
    "player_pass_completions",
    "player_pass_interceptions",
    "player_rush_yds",
    "player_rush_attempts",
    "player_receptions",
    "player_reception_yds",
]

SCHEDULE_SOURCES = {"espn", "odds_api"}
NAME_MATCHERS = {"substring", "fuzzy"}


class Settings(BaseSettings):
    """Runtime settings loaded from env with sane defaults (Pydantic v2)."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    LOG_LEVEL: str = Field(default="INFO")

    # HTTP
    HTTP_TIMEOUT: float = Field(default=15.0, gt=0)
    HTTP_MAX_ATTEMPTS: int = Field(default=3, ge=1)
    SOURCE_DEADLINE_SECONDS: float = Field(default=45.0, gt=0)

    # Sources
    SLEEPER_BASE_URL: str = Field(default="https://api.sleeper.app/v1")
    ESPN_SCOREBOARD_URL: str = Field(
        default="https://site.api.espn.com/apis/site/v2/sports/football/nfl/scoreboard"
    )
    ODDS_API_BASE_URL: str = Field(default="https://api.the-odds-api.com/v4")
    ODDS_API_KEY: Optional[str] = Field(default=None, description="The Odds API key")
    ODDS_REGIONS: str = Field(default="us")
    SCHEDULE_SOURCE: str = Field(default="espn")
    PROPS_ENABLED: bool = Field(default=True)
    PROP_MARKETS: Annotated[list[str], NoDecode] = Field(default_factory=lambda: PROP_MARKETS_DEFAULT.copy())
    DEFENSE_PATH: Optional[str] = Field(
        default=None, description="CSV path or URL for the defensive table; bundled sample when unset."
    )

    # Board / search
    MAX_DISPLAYED_CARDS: int = Field(default=6, ge=1)
    SEARCH_LIMIT: int = Field(default=7, ge=1)
    MIN_QUERY_LENGTH: int = Field(default=2, ge=1)

    # Matching / display
    NAME_MATCHER: str = Field(default="substring")
    FUZZY_MATCH_THRESHOLD: float = Field(default=90.0, ge=0, le=100)
    DISPLAY_TIMEZONE: str = Field(default="America/New_York")

    @field_validator("SCHEDULE_SOURCE", "NAME_MATCHER", mode="before")
    @classmethod
    def _lower_choice(cls, v: str) -> str:
        return str(v).strip().lower()

    @field_validator("SCHEDULE_SOURCE")
    @classmethod
    def _check_schedule_source(cls, v: str) -> str:
        if v not in SCHEDULE_SOURCES:
            raise ValueError(f"SCHEDULE_SOURCE must be one of {sorted(SCHEDULE_SOURCES)}, got {v!r}")
        return v

    @field_validator("NAME_MATCHER")
    @classmethod
    def _check_name_matcher(cls, v: str) -> str:
        if v not in NAME_MATCHERS:
            raise ValueError(f"NAME_MATCHER must be one of {sorted(NAME_MATCHERS)}, got {v!r}")
        return v

    @field_validator("PROP_MARKETS", mode="before")
    @classmethod
    def _split_markets(cls, v: str | list[str]) -> list[str]:
        if isinstance(v, str):
            return [part.strip() for part in v.split(",") if part.strip()]
        return v

    @computed_field  # type: ignore[misc]
    @property
    def DEFENSE_SOURCE(self) -> str:
        if self.DEFENSE_PATH:
            return self.DEFENSE_PATH
        log.debug("DEFENSE_PATH unset; using bundled table %s", BUNDLED_DEFENSE_PATH)
        return str(BUNDLED_DEFENSE_PATH)

    @computed_field  # type: ignore[misc]
    @property
    def PROPS_AVAILABLE(self) -> bool:
        return bool(self.PROPS_ENABLED and self.ODDS_API_KEY and self.PROP_MARKETS)


@lru_cache()
def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings()

"""Blocking HTTP/file clients for the external sources.

Every method returns the parsed JSON payload (or a DataFrame for the defensive
table) and raises :class:`DataSourceError` on failure. Parsing into typed records
happens in :mod:`matchup_cards.normalize`.
"""

from __future__ import annotations

import time
from pathlib import Path
from typing import Any, Iterable, Optional
from urllib.parse import unquote, urlsplit

import pandas as pd
import requests

from .config import Settings, get_settings
from .exceptions import DataSourceError
from .logging_utils import configure_logging

LOGGER = configure_logging(__name__)

_NFL_SPORT_KEY = "americanfootball_nfl"


class SourceClient:
    """Thin wrapper around a ``requests.Session`` for every upstream feed."""

    def __init__(self, settings: Settings | None = None, session: requests.Session | None = None) -> None:
        self.settings = settings or get_settings()
        self.session = session or requests.Session()

    def close(self) -> None:
        self.session.close()

    def _request_with_retries(self, url: str, params: dict[str, Any] | None = None) -> requests.Response:
        """Execute a GET request with retries and exponential backoff."""

        max_attempts = self.settings.HTTP_MAX_ATTEMPTS
        backoff = 1.0

        for attempt in range(1, max_attempts + 1):
            try:
                response = self.session.get(url, params=params, timeout=self.settings.HTTP_TIMEOUT)
            except requests.RequestException as exc:
                if attempt == max_attempts:
                    raise DataSourceError(f"Request to {url} failed after {max_attempts} attempts") from exc

                LOGGER.warning(
                    "Request to %s failed on attempt %s/%s due to %s. Retrying in %.1fs.",
                    url,
                    attempt,
                    max_attempts,
                    exc,
                    backoff,
                )
                time.sleep(backoff)
                backoff *= 2
                continue

            if response.ok:
                return response

            if attempt == max_attempts or response.status_code in {401, 403, 404}:
                raise DataSourceError(f"Request to {url} returned status {response.status_code}")

            sleep_for = backoff
            if response.status_code == 429:
                retry_after_header = response.headers.get("Retry-After")
                try:
                    retry_after = float(retry_after_header) if retry_after_header else 0.0
                except ValueError:
                    retry_after = 0.0
                sleep_for = max(backoff, retry_after)

            LOGGER.warning(
                "Request to %s returned status %s. Retrying in %.1fs.",
                url,
                response.status_code,
                sleep_for,
            )
            time.sleep(sleep_for)
            backoff *= 2

        raise DataSourceError(f"Request to {url} failed after {max_attempts} attempts")

    def _get_json(self, url: str, params: dict[str, Any] | None = None) -> Any:
        response = self._request_with_retries(url, params)
        try:
            return response.json()
        except ValueError as exc:
            raise DataSourceError(f"Failed to decode JSON from {url}") from exc

    def _odds_api_key(self) -> str:
        api_key = self.settings.ODDS_API_KEY
        if not api_key:
            raise DataSourceError("ODDS_API_KEY is required to call The Odds API.")
        return api_key

    # Sleeper

    def fetch_players(self) -> Any:
        LOGGER.info("Requesting player directory from Sleeper.")
        return self._get_json(f"{self.settings.SLEEPER_BASE_URL}/players/nfl")

    def fetch_nfl_state(self) -> Any:
        return self._get_json(f"{self.settings.SLEEPER_BASE_URL}/state/nfl")

    def fetch_projections(self, season: str, week: int) -> Any:
        LOGGER.info("Requesting week %s projections for season %s.", week, season)
        return self._get_json(f"{self.settings.SLEEPER_BASE_URL}/projections/nfl/regular/{season}/{week}")

    # Schedule / odds

    def fetch_espn_scoreboard(self) -> Any:
        LOGGER.info("Requesting ESPN scoreboard.")
        return self._get_json(self.settings.ESPN_SCOREBOARD_URL)

    def fetch_odds_schedule(self) -> Any:
        LOGGER.info("Requesting NFL spreads and totals from The Odds API.")
        params = {
            "apiKey": self._odds_api_key(),
            "regions": self.settings.ODDS_REGIONS,
            "markets": "spreads,totals",
            "oddsFormat": "american",
        }
        return self._get_json(f"{self.settings.ODDS_API_BASE_URL}/sports/{_NFL_SPORT_KEY}/odds", params)

    def fetch_odds_event_list(self) -> Any:
        params = {"apiKey": self._odds_api_key()}
        return self._get_json(f"{self.settings.ODDS_API_BASE_URL}/sports/{_NFL_SPORT_KEY}/events", params)

    def fetch_event_props(self, event_id: str, markets: Iterable[str]) -> Any:
        market_list = sorted(set(markets))
        params = {
            "apiKey": self._odds_api_key(),
            "regions": self.settings.ODDS_REGIONS,
            "markets": ",".join(market_list),
            "oddsFormat": "american",
        }
        LOGGER.debug("Requesting player props for event %s (markets=%s).", event_id, params["markets"])
        return self._get_json(
            f"{self.settings.ODDS_API_BASE_URL}/sports/{_NFL_SPORT_KEY}/events/{event_id}/odds", params
        )

    # Defensive table

    def load_defense_table(self, source: Optional[str] = None) -> pd.DataFrame:
        """Read the defensive CSV from a local path, ``file://`` URL or http(s) URL."""

        location = source or self.settings.DEFENSE_SOURCE
        parts = urlsplit(location)
        if parts.scheme in ("http", "https"):
            LOGGER.info("Fetching defensive table from %s", location)
            try:
                return pd.read_csv(location)
            except Exception as exc:
                raise DataSourceError(f"Failed to read defensive table from {location}") from exc

        if parts.scheme == "file":
            path = Path(unquote(parts.path))
        else:
            path = Path(unquote(location))
        if not path.exists():
            raise DataSourceError(f"Expected defensive table {path} was not found.")
        LOGGER.debug("Loading defensive table from %s", path)
        try:
            return pd.read_csv(path)
        except (ValueError, OSError) as exc:
            raise DataSourceError(f"Failed to parse defensive table {path}") from exc

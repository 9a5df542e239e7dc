from __future__ import annotations

import pytest
from pydantic import ValidationError

from matchup_cards.config import BUNDLED_DEFENSE_PATH, PROP_MARKETS_DEFAULT, Settings


def test_defaults(monkeypatch) -> None:
    monkeypatch.delenv("ODDS_API_KEY", raising=False)
    settings = Settings(_env_file=None)

    assert settings.MAX_DISPLAYED_CARDS == 6
    assert settings.SEARCH_LIMIT == 7
    assert settings.SCHEDULE_SOURCE == "espn"
    assert settings.PROP_MARKETS == PROP_MARKETS_DEFAULT
    assert settings.DEFENSE_SOURCE == str(BUNDLED_DEFENSE_PATH)
    assert not settings.PROPS_AVAILABLE


def test_env_overrides(monkeypatch) -> None:
    monkeypatch.setenv("SCHEDULE_SOURCE", " Odds_API ")
    monkeypatch.setenv("PROP_MARKETS", "player_pass_yds, player_receptions")
    monkeypatch.setenv("ODDS_API_KEY", "abc")
    monkeypatch.setenv("DEFENSE_PATH", "https://example.com/defense.csv")

    settings = Settings(_env_file=None)

    assert settings.SCHEDULE_SOURCE == "odds_api"
    assert settings.PROP_MARKETS == ["player_pass_yds", "player_receptions"]
    assert settings.PROPS_AVAILABLE
    assert settings.DEFENSE_SOURCE == "https://example.com/defense.csv"


def test_props_can_be_disabled() -> None:
    settings = Settings(_env_file=None, ODDS_API_KEY="abc", PROPS_ENABLED=False)
    assert not settings.PROPS_AVAILABLE


@pytest.mark.parametrize(
    "overrides",
    [{"SCHEDULE_SOURCE": "yahoo"}, {"NAME_MATCHER": "soundex"}, {"MAX_DISPLAYED_CARDS": 0}, {"FUZZY_MATCH_THRESHOLD": 120}],
)
def test_invalid_values_rejected(overrides) -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, **overrides)

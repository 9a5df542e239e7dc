"""Tests for team and player identity resolution."""

from __future__ import annotations

import pytest

from conftest import make_player
from matchup_cards.teams import (
    TEAM_FULL_NAMES,
    fuzzy_matches_player_name,
    full_name_to_abbr,
    get_name_matcher,
    matches_player_name,
    matchup_key,
    normalize_name,
    resolve_team,
    team_abbr_to_full_name,
)


def test_table_covers_all_teams() -> None:
    assert len(TEAM_FULL_NAMES) == 32
    for abbr, full_name in TEAM_FULL_NAMES.items():
        assert full_name_to_abbr(full_name) == abbr


def test_abbr_to_full_name_handles_aliases_and_case() -> None:
    assert team_abbr_to_full_name("KC") == "Kansas City Chiefs"
    assert team_abbr_to_full_name("wsh") == "Washington Commanders"
    assert team_abbr_to_full_name("JAC") == "Jacksonville Jaguars"


@pytest.mark.parametrize("value", ["XYZ", "", None, "Kansas City Chiefs"])
def test_abbr_to_full_name_unknown_returns_none(value: str | None) -> None:
    assert team_abbr_to_full_name(value) is None


def test_full_name_lookup_is_exact_not_substring() -> None:
    assert full_name_to_abbr("  new york   jets ") == "NYJ"
    assert full_name_to_abbr("New York") is None
    assert full_name_to_abbr("Los Angeles") is None
    assert full_name_to_abbr("Jets") is None
    assert full_name_to_abbr("New York Jets Fan Club") is None


def test_resolve_team_accepts_every_key_space() -> None:
    assert resolve_team("DEN") == "DEN"
    assert resolve_team("Denver Broncos") == "DEN"
    assert resolve_team("LA") == "LAR"
    assert resolve_team("Mars Rovers") is None


def test_matchup_key_joins_across_sources() -> None:
    assert matchup_key("Kansas City Chiefs", "DEN") == "DEN@KC"
    assert matchup_key("KC", "Denver Broncos") == matchup_key("KC", "DEN")
    assert matchup_key("KC", "Mars Rovers") is None


def test_normalize_name_strips_accents_punctuation_and_suffixes() -> None:
    assert normalize_name("Amon-Ra St. Brown") == "amon ra st brown"
    assert normalize_name("Patrick Mahomes II") == "patrick mahomes"
    assert normalize_name("Léonard Fournette Jr.") == "leonard fournette"
    assert normalize_name(None) == ""


def test_matches_player_name_requires_first_and_last() -> None:
    mahomes = make_player()
    assert matches_player_name("Patrick Mahomes II", mahomes)
    assert matches_player_name("patrick mahomes - passing yards", mahomes)
    assert not matches_player_name("Mahomes", mahomes)
    assert not matches_player_name("Travis Kelce", mahomes)


def test_matches_player_name_handles_punctuated_names() -> None:
    st_brown = make_player(full_name="Amon-Ra St. Brown", first_name="Amon-Ra", last_name="St. Brown", team="DET")
    assert matches_player_name("Amon-Ra St. Brown", st_brown)


def test_matches_player_name_falls_back_to_full_name() -> None:
    player = make_player(first_name="", last_name="")
    assert matches_player_name("Patrick Mahomes", player)


def test_matches_player_name_is_a_known_approximation() -> None:
    josh = make_player(full_name="Josh Allen", first_name="Josh", last_name="Allen", team="BUF")
    # Substring matching accepts a different player whose name contains both parts.
    assert matches_player_name("Joshua Allen", josh)
    # ...and misses nicknames.
    hollywood = make_player(full_name="Marquise Brown", first_name="Marquise", last_name="Brown")
    assert not matches_player_name("Hollywood Brown", hollywood)


def test_fuzzy_matcher_threshold() -> None:
    mahomes = make_player()
    assert fuzzy_matches_player_name("Patrick Mahomes II", mahomes)
    assert not fuzzy_matches_player_name("Pat Mahomes", mahomes, threshold=90)
    assert fuzzy_matches_player_name("Pat Mahomes", mahomes, threshold=80)


def test_get_name_matcher() -> None:
    mahomes = make_player()
    assert get_name_matcher("substring") is matches_player_name
    fuzzy = get_name_matcher("fuzzy", threshold=80)
    assert fuzzy("Pat Mahomes", mahomes)
    with pytest.raises(ValueError):
        get_name_matcher("phonetic")

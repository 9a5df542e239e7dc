from __future__ import annotations

import pytest
from pydantic import ValidationError

from matchup_cards.data_models import DEFAULT_HEADSHOT_URL, DefensiveProfile, MatchupView, Player

from conftest import make_player


def test_player_normalises_position_and_team() -> None:
    player = make_player(position=" wr ", team=" den ")
    assert player.position == "WR"
    assert player.team == "DEN"


def test_blank_team_means_free_agent() -> None:
    player = make_player(team="  ")
    assert player.team is None
    assert player.team_label == "QB, FA"


def test_headshot_url() -> None:
    assert make_player().headshot_url == "https://sleepercdn.com/content/nfl/players/thumb/4046.jpg"
    assert make_player(player_id="DEN", position="DEF").headshot_url == DEFAULT_HEADSHOT_URL


def test_player_is_frozen() -> None:
    player = make_player()
    with pytest.raises(ValidationError):
        player.team = "DEN"  # type: ignore[misc]


def test_player_requires_a_name() -> None:
    with pytest.raises(ValidationError):
        Player(player_id="1", full_name="")


def test_defensive_rank_bounds() -> None:
    with pytest.raises(ValidationError):
        DefensiveProfile(team="DEN", qb_rank=33)


def test_matchup_view_defaults_are_not_available() -> None:
    view = MatchupView(player_id="4046", full_name="Patrick Mahomes", position="QB", team="KC")
    assert (view.opponent, view.game_time, view.spread, view.total, view.defense_rank, view.efficiency) == ("N/A",) * 6
    assert view.props == ()
    assert not view.is_bye
    assert not view.is_free_agent


def test_matchup_view_rejects_arbitrary_total_text() -> None:
    with pytest.raises(ValidationError):
        MatchupView(player_id="1", full_name="X", position="QB", total="soon")

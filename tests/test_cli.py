from __future__ import annotations

import json

import pytest

from matchup_cards import cli
from matchup_cards.snapshots import SourceSnapshots


@pytest.fixture()
def patched_cli(monkeypatch, snapshots, settings):
    monkeypatch.setattr(cli, "get_settings", lambda: settings)
    monkeypatch.setattr(cli, "load_snapshots_sync", lambda settings=None: snapshots)


def test_parse_args() -> None:
    args = cli.parse_args(["cards", "4046", "4881", "--json"])
    assert args.command == "cards"
    assert args.player_ids == ["4046", "4881"]
    assert args.json

    with pytest.raises(SystemExit):
        cli.parse_args([])


def test_search_command(patched_cli, capsys) -> None:
    assert cli.main(["search", "kelce"]) == 0
    out = capsys.readouterr().out
    assert "Travis Kelce" in out
    assert "Patrick Mahomes" not in out


def test_search_without_directory(monkeypatch, settings, capsys) -> None:
    monkeypatch.setattr(cli, "get_settings", lambda: settings)
    monkeypatch.setattr(
        cli,
        "load_snapshots_sync",
        lambda settings=None: SourceSnapshots(directory_error="Player directory unavailable: timed out"),
    )

    assert cli.main(["search", "kelce"]) == 2
    assert capsys.readouterr().out == ""


def test_cards_command_text(patched_cli, capsys) -> None:
    assert cli.main(["cards", "4046", "4046"]) == 1
    out = capsys.readouterr().out
    assert out.count("Patrick Mahomes (QB, KC)") == 1
    assert "Spread:    KC -3.5" in out


def test_cards_command_json(patched_cli, capsys) -> None:
    assert cli.main(["cards", "4046", "1234", "--json"]) == 0
    cards = json.loads(capsys.readouterr().out)

    assert [card["player_id"] for card in cards] == ["4046", "1234"]
    assert cards[0]["total"] == 47.5
    assert cards[0]["props"] == [{"label": "Pass Yds", "value": 265.5}]
    assert cards[1]["error"] == "Free Agent"
    assert cards[1]["opponent"] == "N/A"


def test_unknown_player_sets_exit_status(patched_cli, capsys) -> None:
    assert cli.main(["cards", "0000"]) == 1
    assert capsys.readouterr().out.strip() == "No players selected."

"""Command-line interface for searching players and printing matchup cards."""

from __future__ import annotations

import argparse
import json
import sys
from typing import Sequence

from .config import get_settings
from .exceptions import CriticalSourceFailure, PlayerNotFoundError, SelectionRejected
from .logging_utils import configure_logging
from .report import render_cards, render_search_results
from .selection import CardBoard
from .snapshots import load_snapshots_sync

LOGGER = configure_logging(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Compare NFL player matchups side by side.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    search_parser = subparsers.add_parser("search", help="Search active QB/RB/WR/TE players by name.")
    search_parser.add_argument("query", help="Part of the player's name (at least two characters).")

    cards_parser = subparsers.add_parser("cards", help="Build matchup cards for one or more player IDs.")
    cards_parser.add_argument("player_ids", nargs="+", metavar="PLAYER_ID", help="Directory player IDs.")
    cards_parser.add_argument("--json", action="store_true", help="Print cards as JSON instead of text.")
    return parser


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = build_parser()
    return parser.parse_args(argv)


def run_search(board: CardBoard, query: str) -> int:
    try:
        players = board.search(query)
    except CriticalSourceFailure as exc:
        LOGGER.error("Search unavailable: %s", exc)
        return 2
    print(render_search_results(players))
    return 0


def run_cards(board: CardBoard, player_ids: Sequence[str], as_json: bool = False) -> int:
    status = 0
    for player_id in player_ids:
        try:
            board.select(player_id)
        except (SelectionRejected, PlayerNotFoundError) as exc:
            LOGGER.warning("Skipping %s: %s", player_id, exc)
            status = 1

    if as_json:
        print(json.dumps([view.model_dump(mode="json") for view in board.views], indent=2))
    else:
        print(render_cards(board.views))
    return status


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    settings = get_settings()
    snapshots = load_snapshots_sync(settings=settings)
    for failure in snapshots.failures:
        LOGGER.info("Degraded source: %s", failure)
    board = CardBoard(snapshots, settings)

    if args.command == "search":
        return run_search(board, args.query)
    if args.command == "cards":
        return run_cards(board, args.player_ids, as_json=args.json)
    raise ValueError(f"Unknown command: {args.command}")  # pragma: no cover - argparse enforces choices


if __name__ == "__main__":  # pragma: no cover - entry point for manual execution
    sys.exit(main())

"""Plain-text rendering of matchup cards and search results."""

from __future__ import annotations

import math
from typing import Sequence

from .data_models import NA, MatchupView, Player, StatLine

__all__ = ["format_value", "render_card", "render_cards", "render_search_results"]

NO_PROPS = "No props available"
NO_PROJECTIONS = "No projections available"


def _format_float(value: float) -> str:
    if math.isfinite(value) and math.isclose(value, round(value)):
        return f"{int(round(value))}"
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return text or "0"


def format_value(value: object) -> str:
    if value is None:
        return NA
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, (int, float)):
        if isinstance(value, float) and math.isnan(value):
            return NA
        return _format_float(float(value))
    text = str(value).strip()
    return text or NA


def _compute_widths(headers: Sequence[str], rows: Sequence[Sequence[str]]) -> list[int]:
    widths = [len(header) for header in headers]
    for row in rows:
        for index, value in enumerate(row):
            widths[index] = max(widths[index], len(value))
    return widths


def _render_table(headers: Sequence[str], rows: Sequence[Sequence[str]]) -> str:
    widths = _compute_widths(headers, rows)
    header_line = " ".join(header.ljust(width) for header, width in zip(headers, widths))
    separator_line = " ".join("-" * width for width in widths)
    body_lines = [" ".join(value.ljust(width) for value, width in zip(row, widths)) for row in rows]
    return "\n".join([header_line, separator_line, *body_lines])


def _render_lines(title: str, lines: Sequence[StatLine], placeholder: str) -> list[str]:
    if not lines:
        return [f"{title}: {placeholder}"]
    return [f"{title}:"] + [f"  {line.label}: {format_value(line.value)}" for line in lines]


def render_card(view: MatchupView) -> str:
    """Multi-line text card for one player."""

    header = f"{view.full_name} ({view.position}, {view.team or 'FA'})"
    if view.error:
        return "\n".join([header, f"  {view.error}"])

    body = [
        header,
        f"  Opponent:  {view.opponent}",
        f"  Kickoff:   {view.game_time}",
        f"  Spread:    {view.spread}",
        f"  Total:     {format_value(view.total)}",
    ]
    if view.rank_label:
        body.append(f"  {view.rank_label}: {format_value(view.defense_rank)}")
    if view.efficiency_label:
        body.append(f"  {view.efficiency_label}: {view.efficiency}")
    body.extend("  " + line for line in _render_lines("Props", view.props, NO_PROPS))
    body.extend("  " + line for line in _render_lines("Projections", view.projections, NO_PROJECTIONS))
    return "\n".join(body)


def render_cards(views: Sequence[MatchupView]) -> str:
    if not views:
        return "No players selected."
    return "\n\n".join(render_card(view) for view in views)


def render_search_results(players: Sequence[Player]) -> str:
    """Fixed-width table of search candidates."""

    if not players:
        return "No matching players."
    rows = [[player.player_id, player.full_name, player.position, player.team or "FA"] for player in players]
    return _render_table(["ID", "Player", "Pos", "Team"], rows)

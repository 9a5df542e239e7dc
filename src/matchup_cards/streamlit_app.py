"""Streamlit UI: search players and compare matchup cards side by side."""

from __future__ import annotations

from typing import Sequence

import pandas as pd
import streamlit as st

from .config import get_settings
from .data_models import MatchupView, Player, StatLine
from .exceptions import CriticalSourceFailure, PlayerNotFoundError, SelectionRejected
from .report import NO_PROJECTIONS, NO_PROPS, format_value
from .selection import CardBoard
from .snapshots import SourceSnapshots, load_snapshots_sync

CARDS_PER_ROW = 3


@st.cache_resource(show_spinner="Loading player, schedule, and odds data...")
def _load_snapshots() -> SourceSnapshots:
    return load_snapshots_sync(settings=get_settings())


def _board() -> CardBoard:
    if "board" not in st.session_state:
        st.session_state["board"] = CardBoard(_load_snapshots(), get_settings())
    return st.session_state["board"]


def _select(board: CardBoard, player_id: str) -> None:
    try:
        board.select(player_id)
    except (SelectionRejected, PlayerNotFoundError) as exc:
        st.session_state["status"] = ("warning", str(exc))
    else:
        st.session_state["status"] = None
        st.session_state["query"] = ""


def _stat_table(lines: Sequence[StatLine], placeholder: str) -> None:
    if not lines:
        st.caption(placeholder)
        return
    frame = pd.DataFrame([{"": line.label, "Line": format_value(line.value)} for line in lines])
    st.dataframe(frame, hide_index=True, use_container_width=True)


def _render_card(board: CardBoard, view: MatchupView, player: Player | None) -> None:
    with st.container(border=True):
        if player is not None:
            st.image(player.headshot_url, width=96)
        st.markdown(f"**{view.full_name}**")
        st.caption(player.team_label if player is not None else f"{view.position}, {view.team or 'FA'}")

        if view.error:
            st.info(view.error)
        else:
            st.write(f"vs **{view.opponent}** · {view.game_time}")
            left, right = st.columns(2)
            left.metric("Spread", view.spread)
            right.metric("Total", format_value(view.total))
            if view.rank_label:
                left.metric(view.rank_label, format_value(view.defense_rank))
            if view.efficiency_label:
                right.metric(view.efficiency_label, view.efficiency)
            st.markdown("Props")
            _stat_table(view.props, NO_PROPS)
            st.markdown("Projections")
            _stat_table(view.projections, NO_PROJECTIONS)

        st.button("Remove", key=f"dismiss-{view.player_id}", on_click=board.dismiss, args=(view.player_id,))


def run() -> None:
    """Run the Streamlit application."""

    st.set_page_config(page_title="NFL Matchup Cards", layout="wide")
    st.title("NFL Matchup Cards")

    board = _board()
    snapshots = board.snapshots
    for failure in snapshots.failures:
        st.sidebar.warning(failure)
    if st.sidebar.button("Reload data"):
        _load_snapshots.clear()
        board.reload(_load_snapshots())
        st.rerun()

    query = st.text_input("Search players", key="query", placeholder="e.g. Mahomes")
    try:
        results = board.search(query)
    except CriticalSourceFailure as exc:
        st.error(f"Player search is unavailable: {exc}")
        results = []

    for player in results:
        cols = st.columns([1, 5, 2])
        cols[0].image(player.headshot_url, width=40)
        cols[1].markdown(f"**{player.full_name}**  \n{player.team_label}")
        cols[2].button("Add", key=f"add-{player.player_id}", on_click=_select, args=(board, player.player_id))

    status = st.session_state.get("status")
    if status:
        level, message = status
        if level == "warning":
            st.warning(message)
        else:
            st.info(message)

    views = board.views
    st.caption(f"{len(views)}/{board.capacity} cards")
    for start in range(0, len(views), CARDS_PER_ROW):
        row = st.columns(CARDS_PER_ROW)
        for column, view in zip(row, views[start : start + CARDS_PER_ROW]):
            with column:
                _render_card(board, view, snapshots.players.get(view.player_id))

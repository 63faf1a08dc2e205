# koenawin_app.py
from __future__ import annotations

import datetime as dt
import logging

import streamlit as st

from bootstrap import get_engine, load_config_from_secrets
from domain.calendar_clock import PRACTICE_TZ, practice_today
from koenawin.components.counter import render_bead_counter
from koenawin.components.dashboard import render_cycle_overview, render_daily_goal
from koenawin.components.settings import render_settings
from koenawin.engine import ScheduleEngine


# ----------------------------
# Session init
# ----------------------------

def init_session_defaults():
    st.session_state.setdefault("selected_bead", None)
    st.session_state.setdefault("celebrate", False)


def _on_rollover():
    # bead pointer belongs to yesterday's cycle
    st.session_state["selected_bead"] = None


# ----------------------------
# UI
# ----------------------------

def render_topbar(today: dt.date):
    st.title("Koenawin")
    st.caption(f"ကိုးနဝင်း · {today.isoformat()} (MMT, UTC+06:30)")


def render_rollover_tick(engine: ScheduleEngine, interval_seconds: int):
    @st.fragment(run_every=dt.timedelta(seconds=interval_seconds))
    def _tick():
        rolled = engine.check_rollover().rolled
        # another session may have rolled the shared engine first
        if rolled or st.session_state.get("bead_day_key") != engine.state.last_seen_date_key:
            _on_rollover()
            st.rerun()
        st.caption(f"Checked at {dt.datetime.now(PRACTICE_TZ).strftime('%H:%M')} MMT")

    _tick()


# ----------------------------
# Main
# ----------------------------

def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    st.set_page_config(page_title="Koenawin", page_icon="📿")
    init_session_defaults()

    cfg = load_config_from_secrets()
    engine = get_engine()
    if engine.check_rollover().rolled:
        _on_rollover()

    today = practice_today(engine.clock())
    render_topbar(today)
    render_settings(engine)
    render_daily_goal(engine)
    render_bead_counter(engine)
    render_cycle_overview(engine, today)
    render_rollover_tick(engine, cfg.rollover_interval_seconds)


if __name__ == "__main__":
    main()

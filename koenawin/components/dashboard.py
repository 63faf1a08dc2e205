# koenawin/components/dashboard.py
import datetime as dt
import streamlit as st

from koenawin.engine import REST_DAY_LABEL, SPECIAL_DAY_LABEL, ScheduleEngine
from koenawin.plots import plot_cycle_grid
from shared.practice_summary import cycle_progress, days_until_rest, upcoming_days
from services.export_service import schedule_to_ics_bytes


def _badge_html(label: str, bg: str, fg: str = "#0b1220") -> str:
    return (
        f"<span style='display:inline-block;padding:6px 10px;margin:3px 6px 3px 0;"
        f"border-radius:999px;background:{bg};color:{fg};font-size:0.88rem;font-weight:600;'>"
        f"{label}</span>"
    )


def render_daily_goal(engine: ScheduleEngine):
    s = engine.schedule
    st.subheader("Today's practice")

    if not s.configured:
        st.info("No start date yet. Pick a Monday in the sidebar settings to begin the 83-day cycle.")
        st.metric("Cycles done", engine.cycles_completed_today)
        return
    if not s.started:
        st.info(f"The schedule begins on {engine.start_date.isoformat()} ({-s.days_passed} day(s) to go).")
        st.metric("Cycles done", engine.cycles_completed_today)
        return

    c1, c2, c3 = st.columns(3)
    if s.is_rest_day:
        c1.metric("Round", "နားရက်")
        c2.metric("Cycles done", "-")
        c3.metric("Cycles needed", "-")
    else:
        c1.metric("Round", f"{s.round_name} ({s.round_number})")
        c2.metric("Cycles done", engine.cycles_completed_today)
        c3.metric("Cycles needed", engine.cycles_needed_today)

    if s.is_rest_day:
        st.markdown(_badge_html(REST_DAY_LABEL, "#a5d8ff"), unsafe_allow_html=True)
    elif s.is_special_day:
        st.markdown(_badge_html(SPECIAL_DAY_LABEL, "#b2f2bb"), unsafe_allow_html=True)

    if engine.goal_reached:
        st.success("Today's goal is complete.")


def render_cycle_overview(engine: ScheduleEngine, today: dt.date):
    if engine.start_date is None:
        return
    with st.expander("Cycle overview", expanded=False):
        prog = cycle_progress(engine.start_date, today)
        rest_in = days_until_rest(engine.start_date, today)
        if prog is not None:
            cycles_done, day_no = prog
            st.caption(f"Day {day_no} of 83 · completed cycles: {cycles_done}")
        if rest_in:
            st.caption(f"Next rest day in {rest_in} day(s)")

        fig = plot_cycle_grid(engine.schedule)
        st.pyplot(fig, clear_figure=True)

        week = upcoming_days(engine.start_date, today, 7)
        rows = []
        for d in week:
            ds = d.schedule
            if not ds.started:
                label = "not started"
            elif ds.is_rest_day:
                label = "rest"
            else:
                label = "vegetarian" if ds.is_special_day else ""
            rows.append({"date": d.date.isoformat(), "round": ds.round_number, "note": label})
        st.dataframe(rows, hide_index=True, use_container_width=True)

        st.download_button(
            "Download next 83 days (.ics)",
            data=schedule_to_ics_bytes(upcoming_days(engine.start_date, today, 83)),
            file_name=f"koenawin_{today.isoformat()}.ics",
            mime="text/calendar",
            use_container_width=True,
        )

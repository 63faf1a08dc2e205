# koenawin/components/settings.py
import streamlit as st

from koenawin.engine import InvalidStartDate, PracticeMode, ScheduleEngine
from shared.practice_summary import settings_changes

_MODE_HINTS = {
    PracticeMode.FULL: "108 beads - Traditional mala",
    PracticeMode.SIMPLE: "9 beads - For children",
}


def render_settings(engine: ScheduleEngine):
    st.sidebar.header("Settings")

    mode = st.sidebar.radio(
        "Bead mode",
        options=[PracticeMode.FULL, PracticeMode.SIMPLE],
        index=0 if engine.practice_mode == PracticeMode.FULL else 1,
        format_func=lambda m: str(int(m)),
        horizontal=True,
    )
    st.sidebar.caption(_MODE_HINTS[mode])

    # empty until the user picks a Monday
    start = st.sidebar.date_input("Start date (Monday)", value=engine.start_date)

    if st.sidebar.button("Save settings", type="primary", use_container_width=True):
        new_mode, new_start = settings_changes(engine.practice_mode, engine.start_date, mode, start)
        if new_start is not None:
            try:
                engine.set_start_date(new_start)
            except InvalidStartDate as e:
                st.sidebar.error(str(e))
                return
        if new_mode is not None:
            engine.set_practice_mode(new_mode)
        if new_mode is not None or new_start is not None:
            st.session_state["selected_bead"] = None
        st.rerun()

# koenawin/components/counter.py
import streamlit as st

from koenawin.engine import ScheduleEngine
from shared.practice_summary import bead_back, bead_fraction, bead_step, beads_counted, valid_bead_pointer


def _complete_cycle(engine: ScheduleEngine):
    result = engine.complete_cycle()
    if result.goal_just_reached:
        st.session_state["celebrate"] = True


def _session_bead_pointer(engine: ScheduleEngine, total: int):
    # the engine is shared; another tab may have rolled the day or changed the mode
    day_key = engine.state.last_seen_date_key
    if st.session_state.get("bead_day_key") != day_key:
        st.session_state["bead_day_key"] = day_key
        st.session_state["selected_bead"] = None
    selected = valid_bead_pointer(st.session_state.get("selected_bead"), total)
    st.session_state["selected_bead"] = selected
    return selected


def render_bead_counter(engine: ScheduleEngine):
    total = int(engine.practice_mode)
    selected = _session_bead_pointer(engine, total)

    st.subheader("Beads")
    st.progress(bead_fraction(selected, total), text=f"{beads_counted(selected)} / {total}")

    c1, c2, c3 = st.columns(3)
    with c1:
        if st.button("◀ Previous", use_container_width=True, disabled=selected in (None, 0)):
            st.session_state["selected_bead"] = bead_back(selected)
            st.rerun()
    with c2:
        if st.button("Next ▶", type="primary", use_container_width=True):
            new_selected, done = bead_step(selected, total)
            st.session_state["selected_bead"] = new_selected
            if done:
                _complete_cycle(engine)
            st.rerun()
    with c3:
        if st.button("Reset", use_container_width=True):
            st.session_state["selected_bead"] = None
            engine.reset_today()
            st.rerun()

    if st.session_state.pop("celebrate", False):
        st.balloons()
        st.success("သာဓု! Today's goal is complete.")

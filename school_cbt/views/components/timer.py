"""
views/components/timer.py

진행 중인 시험의 남은 시간 표시.
The countdown itself is driven by the controller's timer thread; this
fragment only re-reads `remaining_seconds` once a second.
"""

import streamlit as st

from school_cbt.models.session_state import Phase
from school_cbt.services.session_controller import SessionController, format_time


@st.fragment(run_every=1)
def render(controller: SessionController) -> None:
    """
    Show remaining time, red below the warning threshold.
    When the attempt left RUNNING (timeout auto-submit) the whole page reruns.
    """
    if controller.phase is not Phase.RUNNING:
        st.rerun()

    remaining = controller.state.remaining_seconds
    is_warning = controller.is_time_warning

    css_class = "timer-display timer-warning" if is_warning else "timer-display"
    icon = "⚠️ " if is_warning else "⏱ "

    st.markdown(
        f'<div class="{css_class}">{icon}{format_time(remaining)}</div>',
        unsafe_allow_html=True,
    )

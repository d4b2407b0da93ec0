"""
views/result_view.py — 제출 완료 / 오류 화면

  - submitted: outcome message and where to go next
  - error:     load failure with retry / back-out
"""

from __future__ import annotations

import streamlit as st

import config
from school_cbt.models.session_state import OutcomeKind
from school_cbt.services.session_controller import SessionController


def render_submitted() -> None:
    controller: SessionController = st.session_state.controller
    outcome = controller.outcome

    st.success(f"✅ {outcome.message}")
    st.markdown(f"Answered **{controller.answered_count} / {len(controller.questions)}** questions.")
    if outcome.kind is OutcomeKind.VIEW_RESULT:
        st.markdown(f"[View result]({outcome.redirect_path})")
    else:
        st.info("Your teacher will grade it soon.")
        st.markdown(f"[Back to Tests]({outcome.redirect_path})")


def render_error() -> None:
    controller: SessionController = st.session_state.controller

    st.error(f"**Error Loading Test**\n\n{controller.state.error}")
    col_retry, col_back = st.columns(2)
    with col_retry:
        if controller.result_path is None and st.button("Retry", type="primary", use_container_width=True):
            controller.load_test(controller.test_id)
            st.rerun()
    with col_back:
        target = controller.result_path or config.STUDENT_TESTS_PATH
        label = "View Result" if controller.result_path else "Back to Tests"
        st.markdown(f"[{label}]({target})")

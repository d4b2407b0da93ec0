"""
views/exam_view.py — 시험 풀기 화면

Layout:
  - st.sidebar : countdown + question navigator + submit
  - main area  : current question card + previous / next + flag

State:
  - st.session_state.controller  (SessionController, owns SessionState)
  - widget values are pushed into the controller on every rerun
"""

from __future__ import annotations

import streamlit as st

from school_cbt.services.errors import InvalidAnswerError
from school_cbt.services.session_controller import SessionController
from school_cbt.views.components import question_card as qcard
from school_cbt.views.components import sidebar as nav
from school_cbt.views.components import timer as tmr


def _confirm_dialog(controller: SessionController) -> None:
    """Submit confirmation with the unanswered count."""
    summary = controller.submit_summary()
    st.markdown(
        f"You have answered **{summary.answered} out of {summary.total}** questions."
    )
    if summary.unanswered > 0:
        st.warning(f"⚠️ {summary.unanswered} question(s) unanswered")
    tail = "" if summary.allow_retake else " or retake this test"
    st.caption(f"Once submitted, you cannot change your answers{tail}.")

    col_back, col_go = st.columns(2)
    with col_back:
        if st.button("Review Answers", key="confirm_no", use_container_width=True):
            controller.cancel_submit()
            st.rerun()
    with col_go:
        if st.button("Confirm Submit", key="confirm_yes", type="primary", use_container_width=True):
            with st.spinner("Submitting..."):
                controller.confirm_submit()
            st.rerun()


def render() -> None:
    """Render the running attempt."""
    controller: SessionController = st.session_state.controller
    questions = controller.questions
    total = len(questions)
    current_idx = controller.state.current_question_index
    current_q = questions[current_idx]
    test = controller.test

    # ── 사이드바 ─────────────────────────────────────────────────────────────────
    with st.sidebar:
        tmr.render(controller)
        st.markdown('<hr class="cbt-divider">', unsafe_allow_html=True)
        nav.render(controller)
        st.markdown('<hr class="cbt-divider">', unsafe_allow_html=True)
        if st.button("Submit Test", key="submit_sidebar", type="primary", use_container_width=True):
            controller.request_submit()
            st.rerun()

    # ── 메인 영역 헤더 ─────────────────────────────────────────────────────────────
    st.markdown(f"## {test.title}")
    st.caption(f"Question {current_idx + 1} of {total}")

    if controller.state.confirm_pending:
        _confirm_dialog(controller)
        return

    # ── 문제 카드 ────────────────────────────────────────────────────────────────
    saved = controller.state.answers.get(current_q.id)
    selected = qcard.render(
        question=current_q,
        question_number=current_idx + 1,
        total=total,
        saved_answer=saved,
    )
    if selected != saved and not (selected is None and saved is None):
        try:
            controller.set_answer(current_q.id, selected)
        except InvalidAnswerError as e:
            st.error(str(e))

    flagged = current_q.id in controller.state.flagged
    if st.toggle("🚩 Flag for review", value=flagged, key=f"flag_{current_q.id}") != flagged:
        controller.toggle_flag(current_q.id)
        st.rerun()

    # ── 이전 / 다음 ──────────────────────────────────────────────────────────────
    nav_left, nav_center, nav_right = st.columns([1, 2, 1])

    with nav_left:
        if st.button("← Previous", key="prev_btn", disabled=current_idx == 0,
                     use_container_width=True):
            controller.previous_question()
            st.rerun()

    with nav_center:
        st.markdown(
            f"<p style='text-align:center; font-size:0.85rem; color:#9ca3af; "
            f"padding-top:8px;'>{current_idx + 1} / {total}</p>",
            unsafe_allow_html=True,
        )

    with nav_right:
        if current_idx < total - 1:
            if st.button("Next →", key="next_btn", type="primary", use_container_width=True):
                controller.next_question()
                st.rerun()
        else:
            if st.button("Submit Test", key="submit_last", type="primary",
                         use_container_width=True):
                controller.request_submit()
                st.rerun()

"""
views/home_view.py — 안내 / 시작 화면

Shows:
  - duration, question count, total marks
  - teacher instructions and general rules
  - resume prompt when saved progress exists
  - "Start Test Now" button
"""

from __future__ import annotations

import streamlit as st

from school_cbt.models.session_state import is_answered
from school_cbt.services.session_controller import SessionController, format_time


def _general_rules(controller: SessionController) -> list[str]:
    cfg = controller.test.config
    rules = [
        "Once started, the timer cannot be paused",
        f"Your answers are auto-saved every {int(controller.auto_save_interval)} seconds",
        "You can navigate between questions freely",
        "Submit before time runs out to avoid auto-submission",
    ]
    if cfg.allow_retake:
        rules.append("You can retake this test if needed")
    else:
        rules.append("You can only attempt this test once")
    if not cfg.show_results_immediately:
        rules.append("Results will be available after teacher review")
    return rules


def render() -> None:
    """Instructions gate."""
    controller: SessionController = st.session_state.controller
    test = controller.test

    _, center, _ = st.columns([1, 3, 1])
    with center:
        st.markdown(f"# {test.title}")
        if test.subject:
            st.caption(test.subject)
        if test.teacher_name:
            st.caption(f"Teacher: {test.teacher_name}")

        c1, c2, c3 = st.columns(3)
        c1.metric("Duration", f"{test.config.duration_minutes:g} mins")
        c2.metric("Questions", len(controller.questions))
        c3.metric("Total Marks", f"{test.max_score:g}" if test.max_score is not None else "-")

        if test.instructions:
            st.info(f"**Important Instructions**\n\n{test.instructions}")

        st.markdown("**General Rules:**")
        st.markdown("\n".join(f"- {rule}" for rule in _general_rules(controller)))

        snapshot = controller.peek_snapshot()
        if snapshot is not None:
            st.warning(
                "We found a saved progress for this test "
                f"({sum(1 for v in snapshot.answers.values() if is_answered(v))} answered, "
                f"{format_time(snapshot.time_remaining)} left). "
                "Do you want to continue from where you left off?"
            )
            col_resume, col_fresh = st.columns(2)
            with col_resume:
                if st.button("Continue", type="primary", use_container_width=True):
                    controller.start_test(resume=True)
                    st.rerun()
            with col_fresh:
                if st.button("Start Over", use_container_width=True):
                    controller.start_test(resume=False)
                    st.rerun()
        elif st.button("Start Test Now", type="primary", use_container_width=True):
            controller.start_test(resume=False)
            st.rerun()

"""
views/components/sidebar.py

문제 번호 네비게이터 그리드.
Clicking a number jumps straight to that question.
"""

from __future__ import annotations

import streamlit as st

from school_cbt.services.session_controller import SessionController

_STATUS_ICON = {"current": "🔵", "answered": "✅", "unanswered": "⬜"}


def render(controller: SessionController) -> None:
    """
    Render progress and the numbered grid.

    Colour coding:
      - current question:  blue
      - answered:          green tick
      - not answered:      empty box
      - flagged:           🚩 suffix
    """
    total = len(controller.questions)
    answered = controller.answered_count

    # ── 진행 현황 ────────────────────────────────────────────────────────────────
    st.markdown(
        f"""
        <div style="display:flex; justify-content:space-between;
                    font-size:0.8rem; color:#6b7280; margin-bottom:4px;">
            <span>Progress: {answered}/{total} answered</span>
            <span>{round(controller.progress_percent)}%</span>
        </div>
        """,
        unsafe_allow_html=True,
    )
    st.progress(min(1.0, controller.progress_percent / 100))

    st.markdown(
        "<p style='font-size:0.78rem; color:#9ca3af; font-weight:600; "
        "margin:12px 0 8px;'>Question Navigator</p>",
        unsafe_allow_html=True,
    )

    # ── 문제 번호 그리드 (5열) ───────────────────────────────────────────────────────
    cells = controller.navigator_states()
    cols_per_row = 5

    for row_start in range(0, total, cols_per_row):
        cols = st.columns(cols_per_row)
        for col_idx, cell in enumerate(cells[row_start : row_start + cols_per_row]):
            label = f"{cell['index'] + 1}"
            if cell["flagged"]:
                label += "🚩"
            with cols[col_idx]:
                if st.button(
                    label,
                    key=f"nav_{cell['index']}",
                    type="primary" if cell["status"] == "current" else "secondary",
                    help=f"{_STATUS_ICON[cell['status']]} Question {cell['index'] + 1}",
                ):
                    controller.go_to(cell["index"])
                    st.rerun()

    # ── 범례 ───────────────────────────────────────────────────────────────────
    flagged = sum(1 for c in cells if c["flagged"])
    st.caption(f"🔵 Current · ✅ Answered · ⬜ Not Answered · 🚩 Flagged ({flagged})")

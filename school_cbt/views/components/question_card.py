"""
views/components/question_card.py

문제 한 개를 렌더링하고 현재 답안을 반환한다.
"""

from __future__ import annotations

from typing import Optional, Union

import streamlit as st

from school_cbt.models.test_model import Question


def render(
    question: Question,
    question_number: int,
    total: int,
    saved_answer: Optional[Union[int, str]] = None,
) -> Optional[Union[int, str]]:
    """
    Args:
        question:        question to show (options already in session order)
        question_number: 1-based position, for display
        total:           number of questions
        saved_answer:    answer stored so far (option index or text)

    Returns:
        selected option index for objective questions, the text for theory
        questions, None when nothing is selected
    """

    kind = "Multiple Choice" if question.is_objective else "Essay Question"
    st.markdown(
        f"""
        <div style="display:flex; align-items:center; gap:10px; margin-bottom:12px;">
            <span class="question-number-badge">Question {question_number} of {total}</span>
            <span style="font-size:0.8rem; color:#9ca3af;">{kind}</span>
            <span style="font-size:0.75rem; color:#c0ccd8; margin-left:auto;">
                {question.marks:g} mark(s)
            </span>
        </div>
        <div class="question-card">
            <p style="font-size:1.05rem; font-weight:600; line-height:1.7; margin:0;">
                {question.prompt}
            </p>
        </div>
        """,
        unsafe_allow_html=True,
    )

    if not question.is_objective:
        text = st.text_area(
            "Your answer",
            value=saved_answer if isinstance(saved_answer, str) else "",
            height=260,
            key=f"text_{question.id}",
            placeholder="Type your answer here... Be clear and detailed.",
            label_visibility="collapsed",
        )
        st.caption(f"{len(text or '')} characters")
        return text

    # A. / B. / C. labels, the value passed around is the option index
    indices = list(range(len(question.options)))
    default_index = saved_answer if isinstance(saved_answer, int) and saved_answer in indices else None

    return st.radio(
        "Choose an option",
        options=indices,
        index=default_index,
        format_func=lambda i: f"{chr(65 + i)}. {question.options[i]}",
        key=f"radio_{question.id}",
        label_visibility="collapsed",
    )

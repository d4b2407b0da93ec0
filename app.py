"""
app.py — 온라인 시험 화면 Streamlit 진입점

Run with `streamlit run app.py` or through main.py.
The test id comes from the `?test=` query parameter or the input box.
Pages follow the controller phase:
  instructions → exam → submitted, error at any point of loading.
"""

import logging
import sys

import streamlit as st

from config import LOG_FILE
from school_cbt.models.session_state import Phase
from school_cbt.services.progress_store import ProgressStore
from school_cbt.services.session_controller import SessionController
from school_cbt.services.test_api import SchoolApiClient
from school_cbt.views import exam_view, home_view, result_view

# ── 로깅 설정 (런처가 아닌 Streamlit 프로세스에서 실행) ───────────────────────────────────────
try:
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        handlers=[
            logging.FileHandler(LOG_FILE, encoding='utf-8'),
            logging.StreamHandler(sys.stdout)
        ]
    )
except PermissionError:
    logging.basicConfig(level=logging.INFO)

_CSS = """
<style>
.timer-display { font-size:1.6rem; font-weight:700; color:#1d4ed8;
                 background:#dbeafe; border-radius:8px; padding:6px 12px; text-align:center; }
.timer-warning { color:#b91c1c; background:#fee2e2; }
.question-number-badge { background:#7c3aed; color:white; border-radius:999px;
                         padding:2px 10px; font-size:0.8rem; font-weight:600; }
.question-card { background:white; border:1px solid #e5e7eb; border-radius:12px;
                 padding:20px; margin-bottom:16px; }
hr.cbt-divider { margin:12px 0; border:none; border-top:1px solid #e5e7eb; }
</style>
"""


def _new_controller() -> SessionController:
    # timer threads have no script context, so notices are queued and shown on the next rerun
    messages: list[str] = []
    st.session_state.messages = messages
    return SessionController(
        api=SchoolApiClient(),
        store=ProgressStore(),
        notify=messages.append,
    )


def _flush_messages() -> None:
    messages: list[str] = st.session_state.get("messages", [])
    while messages:
        st.toast(messages.pop(0))


def main() -> None:
    st.set_page_config(page_title="Online Test", page_icon="📝", layout="wide")
    st.markdown(_CSS, unsafe_allow_html=True)

    if "controller" not in st.session_state:
        st.session_state.controller = _new_controller()
    controller: SessionController = st.session_state.controller

    _flush_messages()

    if controller.test_id is None:
        test_id = st.query_params.get("test") or st.text_input("Test ID")
        if not test_id:
            st.info("Enter the id of the test you want to take.")
            return
        with st.spinner("Loading test..."):
            controller.load_test(test_id)

    phase = controller.phase
    if phase is Phase.INSTRUCTIONS:
        home_view.render()
    elif phase in (Phase.RUNNING, Phase.SUBMITTING):
        exam_view.render()
    elif phase is Phase.SUBMITTED:
        result_view.render_submitted()
    elif phase is Phase.ERROR:
        result_view.render_error()
    else:
        st.info("Loading test...")


main()

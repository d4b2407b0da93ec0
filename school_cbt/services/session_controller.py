"""
services/session_controller.py

시험 세션 컨트롤러: 시험 응시 한 회의 수명 주기.

    LOADING -> INSTRUCTIONS -> RUNNING -> SUBMITTING -> SUBMITTED
       |                          ^            |
       v                          +------------+  (submit failed)
     ERROR

Owns the SessionState, the working (shuffled) question list and the two
timers that run while RUNNING: the 1 s countdown and the 30 s auto-save.
Both timers are cancelled on every transition out of RUNNING and on close().
All mutations are serialized through one re-entrant lock, so timer threads
and the UI thread never interleave inside an operation.
"""

import logging
import random
import threading
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Union

import config
from school_cbt.models.session_state import (
    AnswerValue,
    OutcomeKind,
    Phase,
    ProgressSnapshot,
    SessionState,
    SubmissionOutcome,
    SubmitSummary,
    is_answered,
)
from school_cbt.models.test_model import Question, TestDefinition
from school_cbt.services.errors import (
    InvalidAnswerError,
    InvalidPhaseError,
    LoadError,
    SubmissionError,
)
from school_cbt.services.progress_store import ProgressStore
from school_cbt.services.shuffle import prepare_questions, restore_order
from school_cbt.services.test_api import SchoolApiClient
from school_cbt.services.timers import RepeatingTimer, TimerFactory

logger = logging.getLogger(__name__)

TIME_UP_MESSAGE = "Time is up! Your test will be submitted automatically."
PENDING_GRADING_MESSAGE = "Test submitted successfully! Your teacher will grade it soon."
SUBMITTED_MESSAGE = "Test submitted successfully!"
ALREADY_SUBMITTED_MESSAGE = "You have already submitted this test."
NO_QUESTIONS_MESSAGE = "This test has no questions."


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_time(seconds: int) -> str:
    """Countdown label: H:MM:SS from one hour up, M:SS below."""
    seconds = max(0, int(seconds))
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


class SessionController:
    """
    Drives one attempt of one test.

    Args:
        api:                client for the school server.
        store:              local auto-save store.
        confirm_resume:     asked whether to restore a saved snapshot.
        notify:             shows a message to the student (time up, submit failure).
        rng:                random source for shuffling, seeded in tests.
        clock:              returns the current aware datetime.
        timer_factory:      builds the countdown and auto-save timers.
    """

    def __init__(
        self,
        api: SchoolApiClient,
        store: ProgressStore,
        confirm_resume: Optional[Callable[[ProgressSnapshot], bool]] = None,
        notify: Optional[Callable[[str], None]] = None,
        rng: Optional[random.Random] = None,
        clock: Callable[[], datetime] = _utcnow,
        timer_factory: TimerFactory = RepeatingTimer,
        tick_interval: float = config.TICK_INTERVAL_SECONDS,
        auto_save_interval: float = config.AUTO_SAVE_INTERVAL_SECONDS,
    ):
        self.api = api
        self.store = store
        self.confirm_resume = confirm_resume or (lambda snapshot: True)
        self.notify = notify or (lambda message: logger.info(f"notify: {message}"))
        self.rng = rng or random.Random()
        self.clock = clock
        self.timer_factory = timer_factory
        self.tick_interval = tick_interval
        self.auto_save_interval = auto_save_interval

        self.test_id: Optional[str] = None
        self.test: Optional[TestDefinition] = None
        self.questions: List[Question] = []
        self.state = SessionState()
        self.outcome: Optional[SubmissionOutcome] = None
        self.result_path: Optional[str] = None

        self._lock = threading.RLock()
        self._timers: List[RepeatingTimer] = []
        # set once the countdown has fired its automatic submit for this attempt
        self._auto_submitted = False

    # ── 수명 주기 ────────────────────────────────────────────────────────────────

    def __enter__(self) -> "SessionController":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def close(self) -> None:
        """Tear down: cancel any running timers. Idempotent."""
        with self._lock:
            self._cancel_timers()

    @property
    def phase(self) -> Phase:
        return self.state.phase

    def _require(self, *phases: Phase) -> None:
        if self.state.phase not in phases:
            allowed = ", ".join(p.value for p in phases)
            raise InvalidPhaseError(f"not allowed in phase {self.state.phase.value} (needs {allowed})")

    def _fail(self, message: str) -> Phase:
        self._cancel_timers()
        self.questions = []
        self.state = SessionState(phase=Phase.ERROR, error=message)
        return self.state.phase

    # ── 시험 불러오기 ──────────────────────────────────────────────────────────────

    def load_test(self, test_id: str) -> Phase:
        """
        Fetch the test and prepare the working question order.

        Returns the resulting phase: INSTRUCTIONS on success, ERROR otherwise
        (the message is in `state.error`).
        """
        with self._lock:
            if self.state.phase in (Phase.RUNNING, Phase.SUBMITTING):
                raise InvalidPhaseError("cannot load a test while an attempt is in progress")

            self._cancel_timers()
            self.test_id = str(test_id)
            self.test = None
            self.outcome = None
            self.result_path = None
            self.questions = []
            self.state = SessionState(phase=Phase.LOADING)
            self._auto_submitted = False

            try:
                test = self.api.fetch_test(self.test_id)
            except LoadError as e:
                logger.error(f"load_test({self.test_id}) failed: {e.message}")
                return self._fail(e.message)

            self.test = test
            cfg = test.config

            if test.my_submission is not None and not cfg.allow_retake:
                logger.info(f"load_test({self.test_id}): already submitted, retake not allowed")
                self.result_path = f"{config.STUDENT_TESTS_PATH}/result/{self.test_id}"
                return self._fail(ALREADY_SUBMITTED_MESSAGE)

            if not test.questions:
                return self._fail(NO_QUESTIONS_MESSAGE)

            self.questions = prepare_questions(
                test.questions,
                shuffle_questions=cfg.shuffle_questions,
                shuffle_options=cfg.shuffle_options,
                rng=self.rng,
            )
            self.state.remaining_seconds = cfg.duration_seconds
            self.state.phase = Phase.INSTRUCTIONS
            logger.info(
                f"load_test({self.test_id}): {len(self.questions)} questions, "
                f"{cfg.duration_minutes} min, shuffle q={cfg.shuffle_questions} o={cfg.shuffle_options}"
            )
            return self.state.phase

    # ── 시작 / 이어하기 ────────────────────────────────────────────────────────────

    def peek_snapshot(self) -> Optional[ProgressSnapshot]:
        """Saved progress for the loaded test, for UIs that ask before start_test()."""
        if self.test_id is None:
            return None
        return self.store.load(self.test_id)

    def start_test(self, resume: Optional[bool] = None) -> bool:
        """
        Leave the instructions gate and start the clock.

        A saved snapshot is read once here. With `resume=None` the
        `confirm_resume` callback decides whether to restore it.
        Returns True when a snapshot was restored.
        """
        with self._lock:
            self._require(Phase.INSTRUCTIONS)
            self.state.phase = Phase.RUNNING
            self.state.started_at = self.clock()

            restored = False
            snapshot = self.store.load(self.test_id)
            if snapshot is not None:
                if resume is None:
                    resume = bool(self.confirm_resume(snapshot))
                if resume:
                    self._restore(snapshot)
                    restored = True

            logger.info(
                f"start_test({self.test_id}): {'resumed' if restored else 'fresh'}, "
                f"{self.state.remaining_seconds}s remaining"
            )
            self._start_timers()
            return restored

    def _restore(self, snapshot: ProgressSnapshot) -> None:
        # saved option indices only mean something in the order they were chosen in
        ordered = restore_order(self.questions, snapshot.question_order, snapshot.option_order)
        if ordered is not None:
            self.questions = ordered
        else:
            logger.warning(f"start_test({self.test_id}): saved order does not match the test, keeping the new one")
        last = len(self.questions) - 1
        self.state.answers = dict(snapshot.answers)
        self.state.current_question_index = max(0, min(snapshot.current_question, last))
        if snapshot.time_remaining:
            self.state.remaining_seconds = snapshot.time_remaining

    # ── 타이머 ──────────────────────────────────────────────────────────────────

    def _start_timers(self) -> None:
        self._cancel_timers()
        self._timers = [
            self.timer_factory(self.tick_interval, self.tick, "countdown"),
            self.timer_factory(self.auto_save_interval, self.auto_save, "auto-save"),
        ]
        for timer in self._timers:
            timer.start()

    def _cancel_timers(self) -> None:
        for timer in self._timers:
            timer.cancel()
        self._timers = []

    @property
    def timers_active(self) -> bool:
        return bool(self._timers)

    def tick(self) -> None:
        """
        One countdown second. At zero the test is submitted automatically,
        once per attempt: if that submit fails, retrying is up to the student.
        """
        with self._lock:
            if self.state.phase is not Phase.RUNNING or self._auto_submitted:
                return
            if self.state.remaining_seconds <= 1:
                self.state.remaining_seconds = 0
                self.auto_submit()
            else:
                self.state.remaining_seconds -= 1

    def auto_save(self) -> bool:
        """Write the progress snapshot. Best-effort: failures are only logged."""
        with self._lock:
            if self.state.phase is not Phase.RUNNING:
                return False
            try:
                snapshot = ProgressSnapshot(
                    answers=dict(self.state.answers),
                    current_question=self.state.current_question_index,
                    time_remaining=self.state.remaining_seconds,
                    timestamp=self.clock(),
                    question_order=[q.id for q in self.questions],
                    option_order={q.id: list(q.options) for q in self.questions if q.is_objective},
                )
                self.store.save(self.test_id, snapshot)
            except (OSError, ValueError) as e:
                logger.warning(f"auto_save({self.test_id}) failed: {e}")
                return False
            logger.debug(f"auto_save({self.test_id}): {self.state.answered_count} answered")
            return True

    # ── 답안 / 이동 ──────────────────────────────────────────────────────────────

    def _question(self, question_id: str) -> Question:
        for q in self.questions:
            if q.id == question_id:
                return q
        raise InvalidAnswerError(f"unknown question id {question_id!r}")

    def set_answer(self, question_id: str, value: AnswerValue) -> None:
        """
        Store an answer: option index for objective questions, text for theory.
        None or "" leave the question unanswered.
        """
        with self._lock:
            self._require(Phase.RUNNING)
            q = self._question(question_id)
            if is_answered(value):
                if q.is_objective:
                    if not isinstance(value, int) or isinstance(value, bool):
                        raise InvalidAnswerError(f"question {q.id!r} expects an option index")
                    if not 0 <= value < len(q.options):
                        raise InvalidAnswerError(
                            f"option {value} out of range for question {q.id!r} ({len(q.options)} options)"
                        )
                elif not isinstance(value, str):
                    raise InvalidAnswerError(f"question {q.id!r} expects a text answer")
            self.state.answers[q.id] = value

    def toggle_flag(self, question_id: str) -> bool:
        """Mark / unmark a question for review. Returns the new flag state."""
        with self._lock:
            self._require(Phase.RUNNING)
            q = self._question(question_id)
            if q.id in self.state.flagged:
                self.state.flagged.discard(q.id)
                return False
            self.state.flagged.add(q.id)
            return True

    def navigate(self, target: Union[int, str]) -> int:
        """
        Move to "next", "previous" or an absolute index.
        The index is clamped to the question list, never wrapped.
        """
        with self._lock:
            self._require(Phase.RUNNING)
            current = self.state.current_question_index
            if target == "next":
                index = current + 1
            elif target == "previous":
                index = current - 1
            elif isinstance(target, int) and not isinstance(target, bool):
                index = target
            else:
                raise ValueError(f"unknown navigation target {target!r}")
            self.state.current_question_index = max(0, min(index, len(self.questions) - 1))
            return self.state.current_question_index

    def next_question(self) -> int:
        return self.navigate("next")

    def previous_question(self) -> int:
        return self.navigate("previous")

    def go_to(self, index: int) -> int:
        return self.navigate(index)

    # ── 제출 ───────────────────────────────────────────────────────────────────

    def submit_summary(self) -> SubmitSummary:
        unanswered = self.unanswered_count
        return SubmitSummary(
            answered=len(self.questions) - unanswered,
            unanswered=unanswered,
            total=len(self.questions),
            allow_retake=self.test.config.allow_retake if self.test else False,
        )

    def request_submit(self) -> SubmitSummary:
        """Open the confirmation dialog."""
        with self._lock:
            self._require(Phase.RUNNING)
            self.state.confirm_pending = True
            return self.submit_summary()

    def cancel_submit(self) -> None:
        with self._lock:
            self.state.confirm_pending = False

    def confirm_submit(self) -> Optional[SubmissionOutcome]:
        with self._lock:
            self._require(Phase.RUNNING, Phase.SUBMITTING)
            return self.submit()

    def auto_submit(self) -> Optional[SubmissionOutcome]:
        """Timeout path: no confirmation, the student is told time is up."""
        with self._lock:
            if self.state.phase is not Phase.RUNNING or self._auto_submitted:
                return None
            self._auto_submitted = True
            logger.info(f"auto_submit({self.test_id}): time expired")
            self.notify(TIME_UP_MESSAGE)
            return self.submit(auto_submit=True)

    def submit(self, auto_submit: bool = False) -> Optional[SubmissionOutcome]:
        """
        Send the answers. On success the snapshot is cleared and the outcome
        returned. On failure the student is notified and the attempt goes back
        to RUNNING with the time spent on the attempt deducted from the clock.
        Calls made while a submission is in flight are ignored.
        """
        with self._lock:
            if self.state.phase is Phase.SUBMITTING:
                return None
            self._require(Phase.RUNNING)

            self._cancel_timers()
            self.state.confirm_pending = False
            self.state.error = None

            now = self.clock()
            if self.state.started_at is not None:
                time_spent = int((now - self.state.started_at).total_seconds())
            else:
                time_spent = self.test.config.duration_seconds

            self.state.phase = Phase.SUBMITTING
            logger.info(
                f"submit({self.test_id}): {self.answered_count}/{len(self.questions)} answered, "
                f"{time_spent}s spent, auto={auto_submit}"
            )

            try:
                receipt = self.api.submit(
                    self.test_id,
                    dict(self.state.answers),
                    time_spent,
                    auto_submit=auto_submit,
                )
            except SubmissionError as e:
                waited = int((self.clock() - now).total_seconds())
                self.state.remaining_seconds = max(0, self.state.remaining_seconds - waited)
                self.state.phase = Phase.RUNNING
                self.state.error = e.message
                logger.error(f"submit({self.test_id}) failed: {e.message}, back to running")
                self.notify(f"Failed to submit test: {e.message}")
                self._start_timers()
                return None

            try:
                self.store.clear(self.test_id)
            except OSError as e:
                logger.warning(f"could not clear progress snapshot for {self.test_id}: {e}")

            if self.test.config.show_results_immediately and not receipt.needs_manual_grading:
                outcome = SubmissionOutcome(
                    kind=OutcomeKind.VIEW_RESULT,
                    submission_id=receipt.id,
                    needs_manual_grading=False,
                    redirect_path=(
                        f"{config.STUDENT_TESTS_PATH}/{self.test_id}/result?submissionId={receipt.id}"
                    ),
                    message=SUBMITTED_MESSAGE,
                )
            else:
                outcome = SubmissionOutcome(
                    kind=OutcomeKind.PENDING_GRADING,
                    submission_id=receipt.id,
                    needs_manual_grading=receipt.needs_manual_grading,
                    redirect_path=config.STUDENT_TESTS_PATH,
                    message=PENDING_GRADING_MESSAGE,
                )
                self.notify(PENDING_GRADING_MESSAGE)

            self.outcome = outcome
            self.state.phase = Phase.SUBMITTED
            logger.info(f"submit({self.test_id}): accepted as {receipt.id} ({outcome.kind.value})")
            return outcome

    # ── 파생 값 ─────────────────────────────────────────────────────────────────

    @property
    def current_question(self) -> Optional[Question]:
        if not self.questions:
            return None
        return self.questions[self.state.current_question_index]

    @property
    def answered_count(self) -> int:
        return self.state.answered_count

    @property
    def unanswered_count(self) -> int:
        answered = sum(1 for q in self.questions if is_answered(self.state.answers.get(q.id)))
        return len(self.questions) - answered

    @property
    def progress_percent(self) -> float:
        if not self.questions:
            return 0.0
        return (self.state.current_question_index + 1) / len(self.questions) * 100

    @property
    def is_time_warning(self) -> bool:
        return self.state.remaining_seconds < config.TIME_WARNING_SECONDS

    def is_question_answered(self, question_id: str) -> bool:
        return is_answered(self.state.answers.get(question_id))

    def navigator_states(self) -> List[Dict[str, object]]:
        """
        One entry per question for the navigator grid:
        [{"index": int, "question_id": str, "status": "current" | "answered" | "unanswered",
          "flagged": bool}, ...]
        """
        cells = []
        for idx, q in enumerate(self.questions):
            if idx == self.state.current_question_index:
                status = "current"
            elif self.is_question_answered(q.id):
                status = "answered"
            else:
                status = "unanswered"
            cells.append({
                "index": idx,
                "question_id": q.id,
                "status": status,
                "flagged": q.id in self.state.flagged,
            })
        return cells

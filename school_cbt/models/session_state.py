"""
models/session_state.py

시험 응시 한 회의 상태.
Pydantic BaseModel based, no UI code. Mutated only by the session controller.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional, Set, Union

from pydantic import BaseModel, ConfigDict, Field

AnswerValue = Union[int, str, None]


def is_answered(value: AnswerValue) -> bool:
    """An answer counts when it is neither missing, None nor an empty string."""
    return value is not None and value != ""


class Phase(str, Enum):
    LOADING = "loading"
    INSTRUCTIONS = "instructions"
    RUNNING = "running"
    SUBMITTING = "submitting"
    SUBMITTED = "submitted"
    ERROR = "error"


class SessionState(BaseModel):
    """
    Mutable state of the current attempt.

    Attributes:
        answers:                {question.id: option index | free text}
        current_question_index: 0-based index into the working question list.
        remaining_seconds:      countdown value, never negative.
        phase:                  state machine position.
        started_at:             set once when the attempt enters RUNNING.
        flagged:                question ids marked for review.
        confirm_pending:        submit confirmation dialog is open.
    """

    answers: Dict[str, AnswerValue] = Field(default_factory=dict)
    current_question_index: int = Field(default=0, ge=0)
    remaining_seconds: int = Field(default=0, ge=0)
    phase: Phase = Phase.LOADING
    started_at: Optional[datetime] = None
    flagged: Set[str] = Field(default_factory=set)
    confirm_pending: bool = False
    error: Optional[str] = None

    model_config = ConfigDict(validate_assignment=True)

    @property
    def answered_count(self) -> int:
        return sum(1 for v in self.answers.values() if is_answered(v))


class ProgressSnapshot(BaseModel):
    """
    Auto-saved progress, stored locally under `test_{testId}_progress`.

    Not a system of record: it may be stale or missing at any time.
    """

    model_config = ConfigDict(populate_by_name=True)

    answers: Dict[str, AnswerValue] = Field(default_factory=dict)
    current_question: int = Field(default=0, ge=0, alias="currentQuestion")
    time_remaining: int = Field(default=0, ge=0, alias="timeRemaining")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    # working order the answers were given in, so option indices survive a reload
    question_order: List[str] = Field(default_factory=list, alias="questionOrder")
    option_order: Dict[str, List[str]] = Field(default_factory=dict, alias="optionOrder")


class OutcomeKind(str, Enum):
    VIEW_RESULT = "view_result"
    PENDING_GRADING = "pending_grading"


class SubmissionOutcome(BaseModel):
    """What the UI should do after the server acknowledged a submission."""

    kind: OutcomeKind
    submission_id: Optional[str] = None
    needs_manual_grading: bool = False
    redirect_path: str
    message: str = ""


class SubmitSummary(BaseModel):
    """Figures shown in the submit confirmation dialog."""

    answered: int
    unanswered: int
    total: int
    allow_retake: bool

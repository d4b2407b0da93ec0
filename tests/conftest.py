"""
Shared fixtures: a fake school server behind httpx.MockTransport, manual
timers, a controllable clock and a snapshot store in tmp_path.
"""
import json
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional

import httpx
import pytest

from school_cbt.services.progress_store import ProgressStore
from school_cbt.services.session_controller import SessionController
from school_cbt.services.test_api import SchoolApiClient

BASE_URL = "http://school.test/api/protected/students"


def make_objective(qid: str, options=None, correct: Optional[int] = 0, marks: float = 1) -> Dict:
    return {
        "id": qid,
        "type": "objective",
        "question": f"Question {qid}?",
        "options": options or [f"{qid}-A", f"{qid}-B", f"{qid}-C", f"{qid}-D"],
        "correctAnswer": correct,
        "marks": marks,
    }


def make_theory(qid: str, marks: float = 5) -> Dict:
    return {"id": qid, "type": "theory", "question": f"Explain {qid}.", "marks": marks}


def make_test_payload(
    test_id: str = "t1",
    questions: Optional[List[Dict]] = None,
    duration: float = 10,
    shuffle_questions: bool = False,
    shuffle_options: bool = False,
    allow_retake: bool = False,
    show_results_immediately: bool = True,
    my_submission: Optional[Dict] = None,
) -> Dict:
    """Test document in the shape GET /tests/{id} returns it."""
    if questions is None:
        questions = [make_objective(f"q{i}") for i in range(1, 5)]
    return {
        "id": test_id,
        "title": "Biology Mid-Term",
        "subject": {"id": "s1", "name": "Biology", "code": "BIO"},
        "instructions": "Answer all questions.",
        "maxScore": 40,
        "teacherName": "Ada Obi",
        "testConfig": {
            "duration": duration,
            "shuffleQuestions": shuffle_questions,
            "shuffleOptions": shuffle_options,
            "allowRetake": allow_retake,
            "showResultsImmediately": show_results_immediately,
            "questions": questions,
        },
        "mySubmission": my_submission,
    }


class FakeSchoolServer:
    """
    Request handler for httpx.MockTransport.

    Serves `tests` by id and records every submission body. `on_submit`
    runs inside the submit request (e.g. to advance the clock).
    """

    def __init__(self, tests: Optional[Dict[str, Dict]] = None):
        self.tests = tests or {}
        self.submissions: List[Dict] = []
        self.submit_status = 200
        self.submit_body: Dict = {"success": True, "submission": {"id": "sub-1", "needsManualGrading": False}}
        self.submit_error: Optional[Exception] = None
        self.fetch_error: Optional[Exception] = None
        self.on_submit: Optional[Callable[[], None]] = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if request.method == "POST" and path.endswith("/tests/submit"):
            self.submissions.append(json.loads(request.content))
            if self.on_submit is not None:
                self.on_submit()
            if self.submit_error is not None:
                raise self.submit_error
            return httpx.Response(self.submit_status, json=self.submit_body)

        if request.method == "GET" and "/tests/" in path:
            if self.fetch_error is not None:
                raise self.fetch_error
            test_id = path.rsplit("/", 1)[-1]
            test = self.tests.get(test_id)
            if test is None:
                return httpx.Response(404, json={"success": False, "error": "Test not found"})
            return httpx.Response(200, json={"success": True, "data": {"test": test}})

        return httpx.Response(404, json={"success": False, "error": "no route"})


class FakeTimer:
    """Timer that only fires when the test calls fire()."""

    def __init__(self, interval: float, callback: Callable[[], None], name: str):
        self.interval = interval
        self.callback = callback
        self.name = name
        self.started = False
        self.cancelled = False

    def start(self) -> None:
        self.started = True

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self, times: int = 1) -> None:
        for _ in range(times):
            if self.cancelled:
                return
            self.callback()


class FakeTimerFactory:
    def __init__(self):
        self.created: List[FakeTimer] = []

    def __call__(self, interval, callback, name) -> FakeTimer:
        timer = FakeTimer(interval, callback, name)
        self.created.append(timer)
        return timer

    def latest(self, name: str) -> FakeTimer:
        return [t for t in self.created if t.name == name][-1]

    @property
    def active(self) -> List[FakeTimer]:
        return [t for t in self.created if t.started and not t.cancelled]


class FakeClock:
    def __init__(self, start: Optional[datetime] = None):
        self.now = start or datetime(2026, 3, 2, 9, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def server() -> FakeSchoolServer:
    return FakeSchoolServer({"t1": make_test_payload()})


@pytest.fixture
def api(server):
    client = httpx.Client(base_url=BASE_URL, transport=httpx.MockTransport(server.handler))
    with SchoolApiClient(client=client) as api_client:
        yield api_client
    client.close()


@pytest.fixture
def store(tmp_path) -> ProgressStore:
    return ProgressStore(str(tmp_path / "progress"))


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def timers() -> FakeTimerFactory:
    return FakeTimerFactory()


@pytest.fixture
def notices() -> List[str]:
    return []


@pytest.fixture
def make_controller(api, store, clock, timers, notices):
    """Factory for controllers wired to the fakes; keyword args override."""
    created = []

    def _make(**overrides) -> SessionController:
        kwargs = dict(
            api=api,
            store=store,
            notify=notices.append,
            clock=clock,
            timer_factory=timers,
        )
        kwargs.update(overrides)
        controller = SessionController(**kwargs)
        created.append(controller)
        return controller

    yield _make
    for controller in created:
        controller.close()


@pytest.fixture
def running(make_controller, server):
    """Controller with t1 loaded and started fresh."""
    controller = make_controller()
    controller.load_test("t1")
    controller.start_test(resume=False)
    return controller

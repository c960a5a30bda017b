# tests/conftest.py

import copy
import itertools

import pytest

from lecture_quiz.core.models import ParticipantDetails, Question, Quiz
from lecture_quiz.core.services.quiz_store import QuizNotFoundError, QuizStoreError


class FakeTimer:
    def __init__(self, due, interval, callback, seq):
        self.due = due
        self.interval = interval
        self.callback = callback
        self.seq = seq
        self.cancelled = False

    def cancel(self):
        self.cancelled = True

    @property
    def active(self):
        return not self.cancelled


class FakeScheduler:
    """Virtual clock: timers only fire inside advance()."""

    def __init__(self):
        self.now = 0.0
        self._timers = []
        self._seq = itertools.count()

    def call_later(self, delay_seconds, callback):
        timer = FakeTimer(self.now + delay_seconds, None, callback, next(self._seq))
        self._timers.append(timer)
        return timer

    def call_every(self, interval_seconds, callback):
        timer = FakeTimer(self.now + interval_seconds, interval_seconds, callback, next(self._seq))
        self._timers.append(timer)
        return timer

    def advance(self, seconds):
        target = self.now + seconds
        while True:
            due = [t for t in self._timers if t.active and t.due <= target]
            if not due:
                break
            timer = min(due, key=lambda t: (t.due, t.seq))
            self.now = timer.due
            if timer.interval is None:
                timer.cancel()
            else:
                timer.due += timer.interval
            timer.callback()
        self.now = target

    @property
    def pending(self):
        return [t for t in self._timers if t.active]


class RecordingGateway:
    def __init__(self, quiz=None):
        self.quiz = quiz
        self.submissions = []

    def fetch_quiz(self, quiz_id):
        if self.quiz is None or self.quiz.id != quiz_id:
            raise QuizNotFoundError(f"Quiz {quiz_id} not found")
        return copy.deepcopy(self.quiz)

    def submit_result(self, record):
        self.submissions.append(record)
        return record


class FailingGateway(RecordingGateway):
    def submit_result(self, record):
        self.submissions.append(record)
        raise QuizStoreError("disk full")


def build_quiz(question_count=3, time_limit_minutes=None, is_active=True, quiz_id=1):
    questions = [
        Question(
            id=index + 1,
            text=f"Question {index + 1}?",
            options=[f"q{index}-a", f"q{index}-b", f"q{index}-c", f"q{index}-d"],
            correct_answer=f"q{index}-a",
            explanation=f"Because q{index}-a.",
            order=index,
        )
        for index in range(question_count)
    ]
    return Quiz(
        id=quiz_id,
        title="Networks 101",
        description="Week 3 check",
        questions=questions,
        time_limit_minutes=time_limit_minutes,
        is_active=is_active,
    )


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def participant():
    return ParticipantDetails(
        name="Sita Sharma",
        email="sita@example.com",
        roll_number="077BCT045",
        faculty="BCT",
        year="2077",
    )

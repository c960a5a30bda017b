"""State machine for one participant's attempt at one quiz."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from enum import Enum
import logging
from typing import Callable, Protocol

from lecture_quiz.constants.quiz_constants import REQUIRED_PARTICIPANT_FIELDS
from lecture_quiz.constants.ui_constants import (
    AUTO_SUBMITTED_MESSAGE,
    CORRECT_ANSWER_MESSAGE,
    FILL_ALL_DETAILS_MESSAGE,
    INCORRECT_ANSWER_MESSAGE,
    PREVIEW_COMPLETED_MESSAGE,
    RETURN_WARNING_MESSAGE,
    SUBMISSION_FAILED_MESSAGE,
    SUBMISSION_SAVED_MESSAGE,
    TIME_UP_MESSAGE,
)
from lecture_quiz.core.models import (
    ParticipantDetails,
    Phase,
    Question,
    Quiz,
    SubmissionRecord,
    SubmissionStatus,
    SubmissionType,
)
from lecture_quiz.core.scheduling import Scheduler
from lecture_quiz.core.scoring import (
    build_submission_record,
    format_time,
    is_answer_correct,
    is_time_urgent,
    resolve_submission_type,
)
from lecture_quiz.core.services.countdown import Countdown
from lecture_quiz.core.services.integrity_monitor import IntegrityMonitor
from lecture_quiz.core.services.quiz_store import QuizStoreError
from lecture_quiz.core.session_events import (
    Advance,
    BeginEntry,
    CountdownTick,
    ForceSubmit,
    GraceExpired,
    QuizLoaded,
    SelectOption,
    SessionEvent,
    SubmitAnswer,
    VisibilityChanged,
)

logger = logging.getLogger(__name__)


class QuizGateway(Protocol):
    """The two quiz store operations a session needs."""

    def fetch_quiz(self, quiz_id: int) -> Quiz:
        ...

    def submit_result(self, record: SubmissionRecord) -> SubmissionRecord:
        ...


class QuizFetchError(RuntimeError):
    """Raised when the quiz for a new session cannot be loaded."""


class EntryValidationError(ValueError):
    """Raised when required participant details are missing."""

    def __init__(self, missing_fields: list[str]) -> None:
        super().__init__(f"Missing required details: {', '.join(missing_fields)}")
        self.missing_fields = missing_fields


class NoticeLevel(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class Notice:
    """Transient message for the participant (toast-style)."""

    level: NoticeLevel
    message: str


@dataclass(slots=True)
class SessionState:
    """Mutable state owned exclusively by a QuizSessionController."""

    phase: Phase = Phase.LOADING
    quiz: Quiz | None = None
    question_index: int = 0
    selected_answer: str | None = None
    answered: bool = False
    score: int = 0
    time_remaining_seconds: int | None = None
    integrity_flag: bool = False
    is_hidden: bool = False
    participant: ParticipantDetails = field(default_factory=ParticipantDetails)
    submission_type: SubmissionType | None = None
    submission_status: SubmissionStatus | None = None
    submission: SubmissionRecord | None = None


@dataclass(frozen=True, slots=True)
class SessionSnapshot:
    """Read-only reflection of a session for the presentation layer."""

    phase: Phase
    quiz_id: int | None
    quiz_title: str
    privileged: bool
    question_index: int
    total_questions: int
    current_question: Question | None
    selected_answer: str | None
    answered: bool
    score: int
    time_remaining_seconds: int | None
    integrity_flag: bool
    participant: ParticipantDetails
    submission_type: SubmissionType | None
    submission_status: SubmissionStatus | None

    @property
    def is_last_question(self) -> bool:
        return self.question_index >= self.total_questions - 1

    @property
    def formatted_time(self) -> str | None:
        if self.time_remaining_seconds is None:
            return None
        return format_time(self.time_remaining_seconds)

    @property
    def is_time_urgent(self) -> bool:
        return is_time_urgent(self.time_remaining_seconds)


class QuizSessionController:
    """Drives a quiz attempt from loading to exactly one submission.

    All input arrives as :mod:`session_events` values through :meth:`dispatch`.
    Intent helpers such as :meth:`submit_answer` are thin wrappers. Events
    that arrive while another event is being handled (for example from a
    listener callback) are queued and handled afterwards in arrival order.

    Privileged sessions (instructor previews) skip the entry requirements and
    the countdown, and never send a submission to the store.
    """

    def __init__(
        self,
        gateway: QuizGateway,
        scheduler: Scheduler,
        *,
        privileged: bool = False,
        on_change: Callable[[SessionSnapshot], None] | None = None,
        on_notice: Callable[[Notice], None] | None = None,
    ) -> None:
        self._gateway = gateway
        self._privileged = privileged
        self._on_change = on_change
        self._on_notice = on_notice
        self._state = SessionState()
        self._countdown = Countdown(scheduler, lambda: self.dispatch(CountdownTick()))
        self._monitor = IntegrityMonitor(
            scheduler, lambda generation: self.dispatch(GraceExpired(generation))
        )
        self._pending: deque[SessionEvent] = deque()
        self._dispatching: bool = False
        self._closed: bool = False
        self._handlers: dict[type, Callable[[SessionEvent], bool]] = {
            QuizLoaded: self._handle_quiz_loaded,
            BeginEntry: self._handle_begin_entry,
            SelectOption: self._handle_select_option,
            SubmitAnswer: self._handle_submit_answer,
            Advance: self._handle_advance,
            ForceSubmit: self._handle_force_submit,
            CountdownTick: self._handle_countdown_tick,
            VisibilityChanged: self._handle_visibility_changed,
            GraceExpired: self._handle_grace_expired,
        }

    @classmethod
    def open(
        cls,
        gateway: QuizGateway,
        quiz_id: int,
        scheduler: Scheduler,
        *,
        privileged: bool = False,
        on_change: Callable[[SessionSnapshot], None] | None = None,
        on_notice: Callable[[Notice], None] | None = None,
    ) -> "QuizSessionController":
        """Fetch the quiz and return a session past the loading phase."""
        try:
            quiz = gateway.fetch_quiz(quiz_id)
        except (QuizStoreError, LookupError) as exc:
            logger.error("Could not load quiz %s: %s", quiz_id, exc)
            raise QuizFetchError(f"Quiz {quiz_id} could not be loaded.") from exc
        controller = cls(
            gateway,
            scheduler,
            privileged=privileged,
            on_change=on_change,
            on_notice=on_notice,
        )
        controller.dispatch(QuizLoaded(quiz))
        return controller

    # --- Intents ---

    def begin_entry(self, details: ParticipantDetails | None = None) -> bool:
        return self.dispatch(BeginEntry(details or ParticipantDetails()))

    def select_option(self, value: str) -> bool:
        return self.dispatch(SelectOption(value))

    def submit_answer(self) -> bool:
        return self.dispatch(SubmitAnswer())

    def advance(self) -> bool:
        return self.dispatch(Advance())

    def force_submit(self, reason: SubmissionType = SubmissionType.MANUAL) -> bool:
        return self.dispatch(ForceSubmit(reason))

    def set_hidden(self, hidden: bool) -> bool:
        return self.dispatch(VisibilityChanged(hidden))

    def close(self) -> None:
        """Discard the session; pending timers never fire against it."""
        self._cancel_timers()
        self._pending.clear()
        self._closed = True

    # --- Queries ---

    @property
    def phase(self) -> Phase:
        return self._state.phase

    @property
    def privileged(self) -> bool:
        return self._privileged

    def snapshot(self) -> SessionSnapshot:
        state = self._state
        quiz = state.quiz
        questions = quiz.questions if quiz else []
        current = None
        if 0 <= state.question_index < len(questions):
            current = questions[state.question_index]
        return SessionSnapshot(
            phase=state.phase,
            quiz_id=quiz.id if quiz else None,
            quiz_title=quiz.title if quiz else "",
            privileged=self._privileged,
            question_index=state.question_index,
            total_questions=len(questions),
            current_question=current,
            selected_answer=state.selected_answer,
            answered=state.answered,
            score=state.score,
            time_remaining_seconds=state.time_remaining_seconds,
            integrity_flag=state.integrity_flag,
            participant=state.participant,
            submission_type=state.submission_type,
            submission_status=state.submission_status,
        )

    # --- Dispatch ---

    def dispatch(self, event: SessionEvent) -> bool:
        """Apply one event. Returns True if it changed the session."""
        if self._closed:
            return False
        if self._dispatching:
            self._pending.append(event)
            return False

        applied = False
        self._dispatching = True
        try:
            applied = self._apply(event)
        finally:
            self._dispatching = False
            if applied:
                self._publish()
            # Events queued by listeners run even when this one raised
            self._drain_pending()
        return applied

    def _drain_pending(self) -> None:
        while self._pending and not self._closed:
            self.dispatch(self._pending.popleft())

    def _apply(self, event: SessionEvent) -> bool:
        handler = self._handlers.get(type(event))
        if handler is None:
            raise TypeError(f"Unsupported session event: {event!r}")
        return handler(event)

    # --- Handlers ---

    def _handle_quiz_loaded(self, event: QuizLoaded) -> bool:
        if self._state.phase is not Phase.LOADING:
            return False
        self._state.quiz = event.quiz
        if not event.quiz.is_active and not self._privileged:
            self._transition(Phase.INACTIVE)
        else:
            self._transition(Phase.ENTRY_FORM)
        return True

    def _handle_begin_entry(self, event: BeginEntry) -> bool:
        state = self._state
        if state.phase is not Phase.ENTRY_FORM:
            return False
        details = event.details
        if not self._privileged:
            missing = [name for name in REQUIRED_PARTICIPANT_FIELDS if not getattr(details, name)]
            if missing:
                self._notify(NoticeLevel.ERROR, FILL_ALL_DETAILS_MESSAGE)
                raise EntryValidationError(missing)

        quiz = state.quiz
        state.participant = details
        self._transition(Phase.ACTIVE)
        if quiz.has_time_limit and not self._privileged:
            total_seconds = quiz.time_limit_minutes * 60
            state.time_remaining_seconds = total_seconds
            self._countdown.start(total_seconds)
        if state.is_hidden:
            self._monitor.arm()
        if not quiz.questions:
            self._complete(SubmissionType.MANUAL)
        return True

    def _handle_select_option(self, event: SelectOption) -> bool:
        state = self._state
        question = self._current_question()
        if state.phase is not Phase.ACTIVE or state.answered or question is None:
            return False
        if event.value not in question.options:
            return False
        state.selected_answer = event.value
        return True

    def _handle_submit_answer(self, event: SubmitAnswer) -> bool:
        state = self._state
        question = self._current_question()
        if state.phase is not Phase.ACTIVE or state.answered or question is None:
            return False
        if not state.selected_answer:
            return False
        if is_answer_correct(question, state.selected_answer):
            state.score += 1
            self._notify(NoticeLevel.SUCCESS, CORRECT_ANSWER_MESSAGE)
        else:
            self._notify(NoticeLevel.ERROR, INCORRECT_ANSWER_MESSAGE)
        state.answered = True
        return True

    def _handle_advance(self, event: Advance) -> bool:
        state = self._state
        if state.phase is not Phase.ACTIVE or not state.answered:
            return False
        if state.question_index < len(state.quiz.questions) - 1:
            state.question_index += 1
            state.selected_answer = None
            state.answered = False
            return True
        return self._complete(SubmissionType.MANUAL)

    def _handle_force_submit(self, event: ForceSubmit) -> bool:
        if self._state.phase is not Phase.ACTIVE:
            return False
        return self._complete(event.reason)

    def _handle_countdown_tick(self, event: CountdownTick) -> bool:
        state = self._state
        if state.phase is not Phase.ACTIVE or not self._countdown.running:
            return False
        state.time_remaining_seconds = self._countdown.tick()
        if self._countdown.expired:
            logger.warning("Time limit reached for quiz %s", state.quiz.id)
            self._notify(NoticeLevel.WARNING, TIME_UP_MESSAGE)
            self._complete(SubmissionType.TIMEOUT)
        return True

    def _handle_visibility_changed(self, event: VisibilityChanged) -> bool:
        state = self._state
        if state.is_hidden == event.hidden:
            return False
        state.is_hidden = event.hidden
        if state.phase is not Phase.ACTIVE:
            return True
        if event.hidden:
            if self._monitor.arm():
                self._notify(NoticeLevel.WARNING, RETURN_WARNING_MESSAGE)
        else:
            self._monitor.disarm()
        return True

    def _handle_grace_expired(self, event: GraceExpired) -> bool:
        state = self._state
        if state.phase is not Phase.ACTIVE:
            return False
        if not self._monitor.confirm(event.generation) or not state.is_hidden:
            return False
        logger.warning("Integrity breach detected for quiz %s", state.quiz.id)
        state.integrity_flag = True
        self._notify(NoticeLevel.ERROR, AUTO_SUBMITTED_MESSAGE)
        self._complete(SubmissionType.TIMEOUT)
        return True

    # --- Terminal transition ---

    def _complete(self, trigger: SubmissionType) -> bool:
        """Leave the active phase and submit. Only the first call has effect."""
        state = self._state
        if state.phase is Phase.COMPLETED:
            return False
        self._cancel_timers()
        state.submission_type = resolve_submission_type(trigger, state.is_hidden)
        self._transition(Phase.COMPLETED)

        if self._privileged:
            state.submission_status = SubmissionStatus.SKIPPED
            self._notify(NoticeLevel.INFO, PREVIEW_COMPLETED_MESSAGE)
            return True

        record = build_submission_record(
            quiz=state.quiz,
            participant=state.participant,
            score=state.score,
            trigger=trigger,
            integrity_flag=state.integrity_flag,
            is_hidden=state.is_hidden,
        )
        state.submission_status = SubmissionStatus.PENDING
        try:
            state.submission = self._gateway.submit_result(record)
        except QuizStoreError as exc:
            logger.error("Submission for quiz %s failed: %s", record.quiz_id, exc)
            state.submission_status = SubmissionStatus.FAILED
            self._notify(NoticeLevel.ERROR, SUBMISSION_FAILED_MESSAGE)
        except Exception:
            logger.exception("Unexpected error submitting quiz %s", record.quiz_id)
            state.submission_status = SubmissionStatus.FAILED
            self._notify(NoticeLevel.ERROR, SUBMISSION_FAILED_MESSAGE)
        else:
            state.submission_status = SubmissionStatus.SAVED
            self._notify(NoticeLevel.SUCCESS, SUBMISSION_SAVED_MESSAGE)
        return True

    # --- Helpers ---

    def _current_question(self) -> Question | None:
        quiz = self._state.quiz
        if quiz is None or not 0 <= self._state.question_index < len(quiz.questions):
            return None
        return quiz.questions[self._state.question_index]

    def _transition(self, phase: Phase) -> None:
        logger.info("Quiz session phase %s -> %s", self._state.phase.value, phase.value)
        self._state.phase = phase

    def _cancel_timers(self) -> None:
        self._countdown.cancel()
        self._monitor.disarm()

    def _notify(self, level: NoticeLevel, message: str) -> None:
        if self._on_notice is not None:
            self._on_notice(Notice(level=level, message=message))

    def _publish(self) -> None:
        if self._on_change is not None:
            self._on_change(self.snapshot())

# tests/test_quiz_session.py

import pytest

from conftest import FailingGateway, RecordingGateway, build_quiz
from lecture_quiz.constants.ui_constants import (
    AUTO_SUBMITTED_MESSAGE,
    FILL_ALL_DETAILS_MESSAGE,
    PREVIEW_COMPLETED_MESSAGE,
    RETURN_WARNING_MESSAGE,
    SUBMISSION_FAILED_MESSAGE,
)
from lecture_quiz.core.models import ParticipantDetails, Phase, SubmissionStatus, SubmissionType
from lecture_quiz.core.services.quiz_session import (
    EntryValidationError,
    NoticeLevel,
    QuizFetchError,
    QuizSessionController,
)


def open_session(scheduler, quiz, privileged=False, gateway=None):
    gateway = gateway or RecordingGateway(quiz)
    notices = []
    snapshots = []
    controller = QuizSessionController.open(
        gateway,
        quiz.id,
        scheduler,
        privileged=privileged,
        on_change=snapshots.append,
        on_notice=notices.append,
    )
    return controller, gateway, notices, snapshots


def answer(controller, value):
    controller.select_option(value)
    controller.submit_answer()
    controller.advance()


# --- Loading and entry ---


def test_active_quiz_opens_on_entry_form(scheduler):
    controller, _, _, _ = open_session(scheduler, build_quiz())
    assert controller.phase is Phase.ENTRY_FORM


def test_inactive_quiz_is_absorbing_for_students(scheduler, participant):
    controller, gateway, _, _ = open_session(scheduler, build_quiz(is_active=False))

    assert controller.phase is Phase.INACTIVE
    assert controller.begin_entry(participant) is False
    assert controller.phase is Phase.INACTIVE
    assert gateway.submissions == []


def test_privileged_actor_can_preview_inactive_quiz(scheduler):
    controller, _, _, _ = open_session(scheduler, build_quiz(is_active=False), privileged=True)
    assert controller.phase is Phase.ENTRY_FORM


def test_fetch_failure_raises_before_a_session_exists(scheduler):
    gateway = RecordingGateway(None)
    with pytest.raises(QuizFetchError):
        QuizSessionController.open(gateway, 42, scheduler)


def test_missing_details_block_start(scheduler, participant):
    controller, _, notices, snapshots = open_session(scheduler, build_quiz())
    participant.roll_number = ""
    published = len(snapshots)

    with pytest.raises(EntryValidationError) as excinfo:
        controller.begin_entry(participant)

    assert excinfo.value.missing_fields == ["roll_number"]
    assert controller.phase is Phase.ENTRY_FORM
    assert len(snapshots) == published
    assert notices[-1].level is NoticeLevel.ERROR
    assert notices[-1].message == FILL_ALL_DETAILS_MESSAGE


def test_events_raised_by_error_notice_still_apply(scheduler, participant):
    snapshots = []
    holder = {}

    def on_notice(notice):
        if notice.message == FILL_ALL_DETAILS_MESSAGE:
            holder["controller"].set_hidden(True)

    controller = QuizSessionController.open(
        RecordingGateway(build_quiz()),
        1,
        scheduler,
        on_change=snapshots.append,
        on_notice=on_notice,
    )
    holder["controller"] = controller
    participant.faculty = ""
    published = len(snapshots)

    with pytest.raises(EntryValidationError):
        controller.begin_entry(participant)

    assert len(snapshots) == published + 1
    participant.faculty = "BCT"
    controller.begin_entry(participant)
    assert len(scheduler.pending) == 1


def test_email_is_not_required_to_start(scheduler, participant):
    controller, _, _, _ = open_session(scheduler, build_quiz())
    participant.email = ""

    assert controller.begin_entry(participant) is True
    assert controller.phase is Phase.ACTIVE


def test_start_publishes_active_snapshot(scheduler, participant):
    controller, _, _, snapshots = open_session(scheduler, build_quiz())
    controller.begin_entry(participant)

    snapshot = snapshots[-1]
    assert snapshot.phase is Phase.ACTIVE
    assert snapshot.question_index == 0
    assert snapshot.total_questions == 3
    assert snapshot.current_question.text == "Question 1?"
    assert snapshot.time_remaining_seconds is None
    assert snapshot.participant.name == "Sita Sharma"


# --- Answering ---


def test_manual_run_scores_correct_answers(scheduler, participant):
    controller, gateway, _, _ = open_session(scheduler, build_quiz(question_count=3))
    controller.begin_entry(participant)

    answer(controller, "q0-a")
    answer(controller, "q1-c")
    answer(controller, "q2-a")

    assert controller.phase is Phase.COMPLETED
    snapshot = controller.snapshot()
    assert snapshot.score == 2
    assert snapshot.submission_type is SubmissionType.MANUAL
    assert snapshot.submission_status is SubmissionStatus.SAVED

    assert len(gateway.submissions) == 1
    record = gateway.submissions[0]
    assert record.score == 2
    assert record.total_questions == 3
    assert record.submission_type is SubmissionType.MANUAL
    assert record.is_cheated is False
    assert record.student_email == "sita@example.com"
    assert record.roll_number == "077BCT045"


@pytest.mark.parametrize("question_count", [1, 2, 5])
def test_score_never_exceeds_question_count(scheduler, participant, question_count):
    controller, gateway, _, _ = open_session(scheduler, build_quiz(question_count=question_count))
    controller.begin_entry(participant)

    for index in range(question_count):
        controller.select_option(f"q{index}-a")
        controller.submit_answer()
        controller.submit_answer()
        controller.advance()

    assert controller.snapshot().score == question_count
    assert gateway.submissions[0].score == question_count


def test_selecting_never_scores_or_advances(scheduler, participant):
    controller, _, _, _ = open_session(scheduler, build_quiz())
    controller.begin_entry(participant)

    assert controller.select_option("q0-a") is True
    assert controller.select_option("q0-b") is True
    snapshot = controller.snapshot()
    assert snapshot.selected_answer == "q0-b"
    assert snapshot.score == 0
    assert snapshot.answered is False
    assert snapshot.question_index == 0


def test_advance_requires_answered_question(scheduler, participant):
    controller, _, _, _ = open_session(scheduler, build_quiz())
    controller.begin_entry(participant)

    assert controller.advance() is False
    controller.select_option("q0-a")
    assert controller.advance() is False
    controller.submit_answer()
    assert controller.advance() is True

    snapshot = controller.snapshot()
    assert snapshot.question_index == 1
    assert snapshot.selected_answer is None
    assert snapshot.answered is False


def test_submit_requires_selection(scheduler, participant):
    controller, _, notices, _ = open_session(scheduler, build_quiz())
    controller.begin_entry(participant)

    assert controller.submit_answer() is False
    assert controller.snapshot().answered is False
    assert notices == []


def test_unknown_option_is_ignored(scheduler, participant):
    controller, _, _, _ = open_session(scheduler, build_quiz())
    controller.begin_entry(participant)

    assert controller.select_option("not an option") is False
    assert controller.snapshot().selected_answer is None


def test_selection_locked_after_answer(scheduler, participant):
    controller, _, notices, _ = open_session(scheduler, build_quiz())
    controller.begin_entry(participant)
    controller.select_option("q0-b")
    controller.submit_answer()

    assert controller.select_option("q0-a") is False
    assert controller.snapshot().selected_answer == "q0-b"
    assert notices[-1].level is NoticeLevel.ERROR


def test_quiz_without_questions_completes_immediately(scheduler, participant):
    controller, gateway, _, _ = open_session(scheduler, build_quiz(question_count=0))
    controller.begin_entry(participant)

    assert controller.phase is Phase.COMPLETED
    assert gateway.submissions[0].total_questions == 0
    assert gateway.submissions[0].submission_type is SubmissionType.MANUAL


# --- Countdown ---


def test_countdown_expires_at_time_limit(scheduler, participant):
    controller, gateway, notices, _ = open_session(scheduler, build_quiz(time_limit_minutes=1))
    controller.begin_entry(participant)
    assert controller.snapshot().time_remaining_seconds == 60

    scheduler.advance(59)
    assert controller.phase is Phase.ACTIVE
    assert controller.snapshot().time_remaining_seconds == 1

    scheduler.advance(1)
    assert controller.phase is Phase.COMPLETED
    assert controller.snapshot().time_remaining_seconds == 0
    assert scheduler.pending == []

    record = gateway.submissions[0]
    assert record.score == 0
    assert record.submission_type is SubmissionType.TIMEOUT
    assert record.is_cheated is False
    assert any(notice.level is NoticeLevel.WARNING for notice in notices)


def test_countdown_display_helpers(scheduler, participant):
    controller, _, _, _ = open_session(scheduler, build_quiz(time_limit_minutes=1))
    controller.begin_entry(participant)

    snapshot = controller.snapshot()
    assert snapshot.formatted_time == "1:00"
    assert snapshot.is_time_urgent is False

    scheduler.advance(1)
    snapshot = controller.snapshot()
    assert snapshot.formatted_time == "0:59"
    assert snapshot.is_time_urgent is True


def test_timeout_while_hidden_is_reported_as_blur(scheduler, participant):
    controller, gateway, _, _ = open_session(scheduler, build_quiz(time_limit_minutes=1))
    controller.begin_entry(participant)

    scheduler.advance(57)
    controller.set_hidden(True)
    scheduler.advance(3)

    snapshot = controller.snapshot()
    assert snapshot.phase is Phase.COMPLETED
    assert snapshot.integrity_flag is False
    record = gateway.submissions[0]
    assert record.submission_type is SubmissionType.BLUR
    assert record.is_cheated is True


def test_manual_completion_cancels_all_timers(scheduler, participant):
    controller, gateway, _, _ = open_session(
        scheduler, build_quiz(question_count=1, time_limit_minutes=1)
    )
    controller.begin_entry(participant)
    scheduler.advance(10)
    controller.set_hidden(True)
    controller.set_hidden(False)
    answer(controller, "q0-a")

    assert controller.phase is Phase.COMPLETED
    assert scheduler.pending == []

    scheduler.advance(120)
    assert len(gateway.submissions) == 1
    assert gateway.submissions[0].submission_type is SubmissionType.MANUAL


# --- Integrity monitor ---


def test_short_absence_leaves_no_flag(scheduler, participant):
    controller, gateway, notices, _ = open_session(scheduler, build_quiz())
    controller.begin_entry(participant)

    controller.set_hidden(True)
    scheduler.advance(4)
    controller.set_hidden(False)
    scheduler.advance(10)

    assert controller.phase is Phase.ACTIVE
    assert controller.snapshot().integrity_flag is False
    assert gateway.submissions == []
    assert notices[-1].message == RETURN_WARNING_MESSAGE


def test_sustained_absence_forces_blur_submission(scheduler, participant):
    controller, gateway, notices, _ = open_session(scheduler, build_quiz())
    controller.begin_entry(participant)
    answer(controller, "q0-a")

    controller.set_hidden(True)
    scheduler.advance(5)

    snapshot = controller.snapshot()
    assert snapshot.phase is Phase.COMPLETED
    assert snapshot.integrity_flag is True
    assert snapshot.submission_type is SubmissionType.BLUR

    record = gateway.submissions[0]
    assert record.score == 1
    assert record.is_cheated is True
    assert record.submission_type is SubmissionType.BLUR
    assert AUTO_SUBMITTED_MESSAGE in [notice.message for notice in notices]


def test_monitor_rearms_after_cancelled_grace_period(scheduler, participant):
    controller, gateway, notices, _ = open_session(scheduler, build_quiz())
    controller.begin_entry(participant)

    controller.set_hidden(True)
    scheduler.advance(4)
    controller.set_hidden(False)
    scheduler.advance(10)
    controller.set_hidden(True)
    scheduler.advance(4.5)
    assert controller.phase is Phase.ACTIVE

    scheduler.advance(0.5)
    assert controller.phase is Phase.COMPLETED
    assert len(gateway.submissions) == 1
    warnings = [notice for notice in notices if notice.message == RETURN_WARNING_MESSAGE]
    assert len(warnings) == 2


def test_hidden_before_start_arms_monitor_on_start(scheduler, participant):
    controller, gateway, _, _ = open_session(scheduler, build_quiz())
    controller.set_hidden(True)
    assert scheduler.pending == []

    controller.begin_entry(participant)
    scheduler.advance(5)

    assert controller.phase is Phase.COMPLETED
    assert gateway.submissions[0].submission_type is SubmissionType.BLUR


def test_repeated_hidden_events_do_not_restart_grace_period(scheduler, participant):
    controller, _, _, _ = open_session(scheduler, build_quiz())
    controller.begin_entry(participant)

    controller.set_hidden(True)
    scheduler.advance(3)
    assert controller.set_hidden(True) is False
    scheduler.advance(2)

    assert controller.phase is Phase.COMPLETED


def test_expiry_and_breach_in_same_tick_submit_once(scheduler, participant):
    controller, gateway, _, _ = open_session(scheduler, build_quiz(time_limit_minutes=1))
    controller.begin_entry(participant)

    scheduler.advance(55)
    controller.set_hidden(True)
    scheduler.advance(5)

    assert controller.phase is Phase.COMPLETED
    assert len(gateway.submissions) == 1
    assert gateway.submissions[0].submission_type is SubmissionType.BLUR

    scheduler.advance(30)
    assert controller.force_submit() is False
    assert len(gateway.submissions) == 1


# --- Terminal transition ---


def test_force_submit_only_while_active(scheduler, participant):
    controller, gateway, _, _ = open_session(scheduler, build_quiz())
    assert controller.force_submit() is False

    controller.begin_entry(participant)
    answer(controller, "q0-a")
    assert controller.force_submit() is True

    assert controller.phase is Phase.COMPLETED
    assert gateway.submissions[0].score == 1
    assert gateway.submissions[0].submission_type is SubmissionType.MANUAL


def test_dispatch_failure_keeps_completed_phase(scheduler, participant):
    quiz = build_quiz(question_count=1)
    controller, gateway, notices, _ = open_session(scheduler, quiz, gateway=FailingGateway(quiz))
    controller.begin_entry(participant)
    answer(controller, "q0-a")

    snapshot = controller.snapshot()
    assert snapshot.phase is Phase.COMPLETED
    assert snapshot.score == 1
    assert snapshot.submission_status is SubmissionStatus.FAILED
    assert len(gateway.submissions) == 1
    assert notices[-1].message == SUBMISSION_FAILED_MESSAGE


class BrokenGateway(RecordingGateway):
    def submit_result(self, record):
        self.submissions.append(record)
        raise RuntimeError("connection reset")


def test_unexpected_gateway_error_marks_submission_failed(scheduler, participant):
    quiz = build_quiz(question_count=1, time_limit_minutes=1)
    controller, gateway, notices, _ = open_session(scheduler, quiz, gateway=BrokenGateway(quiz))
    controller.begin_entry(participant)
    controller.select_option("q0-a")

    scheduler.advance(60)

    snapshot = controller.snapshot()
    assert snapshot.phase is Phase.COMPLETED
    assert snapshot.submission_status is SubmissionStatus.FAILED
    assert len(gateway.submissions) == 1
    assert notices[-1].message == SUBMISSION_FAILED_MESSAGE
    assert scheduler.pending == []


def test_privileged_preview_skips_countdown_and_submission(scheduler):
    controller, gateway, notices, _ = open_session(
        scheduler, build_quiz(question_count=1, time_limit_minutes=1), privileged=True
    )
    assert controller.begin_entry() is True
    assert controller.snapshot().time_remaining_seconds is None
    assert scheduler.pending == []

    answer(controller, "q0-a")

    snapshot = controller.snapshot()
    assert snapshot.phase is Phase.COMPLETED
    assert snapshot.score == 1
    assert snapshot.submission_status is SubmissionStatus.SKIPPED
    assert gateway.submissions == []
    assert notices[-1].message == PREVIEW_COMPLETED_MESSAGE


def test_events_raised_by_listeners_run_after_current_event(scheduler, participant):
    quiz = build_quiz()
    gateway = RecordingGateway(quiz)
    holder = {}

    def on_notice(notice):
        if notice.message == RETURN_WARNING_MESSAGE:
            assert holder["controller"].force_submit() is False

    controller = QuizSessionController.open(gateway, quiz.id, scheduler, on_notice=on_notice)
    holder["controller"] = controller
    controller.begin_entry(participant)
    controller.set_hidden(True)

    assert controller.phase is Phase.COMPLETED
    assert gateway.submissions[0].submission_type is SubmissionType.MANUAL
    assert scheduler.pending == []


def test_closed_session_ignores_timers_and_intents(scheduler, participant):
    controller, gateway, _, _ = open_session(scheduler, build_quiz(time_limit_minutes=1))
    controller.begin_entry(participant)
    controller.set_hidden(True)

    controller.close()
    scheduler.advance(120)

    assert scheduler.pending == []
    assert controller.phase is Phase.ACTIVE
    assert controller.force_submit() is False
    assert gateway.submissions == []


def test_entry_details_are_copied_into_submission(scheduler):
    controller, gateway, _, _ = open_session(scheduler, build_quiz(question_count=1))
    controller.begin_entry(
        ParticipantDetails(
            name="Ram", email="ram@example.com", roll_number="078BEI001", faculty="BEI", year="2078"
        )
    )
    answer(controller, "q0-d")

    record = gateway.submissions[0]
    assert (record.student_name, record.faculty, record.year) == ("Ram", "BEI", "2078")
    assert record.quiz_id == 1
    assert record.score == 0

"""Answer scoring, submission assembly and countdown display helpers.

Pure functions only; the session controller owns all state.
"""

from __future__ import annotations

from lecture_quiz.constants.quiz_constants import URGENT_TIME_THRESHOLD_SECONDS
from lecture_quiz.core.models import (
    ParticipantDetails,
    Question,
    Quiz,
    SubmissionRecord,
    SubmissionType,
)


def is_answer_correct(question: Question, selected_answer: str) -> bool:
    """Exact string comparison against the stored correct answer."""
    return selected_answer == question.correct_answer


def resolve_submission_type(trigger: SubmissionType, is_hidden: bool) -> SubmissionType:
    """A timeout that fires while the quiz is hidden is reported as ``blur``."""
    if trigger is SubmissionType.TIMEOUT and is_hidden:
        return SubmissionType.BLUR
    return trigger


def build_submission_record(
    quiz: Quiz,
    participant: ParticipantDetails,
    score: int,
    trigger: SubmissionType,
    integrity_flag: bool,
    is_hidden: bool,
) -> SubmissionRecord:
    """Assemble the record sent to the quiz store when a session completes.

    ``is_hidden`` is the visibility at submission time, not at trigger time.
    A plain timeout that happens while the window is hidden is therefore
    marked as cheated even if the grace period never elapsed.
    """
    hidden_timeout = trigger is SubmissionType.TIMEOUT and is_hidden
    return SubmissionRecord(
        quiz_id=quiz.id,
        student_name=participant.name,
        student_email=participant.email,
        roll_number=participant.roll_number,
        faculty=participant.faculty,
        year=participant.year,
        score=score,
        total_questions=len(quiz.questions),
        is_cheated=integrity_flag or hidden_timeout,
        submission_type=resolve_submission_type(trigger, is_hidden),
    )


def score_percentage(score: int, total_questions: int) -> int:
    if total_questions <= 0:
        return 0
    return round(score / total_questions * 100)


def format_time(seconds: int) -> str:
    """Render remaining time as ``m:ss``."""
    seconds = max(0, int(seconds))
    minutes, secs = divmod(seconds, 60)
    return f"{minutes}:{secs:02d}"


def is_time_urgent(seconds: int | None) -> bool:
    if seconds is None:
        return False
    return seconds < URGENT_TIME_THRESHOLD_SECONDS

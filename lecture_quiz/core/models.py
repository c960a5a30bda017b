"""Domain models for the lecture quiz application."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class Phase(str, Enum):
    """Discrete state of a quiz-taking session."""

    LOADING = "loading"
    INACTIVE = "inactive"
    ENTRY_FORM = "entry_form"
    ACTIVE = "active"
    COMPLETED = "completed"


class SubmissionType(str, Enum):
    """How a session reached the completed phase."""

    MANUAL = "manual"
    TIMEOUT = "timeout"
    BLUR = "blur"


class SubmissionStatus(str, Enum):
    """Outcome of the terminal submission side effect."""

    PENDING = "pending"
    SAVED = "saved"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(slots=True)
class Subject:
    """Grouping used by instructors to categorize quizzes."""

    id: int
    name: str
    description: str = ""
    created_at: datetime = field(default_factory=datetime.utcnow)


@dataclass(slots=True)
class Question:
    """Multiple-choice question with exactly four options."""

    id: int
    text: str
    options: list[str]
    correct_answer: str
    explanation: str
    order: int = 0


@dataclass(slots=True)
class Quiz:
    """A quiz and its ordered questions."""

    id: int
    title: str
    description: str = ""
    questions: list[Question] = field(default_factory=list)
    time_limit_minutes: int | None = None
    is_active: bool = False
    subject_id: int | None = None
    created_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def has_time_limit(self) -> bool:
        return bool(self.time_limit_minutes) and self.time_limit_minutes > 0


@dataclass(slots=True)
class ParticipantDetails:
    """Identity a student enters before starting a quiz."""

    name: str = ""
    email: str = ""
    roll_number: str = ""
    faculty: str = ""
    year: str = ""


@dataclass(slots=True)
class SubmissionRecord:
    """Terminal output of a session, persisted by the quiz store."""

    quiz_id: int
    student_name: str
    student_email: str
    roll_number: str
    faculty: str
    year: str
    score: int
    total_questions: int
    is_cheated: bool
    submission_type: SubmissionType
    id: int | None = None
    created_at: datetime | None = None


@dataclass(slots=True)
class QuizSummary:
    """Listing entry for the quiz overview."""

    id: int
    title: str
    description: str
    question_count: int
    is_active: bool
    subject_id: int | None = None


@dataclass(slots=True)
class SubmissionStats:
    """Aggregate view of the submissions recorded for one quiz."""

    quiz_id: int
    submission_count: int
    average_score: float
    average_percentage: float
    cheated_count: int
    type_counts: dict[str, int]

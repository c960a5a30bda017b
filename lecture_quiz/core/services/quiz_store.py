"""Durable storage for subjects, quizzes, questions and submissions."""

from __future__ import annotations

from contextlib import contextmanager
import logging
from pathlib import Path
from threading import Lock
from typing import Any, Iterator

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload, sessionmaker

from lecture_quiz.constants.quiz_constants import OPTIONS_PER_QUESTION
from lecture_quiz.core.models import (
    Question,
    Quiz,
    QuizSummary,
    Subject,
    SubmissionRecord,
    SubmissionStats,
    SubmissionType,
)
from lecture_quiz.core.services.database import (
    Base,
    QuestionRow,
    QuizRow,
    SubjectRow,
    SubmissionRow,
    create_store_engine,
)

logger = logging.getLogger(__name__)

_SUBMISSION_REQUIRED_FIELDS = (
    "student_name",
    "student_email",
    "roll_number",
    "faculty",
    "year",
)


class QuizStoreError(Exception):
    """Base class for quiz store failures."""


class QuizNotFoundError(QuizStoreError, LookupError):
    """Raised when a subject, quiz or question does not exist."""


class InvalidRecordError(QuizStoreError, ValueError):
    """Raised when submitted data fails validation."""


class QuizStore:
    """Thread-safe quiz store on SQLite.

    The FastAPI server thread and the Qt thread share one instance. Every
    public method runs in its own transaction, so a failed write leaves
    nothing behind. Quizzes handed out by :meth:`fetch_quiz` are detached
    snapshots with questions sorted by their ``order``.
    """

    def __init__(self, path: Path | None = None) -> None:
        self._lock = Lock()
        self._path = path
        try:
            if path is not None:
                path.parent.mkdir(parents=True, exist_ok=True)
            self._engine = create_store_engine(path)
            Base.metadata.create_all(self._engine)
        except (OSError, SQLAlchemyError) as exc:
            raise QuizStoreError(f"Could not open quiz store at {path or 'memory'}") from exc
        self._session_factory = sessionmaker(bind=self._engine, autoflush=False, expire_on_commit=False)
        if path is not None:
            logger.info("Using quiz store at %s", path)

    def close(self) -> None:
        self._engine.dispose()

    # --- Subjects ---

    def list_subjects(self) -> list[Subject]:
        with self._reading() as session:
            rows = session.scalars(select(SubjectRow).order_by(func.lower(SubjectRow.name)))
            return [_to_subject(row) for row in rows]

    def create_subject(self, name: str, description: str = "") -> Subject:
        with self._transaction() as session:
            cleaned = _require_text(name, "Name is required.")
            self._ensure_unique_subject_name(session, cleaned)
            row = SubjectRow(name=cleaned, description=description or "")
            session.add(row)
            session.flush()
            return _to_subject(row)

    def update_subject(self, subject_id: int, name: str, description: str = "") -> Subject:
        with self._transaction() as session:
            row = self._get_subject(session, subject_id)
            cleaned = _require_text(name, "Name is required.")
            self._ensure_unique_subject_name(session, cleaned, exclude_id=subject_id)
            row.name = cleaned
            row.description = description or ""
            session.flush()
            return _to_subject(row)

    def delete_subject(self, subject_id: int) -> None:
        """Delete a subject and leave its quizzes uncategorized."""
        with self._transaction() as session:
            session.delete(self._get_subject(session, subject_id))

    # --- Quizzes ---

    def list_quizzes(self, subject_id: int | None = None) -> list[QuizSummary]:
        with self._reading() as session:
            query = select(QuizRow).options(selectinload(QuizRow.questions)).order_by(QuizRow.id.desc())
            if subject_id is not None:
                query = query.where(QuizRow.subject_id == subject_id)
            return [
                QuizSummary(
                    id=row.id,
                    title=row.title,
                    description=row.description,
                    question_count=len(row.questions),
                    is_active=row.is_active,
                    subject_id=row.subject_id,
                )
                for row in session.scalars(query)
            ]

    def create_quiz(
        self,
        title: str,
        description: str = "",
        subject_id: int | None = None,
        time_limit_minutes: int | None = None,
        is_active: bool = False,
    ) -> Quiz:
        with self._transaction() as session:
            if subject_id is not None:
                self._get_subject(session, subject_id)
            row = QuizRow(
                title=_require_text(title, "Title is required."),
                description=description or "",
                subject_id=subject_id,
                time_limit_minutes=_normalize_time_limit(time_limit_minutes),
                is_active=is_active,
            )
            session.add(row)
            session.flush()
            logger.info("Created quiz %s (%s)", row.id, row.title)
            return _to_quiz(row)

    def fetch_quiz(self, quiz_id: int) -> Quiz:
        with self._reading() as session:
            return _to_quiz(self._get_quiz(session, quiz_id))

    def update_quiz(self, quiz_id: int, **changes: Any) -> Quiz:
        """Update quiz metadata (title, description, subject_id, time_limit_minutes, is_active)."""
        allowed = {"title", "description", "subject_id", "time_limit_minutes", "is_active"}
        unknown = set(changes) - allowed
        if unknown:
            raise InvalidRecordError(f"Unknown quiz fields: {', '.join(sorted(unknown))}")
        with self._transaction() as session:
            row = self._get_quiz(session, quiz_id)
            if "title" in changes:
                row.title = _require_text(changes["title"], "Title is required.")
            if "description" in changes:
                row.description = changes["description"] or ""
            if "subject_id" in changes:
                if changes["subject_id"] is not None:
                    self._get_subject(session, changes["subject_id"])
                row.subject_id = changes["subject_id"]
            if "time_limit_minutes" in changes:
                row.time_limit_minutes = _normalize_time_limit(changes["time_limit_minutes"])
            if "is_active" in changes:
                row.is_active = bool(changes["is_active"])
            session.flush()
            return _to_quiz(row)

    def set_quiz_active(self, quiz_id: int, is_active: bool) -> Quiz:
        quiz = self.update_quiz(quiz_id, is_active=is_active)
        logger.info("Quiz %s is now %s", quiz_id, "active" if is_active else "inactive")
        return quiz

    def delete_quiz(self, quiz_id: int) -> None:
        """Delete a quiz together with its questions and submissions."""
        with self._transaction() as session:
            session.delete(self._get_quiz(session, quiz_id))

    # --- Questions ---

    def add_question(
        self,
        quiz_id: int,
        text: str,
        options: list[str],
        correct_answer: str,
        explanation: str,
    ) -> Question:
        with self._transaction() as session:
            quiz = self._get_quiz(session, quiz_id)
            next_order = max((q.order for q in quiz.questions), default=-1) + 1
            row = QuestionRow(order=next_order)
            _apply_question(row, text, options, correct_answer, explanation)
            quiz.questions.append(row)
            session.flush()
            return _to_question(row)

    def update_question(
        self,
        question_id: int,
        text: str,
        options: list[str],
        correct_answer: str,
        explanation: str,
    ) -> Question:
        with self._transaction() as session:
            row = self._get_question(session, question_id)
            # ID and position stay as they are
            _apply_question(row, text, options, correct_answer, explanation)
            session.flush()
            return _to_question(row)

    def delete_question(self, question_id: int) -> None:
        with self._transaction() as session:
            session.delete(self._get_question(session, question_id))

    def reorder_question(self, question_id: int, direction: str) -> list[Question]:
        """Swap a question with its neighbour; ``direction`` is "up" or "down"."""
        if direction not in ("up", "down"):
            raise InvalidRecordError("Direction must be 'up' or 'down'.")
        with self._transaction() as session:
            quiz = self._get_question(session, question_id).quiz
            ordered = sorted(quiz.questions, key=lambda q: (q.order, q.id))
            position = next(i for i, q in enumerate(ordered) if q.id == question_id)
            neighbour = position - 1 if direction == "up" else position + 1
            if not 0 <= neighbour < len(ordered):
                edge = "top" if direction == "up" else "bottom"
                raise InvalidRecordError(f"Question is already at the {edge}.")
            current, other = ordered[position], ordered[neighbour]
            if current.order == other.order:
                # Duplicate orders: renumber, then swap
                for new_order, question in enumerate(ordered):
                    question.order = new_order
            current.order, other.order = other.order, current.order
            session.flush()
            return [_to_question(q) for q in sorted(quiz.questions, key=lambda q: q.order)]

    # --- Submissions ---

    def submit_result(self, record: SubmissionRecord) -> SubmissionRecord:
        missing = [name for name in _SUBMISSION_REQUIRED_FIELDS if not getattr(record, name)]
        with self._transaction() as session:
            self._get_quiz(session, record.quiz_id)
            if missing:
                raise InvalidRecordError(f"Missing required fields: {', '.join(missing)}")
            if record.score < 0 or record.total_questions < 0 or record.score > record.total_questions:
                raise InvalidRecordError("Score must be between 0 and the number of questions.")
            row = SubmissionRow(
                quiz_id=record.quiz_id,
                student_name=record.student_name,
                student_email=record.student_email,
                roll_number=record.roll_number,
                faculty=record.faculty,
                year=record.year,
                score=record.score,
                total_questions=record.total_questions,
                is_cheated=record.is_cheated,
                submission_type=SubmissionType(record.submission_type),
            )
            session.add(row)
            session.flush()
            logger.info(
                "Recorded %s submission %s for quiz %s (%s/%s)",
                row.submission_type.value,
                row.id,
                row.quiz_id,
                row.score,
                row.total_questions,
            )
            return _to_submission(row)

    def list_submissions(
        self,
        quiz_id: int | None = None,
        faculty: str | None = None,
        year: str | None = None,
    ) -> list[SubmissionRecord]:
        """Return matching submissions, newest first. ``"all"`` disables a filter."""
        query = select(SubmissionRow).order_by(SubmissionRow.created_at.desc(), SubmissionRow.id.desc())
        if quiz_id is not None:
            query = query.where(SubmissionRow.quiz_id == quiz_id)
        if faculty not in (None, "all"):
            query = query.where(SubmissionRow.faculty == faculty)
        if year not in (None, "all"):
            query = query.where(SubmissionRow.year == year)
        with self._reading() as session:
            return [_to_submission(row) for row in session.scalars(query)]

    def quiz_titles(self) -> dict[int, str]:
        with self._reading() as session:
            return {quiz_id: title for quiz_id, title in session.execute(select(QuizRow.id, QuizRow.title))}

    def submission_stats(self, quiz_id: int) -> SubmissionStats:
        with self._reading() as session:
            self._get_quiz(session, quiz_id)
            rows = session.scalars(select(SubmissionRow).where(SubmissionRow.quiz_id == quiz_id)).all()
            records = [_to_submission(row) for row in rows]
        count = len(records)
        type_counts = {kind.value: 0 for kind in SubmissionType}
        for record in records:
            type_counts[record.submission_type.value] += 1
        percentages = [
            record.score / record.total_questions * 100 for record in records if record.total_questions
        ]
        return SubmissionStats(
            quiz_id=quiz_id,
            submission_count=count,
            average_score=round(sum(r.score for r in records) / count, 2) if count else 0.0,
            average_percentage=round(sum(percentages) / len(percentages), 1) if percentages else 0.0,
            cheated_count=sum(1 for r in records if r.is_cheated),
            type_counts=type_counts,
        )

    # --- Sessions ---

    @contextmanager
    def _transaction(self) -> Iterator[Session]:
        """Run a unit of work; anything raised rolls the whole unit back."""
        with self._lock:
            session = self._session_factory()
            try:
                yield session
                session.commit()
            except SQLAlchemyError as exc:
                session.rollback()
                logger.error("Quiz store write failed: %s", exc)
                raise QuizStoreError("Could not write to the quiz store.") from exc
            except Exception:
                session.rollback()
                raise
            finally:
                session.close()

    @contextmanager
    def _reading(self) -> Iterator[Session]:
        with self._lock:
            session = self._session_factory()
            try:
                yield session
            except SQLAlchemyError as exc:
                raise QuizStoreError("Could not read from the quiz store.") from exc
            finally:
                session.close()

    # --- Lookups ---

    @staticmethod
    def _get_subject(session: Session, subject_id: int) -> SubjectRow:
        row = session.get(SubjectRow, subject_id)
        if row is None:
            raise QuizNotFoundError(f"Subject {subject_id} not found")
        return row

    @staticmethod
    def _get_quiz(session: Session, quiz_id: int) -> QuizRow:
        row = session.get(QuizRow, quiz_id)
        if row is None:
            raise QuizNotFoundError(f"Quiz {quiz_id} not found")
        return row

    @staticmethod
    def _get_question(session: Session, question_id: int) -> QuestionRow:
        row = session.get(QuestionRow, question_id)
        if row is None:
            raise QuizNotFoundError(f"Question {question_id} not found")
        return row

    @staticmethod
    def _ensure_unique_subject_name(session: Session, name: str, exclude_id: int | None = None) -> None:
        query = select(SubjectRow.id).where(func.lower(SubjectRow.name) == name.lower())
        if exclude_id is not None:
            query = query.where(SubjectRow.id != exclude_id)
        if session.scalar(query) is not None:
            raise InvalidRecordError(f"Subject '{name}' already exists.")


# --- Validation ---


def _apply_question(
    row: QuestionRow,
    text: str,
    options: list[str],
    correct_answer: str,
    explanation: str,
) -> None:
    """Validate question fields and copy them onto ``row``."""
    cleaned_options = _validate_options(options)
    cleaned_answer = (correct_answer or "").strip()
    if cleaned_answer not in cleaned_options:
        raise InvalidRecordError("Correct answer must match one of the options.")
    row.text = _require_text(text, "Question text must not be empty.")
    row.options = cleaned_options
    row.correct_answer = cleaned_answer
    row.explanation = _require_text(explanation, "Explanation must not be empty.")


def _require_text(value: str | None, message: str) -> str:
    cleaned = (value or "").strip()
    if not cleaned:
        raise InvalidRecordError(message)
    return cleaned


def _validate_options(options: list[str]) -> list[str]:
    if options is None or len(options) != OPTIONS_PER_QUESTION:
        raise InvalidRecordError("Each question must have exactly four options.")
    cleaned = [(option or "").strip() for option in options]
    if any(not option for option in cleaned):
        raise InvalidRecordError("Option text cannot be empty.")
    if len(set(cleaned)) != len(cleaned):
        raise InvalidRecordError("Options must be distinct.")
    return cleaned


def _normalize_time_limit(time_limit_minutes: int | None) -> int | None:
    if time_limit_minutes is None:
        return None
    if isinstance(time_limit_minutes, bool) or not isinstance(time_limit_minutes, int):
        raise InvalidRecordError("Time limit must be a whole number of minutes.")
    if time_limit_minutes < 0:
        raise InvalidRecordError("Time limit cannot be negative.")
    return time_limit_minutes or None


# --- Row conversion ---


def _to_subject(row: SubjectRow) -> Subject:
    return Subject(id=row.id, name=row.name, description=row.description, created_at=row.created_at)


def _to_question(row: QuestionRow) -> Question:
    return Question(
        id=row.id,
        text=row.text,
        options=list(row.options),
        correct_answer=row.correct_answer,
        explanation=row.explanation,
        order=row.order,
    )


def _to_quiz(row: QuizRow) -> Quiz:
    return Quiz(
        id=row.id,
        title=row.title,
        description=row.description,
        questions=[_to_question(q) for q in sorted(row.questions, key=lambda q: q.order)],
        time_limit_minutes=row.time_limit_minutes,
        is_active=row.is_active,
        subject_id=row.subject_id,
        created_at=row.created_at,
    )


def _to_submission(row: SubmissionRow) -> SubmissionRecord:
    return SubmissionRecord(
        quiz_id=row.quiz_id,
        student_name=row.student_name,
        student_email=row.student_email,
        roll_number=row.roll_number,
        faculty=row.faculty,
        year=row.year,
        score=row.score,
        total_questions=row.total_questions,
        is_cheated=row.is_cheated,
        submission_type=SubmissionType(row.submission_type),
        id=row.id,
        created_at=row.created_at,
    )

"""FastAPI server exposing the quiz store to instructors and quiz clients."""

from __future__ import annotations

from threading import Thread
from typing import Literal

from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
import uvicorn

from lecture_quiz.constants.about import APP_NAME, APP_VERSION
from lecture_quiz.constants.network_constants import API_LOG_LEVEL, DEFAULT_HOST, DEFAULT_PORT
from lecture_quiz.core.markdown_renderer import renderer
from lecture_quiz.core.models import Question, Quiz, Subject, SubmissionRecord, SubmissionType
from lecture_quiz.core.quiz_exporter import serialize_quiz
from lecture_quiz.core.quiz_importer import QuizImportError, parse_quiz_text, store_imported_quiz
from lecture_quiz.core.services.quiz_store import (
    InvalidRecordError,
    QuizNotFoundError,
    QuizStore,
)


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SubjectPayload(_CamelModel):
    """Payload schema for creating or renaming a subject."""

    name: str
    description: str = ""


class QuizCreatePayload(_CamelModel):
    """Payload schema for creating a quiz."""

    title: str
    description: str = ""
    subject_id: int | None = None
    time_limit: int | None = None
    is_active: bool = False


class QuizUpdatePayload(_CamelModel):
    """Partial update of quiz metadata; omitted fields are left unchanged."""

    title: str | None = None
    description: str | None = None
    subject_id: int | None = None
    time_limit: int | None = None
    is_active: bool | None = None


class QuizImportPayload(_CamelModel):
    """Quiz in the plain-text import format."""

    text: str
    is_active: bool = False


class QuestionPayload(_CamelModel):
    """Payload schema for adding or editing a question."""

    text: str
    options: list[str]
    correct_answer: str
    explanation: str


class ReorderPayload(_CamelModel):
    direction: Literal["up", "down"]


class SubmissionPayload(_CamelModel):
    """Payload schema for a finished quiz attempt."""

    quiz_id: int
    student_name: str
    student_email: str
    roll_number: str
    faculty: str
    year: str
    score: int
    total_questions: int
    is_cheated: bool = False
    submission_type: SubmissionType


def _subject_to_dict(subject: Subject) -> dict[str, object]:
    return {
        "id": subject.id,
        "name": subject.name,
        "description": subject.description,
        "createdAt": subject.created_at.isoformat(),
    }


def _question_to_dict(question: Question) -> dict[str, object]:
    return {
        "id": question.id,
        "text": question.text,
        "textHtml": renderer.render_fragment(question.text),
        "options": list(question.options),
        "correctAnswer": question.correct_answer,
        "explanation": question.explanation,
        "order": question.order,
    }


def _quiz_to_dict(quiz: Quiz) -> dict[str, object]:
    return {
        "id": quiz.id,
        "title": quiz.title,
        "description": quiz.description,
        "subjectId": quiz.subject_id,
        "timeLimit": quiz.time_limit_minutes,
        "isActive": quiz.is_active,
        "createdAt": quiz.created_at.isoformat(),
        "questions": [_question_to_dict(question) for question in quiz.questions],
    }


def _submission_to_dict(record: SubmissionRecord, quiz_title: str | None = None) -> dict[str, object]:
    return {
        "id": record.id,
        "quizId": record.quiz_id,
        "quizTitle": quiz_title,
        "studentName": record.student_name,
        "studentEmail": record.student_email,
        "rollNumber": record.roll_number,
        "faculty": record.faculty,
        "year": record.year,
        "score": record.score,
        "totalQuestions": record.total_questions,
        "isCheated": record.is_cheated,
        "submissionType": record.submission_type.value,
        "createdAt": record.created_at.isoformat() if record.created_at else None,
    }


def _get_store_dependency(store: QuizStore):
    def dependency() -> QuizStore:
        return store

    return dependency


def create_api_app(store: QuizStore) -> FastAPI:
    """Create a FastAPI application wired to the provided quiz store."""
    app = FastAPI(title=f"{APP_NAME} API", version=APP_VERSION)
    store_dep = _get_store_dependency(store)

    # --- Subjects ---

    @app.get("/api/subjects")
    def list_subjects(store: QuizStore = Depends(store_dep)) -> list[dict[str, object]]:
        return [_subject_to_dict(subject) for subject in store.list_subjects()]

    @app.post("/api/subjects", status_code=201)
    def create_subject(
        payload: SubjectPayload, store: QuizStore = Depends(store_dep)
    ) -> dict[str, object]:
        try:
            subject = store.create_subject(payload.name, payload.description)
        except InvalidRecordError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return _subject_to_dict(subject)

    @app.put("/api/subjects/{subject_id}")
    def update_subject(
        subject_id: int, payload: SubjectPayload, store: QuizStore = Depends(store_dep)
    ) -> dict[str, object]:
        try:
            subject = store.update_subject(subject_id, payload.name, payload.description)
        except QuizNotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        except InvalidRecordError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return _subject_to_dict(subject)

    @app.delete("/api/subjects/{subject_id}")
    def delete_subject(subject_id: int, store: QuizStore = Depends(store_dep)) -> dict[str, str]:
        try:
            store.delete_subject(subject_id)
        except QuizNotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        return {"message": "Subject deleted and quizzes uncategorized"}

    # --- Quizzes ---

    @app.get("/api/quizzes")
    def list_quizzes(
        subject_id: int | None = Query(default=None, alias="subjectId"),
        store: QuizStore = Depends(store_dep),
    ) -> list[dict[str, object]]:
        return [
            {
                "id": summary.id,
                "title": summary.title,
                "description": summary.description,
                "questionCount": summary.question_count,
                "isActive": summary.is_active,
                "subjectId": summary.subject_id,
            }
            for summary in store.list_quizzes(subject_id=subject_id)
        ]

    @app.post("/api/quizzes", status_code=201)
    def create_quiz(
        payload: QuizCreatePayload, store: QuizStore = Depends(store_dep)
    ) -> dict[str, object]:
        try:
            quiz = store.create_quiz(
                title=payload.title,
                description=payload.description,
                subject_id=payload.subject_id,
                time_limit_minutes=payload.time_limit,
                is_active=payload.is_active,
            )
        except QuizNotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        except InvalidRecordError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return _quiz_to_dict(quiz)

    @app.post("/api/quizzes/import", status_code=201)
    def import_quiz(
        payload: QuizImportPayload, store: QuizStore = Depends(store_dep)
    ) -> dict[str, object]:
        try:
            imported = parse_quiz_text(payload.text)
            quiz = store_imported_quiz(store, imported, is_active=payload.is_active)
        except (QuizImportError, InvalidRecordError) as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return _quiz_to_dict(quiz)

    @app.get("/api/quizzes/{quiz_id}")
    def get_quiz(quiz_id: int, store: QuizStore = Depends(store_dep)) -> dict[str, object]:
        try:
            quiz = store.fetch_quiz(quiz_id)
        except QuizNotFoundError as exc:
            raise HTTPException(status_code=404, detail="Quiz not found") from exc
        return _quiz_to_dict(quiz)

    @app.put("/api/quizzes/{quiz_id}")
    def update_quiz(
        quiz_id: int, payload: QuizUpdatePayload, store: QuizStore = Depends(store_dep)
    ) -> dict[str, object]:
        changes = payload.model_dump(exclude_unset=True)
        if "time_limit" in changes:
            changes["time_limit_minutes"] = changes.pop("time_limit")
        try:
            quiz = store.update_quiz(quiz_id, **changes)
        except QuizNotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        except InvalidRecordError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return _quiz_to_dict(quiz)

    @app.delete("/api/quizzes/{quiz_id}")
    def delete_quiz(quiz_id: int, store: QuizStore = Depends(store_dep)) -> dict[str, str]:
        try:
            store.delete_quiz(quiz_id)
        except QuizNotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        return {"message": "Quiz deleted successfully"}

    @app.get("/api/quizzes/{quiz_id}/export", response_class=PlainTextResponse)
    def export_quiz(quiz_id: int, store: QuizStore = Depends(store_dep)) -> str:
        try:
            quiz = store.fetch_quiz(quiz_id)
        except QuizNotFoundError as exc:
            raise HTTPException(status_code=404, detail="Quiz not found") from exc
        return serialize_quiz(quiz)

    @app.get("/api/quizzes/{quiz_id}/summary")
    def quiz_summary(quiz_id: int, store: QuizStore = Depends(store_dep)) -> dict[str, object]:
        try:
            stats = store.submission_stats(quiz_id)
        except QuizNotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        return {
            "quizId": stats.quiz_id,
            "submissionCount": stats.submission_count,
            "averageScore": stats.average_score,
            "averagePercentage": stats.average_percentage,
            "cheatedCount": stats.cheated_count,
            "typeCounts": stats.type_counts,
        }

    # --- Questions ---

    @app.post("/api/quizzes/{quiz_id}/questions", status_code=201)
    def add_question(
        quiz_id: int, payload: QuestionPayload, store: QuizStore = Depends(store_dep)
    ) -> dict[str, object]:
        try:
            question = store.add_question(
                quiz_id,
                text=payload.text,
                options=payload.options,
                correct_answer=payload.correct_answer,
                explanation=payload.explanation,
            )
        except QuizNotFoundError as exc:
            raise HTTPException(status_code=404, detail="Quiz not found") from exc
        except InvalidRecordError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return _question_to_dict(question)

    @app.put("/api/questions/{question_id}")
    def update_question(
        question_id: int, payload: QuestionPayload, store: QuizStore = Depends(store_dep)
    ) -> dict[str, object]:
        try:
            question = store.update_question(
                question_id,
                text=payload.text,
                options=payload.options,
                correct_answer=payload.correct_answer,
                explanation=payload.explanation,
            )
        except QuizNotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        except InvalidRecordError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return _question_to_dict(question)

    @app.delete("/api/questions/{question_id}")
    def delete_question(question_id: int, store: QuizStore = Depends(store_dep)) -> dict[str, str]:
        try:
            store.delete_question(question_id)
        except QuizNotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        return {"message": "Question deleted successfully"}

    @app.put("/api/questions/{question_id}/reorder")
    def reorder_question(
        question_id: int, payload: ReorderPayload, store: QuizStore = Depends(store_dep)
    ) -> list[dict[str, object]]:
        try:
            questions = store.reorder_question(question_id, payload.direction)
        except QuizNotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        except InvalidRecordError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return [_question_to_dict(question) for question in questions]

    # --- Submissions ---

    @app.post("/api/submissions", status_code=201)
    def create_submission(
        payload: SubmissionPayload, store: QuizStore = Depends(store_dep)
    ) -> dict[str, object]:
        record = SubmissionRecord(**payload.model_dump())
        try:
            saved = store.submit_result(record)
        except QuizNotFoundError as exc:
            raise HTTPException(status_code=404, detail="Quiz not found") from exc
        except InvalidRecordError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return _submission_to_dict(saved, store.quiz_titles().get(saved.quiz_id))

    @app.get("/api/submissions")
    def list_submissions(
        quiz_id: int | None = Query(default=None, alias="quizId"),
        faculty: str | None = None,
        year: str | None = None,
        store: QuizStore = Depends(store_dep),
    ) -> list[dict[str, object]]:
        titles = store.quiz_titles()
        return [
            _submission_to_dict(record, titles.get(record.quiz_id))
            for record in store.list_submissions(quiz_id=quiz_id, faculty=faculty, year=year)
        ]

    return app


def start_api_server(
    store: QuizStore,
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
) -> Thread:
    """Start the FastAPI server in a background daemon thread."""
    app = create_api_app(store)
    config = uvicorn.Config(app=app, host=host, port=port, log_level=API_LOG_LEVEL)
    server = uvicorn.Server(config)

    def run_server() -> None:
        server.run()

    thread = Thread(target=run_server, name="QuizApiServer", daemon=True)
    thread.start()
    return thread

"""SQLAlchemy tables and engine setup backing the quiz store."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Text,
    create_engine,
    event,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.pool import StaticPool

from lecture_quiz.core.models import SubmissionType

Base = declarative_base()


class SubjectRow(Base):
    __tablename__ = "subjects"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False, unique=True)
    description = Column(Text, nullable=False, default="")
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    # Deleting a subject leaves its quizzes uncategorized
    quizzes = relationship("QuizRow", back_populates="subject")


class QuizRow(Base):
    __tablename__ = "quizzes"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True)
    title = Column(String(300), nullable=False)
    description = Column(Text, nullable=False, default="")
    time_limit_minutes = Column(Integer, nullable=True)
    is_active = Column(Boolean, nullable=False, default=False)
    subject_id = Column(Integer, ForeignKey("subjects.id", ondelete="SET NULL"), nullable=True, index=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    subject = relationship("SubjectRow", back_populates="quizzes")
    questions = relationship(
        "QuestionRow",
        back_populates="quiz",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="QuestionRow.order",
    )
    submissions = relationship(
        "SubmissionRow",
        back_populates="quiz",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class QuestionRow(Base):
    __tablename__ = "questions"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True)
    quiz_id = Column(Integer, ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False, index=True)
    text = Column(Text, nullable=False)
    options = Column(JSON, nullable=False)
    correct_answer = Column(Text, nullable=False)
    explanation = Column(Text, nullable=False)
    order = Column(Integer, nullable=False, default=0)

    quiz = relationship("QuizRow", back_populates="questions")


class SubmissionRow(Base):
    __tablename__ = "submissions"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True)
    quiz_id = Column(Integer, ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False, index=True)
    student_name = Column(String(200), nullable=False)
    student_email = Column(String(200), nullable=False)
    roll_number = Column(String(50), nullable=False)
    faculty = Column(String(20), nullable=False, index=True)
    year = Column(String(10), nullable=False, index=True)
    score = Column(Integer, nullable=False)
    total_questions = Column(Integer, nullable=False)
    is_cheated = Column(Boolean, nullable=False, default=False)
    submission_type = Column(
        Enum(
            SubmissionType,
            name="submission_type",
            values_callable=lambda kinds: [kind.value for kind in kinds],
        ),
        nullable=False,
    )
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    quiz = relationship("QuizRow", back_populates="submissions")

    def __repr__(self) -> str:
        return f"<SubmissionRow(id={self.id}, quiz_id={self.quiz_id}, score={self.score})>"


def create_store_engine(path: Path | None = None) -> Engine:
    """SQLite engine for ``path``, or a private in-memory database when ``path`` is None."""
    if path is None:
        engine = create_engine(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        engine = create_engine(
            f"sqlite:///{path}",
            connect_args={"check_same_thread": False},
        )

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return engine

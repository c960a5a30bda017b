"""Utilities for exporting quizzes to the plain-text format used for imports."""

from __future__ import annotations

from pathlib import Path

from lecture_quiz.core.models import Question, Quiz

_OPTION_LETTERS = ("A", "B", "C", "D")


def save_quiz_to_file(file_path: Path, quiz: Quiz) -> None:
    """Persist the provided quiz to disk in the text import format."""

    if not quiz.questions:
        raise ValueError("Cannot export an empty quiz.")

    file_path = file_path.resolve()
    file_path.parent.mkdir(parents=True, exist_ok=True)
    file_path.write_text(serialize_quiz(quiz), encoding="utf-8")


def serialize_quiz(quiz: Quiz) -> str:
    header = [f"TITLE: {quiz.title}"]
    if quiz.description:
        header.append(f"DESCRIPTION: {' '.join(quiz.description.splitlines())}")
    if quiz.time_limit_minutes:
        header.append(f"TIMELIMIT: {quiz.time_limit_minutes}")
    ordered = sorted(quiz.questions, key=lambda q: q.order)
    blocks = ["\n".join(header)] + [_serialize_question(question) for question in ordered]
    return "\n\n---\n\n".join(blocks) + "\n"


def _serialize_question(question: Question) -> str:
    lines: list[str] = []

    question_lines = question.text.splitlines() or [question.text]
    lines.append(f"Q: {question_lines[0]}")
    lines.extend(question_lines[1:])

    for idx, letter in enumerate(_OPTION_LETTERS):
        option_text = question.options[idx] if idx < len(question.options) else ""
        option_lines = option_text.splitlines() or [option_text]
        lines.append(f"{letter}: {option_lines[0]}")
        lines.extend(option_lines[1:])

    if question.correct_answer in question.options:
        correct_letter = _OPTION_LETTERS[question.options.index(question.correct_answer)]
        lines.append(f"CORRECT: {correct_letter}")

    explanation_lines = question.explanation.splitlines() or [question.explanation]
    lines.append(f"EXPLANATION: {explanation_lines[0]}")
    lines.extend(explanation_lines[1:])

    return "\n".join(lines)

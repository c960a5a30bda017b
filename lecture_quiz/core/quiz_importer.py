"""Utilities for importing quizzes from a human-friendly text file.

File format (blocks separated by blank lines or '---'):

    TITLE: Quiz title            (optional header block, must come first)
    DESCRIPTION: Short summary   (optional)
    TIMELIMIT: minutes           (optional, omit or 0 for no limit)

    Q: Question text (supports markdown + LaTeX). Additional lines until the
       next marker are treated as part of the question.
    A: First option text
    B: Second option text
    C: Third option text
    D: Fourth option text
    CORRECT: A|B|C|D
    EXPLANATION: Why the answer is correct. Further lines continue it.

Example:

    TITLE: Arithmetic warm-up
    TIMELIMIT: 5

    Q: What is $2 + 2$?
    A: 3
    B: 4
    C: 5
    D: 22
    CORRECT: B
    EXPLANATION: Two plus two is four.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from lecture_quiz.core.models import Question, Quiz
from lecture_quiz.core.services.quiz_store import QuizStore


class QuizImportError(Exception):
    """Raised when a quiz definition cannot be parsed."""


@dataclass(slots=True)
class ImportedQuiz:
    """Container for imported quiz metadata and questions."""

    source_path: Path | None
    title: str
    description: str
    time_limit_minutes: int | None
    questions: list[Question]


_OPTION_ORDER = ["A", "B", "C", "D"]
_HEADER_KEYS = ("TITLE:", "DESCRIPTION:", "TIMELIMIT:")


def load_quiz_from_file(file_path: Path) -> ImportedQuiz:
    text = file_path.read_text(encoding="utf-8")
    imported = parse_quiz_text(text, default_title=file_path.stem)
    imported.source_path = file_path
    return imported


def parse_quiz_text(text: str, default_title: str = "Imported quiz") -> ImportedQuiz:
    blocks = _split_blocks(text)
    header: dict[str, str] = {}
    if blocks and _is_header_block(blocks[0]):
        header = _parse_header(blocks.pop(0))

    questions = [_parse_block(block, order) for order, block in enumerate(blocks)]
    if not questions:
        raise QuizImportError("Quiz file did not contain any questions.")

    return ImportedQuiz(
        source_path=None,
        title=header.get("TITLE") or default_title,
        description=header.get("DESCRIPTION", ""),
        time_limit_minutes=_parse_time_limit(header.get("TIMELIMIT")),
        questions=questions,
    )


def _split_blocks(text: str) -> list[str]:
    blocks: list[str] = []
    current_block: list[str] = []
    for raw_line in text.splitlines():
        stripped = raw_line.strip()
        if stripped == "---":
            if current_block:
                blocks.append("\n".join(current_block).strip())
                current_block = []
            continue
        if stripped:
            current_block.append(raw_line)
        elif current_block:
            # Blank line encountered after content - finalize current block
            blocks.append("\n".join(current_block).strip())
            current_block = []
    if current_block:
        blocks.append("\n".join(current_block).strip())
    return [block for block in blocks if block]


def _is_header_block(block: str) -> bool:
    lines = [line.strip().upper() for line in block.splitlines() if line.strip()]
    return bool(lines) and all(line.startswith(_HEADER_KEYS) for line in lines)


def _parse_header(block: str) -> dict[str, str]:
    header: dict[str, str] = {}
    for raw_line in block.splitlines():
        line = raw_line.strip()
        if not line:
            continue
        key, value = line.split(":", 1)
        header[key.strip().upper()] = value.strip()
    return header


def _parse_time_limit(raw_value: str | None) -> int | None:
    if raw_value is None:
        return None
    if not raw_value:
        raise QuizImportError("TIMELIMIT must include an integer value.")
    try:
        parsed_value = int(raw_value)
    except ValueError as exc:
        raise QuizImportError("TIMELIMIT must be an integer number of minutes.") from exc
    if parsed_value < 0:
        raise QuizImportError("TIMELIMIT cannot be negative.")
    return parsed_value or None


def _parse_block(block: str, order: int) -> Question:
    question_lines: list[str] = []
    explanation_lines: list[str] = []
    options: dict[str, str] = {}
    correct_letter: str | None = None
    current_section: str | None = None

    for raw_line in block.splitlines():
        line = raw_line.strip()
        if not line:
            continue

        upper = line.upper()
        if upper.startswith("Q:"):
            question_lines = [line[2:].strip()]
            current_section = "Q"
            continue

        if upper.startswith("CORRECT:"):
            correct_letter = line.split(":", 1)[1].strip().upper()
            current_section = None
            continue

        if upper.startswith("EXPLANATION:"):
            explanation_lines = [line.split(":", 1)[1].strip()]
            current_section = "EXPLANATION"
            continue

        if len(line) > 2 and line[0].upper() in _OPTION_ORDER and line[1] == ":":
            letter = line[0].upper()
            options[letter] = line[2:].strip()
            current_section = letter
            continue

        if current_section == "Q":
            question_lines.append(line)
        elif current_section == "EXPLANATION":
            explanation_lines.append(line)
        elif current_section in _OPTION_ORDER:
            options[current_section] = options[current_section] + f"\n{line}"
        else:
            raise QuizImportError(
                f"Encountered text outside of a known section: '{line}'."
            )

    if not question_lines:
        raise QuizImportError("Question text missing (Q: ...)")
    if len(options) != 4:
        raise QuizImportError("Each question must define exactly four options (A-D).")

    option_list = [options.get(letter, "").strip() for letter in _OPTION_ORDER]
    if any(not opt for opt in option_list):
        raise QuizImportError("Option text cannot be empty.")

    if correct_letter is None:
        raise QuizImportError("Each question needs a CORRECT line.")
    if correct_letter not in _OPTION_ORDER:
        raise QuizImportError("CORRECT must be one of A, B, C, or D.")

    question_text = "\n".join(question_lines).strip()
    if not question_text:
        raise QuizImportError("Question text cannot be empty.")
    explanation = "\n".join(explanation_lines).strip()
    if not explanation:
        raise QuizImportError("Each question needs an EXPLANATION.")

    return Question(
        id=0,  # assigned by the quiz store
        text=question_text,
        options=option_list,
        correct_answer=option_list[_OPTION_ORDER.index(correct_letter)],
        explanation=explanation,
        order=order,
    )


def store_imported_quiz(store: QuizStore, imported: ImportedQuiz, is_active: bool = False) -> Quiz:
    """Create a quiz in ``store`` from parsed text and return the stored snapshot."""
    quiz = store.create_quiz(
        title=imported.title,
        description=imported.description,
        time_limit_minutes=imported.time_limit_minutes,
        is_active=is_active,
    )
    for question in imported.questions:
        store.add_question(
            quiz.id,
            text=question.text,
            options=question.options,
            correct_answer=question.correct_answer,
            explanation=question.explanation,
        )
    return store.fetch_quiz(quiz.id)

"""Events accepted by the quiz session controller.

Every input to the state machine, whether a user intent, a countdown tick or
a visibility change, is one of these values and goes through
``QuizSessionController.dispatch``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from lecture_quiz.core.models import ParticipantDetails, Quiz, SubmissionType


@dataclass(frozen=True, slots=True)
class QuizLoaded:
    quiz: Quiz


@dataclass(frozen=True, slots=True)
class BeginEntry:
    details: ParticipantDetails


@dataclass(frozen=True, slots=True)
class SelectOption:
    value: str


@dataclass(frozen=True, slots=True)
class SubmitAnswer:
    pass


@dataclass(frozen=True, slots=True)
class Advance:
    pass


@dataclass(frozen=True, slots=True)
class ForceSubmit:
    reason: SubmissionType = SubmissionType.MANUAL


@dataclass(frozen=True, slots=True)
class CountdownTick:
    pass


@dataclass(frozen=True, slots=True)
class VisibilityChanged:
    hidden: bool


@dataclass(frozen=True, slots=True)
class GraceExpired:
    """Integrity grace period elapsed; ``generation`` identifies which arm."""

    generation: int


SessionEvent = Union[
    QuizLoaded,
    BeginEntry,
    SelectOption,
    SubmitAnswer,
    Advance,
    ForceSubmit,
    CountdownTick,
    VisibilityChanged,
    GraceExpired,
]

"""Quiz-related constants shared across the session controller, store and UI."""

from pathlib import Path

OPTIONS_PER_QUESTION: int = 4
COUNTDOWN_TICK_SECONDS: float = 1.0
INTEGRITY_GRACE_PERIOD_SECONDS: float = 5.0
URGENT_TIME_THRESHOLD_SECONDS: int = 60

REQUIRED_PARTICIPANT_FIELDS: tuple[str, ...] = ("name", "roll_number", "faculty", "year")
FACULTY_CHOICES: tuple[str, ...] = ("BCT", "BEI", "BCE", "BEL")
# Batch years in Bikram Sambat, as offered on the entry form.
YEAR_CHOICES: tuple[str, ...] = tuple(str(year) for year in range(2070, 2086))

DEFAULT_DATA_DIR: Path = Path.home() / ".lecture_quiz"
STORE_FILE_NAME: str = "quiz_store.db"

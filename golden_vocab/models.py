from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

MIN_LEVEL = 1
MAX_LEVEL = 5

DIFFICULTIES = ("easy", "good", "hard")

QUESTION_TYPES = (
    "gap_fill_text",
    "gap_fill_audio",
    "context_meaning",
    "simple_meaning",
    "dictation",
    "translation",
)


def utc(dt: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def check_level(level: int) -> int:
    if isinstance(level, bool) or not isinstance(level, int):
        raise ValueError(f"level must be an integer, got {type(level).__name__}: {level!r}")
    if not MIN_LEVEL <= level <= MAX_LEVEL:
        raise ValueError(f"level must be between {MIN_LEVEL} and {MAX_LEVEL}, got {level}")
    return level


def check_difficulty(difficulty: str) -> str:
    if difficulty not in DIFFICULTIES:
        raise ValueError(f"difficulty must be one of {', '.join(DIFFICULTIES)}, got {difficulty!r}")
    return difficulty


@dataclass(frozen=True)
class VocabularyItem:
    id: str
    term: str
    meaning: str
    secondary_meaning: str = ""
    example: str = ""
    example_translation: str | None = None
    topic: str | None = None
    source: str | None = None  # import batch the item came from
    level: int = MIN_LEVEL
    next_review: datetime | None = None  # None -> created_at
    last_reviewed: datetime | None = None
    correct_count: int = 0
    incorrect_count: int = 0
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self):
        check_level(self.level)
        created = utc(self.created_at)
        object.__setattr__(self, "created_at", created)
        next_review = created if self.next_review is None else utc(self.next_review)
        object.__setattr__(self, "next_review", next_review)
        if self.last_reviewed is not None:
            object.__setattr__(self, "last_reviewed", utc(self.last_reviewed))

    @property
    def display_meaning(self) -> str:
        return self.meaning.strip() or self.secondary_meaning.strip()


@dataclass(frozen=True)
class StudyQuestion:
    id: str
    item: VocabularyItem  # value snapshot taken at generation time
    question_type: str  # one of QUESTION_TYPES
    prompt: str
    correct_answer: str
    options: tuple[str, ...] | None = None
    cloze_text: str | None = None  # gap-fill sentence with the term masked
    highlighted_text: str | None = None  # context sentence with the term marked


@dataclass(frozen=True)
class AnswerRecord:
    question_id: str
    word_id: str
    user_answer: str
    correct_answer: str
    is_correct: bool
    difficulty: str  # easy | good | hard
    answered_at: datetime


@dataclass(frozen=True)
class SessionResult:
    total_questions: int
    correct_answers: int
    accuracy: float
    words_leveled_up: tuple[VocabularyItem, ...]
    words_leveled_down: tuple[VocabularyItem, ...]
    duration_seconds: float

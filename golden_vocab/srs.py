"""Level-based spaced repetition scheduling and word selection."""
from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timedelta, timezone
from typing import NamedTuple

from golden_vocab.models import (
    MAX_LEVEL,
    MIN_LEVEL,
    VocabularyItem,
    check_difficulty,
    check_level,
    utc,
)

# Base review interval for each mastery level
BASE_INTERVALS = {
    1: timedelta(minutes=10),
    2: timedelta(days=1),
    3: timedelta(days=3),
    4: timedelta(days=7),
    5: timedelta(days=25),
}

DIFFICULTY_MULTIPLIERS = {
    "easy": 1.3,
    "good": 1.0,
    "hard": 0.7,
}

# A wrong answer always comes back after half the shortest interval.
RETRY_FACTOR = 0.5

LEVEL_INFO = {
    1: {"label": "New", "description": "Just learning"},
    2: {"label": "Learning", "description": "Getting familiar"},
    3: {"label": "Familiar", "description": "Recognizing well"},
    4: {"label": "Known", "description": "Almost mastered"},
    5: {"label": "Mastered", "description": "Fully learned!"},
}

# Priority buckets
OVERDUE = 0
DUE_TODAY = 1
NEW = 2
LATER = 3


class NextReview(NamedTuple):
    new_level: int
    next_review: datetime


def _now(now: datetime | None) -> datetime:
    return datetime.now(timezone.utc) if now is None else utc(now)


def end_of_day(now: datetime) -> datetime:
    """Last instant of *now*'s calendar day, in *now*'s timezone."""
    return now.replace(hour=23, minute=59, second=59, microsecond=999999)


def calculate_next_review(
    current_level: int,
    difficulty: str,
    is_correct: bool,
    now: datetime | None = None,
) -> NextReview:
    """Compute the level and review instant that follow a single answer.

    Wrong answers drop one level (never below 1) and come back after half
    the level-1 interval whatever level was reached. Correct answers climb
    one level (never above 5) and wait the new level's base interval
    scaled by the difficulty multiplier.
    """
    check_level(current_level)
    check_difficulty(difficulty)
    now = _now(now)

    if not is_correct:
        new_level = max(MIN_LEVEL, current_level - 1)
        return NextReview(new_level, now + BASE_INTERVALS[MIN_LEVEL] * RETRY_FACTOR)

    new_level = min(MAX_LEVEL, current_level + 1)
    interval = BASE_INTERVALS[new_level] * DIFFICULTY_MULTIPLIERS[difficulty]
    return NextReview(new_level, now + interval)


def review_bucket(item: VocabularyItem, now: datetime, today_end: datetime | None = None) -> int:
    if today_end is None:
        today_end = end_of_day(now)
    if item.next_review < now:
        return OVERDUE
    if item.next_review <= today_end:
        return DUE_TODAY
    if item.last_reviewed is None:
        return NEW
    return LATER


def sort_by_review_priority(
    items: Iterable[VocabularyItem], now: datetime | None = None
) -> list[VocabularyItem]:
    """Return a new list ordered overdue, due today, new, then the rest.

    Within a bucket lower levels come first, then earlier review instants.
    The sort is stable so ties keep their input order.
    """
    now = _now(now)
    today_end = end_of_day(now)
    return sorted(
        items,
        key=lambda item: (review_bucket(item, now, today_end), item.level, item.next_review),
    )


def select_words_for_session(
    items: Iterable[VocabularyItem], count: int, now: datetime | None = None
) -> list[VocabularyItem]:
    if isinstance(count, bool) or not isinstance(count, int) or count < 0:
        raise ValueError(f"count must be a non-negative integer, got {count!r}")
    return sort_by_review_priority(items, now)[:count]


def get_due_words(items: Iterable[VocabularyItem], now: datetime | None = None) -> list[VocabularyItem]:
    now = _now(now)
    return [item for item in items if item.next_review <= now]


def get_words_due_today(items: Iterable[VocabularyItem], now: datetime | None = None) -> list[VocabularyItem]:
    """Items due before the end of today, overdue ones included."""
    today_end = end_of_day(_now(now))
    return [item for item in items if item.next_review <= today_end]


def get_new_words(items: Iterable[VocabularyItem], now: datetime | None = None) -> list[VocabularyItem]:
    # now is accepted for a uniform signature; newness does not depend on it
    return [item for item in items if item.last_reviewed is None]


def level_info(level: int) -> dict:
    return dict(LEVEL_INFO.get(level, LEVEL_INFO[MIN_LEVEL]))


def summarize(items: Iterable[VocabularyItem], now: datetime | None = None) -> dict:
    items = list(items)
    now = _now(now)
    by_level = {level: 0 for level in range(MIN_LEVEL, MAX_LEVEL + 1)}
    for item in items:
        by_level[item.level] += 1
    return {
        "total": len(items),
        "due_now": len(get_due_words(items, now)),
        "due_today": len(get_words_due_today(items, now)),
        "new": len(get_new_words(items, now)),
        "mastered": by_level[MAX_LEVEL],
        "by_level": by_level,
    }

"""Shared test fixtures."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from golden_vocab.models import VocabularyItem

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


class FixedRandom:
    """Deterministic random source cycling through a fixed sequence."""

    def __init__(self, values=(0.0,)):
        self._values = list(values)
        self._i = 0

    def random(self) -> float:
        value = self._values[self._i % len(self._values)]
        self._i += 1
        return value


class FakeClock:
    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


def _make_item(
    term: str,
    meaning: str = "",
    *,
    id: str | None = None,
    example: str = "",
    topic: str | None = None,
    level: int = 1,
    next_review: datetime | None = None,
    last_reviewed: datetime | None = None,
    **kwargs,
) -> VocabularyItem:
    created_at = kwargs.pop("created_at", NOW - timedelta(days=30))
    return VocabularyItem(
        id=id or f"id-{term}",
        term=term,
        meaning=meaning or f"meaning of {term}",
        example=example,
        topic=topic,
        level=level,
        next_review=next_review,
        last_reviewed=last_reviewed,
        created_at=created_at,
        **kwargs,
    )


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def fixed_rng():
    return FixedRandom()


@pytest.fixture
def random_sequence():
    """Factory for a random source replaying the given values."""
    return FixedRandom


@pytest.fixture
def make_item():
    """Factory for vocabulary items with test-friendly defaults."""
    return _make_item


@pytest.fixture
def sample_corpus():
    """Six items over two topics; the last one never appears in its example."""
    return [
        _make_item("run", "chạy", example="I run every morning.", topic="sport"),
        _make_item("swim", "bơi", example="They swim in the lake.", topic="sport"),
        _make_item("jump", "nhảy", example="Cats jump high.", topic="sport"),
        _make_item("apple", "quả táo", example="An apple a day keeps the doctor away.", topic="food"),
        _make_item("bread", "bánh mì", example="She bakes bread on Sundays.", topic="food"),
        _make_item("serendipity", "sự tình cờ may mắn", example="Finding this café was pure luck."),
    ]


@pytest.fixture
def twelve_items():
    """Twelve overdue items, all eligible for a session."""
    return [
        _make_item(f"word{i:02d}", f"meaning {i:02d}", example=f"Say word{i:02d} aloud.",
                  next_review=NOW - timedelta(hours=i + 1))
        for i in range(12)
    ]

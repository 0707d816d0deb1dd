"""In-memory vocabulary store that applies review outcomes."""
from __future__ import annotations

import json
import logging
import uuid
from collections.abc import Callable, Iterable
from dataclasses import dataclass, replace
from datetime import date, datetime, timedelta, timezone
from pathlib import Path

from golden_vocab.models import VocabularyItem
from golden_vocab.srs import calculate_next_review, summarize

_log = logging.getLogger("golden_vocab.store")


@dataclass
class DailyStats:
    date: str  # YYYY-MM-DD
    words_studied: int = 0
    correct_count: int = 0
    incorrect_count: int = 0


@dataclass
class Streak:
    current_streak: int = 0
    longest_streak: int = 0
    last_study_date: str | None = None


def _parse_dt(value) -> datetime | None:
    if value in (None, ""):
        return None
    return datetime.fromisoformat(value)


def item_from_dict(data: dict) -> VocabularyItem:
    """Build an item from its JSON form; raises ValueError on missing fields."""
    if not isinstance(data, dict):
        raise ValueError(f"expected a word object, got {type(data).__name__}")
    term = (data.get("term") or "").strip()
    if not term:
        raise ValueError("missing term")
    if not (data.get("meaning") or "").strip() and not (data.get("secondary_meaning") or "").strip():
        raise ValueError(f"'{term}': missing meaning")
    kwargs = {
        "id": data.get("id") or str(uuid.uuid4()),
        "term": term,
        "meaning": (data.get("meaning") or "").strip(),
        "secondary_meaning": (data.get("secondary_meaning") or "").strip(),
        "example": (data.get("example") or "").strip(),
        "example_translation": data.get("example_translation"),
        "topic": data.get("topic") or None,
        "source": data.get("source"),
        "level": data.get("level", 1),
        "next_review": _parse_dt(data.get("next_review")),
        "last_reviewed": _parse_dt(data.get("last_reviewed")),
        "correct_count": data.get("correct_count", 0),
        "incorrect_count": data.get("incorrect_count", 0),
    }
    created_at = _parse_dt(data.get("created_at"))
    if created_at is not None:
        kwargs["created_at"] = created_at
    return VocabularyItem(**kwargs)


def read_word_file(path: str | Path) -> list[VocabularyItem]:
    """Load a JSON list of word objects, as accepted by ``POST /api/words``."""
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a JSON list of words")
    return [item_from_dict(d) for d in data]


class VocabularyStore:
    """Canonical item store; sessions only ever hold snapshots of its items.

    ``record_review`` is meant to be passed to a session as its
    ``on_word_reviewed`` callback.
    """

    def __init__(self, clock: Callable[[], datetime] | None = None, history_days: int = 30):
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._items: dict[str, VocabularyItem] = {}
        self._daily: list[DailyStats] = []
        self.streak = Streak()
        self.set_history_days(history_days)

    def set_history_days(self, days: int) -> None:
        """Change how many days of daily stats are kept; older days are dropped."""
        if isinstance(days, bool) or not isinstance(days, int) or days < 1:
            raise ValueError(f"history_days must be an integer >= 1, got {days!r}")
        self.history_days = days
        del self._daily[:-days]

    # ── Items ──────────────────────────────────────────────────────────

    def add_items(self, items: Iterable[VocabularyItem]) -> int:
        n = 0
        for item in items:
            self._items[item.id] = item
            n += 1
        _log.info("Added %d items (%d total)", n, len(self._items))
        return n

    def get(self, word_id: str) -> VocabularyItem | None:
        return self._items.get(word_id)

    def items(self) -> list[VocabularyItem]:
        return list(self._items.values())

    def delete_item(self, word_id: str) -> bool:
        return self._items.pop(word_id, None) is not None

    def clear(self) -> None:
        self._items.clear()

    # ── Reviews ────────────────────────────────────────────────────────

    def record_review(self, word_id: str, is_correct: bool, difficulty: str) -> None:
        item = self._items.get(word_id)
        if item is None:
            _log.warning("Review for unknown word %s ignored", word_id)
            return

        now = self._clock()
        new_level, next_review = calculate_next_review(item.level, difficulty, is_correct, now)
        self._items[word_id] = replace(
            item,
            level=new_level,
            next_review=next_review,
            last_reviewed=now,
            correct_count=item.correct_count + (1 if is_correct else 0),
            incorrect_count=item.incorrect_count + (0 if is_correct else 1),
        )
        self._record_daily(now.date(), is_correct)
        _log.info("Reviewed '%s': level %d -> %d", item.term, item.level, new_level)

    def _record_daily(self, today: date, is_correct: bool) -> None:
        key = today.isoformat()
        if self._daily and self._daily[-1].date == key:
            stats = self._daily[-1]
        else:
            stats = DailyStats(date=key)
            self._daily.append(stats)
            del self._daily[:-self.history_days]
        stats.words_studied += 1
        if is_correct:
            stats.correct_count += 1
        else:
            stats.incorrect_count += 1
        self._update_streak(today)

    def _update_streak(self, today: date) -> None:
        s = self.streak
        key = today.isoformat()
        if s.last_study_date == key:
            return
        yesterday = (today - timedelta(days=1)).isoformat()
        s.current_streak = s.current_streak + 1 if s.last_study_date == yesterday else 1
        s.longest_streak = max(s.longest_streak, s.current_streak)
        s.last_study_date = key

    @property
    def daily_stats(self) -> list[DailyStats]:
        return list(self._daily)

    def get_stats(self) -> dict:
        stats = summarize(self._items.values(), self._clock())
        correct = sum(i.correct_count for i in self._items.values())
        total = correct + sum(i.incorrect_count for i in self._items.values())
        stats["accuracy"] = round(correct / total * 100, 1) if total else 0
        stats["current_streak"] = self.streak.current_streak
        stats["longest_streak"] = self.streak.longest_streak
        return stats

"""Tests for the in-memory vocabulary store."""
from __future__ import annotations

from datetime import timedelta

import pytest

from golden_vocab.store import VocabularyStore


@pytest.fixture
def store(clock, sample_corpus):
    s = VocabularyStore(clock=clock)
    s.add_items(sample_corpus)
    return s


class TestItems:
    def test_add_and_get(self, store, sample_corpus):
        assert len(store.items()) == len(sample_corpus)
        assert store.get("id-run").term == "run"

    def test_add_replaces_same_id(self, store, make_item):
        store.add_items([make_item("run", "chạy bộ")])
        assert store.get("id-run").meaning == "chạy bộ"
        assert len(store.items()) == 6

    def test_items_is_a_snapshot(self, store):
        snapshot = store.items()
        store.delete_item("id-run")
        assert len(snapshot) == 6
        assert len(store.items()) == 5

    def test_delete_missing(self, store):
        assert store.delete_item("nope") is False

    def test_clear(self, store):
        store.clear()
        assert store.items() == []


class TestRecordReview:
    def test_correct(self, store, now):
        store.record_review("id-run", True, "easy")
        item = store.get("id-run")
        assert item.level == 2
        assert item.next_review == now + timedelta(days=1) * 1.3
        assert item.last_reviewed == now
        assert item.correct_count == 1
        assert item.incorrect_count == 0

    def test_incorrect(self, store, now):
        store.record_review("id-run", False, "good")
        item = store.get("id-run")
        assert item.level == 1
        assert item.next_review == now + timedelta(minutes=5)
        assert item.incorrect_count == 1

    def test_unknown_word_ignored(self, store):
        store.record_review("missing", True, "good")
        assert store.daily_stats == []

    def test_daily_stats(self, store, clock):
        store.record_review("id-run", True, "good")
        store.record_review("id-swim", False, "hard")
        clock.advance(days=1)
        store.record_review("id-jump", True, "good")
        days = store.daily_stats
        assert [d.date for d in days] == ["2026-03-10", "2026-03-11"]
        assert (days[0].words_studied, days[0].correct_count, days[0].incorrect_count) == (2, 1, 1)
        assert days[1].words_studied == 1

    def test_daily_stats_trimmed(self, clock, sample_corpus):
        store = VocabularyStore(clock=clock, history_days=3)
        store.add_items(sample_corpus)
        for _ in range(5):
            store.record_review("id-run", True, "good")
            clock.advance(days=1)
        assert [d.date for d in store.daily_stats] == ["2026-03-12", "2026-03-13", "2026-03-14"]

    @pytest.mark.parametrize("days", [0, -1, 2.5, True])
    def test_invalid_history_days(self, clock, days):
        with pytest.raises(ValueError, match="history_days"):
            VocabularyStore(clock=clock, history_days=days)

    def test_single_day_history(self, clock, sample_corpus):
        store = VocabularyStore(clock=clock, history_days=1)
        store.add_items(sample_corpus)
        store.record_review("id-run", True, "good")
        clock.advance(days=1)
        store.record_review("id-run", False, "good")
        assert [(d.date, d.words_studied) for d in store.daily_stats] == [("2026-03-11", 1)]

    def test_shrinking_history_drops_oldest(self, store, clock):
        for _ in range(4):
            store.record_review("id-run", True, "good")
            clock.advance(days=1)
        store.set_history_days(2)
        assert [d.date for d in store.daily_stats] == ["2026-03-12", "2026-03-13"]


class TestStreak:
    def test_consecutive_days(self, store, clock):
        store.record_review("id-run", True, "good")
        store.record_review("id-swim", True, "good")
        assert store.streak.current_streak == 1
        clock.advance(days=1)
        store.record_review("id-run", True, "good")
        assert store.streak.current_streak == 2
        assert store.streak.longest_streak == 2

    def test_gap_resets(self, store, clock):
        store.record_review("id-run", True, "good")
        clock.advance(days=1)
        store.record_review("id-run", True, "good")
        clock.advance(days=3)
        store.record_review("id-run", True, "good")
        assert store.streak.current_streak == 1
        assert store.streak.longest_streak == 2
        assert store.streak.last_study_date == "2026-03-14"


class TestStats:
    def test_empty(self, clock):
        stats = VocabularyStore(clock=clock).get_stats()
        assert stats["total"] == 0
        assert stats["accuracy"] == 0

    def test_accuracy(self, store):
        store.record_review("id-run", True, "good")
        store.record_review("id-swim", True, "good")
        store.record_review("id-jump", False, "good")
        stats = store.get_stats()
        assert stats["total"] == 6
        assert stats["accuracy"] == pytest.approx(66.7)
        assert stats["current_streak"] == 1
        assert stats["new"] == 3

"""Study session state machine: Idle -> Active -> Completed."""
from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from datetime import datetime, timezone
from types import MappingProxyType

from golden_vocab.answer_checker import check_answer
from golden_vocab.models import (
    MAX_LEVEL,
    AnswerRecord,
    SessionResult,
    StudyQuestion,
    VocabularyItem,
    check_difficulty,
)
from golden_vocab.question_generator import RandomSource, generate_session_questions
from golden_vocab.srs import select_words_for_session

_log = logging.getLogger("golden_vocab.session")

IDLE = "idle"
ACTIVE = "active"
COMPLETED = "completed"

DEFAULT_SESSION_SIZE = 10

ReviewCallback = Callable[[str, bool, str], None]


class SessionStateError(RuntimeError):
    """An operation was called in a state that does not allow it."""


def record_answer(
    ledger: Mapping[str, AnswerRecord], record: AnswerRecord
) -> tuple[Mapping[str, AnswerRecord], AnswerRecord]:
    """Write-once ledger transition.

    Returns ``(ledger, stored_record)``. If the question already has a
    record, the ledger comes back unchanged with the existing record.
    """
    existing = ledger.get(record.question_id)
    if existing is not None:
        return ledger, existing
    updated = dict(ledger)
    updated[record.question_id] = record
    return MappingProxyType(updated), record


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StudySession:
    """Runs one bounded pass over generated questions.

    ``on_word_reviewed(word_id, is_correct, difficulty)`` is called exactly
    once per newly answered question, synchronously, so progress survives
    an abandoned session.
    """

    def __init__(
        self,
        on_word_reviewed: ReviewCallback,
        rng: RandomSource | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self._on_word_reviewed = on_word_reviewed
        self._rng = rng
        self._clock = clock or _utcnow
        self._clear()

    def _clear(self) -> None:
        self._state = IDLE
        self._words: tuple[VocabularyItem, ...] = ()
        self._levels_before: dict[str, int] = {}
        self._questions: tuple[StudyQuestion, ...] = ()
        self._index = 0
        self._ledger: Mapping[str, AnswerRecord] = MappingProxyType({})
        self._started_at: datetime | None = None
        self._result: SessionResult | None = None

    # ── Read-only progress ──────────────────────────────────────────────

    @property
    def state(self) -> str:
        return self._state

    @property
    def session_words(self) -> tuple[VocabularyItem, ...]:
        return self._words

    @property
    def questions(self) -> tuple[StudyQuestion, ...]:
        return self._questions

    @property
    def current_question(self) -> StudyQuestion | None:
        if self._state != ACTIVE or self._index >= len(self._questions):
            return None
        return self._questions[self._index]

    @property
    def current_index(self) -> int:
        return self._index

    @property
    def total_questions(self) -> int:
        return len(self._questions)

    @property
    def answered_count(self) -> int:
        return len(self._ledger)

    @property
    def progress(self) -> float:
        if not self._questions:
            return 0.0
        return self._index / len(self._questions) * 100

    @property
    def answers(self) -> Mapping[str, AnswerRecord]:
        return self._ledger

    @property
    def result(self) -> SessionResult | None:
        return self._result

    # ── Transitions ─────────────────────────────────────────────────────

    def _require(self, *states: str) -> None:
        if self._state not in states:
            raise SessionStateError(f"session is {self._state}, expected {' or '.join(states)}")

    def start(self, corpus: Sequence[VocabularyItem], max_questions: int = DEFAULT_SESSION_SIZE) -> bool:
        """Select words and generate one question each.

        Returns False, leaving the session untouched, when nothing is
        selectable.
        """
        now = self._clock()
        selected = select_words_for_session(corpus, max_questions, now)
        if not selected:
            _log.info("Session not started: no words to study")
            return False

        self._words = tuple(selected)
        self._levels_before = {item.id: item.level for item in selected}
        self._questions = tuple(generate_session_questions(selected, corpus, self._rng))
        self._index = 0
        self._ledger = MappingProxyType({})
        self._started_at = now
        self._result = None
        self._state = ACTIVE
        _log.info("Session started: %d questions from %d words", len(self._questions), len(corpus))
        return True

    def _record(self, user_answer: str, difficulty: str, is_correct: bool | None) -> bool:
        self._require(ACTIVE)
        check_difficulty(difficulty)
        question = self.current_question
        if question is None:
            raise SessionStateError("no current question")

        if is_correct is None:
            is_correct = check_answer(user_answer, question.correct_answer)
        record = AnswerRecord(
            question_id=question.id,
            word_id=question.item.id,
            user_answer=user_answer,
            correct_answer=question.correct_answer,
            is_correct=is_correct,
            difficulty=difficulty,
            answered_at=self._clock(),
        )
        self._ledger, stored = record_answer(self._ledger, record)
        if stored is not record:
            _log.debug("Duplicate answer for question %s ignored", question.id)
            return stored.is_correct

        self._on_word_reviewed(stored.word_id, stored.is_correct, stored.difficulty)
        _log.info(
            "Answer %d/%d for '%s': %s (%s)",
            len(self._ledger), len(self._questions), question.item.term,
            "correct" if stored.is_correct else "wrong", stored.difficulty,
        )
        return stored.is_correct

    def submit_answer(self, user_answer: str, difficulty: str = "good") -> bool:
        """Record an answer to the current question and return its correctness.

        A question that already has an answer keeps it; the earlier outcome
        is returned and the review callback is not called again.
        """
        return self._record(user_answer, difficulty, None)

    def skip(self) -> bool:
        return self._record("", "hard", False)

    def advance(self) -> bool:
        self._require(ACTIVE)
        if self._index < len(self._questions) - 1:
            self._index += 1
            return True
        return False

    def end(self) -> SessionResult:
        if self._state == COMPLETED and self._result is not None:
            return self._result
        self._require(ACTIVE)

        records = list(self._ledger.values())
        answered = len(records)
        correct = sum(1 for r in records if r.is_correct)
        accuracy = correct / answered * 100 if answered > 0 else 0.0

        # A word answered more than once counts once; any miss marks it down.
        missed: set[str] = set()
        hit: set[str] = set()
        for r in records:
            (hit if r.is_correct else missed).add(r.word_id)

        leveled_up = []
        leveled_down = []
        listed: set[str] = set()
        for item in self._words:
            if item.id in listed:
                continue
            listed.add(item.id)
            if item.id in missed:
                leveled_down.append(item)
            elif item.id in hit and self._levels_before[item.id] < MAX_LEVEL:
                leveled_up.append(item)

        started = self._started_at or self._clock()
        self._result = SessionResult(
            total_questions=answered,
            correct_answers=correct,
            accuracy=accuracy,
            words_leveled_up=tuple(leveled_up),
            words_leveled_down=tuple(leveled_down),
            duration_seconds=(self._clock() - started).total_seconds(),
        )
        self._state = COMPLETED
        _log.info("Session ended: %d/%d correct (%.0f%%)", correct, answered, accuracy)
        return self._result

    def reset(self) -> None:
        self._clear()

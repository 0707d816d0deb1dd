"""Render vocabulary items into the six study question formats."""
from __future__ import annotations

import logging
import random
import re
import uuid
from collections.abc import Callable, Sequence
from typing import Protocol

from golden_vocab.models import QUESTION_TYPES, StudyQuestion, VocabularyItem

_log = logging.getLogger("golden_vocab.qgen")

OPTION_COUNT = 4
DISTRACTOR_COUNT = OPTION_COUNT - 1
BLANK = "[_____]"

# Used by session batches when a gap-fill type is unavailable for an item
FALLBACK_TYPES = {
    "gap_fill_text": "simple_meaning",
    "gap_fill_audio": "dictation",
}

PROMPTS = {
    "gap_fill_text": "Fill in the blank:",
    "gap_fill_audio": "Listen and fill in the blank:",
    "context_meaning": "What does the underlined word mean?",
    "dictation": "Listen and type what you hear:",
}


class RandomSource(Protocol):
    def random(self) -> float:
        ...


def _shuffled(values: Sequence, rng: RandomSource) -> list:
    """Fisher-Yates shuffle of a copy, drawing only from ``rng.random()``."""
    result = list(values)
    for i in range(len(result) - 1, 0, -1):
        j = min(i, int(rng.random() * (i + 1)))
        result[i], result[j] = result[j], result[i]
    return result


def _pick(values: Sequence, rng: RandomSource):
    return values[min(len(values) - 1, int(rng.random() * len(values)))]


def _term_pattern(term: str) -> re.Pattern:
    # Lookarounds instead of \b so terms ending in punctuation still match whole.
    return re.compile(rf"(?<!\w){re.escape(term.strip())}(?!\w)", re.IGNORECASE)


def term_in_example(item: VocabularyItem) -> bool:
    if not item.term.strip() or not item.example:
        return False
    return _term_pattern(item.term).search(item.example) is not None


def available_types(item: VocabularyItem) -> list[str]:
    if term_in_example(item):
        return list(QUESTION_TYPES)
    return [t for t in QUESTION_TYPES if t not in FALLBACK_TYPES]


def _key(value: str) -> str:
    return value.strip().lower()


def _sample_distractors(
    item: VocabularyItem,
    corpus: Sequence[VocabularyItem],
    value_of: Callable[[VocabularyItem], str],
    placeholder: str,
    rng: RandomSource,
) -> list[str]:
    """Pick distinct wrong options, same-topic items first.

    Pads with numbered placeholders when the corpus runs out.
    """
    same_topic: list[VocabularyItem] = []
    others: list[VocabularyItem] = []
    for other in corpus:
        if other.id == item.id:
            continue
        if item.topic and other.topic == item.topic:
            same_topic.append(other)
        else:
            others.append(other)

    seen = {_key(value_of(item))}
    distractors: list[str] = []
    for candidate in _shuffled(same_topic, rng) + _shuffled(others, rng):
        if len(distractors) >= DISTRACTOR_COUNT:
            break
        value = value_of(candidate)
        if not _key(value) or _key(value) in seen:
            continue
        seen.add(_key(value))
        distractors.append(value)

    n = 1
    while len(distractors) < DISTRACTOR_COUNT:
        filler = placeholder.format(n)
        n += 1
        if _key(filler) in seen:
            continue
        seen.add(_key(filler))
        distractors.append(filler)
    return distractors


def _term_options(item, corpus, rng) -> tuple[str, ...]:
    distractors = _sample_distractors(item, corpus, lambda w: w.term, "word{}", rng)
    return tuple(_shuffled([item.term, *distractors], rng))


def _meaning_options(item, corpus, rng) -> tuple[str, ...]:
    distractors = _sample_distractors(item, corpus, lambda w: w.display_meaning, "meaning {}", rng)
    return tuple(_shuffled([item.display_meaning, *distractors], rng))


def _new_id() -> str:
    return str(uuid.uuid4())


def _gap_fill(question_type: str, item, corpus, rng) -> StudyQuestion | None:
    if not term_in_example(item):
        return None
    return StudyQuestion(
        id=_new_id(),
        item=item,
        question_type=question_type,
        prompt=PROMPTS[question_type],
        correct_answer=item.term,
        options=_term_options(item, corpus, rng),
        cloze_text=_term_pattern(item.term).sub(BLANK, item.example),
    )


def gap_fill_text(item, corpus, rng) -> StudyQuestion | None:
    return _gap_fill("gap_fill_text", item, corpus, rng)


def gap_fill_audio(item, corpus, rng) -> StudyQuestion | None:
    # Same data as the text variant; the options are played rather than shown.
    return _gap_fill("gap_fill_audio", item, corpus, rng)


def context_meaning(item, corpus, rng) -> StudyQuestion:
    highlighted = item.example
    if item.term.strip():
        highlighted = _term_pattern(item.term).sub(lambda m: f"<u>{m.group(0)}</u>", item.example)
    return StudyQuestion(
        id=_new_id(),
        item=item,
        question_type="context_meaning",
        prompt=PROMPTS["context_meaning"],
        correct_answer=item.display_meaning,
        options=_meaning_options(item, corpus, rng),
        highlighted_text=highlighted,
    )


def simple_meaning(item, corpus, rng) -> StudyQuestion:
    return StudyQuestion(
        id=_new_id(),
        item=item,
        question_type="simple_meaning",
        prompt=f'What does "{item.term}" mean?',
        correct_answer=item.display_meaning,
        options=_meaning_options(item, corpus, rng),
    )


def dictation(item, corpus, rng) -> StudyQuestion:
    return StudyQuestion(
        id=_new_id(),
        item=item,
        question_type="dictation",
        prompt=PROMPTS["dictation"],
        correct_answer=item.term,
    )


def translation(item, corpus, rng) -> StudyQuestion:
    return StudyQuestion(
        id=_new_id(),
        item=item,
        question_type="translation",
        prompt=item.display_meaning,
        correct_answer=item.term,
    )


BUILDERS = {
    "gap_fill_text": gap_fill_text,
    "gap_fill_audio": gap_fill_audio,
    "context_meaning": context_meaning,
    "simple_meaning": simple_meaning,
    "dictation": dictation,
    "translation": translation,
}


def generate_question(
    item: VocabularyItem,
    corpus: Sequence[VocabularyItem],
    preferred_type: str | None = None,
    rng: RandomSource | None = None,
) -> StudyQuestion:
    """Generate one question for *item*.

    The preferred type wins when the item supports it; otherwise a type is
    drawn uniformly from the ones the item supports.
    """
    if preferred_type is not None and preferred_type not in BUILDERS:
        raise ValueError(f"Unknown question type: {preferred_type!r}")
    rng = rng or random
    available = available_types(item)
    question_type = preferred_type if preferred_type in available else _pick(available, rng)
    question = BUILDERS[question_type](item, corpus, rng)
    _log.debug("Generated %s for '%s'", question_type, item.term)
    return question


def generate_session_questions(
    items: Sequence[VocabularyItem],
    corpus: Sequence[VocabularyItem],
    rng: RandomSource | None = None,
) -> list[StudyQuestion]:
    """One question per item, cycling through a shuffled order of all six types."""
    rng = rng or random
    if not items:
        return []
    types = _shuffled(QUESTION_TYPES, rng)
    questions: list[StudyQuestion] = []
    for i, item in enumerate(items):
        question_type = types[i % len(types)]
        if question_type not in available_types(item):
            question_type = FALLBACK_TYPES[question_type]
        questions.append(BUILDERS[question_type](item, corpus, rng))
        _log.debug("[%d/%d] %s for '%s'", i + 1, len(items), question_type, item.term)
    return questions

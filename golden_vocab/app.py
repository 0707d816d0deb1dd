"""FastAPI application exposing the store and a study session."""
from __future__ import annotations

import logging
import random
from datetime import datetime

logging.basicConfig(level=logging.INFO, format="%(name)s | %(message)s")

from fastapi import FastAPI, HTTPException, Request

from golden_vocab.config import Settings, load_settings, save_settings
from golden_vocab.models import DIFFICULTIES, AnswerRecord, StudyQuestion, VocabularyItem
from golden_vocab.session import SessionStateError, StudySession
from golden_vocab.srs import level_info
from golden_vocab.store import VocabularyStore, item_from_dict

app = FastAPI(title="Golden Vocab")

# Global state (initialized in startup)
_store: VocabularyStore | None = None
_settings: Settings | None = None
_session: StudySession | None = None


def get_store() -> VocabularyStore:
    assert _store is not None
    return _store


def get_settings() -> Settings:
    assert _settings is not None
    return _settings


def get_session() -> StudySession:
    global _session
    if _session is None:
        _session = StudySession(get_store().record_review, rng=random.Random())
    return _session


@app.on_event("startup")
async def startup():
    global _store, _settings
    if _store is not None:
        return  # Already initialized (e.g. by tests)
    _settings = load_settings()
    logging.getLogger().setLevel(_settings.log_level)
    _store = VocabularyStore(history_days=_settings.stats_history_days)


# ── Serialization ─────────────────────────────────────────────────────────

def _dt(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


async def _json_object(request: Request) -> dict:
    """Request body as a JSON object; an empty body counts as ``{}``."""
    if not await request.body():
        return {}
    try:
        body = await request.json()
    except ValueError:
        raise HTTPException(400, "Body is not valid JSON")
    if not isinstance(body, dict):
        raise HTTPException(400, "Expected a JSON object")
    return body


def _item_payload(item: VocabularyItem) -> dict:
    return {
        "id": item.id,
        "term": item.term,
        "meaning": item.meaning,
        "secondary_meaning": item.secondary_meaning,
        "example": item.example,
        "example_translation": item.example_translation,
        "topic": item.topic,
        "source": item.source,
        "level": item.level,
        "level_label": level_info(item.level)["label"],
        "next_review": _dt(item.next_review),
        "last_reviewed": _dt(item.last_reviewed),
        "correct_count": item.correct_count,
        "incorrect_count": item.incorrect_count,
        "created_at": _dt(item.created_at),
    }


def _question_payload(q: StudyQuestion) -> dict:
    return {
        "id": q.id,
        "word_id": q.item.id,
        "term": q.item.term,
        "question_type": q.question_type,
        "prompt": q.prompt,
        "options": list(q.options) if q.options is not None else None,
        "cloze_text": q.cloze_text,
        "highlighted_text": q.highlighted_text,
    }


def _answer_payload(r: AnswerRecord) -> dict:
    return {
        "question_id": r.question_id,
        "word_id": r.word_id,
        "user_answer": r.user_answer,
        "correct_answer": r.correct_answer,
        "is_correct": r.is_correct,
        "difficulty": r.difficulty,
        "answered_at": _dt(r.answered_at),
    }


def _session_payload(session: StudySession) -> dict:
    q = session.current_question
    return {
        "state": session.state,
        "current_question": _question_payload(q) if q else None,
        "current_index": session.current_index,
        "total_questions": session.total_questions,
        "answered_count": session.answered_count,
        "progress": round(session.progress, 1),
    }


# ── API: Stats and words ──────────────────────────────────────────────────

@app.get("/api/stats")
async def api_stats():
    return get_store().get_stats()


@app.get("/api/words")
async def api_words():
    return [_item_payload(i) for i in get_store().items()]


@app.post("/api/words")
async def api_add_words(request: Request):
    body = await request.json()
    if not isinstance(body, list):
        raise HTTPException(400, "Expected a list of words")
    try:
        items = [item_from_dict(d) for d in body]
    except (ValueError, TypeError) as e:
        raise HTTPException(400, str(e))
    get_store().add_items(items)
    return {"added": len(items), "ids": [i.id for i in items], "total": len(get_store().items())}


@app.delete("/api/words/{word_id}")
async def api_delete_word(word_id: str):
    if not get_store().delete_item(word_id):
        raise HTTPException(404, "Word not found")
    return {"deleted": word_id}


# ── API: Session ──────────────────────────────────────────────────────────

@app.post("/api/session/start")
async def api_session_start(request: Request):
    body = await _json_object(request)
    count = body.get("count", get_settings().session_size)
    session = get_session()
    try:
        started = session.start(get_store().items(), count)
    except ValueError as e:
        raise HTTPException(400, str(e))
    if not started:
        raise HTTPException(409, "No words available for a session")
    return _session_payload(session)


@app.get("/api/session")
async def api_session():
    return _session_payload(get_session())


@app.post("/api/session/answer")
async def api_session_answer(request: Request):
    body = await _json_object(request)
    difficulty = body.get("difficulty", get_settings().default_difficulty)
    if difficulty not in DIFFICULTIES:
        raise HTTPException(400, f"Unknown difficulty: {difficulty}")
    session = get_session()
    try:
        session.submit_answer(str(body.get("answer", "")), difficulty)
    except SessionStateError as e:
        raise HTTPException(409, str(e))
    return _answer_payload(session.answers[session.current_question.id])


@app.post("/api/session/skip")
async def api_session_skip():
    session = get_session()
    try:
        session.skip()
    except SessionStateError as e:
        raise HTTPException(409, str(e))
    return _answer_payload(session.answers[session.current_question.id])


@app.post("/api/session/next")
async def api_session_next():
    session = get_session()
    try:
        has_next = session.advance()
    except SessionStateError as e:
        raise HTTPException(409, str(e))
    return {"has_next": has_next, **_session_payload(session)}


@app.post("/api/session/end")
async def api_session_end():
    try:
        result = get_session().end()
    except SessionStateError as e:
        raise HTTPException(409, str(e))
    return {
        "total_questions": result.total_questions,
        "correct_answers": result.correct_answers,
        "accuracy": round(result.accuracy, 1),
        "words_leveled_up": [_item_payload(i) for i in result.words_leveled_up],
        "words_leveled_down": [_item_payload(i) for i in result.words_leveled_down],
        "duration_seconds": result.duration_seconds,
    }


@app.post("/api/session/reset")
async def api_session_reset():
    session = get_session()
    session.reset()
    return _session_payload(session)


# ── API: Settings ─────────────────────────────────────────────────────────

@app.get("/api/settings")
async def api_get_settings():
    return get_settings().to_dict()


@app.put("/api/settings")
async def api_update_settings(request: Request):
    body = await _json_object(request)
    s = get_settings()
    try:
        candidate = s.updated(body)
    except (ValueError, TypeError) as e:
        raise HTTPException(400, str(e))
    for key, value in candidate.to_dict().items():
        setattr(s, key, value)
    logging.getLogger().setLevel(s.log_level)
    get_store().set_history_days(s.stats_history_days)
    save_settings(s)
    return s.to_dict()

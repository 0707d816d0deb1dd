"""CLI entry point for golden-vocab.

Usage:
  python -m golden_vocab serve [--port PORT] [--host HOST]
  python -m golden_vocab study WORDS.json [--count N] [--difficulty easy|good|hard]

``study`` runs one session in the terminal. Type the answer, or the number
of a listed option; an empty line skips the question and ``q`` ends early.
"""
from __future__ import annotations

import logging
import random
import sys
from collections.abc import Callable

from golden_vocab.config import load_settings
from golden_vocab.models import DIFFICULTIES
from golden_vocab.session import StudySession
from golden_vocab.srs import level_info
from golden_vocab.store import VocabularyStore, read_word_file

USAGE = __doc__.split("\n\n")[1]

_log = logging.getLogger("golden_vocab.cli")


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    command, rest = (args[0], args[1:]) if args else ("serve", [])
    handler = COMMANDS.get(command)
    if handler is None:
        print(f"Unknown command: {command}")
        print(USAGE)
        return 1
    try:
        return handler(rest)
    except (OSError, ValueError) as e:
        print(f"Error: {e}")
        return 1


def _option(args: list[str], name: str, default: str | None = None) -> str | None:
    if name in args:
        i = args.index(name)
        if i + 1 >= len(args):
            raise ValueError(f"{name} needs a value")
        return args[i + 1]
    return default


def _positionals(args: list[str]) -> list[str]:
    out, skip = [], False
    for a in args:
        if skip:
            skip = False
        elif a.startswith("--"):
            skip = True
        else:
            out.append(a)
    return out


# ── serve ─────────────────────────────────────────────────────────────────

def _serve(args: list[str]) -> int:
    import uvicorn

    port = int(_option(args, "--port", "8765"))
    host = _option(args, "--host", "127.0.0.1")
    print(f"Starting Golden Vocab on http://{host}:{port}")
    print("Press Ctrl+C to stop\n")
    uvicorn.run("golden_vocab.app:app", host=host, port=port, reload=False)
    return 0


# ── study ─────────────────────────────────────────────────────────────────

def run_study(
    session: StudySession,
    difficulty: str,
    ask: Callable[[str], str] = input,
    out: Callable[[str], None] = print,
) -> None:
    """Drive an active session from typed answers until it ends."""
    while True:
        q = session.current_question
        out(f"\n[{session.current_index + 1}/{session.total_questions}] {q.prompt}")
        if q.cloze_text:
            out(f"  {q.cloze_text}")
        if q.options:
            for n, option in enumerate(q.options, 1):
                out(f"  {n}. {option}")

        reply = ask("> ").strip()
        if reply.lower() == "q":
            break
        if not reply:
            session.skip()
            out(f"  Skipped. Answer: {q.correct_answer}")
        else:
            if q.options and reply.isdigit() and 1 <= int(reply) <= len(q.options):
                reply = q.options[int(reply) - 1]
            if session.submit_answer(reply, difficulty):
                out("  Correct!")
            else:
                out(f"  Wrong. Answer: {q.correct_answer}")

        if not session.advance():
            break

    result = session.end()
    out(f"\n{result.correct_answers}/{result.total_questions} correct ({result.accuracy:.0f}%)")
    for item in result.words_leveled_up:
        out(f"  + {item.term}")
    for item in result.words_leveled_down:
        out(f"  - {item.term}")


def _study(args: list[str]) -> int:
    paths = _positionals(args)
    if len(paths) != 1:
        print(USAGE)
        return 1
    settings = load_settings()
    logging.basicConfig(level=settings.log_level, format="%(name)s | %(message)s")
    count = int(_option(args, "--count", str(settings.session_size)))
    difficulty = _option(args, "--difficulty", settings.default_difficulty)
    if difficulty not in DIFFICULTIES:
        raise ValueError(f"difficulty must be one of {', '.join(DIFFICULTIES)}")

    store = VocabularyStore(history_days=settings.stats_history_days)
    store.add_items(read_word_file(paths[0]))
    session = StudySession(store.record_review, rng=random.Random())
    if not session.start(store.items(), count):
        print("No words to study.")
        return 0
    _log.debug("Studying %d words from %s", session.total_questions, paths[0])
    run_study(session, difficulty)

    by_level: dict[str, int] = {}
    for item in store.items():
        label = level_info(item.level)["label"]
        by_level[label] = by_level.get(label, 0) + 1
    print("Levels: " + ", ".join(f"{label} {n}" for label, n in by_level.items()))
    return 0


COMMANDS: dict[str, Callable[[list[str]], int]] = {
    "serve": _serve,
    "study": _study,
}


if __name__ == "__main__":
    sys.exit(main())

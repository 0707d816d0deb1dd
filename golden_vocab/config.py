from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, fields
from pathlib import Path

from golden_vocab.models import check_difficulty

CONFIG_PATH = Path(__file__).resolve().parent.parent / "config.json"

DEFAULTS = {
    "session_size": 10,
    "stats_history_days": 30,
    "default_difficulty": "good",
    "log_level": "INFO",
}


def _check_count(name: str, value, minimum: int) -> None:
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
        raise ValueError(f"{name} must be an integer >= {minimum}, got {value!r}")


@dataclass
class Settings:
    session_size: int = DEFAULTS["session_size"]
    stats_history_days: int = DEFAULTS["stats_history_days"]
    default_difficulty: str = DEFAULTS["default_difficulty"]
    log_level: str = DEFAULTS["log_level"]

    def __post_init__(self):
        _check_count("session_size", self.session_size, 1)
        _check_count("stats_history_days", self.stats_history_days, 1)
        check_difficulty(self.default_difficulty)
        if not isinstance(self.log_level, str) or not isinstance(logging.getLevelName(self.log_level.upper()), int):
            raise ValueError(f"Unknown log level: {self.log_level!r}")
        self.log_level = self.log_level.upper()

    def to_dict(self) -> dict:
        return asdict(self)

    def updated(self, changes: dict) -> "Settings":
        """Return a validated copy with known fields from ``changes`` applied."""
        known = {f.name for f in fields(self)}
        merged = self.to_dict()
        merged.update({k: v for k, v in changes.items() if k in known})
        return Settings(**merged)


def load_settings() -> Settings:
    if CONFIG_PATH.exists():
        raw = json.loads(CONFIG_PATH.read_text())
        return Settings().updated(raw)
    return Settings()


def save_settings(settings: Settings) -> None:
    CONFIG_PATH.write_text(json.dumps(settings.to_dict(), indent=4) + "\n")

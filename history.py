"""
Conversation history.

Turns are kept as display-ready strings and persisted under a single key of
a small JSON key/value file, rewritten in full after every append. Storage
failures are logged and otherwise ignored; the in-memory list stays
authoritative for the session.
"""
import json
import logging
import os
from dataclasses import asdict, dataclass
from pathlib import Path

import config

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Turn:
    you_src: str
    you_tgt: str
    bot_src: str
    bot_tgt: str

    @classmethod
    def from_record(cls, record: dict) -> "Turn":
        return cls(**{name: str(record.get(name) or "") for name in ("you_src", "you_tgt", "bot_src", "bot_tgt")})

    def to_record(self) -> dict:
        return asdict(self)


class HistoryStore:
    """Key/value persistence for the turn log."""

    def __init__(self, path=None, key: str = config.HISTORY_KEY):
        self.path = Path(path or config.HISTORY_PATH)
        self.key = key

    def _read_all(self) -> dict:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        return data if isinstance(data, dict) else {}

    def _write_all(self, data: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")
        os.replace(tmp, self.path)

    def load(self) -> list:
        """Return persisted turns; absent or corrupt data yields []."""
        try:
            saved = self._read_all().get(self.key, [])
        except (OSError, ValueError) as e:
            logger.debug("History read failed: %s", e)
            return []
        if not isinstance(saved, list):
            return []
        return [Turn.from_record(item) for item in saved if isinstance(item, dict)]

    def save(self, turns) -> None:
        try:
            try:
                data = self._read_all()
            except ValueError:
                data = {}
            data[self.key] = [turn.to_record() for turn in turns]
            self._write_all(data)
        except OSError as e:
            logger.debug("History write failed: %s", e)

    def remove(self) -> None:
        try:
            data = self._read_all()
            if self.key in data:
                del data[self.key]
                self._write_all(data)
        except (OSError, ValueError) as e:
            logger.debug("History remove failed: %s", e)

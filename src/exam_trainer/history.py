"""History Store: Bounded, newest-first log of evaluated attempts."""

import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional

from exam_trainer.errors import ConfigurationError
from exam_trainer.question_bank import SelectedQuestion
from exam_trainer.scorer import ExamResult
from exam_trainer.storage import KeyValueStore

logger = logging.getLogger(__name__)

DEFAULT_STORAGE_KEY = "exam-trainer-history"
MAX_ENTRIES = 10


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class HistoryEntry:
    """A completed attempt as stored in history. Treated as immutable."""

    def __init__(self, id: str, date: str, questions: List[SelectedQuestion],
                 user_answers: Dict[int, int], result: ExamResult):
        self.id = id
        self.date = date
        self.questions = tuple(questions)
        self.user_answers = dict(user_answers)
        self.result = result

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "date": self.date,
            "questions": [q.to_dict() for q in self.questions],
            "userAnswers": {str(k): v for k, v in sorted(self.user_answers.items())},
            "results": self.result.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "HistoryEntry":
        entry = cls(
            id=str(data["id"]),
            date=data.get("date", ""),
            questions=[SelectedQuestion.from_dict(q) for q in data.get("questions", [])],
            user_answers={int(k): int(v) for k, v in (data.get("userAnswers") or {}).items()},
            result=ExamResult.from_dict(data["results"]),
        )
        entry.validate()
        return entry

    def validate(self):
        """Raise ConfigurationError if the stored attempt cannot be replayed."""
        for position, question in enumerate(self.questions):
            question.validate(f"{question.group_id} (position {position})")
        for position, answer in self.user_answers.items():
            if not 0 <= position < len(self.questions):
                raise ConfigurationError(
                    f"Entry {self.id}: answer for position {position} but only "
                    f"{len(self.questions)} questions"
                )
            if not 0 <= answer < len(self.questions[position].answers):
                raise ConfigurationError(
                    f"Entry {self.id}: answer index {answer} out of range at position {position}"
                )


class HistoryStore:
    """
    Keeps the last `max_entries` attempts under a single storage key.
    Storage failures never reach the caller: reads degrade to an empty
    history and failed writes only cost durability.
    """

    def __init__(self, store: Optional[KeyValueStore], key: str = DEFAULT_STORAGE_KEY,
                 max_entries: int = MAX_ENTRIES):
        self._store = store
        self.key = key
        self.max_entries = max_entries
        self._entries: Optional[List[HistoryEntry]] = None

    def _load(self) -> Optional[List[HistoryEntry]]:
        """Parsed entries, or None when the store itself could not be read."""
        if self._store is None:
            return []
        try:
            raw = self._store.get(self.key)
        except Exception as e:
            logger.error(f"Failed to read history: {e}")
            return None
        if not raw:
            return []
        try:
            data = json.loads(raw)
        except (TypeError, ValueError) as e:
            logger.warning(f"Stored history is not valid JSON, ignoring it: {e}")
            return []
        if not isinstance(data, list):
            logger.warning("Stored history is not a list, ignoring it.")
            return []

        entries = []
        for item in data:
            try:
                entries.append(HistoryEntry.from_dict(item))
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                logger.warning(f"Skipping malformed history entry: {e}")
        return entries[:self.max_entries]

    def _save(self, entries: List[HistoryEntry]):
        self._entries = entries
        if self._store is None:
            return
        try:
            self._store.set(self.key, json.dumps([e.to_dict() for e in entries], ensure_ascii=False))
        except Exception as e:
            logger.error(f"Failed to save history: {e}")

    def _current(self) -> Optional[List[HistoryEntry]]:
        # A failed read is not cached, so the next access tries the store again
        if self._entries is None:
            self._entries = self._load()
        return self._entries

    def reload(self) -> List[HistoryEntry]:
        self._entries = None
        return self.list()

    def list(self) -> List[HistoryEntry]:
        """Return saved attempts, newest first."""
        return list(self._current() or [])

    def get(self, entry_id: str) -> Optional[HistoryEntry]:
        for entry in self._current() or []:
            if entry.id == entry_id:
                return entry
        return None

    def append(self, questions: List[SelectedQuestion], answers: Dict[int, int],
               result: ExamResult) -> HistoryEntry:
        """Prepend a new entry and drop anything past the capacity."""
        entry = HistoryEntry(
            id=str(uuid.uuid4()),
            date=_utc_now_iso(),
            questions=questions,
            user_answers=answers,
            result=result,
        )
        current = self._current()
        if current is None:
            # Never overwrite a stored blob that could not be read
            logger.warning(f"History unreadable; attempt {entry.id} was not saved")
            return entry
        entries = [entry] + current
        self._save(entries[:self.max_entries])
        logger.info(f"Saved attempt {entry.id} ({result.correct}/{result.total})")
        return entry

    def remove(self, entry_id: str):
        entries = self._current()
        if entries is None:
            return
        remaining = [e for e in entries if e.id != entry_id]
        if len(remaining) == len(entries):
            logger.debug(f"History entry {entry_id} not found; nothing removed")
            return
        self._save(remaining)

    def clear(self):
        self._entries = []
        if self._store is None:
            return
        try:
            self._store.remove(self.key)
        except Exception as e:
            logger.error(f"Failed to clear history: {e}")

"""Exam App: Screen navigation and user intents on top of the session."""

import logging
import threading
from typing import List, Optional

from exam_trainer.errors import InvalidArgumentError
from exam_trainer.history import HistoryEntry, HistoryStore
from exam_trainer.scorer import ExamResult
from exam_trainer.session import EVALUATED, ExamSession

logger = logging.getLogger(__name__)

SCREEN_START = "start"
SCREEN_EXAM = "exam"
SCREEN_RESULTS = "results"


class ExamApp:
    """
    Presentation-neutral controller. A front end renders `screen`,
    `current_index` and the session state, and forwards user intents here.
    """

    def __init__(self, session: ExamSession, history: Optional[HistoryStore] = None):
        self.session = session
        self.history_store = history if history is not None else session.history
        self.screen = SCREEN_START
        self.current_index = 0
        self._lock = threading.RLock()
        self.session.add_listener("started", self._reset_view)
        self.session.add_listener("evaluated", self._show_results)
        self.session.add_listener("loaded", lambda entry: self._show_results(entry.result))

    def _reset_view(self, *args):
        self.current_index = 0

    def _show_results(self, result: ExamResult):
        with self._lock:
            self.screen = SCREEN_RESULTS
            self.current_index = 0

    # --- intents ---

    def start_new_test(self):
        # The tick thread takes the session lock before ours
        self.session.start()
        with self._lock:
            self.screen = SCREEN_EXAM

    def select_answer(self, position: int, answer_index: int) -> bool:
        return self.session.record_answer(position, answer_index)

    def navigate(self, position: int):
        with self._lock:
            if not isinstance(position, int) or not 0 <= position < self.session.question_count():
                raise InvalidArgumentError(f"Cannot navigate to question {position!r}")
            self.current_index = position

    def next_question(self) -> bool:
        with self._lock:
            if self.current_index < self.session.question_count() - 1:
                self.current_index += 1
                return True
            return False

    def previous_question(self) -> bool:
        with self._lock:
            if self.current_index > 0:
                self.current_index -= 1
                return True
            return False

    def evaluate(self) -> Optional[ExamResult]:
        return self.session.evaluate()

    def show_results(self):
        with self._lock:
            if self.session.result is None:
                raise InvalidArgumentError("No result to show before the test is evaluated")
            self.screen = SCREEN_RESULTS

    def review_answers(self):
        """Go from the results screen back to the (read-only) questions."""
        with self._lock:
            if self.session.phase != EVALUATED:
                raise InvalidArgumentError("Nothing to review before the test is evaluated")
            self.screen = SCREEN_EXAM
            self.current_index = 0

    def load_history_entry(self, entry_id: str) -> HistoryEntry:
        entry = self.history_store.get(entry_id) if self.history_store else None
        if entry is None:
            raise InvalidArgumentError(f"No saved attempt with id {entry_id!r}")
        self.session.load_for_review(entry)
        return entry

    def delete_history_entry(self, entry_id: str):
        if self.history_store is not None:
            self.history_store.remove(entry_id)
            logger.info(f"Deleted attempt {entry_id}")

    def return_to_start(self):
        self.session.abandon()
        with self._lock:
            self.screen = SCREEN_START
            self.current_index = 0

    # --- read side ---

    def history(self) -> List[HistoryEntry]:
        return self.history_store.list() if self.history_store else []

    def current_question(self):
        if not self.session.question_count():
            return None
        return self.session.questions[self.current_index]

    def question_statuses(self) -> List[str]:
        return [self.session.question_status(i) for i in range(self.session.question_count())]

    def remaining_seconds(self) -> Optional[float]:
        return self.session.remaining_seconds()

    def time_band(self) -> Optional[str]:
        return self.session.time_band()

    def snapshot(self) -> dict:
        """Everything a renderer needs for the current screen."""
        result = self.session.result
        return {
            "screen": self.screen,
            "phase": self.session.phase,
            "current_index": self.current_index,
            "question_count": self.session.question_count(),
            "answered_count": self.session.answered_count(),
            "statuses": self.question_statuses(),
            "remaining_seconds": self.remaining_seconds(),
            "time_band": self.time_band(),
            "result": result.to_dict() if result else None,
        }

"""Exam Session: Lifecycle of a single attempt from start to evaluation."""

import logging
import threading
import time
from typing import Callable, Dict, List, Optional

from exam_trainer.config import ExamConfig
from exam_trainer.countdown import Countdown, RepeatingTimer
from exam_trainer.errors import InvalidArgumentError
from exam_trainer.exam_generator import ExamGenerator
from exam_trainer.history import HistoryEntry, HistoryStore
from exam_trainer.question_bank import SelectedQuestion
from exam_trainer.scorer import ExamResult, score

logger = logging.getLogger(__name__)

NOT_STARTED = "not_started"
IN_PROGRESS = "in_progress"
EVALUATED = "evaluated"

STATUS_UNANSWERED = "unanswered"
STATUS_ANSWERED = "answered"
STATUS_CORRECT = "correct"
STATUS_INCORRECT = "incorrect"

EVENTS = ("started", "tick", "expired", "evaluated", "loaded")


class ExamSession:
    """
    State machine for one attempt: not_started -> in_progress -> evaluated.

    The transition to `evaluated` is the only gate for scoring and saving,
    so a manual submit racing the timer expiry still produces one history
    entry. The countdown tick is owned by the session while the attempt is
    in progress and is cancelled on every path out of that phase.
    """

    def __init__(self, generator: ExamGenerator, history: Optional[HistoryStore] = None,
                 config: Optional[ExamConfig] = None, clock: Callable[[], float] = time.time,
                 timer_factory: Callable = RepeatingTimer):
        self.generator = generator
        self.history = history
        self.config = config or ExamConfig()
        self._clock = clock
        self._timer_factory = timer_factory
        self._lock = threading.RLock()
        self._listeners: Dict[str, List[Callable]] = {event: [] for event in EVENTS}

        self._phase = NOT_STARTED
        self._questions: List[SelectedQuestion] = []
        self._answers: Dict[int, int] = {}
        self._start_time: Optional[float] = None
        self._result: Optional[ExamResult] = None
        self._entry: Optional[HistoryEntry] = None
        self._countdown: Optional[Countdown] = None
        self._timer = None

    # --- listeners ---

    def add_listener(self, event: str, callback: Callable):
        if event not in self._listeners:
            raise InvalidArgumentError(f"Unknown session event {event!r}")
        self._listeners[event].append(callback)

    def _emit(self, event: str, *args):
        for callback in list(self._listeners[event]):
            try:
                callback(*args)
            except Exception as e:
                logger.error(f"Listener for {event!r} failed: {e}")

    # --- read side ---

    @property
    def phase(self) -> str:
        return self._phase

    @property
    def is_read_only(self) -> bool:
        return self._phase == EVALUATED

    @property
    def questions(self) -> List[SelectedQuestion]:
        return list(self._questions)

    @property
    def answers(self) -> Dict[int, int]:
        return dict(self._answers)

    @property
    def result(self) -> Optional[ExamResult]:
        return self._result

    @property
    def entry(self) -> Optional[HistoryEntry]:
        """History entry of the evaluated or reviewed attempt, if it has one."""
        return self._entry

    @property
    def start_time(self) -> Optional[float]:
        return self._start_time

    @property
    def timer_active(self) -> bool:
        return self._timer is not None

    def question_count(self) -> int:
        return len(self._questions)

    def answered_count(self) -> int:
        return len(self._answers)

    def question_status(self, position: int) -> str:
        self._check_position(position)
        answer = self._answers.get(position)
        if answer is None:
            return STATUS_UNANSWERED
        if self._phase != EVALUATED:
            return STATUS_ANSWERED
        return STATUS_CORRECT if self._questions[position].is_correct(answer) else STATUS_INCORRECT

    def remaining_seconds(self) -> Optional[float]:
        """Remaining time while in progress, otherwise None."""
        countdown = self._countdown
        if self._phase != IN_PROGRESS or countdown is None:
            return None
        return countdown.remaining()

    def time_band(self) -> Optional[str]:
        countdown = self._countdown
        if self._phase != IN_PROGRESS or countdown is None:
            return None
        return countdown.band()

    # --- transitions ---

    def start(self) -> List[SelectedQuestion]:
        """Generate a fresh test and begin timing it."""
        with self._lock:
            questions = self.generator.generate()
            self._release_timer()
            self._questions = questions
            self._answers = {}
            self._result = None
            self._entry = None
            self._start_time = self._clock()
            self._phase = IN_PROGRESS
            self._acquire_timer()
            logger.info(f"Started test with {len(questions)} questions")
            self._emit("started")
            return list(questions)

    def record_answer(self, position: int, answer_index: int) -> bool:
        """Select an answer. Returns False if the attempt is already evaluated."""
        with self._lock:
            if self._phase == EVALUATED:
                logger.debug(f"Ignoring answer for question {position}: test already evaluated")
                return False
            self._check_position(position)
            answers = self._questions[position].answers
            if not isinstance(answer_index, int) or not 0 <= answer_index < len(answers):
                raise InvalidArgumentError(
                    f"Answer index {answer_index!r} out of range for question {position} "
                    f"({len(answers)} answers)"
                )
            self._answers[position] = answer_index
            return True

    def evaluate(self) -> Optional[ExamResult]:
        """Freeze answers, score them and save the attempt. Repeated calls are no-ops."""
        with self._lock:
            if self._phase == EVALUATED:
                logger.debug("Evaluate ignored: test already evaluated")
                return self._result
            if self._phase == NOT_STARTED:
                logger.warning("Evaluate ignored: no test in progress")
                return None

            self._phase = EVALUATED
            self._release_timer()
            elapsed = int(max(0.0, self._clock() - self._start_time))
            self._result = score(self._questions, self._answers, elapsed, self.config.pass_threshold)
            logger.info(
                f"Test evaluated: {self._result.correct}/{self._result.total} "
                f"({self._result.percentage}%), passed={self._result.passed}, elapsed={elapsed}s"
            )
            if self.history is not None:
                self._entry = self.history.append(self._questions, dict(self._answers), self._result)
            self._emit("evaluated", self._result)
            return self._result

    def load_for_review(self, entry: HistoryEntry):
        """Replace the session with a read-only view of a saved attempt."""
        with self._lock:
            self._release_timer()
            self._questions = list(entry.questions)
            self._answers = dict(entry.user_answers)
            self._result = entry.result
            self._entry = entry
            self._start_time = None
            self._phase = EVALUATED
            logger.info(f"Loaded attempt {entry.id} for review")
            self._emit("loaded", entry)

    def abandon(self):
        """Discard an in-progress attempt without scoring or saving it."""
        with self._lock:
            if self._phase != IN_PROGRESS:
                return
            self._release_timer()
            self._questions = []
            self._answers = {}
            self._start_time = None
            self._phase = NOT_STARTED
            logger.info("Abandoned test in progress")

    def close(self):
        """Stop the countdown tick without evaluating."""
        with self._lock:
            self._release_timer()

    # --- internals ---

    def _check_position(self, position: int):
        if not isinstance(position, int) or not 0 <= position < len(self._questions):
            raise InvalidArgumentError(
                f"Question position {position!r} out of range (0..{len(self._questions) - 1})"
            )

    def _acquire_timer(self):
        countdown = Countdown(
            time_limit=self.config.time_limit,
            start_time=self._start_time,
            on_expire=self._on_expire,
            clock=self._clock,
            warning_threshold=self.config.warning_threshold,
            critical_threshold=self.config.critical_threshold,
        )
        self._countdown = countdown
        self._timer = self._timer_factory(self.config.tick_interval, lambda: self._tick(countdown))
        self._timer.start()

    def _release_timer(self):
        timer = self._timer
        self._timer = None
        self._countdown = None
        if timer is not None:
            timer.cancel()

    def _tick(self, countdown: Countdown):
        with self._lock:
            # A tick queued for a previous attempt must not touch this one
            if countdown is not self._countdown or self._phase != IN_PROGRESS:
                return
            remaining = countdown.tick()
            if self._phase == IN_PROGRESS:
                self._emit("tick", remaining, countdown.band(remaining))

    def _on_expire(self):
        self._emit("expired")
        self.evaluate()

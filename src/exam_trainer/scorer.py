"""Scorer: Turns a finished attempt into a result summary."""

import math
from typing import Dict, List, Optional


class ExamResult:
    """Holds the outcome of an evaluated test."""

    def __init__(self, correct: int, total: int, passed: bool, percentage: int,
                 elapsed_seconds: Optional[int] = None):
        self.correct = correct
        self.total = total
        self.passed = passed
        self.percentage = percentage
        self.elapsed_seconds = elapsed_seconds  # None for entries saved without timing

    def to_dict(self) -> dict:
        data = {
            "correct": self.correct,
            "total": self.total,
            "passed": self.passed,
            "percentage": self.percentage,
        }
        if self.elapsed_seconds is not None:
            data["elapsedSeconds"] = self.elapsed_seconds
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "ExamResult":
        elapsed = data.get("elapsedSeconds")
        return cls(
            correct=int(data["correct"]),
            total=int(data["total"]),
            passed=bool(data["passed"]),
            percentage=int(data["percentage"]),
            elapsed_seconds=int(elapsed) if elapsed is not None else None,
        )

    def __eq__(self, other):
        if not isinstance(other, ExamResult):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self):
        return (f"ExamResult(correct={self.correct}, total={self.total}, passed={self.passed}, "
                f"percentage={self.percentage}, elapsed_seconds={self.elapsed_seconds})")


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def count_correct(questions: List, answers: Dict[int, int]) -> int:
    return sum(1 for i, q in enumerate(questions) if q.is_correct(answers.get(i)))


def score(questions: List, answers: Dict[int, int], elapsed_seconds: Optional[int],
          pass_threshold: int) -> ExamResult:
    """Score a test. Unanswered positions count as incorrect."""
    total = len(questions)
    correct = count_correct(questions, answers)
    percentage = round_half_up(100 * correct / total) if total else 0
    return ExamResult(
        correct=correct,
        total=total,
        passed=correct >= pass_threshold,
        percentage=percentage,
        elapsed_seconds=elapsed_seconds,
    )


def format_elapsed(seconds: Optional[int]) -> str:
    """Format seconds as m:ss, or 'unknown' when timing was not recorded."""
    if seconds is None:
        return "unknown"
    minutes, secs = divmod(int(seconds), 60)
    return f"{minutes}:{secs:02d}"

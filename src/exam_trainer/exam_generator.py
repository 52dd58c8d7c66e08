"""Exam Generator: Draws one random question from each topic group."""

import logging
from typing import List, Optional

import numpy as np

from exam_trainer.errors import ConfigurationError
from exam_trainer.question_bank import QuestionBank, SelectedQuestion

logger = logging.getLogger(__name__)


class ExamGenerator:
    """Builds randomized test instances from a question bank."""

    def __init__(self, bank: QuestionBank, rng: Optional[np.random.Generator] = None):
        self.bank = bank
        self._rng = rng if rng is not None else np.random.default_rng()

    @classmethod
    def seeded(cls, bank: QuestionBank, seed: Optional[int]) -> "ExamGenerator":
        return cls(bank, rng=np.random.default_rng(seed))

    def generate(self) -> List[SelectedQuestion]:
        """Pick one question per group, in bank order, uniformly from each pool."""
        questions = []
        for group in self.bank.groups():
            pool_size = len(group.questions)
            if pool_size == 0:
                raise ConfigurationError(f"Group {group.label} has no candidate questions")
            index = int(self._rng.integers(0, pool_size))
            questions.append(SelectedQuestion.from_candidate(group, group.questions[index]))
        logger.debug(f"Generated test with {len(questions)} questions")
        return questions

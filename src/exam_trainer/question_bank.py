"""Question Bank: Loads topic groups and their candidate question pools."""

import json
import logging
from typing import List, Optional

from exam_trainer.errors import ConfigurationError

logger = logging.getLogger(__name__)


class Answer:
    """One answer option, shown either as text or as an image."""

    def __init__(self, text: Optional[str] = None, image: Optional[str] = None):
        self.text = text
        self.image = image

    @classmethod
    def from_dict(cls, data: dict) -> "Answer":
        return cls(text=data.get("text"), image=data.get("image"))

    def to_dict(self) -> dict:
        data = {}
        if self.text is not None:
            data["text"] = self.text
        if self.image is not None:
            data["image"] = self.image
        return data

    def __eq__(self, other):
        if not isinstance(other, Answer):
            return NotImplemented
        return self.text == other.text and self.image == other.image


class CandidateQuestion:
    """A question from a group's pool."""

    def __init__(self, question: str, answers: List[Answer], correct_answer: int,
                 question_image: Optional[str] = None):
        self.question = question
        self.answers = list(answers)
        self.correct_answer = correct_answer
        self.question_image = question_image

    @classmethod
    def from_dict(cls, data: dict) -> "CandidateQuestion":
        return cls(
            question=data.get("question", ""),
            answers=[Answer.from_dict(a) for a in data.get("answers", [])],
            correct_answer=data.get("correctAnswer"),
            question_image=data.get("questionImage"),
        )

    def to_dict(self) -> dict:
        data = {
            "question": self.question,
            "answers": [a.to_dict() for a in self.answers],
            "correctAnswer": self.correct_answer,
        }
        if self.question_image is not None:
            data["questionImage"] = self.question_image
        return data

    def has_image_answers(self) -> bool:
        return any(a.image for a in self.answers)

    def is_correct(self, answer_index: Optional[int]) -> bool:
        return answer_index is not None and answer_index == self.correct_answer

    def validate(self, group_label: str):
        """Raise ConfigurationError if this question cannot be asked."""
        if len(self.answers) < 2:
            raise ConfigurationError(
                f"Group {group_label}: question {self.question!r} has fewer than 2 answers"
            )
        if not isinstance(self.correct_answer, int) or not 0 <= self.correct_answer < len(self.answers):
            raise ConfigurationError(
                f"Group {group_label}: question {self.question!r} has invalid "
                f"correctAnswer {self.correct_answer!r}"
            )
        for i, answer in enumerate(self.answers):
            if not answer.text and not answer.image:
                raise ConfigurationError(
                    f"Group {group_label}: question {self.question!r} answer {i} "
                    f"has neither text nor image"
                )


class SelectedQuestion(CandidateQuestion):
    """A candidate question placed into a generated test, tagged with its group."""

    def __init__(self, group_id, topic: str, question: str, answers: List[Answer],
                 correct_answer: int, question_image: Optional[str] = None):
        super().__init__(question, answers, correct_answer, question_image)
        self.group_id = group_id
        self.topic = topic

    @classmethod
    def from_candidate(cls, group: "QuestionGroup", candidate: CandidateQuestion) -> "SelectedQuestion":
        return cls(
            group_id=group.id,
            topic=group.topic,
            question=candidate.question,
            answers=candidate.answers,
            correct_answer=candidate.correct_answer,
            question_image=candidate.question_image,
        )

    @classmethod
    def from_dict(cls, data: dict) -> "SelectedQuestion":
        candidate = CandidateQuestion.from_dict(data)
        return cls(
            group_id=data.get("groupId"),
            topic=data.get("topic", ""),
            question=candidate.question,
            answers=candidate.answers,
            correct_answer=candidate.correct_answer,
            question_image=candidate.question_image,
        )

    def to_dict(self) -> dict:
        data = {"groupId": self.group_id, "topic": self.topic}
        data.update(super().to_dict())
        return data

    def __eq__(self, other):
        if not isinstance(other, SelectedQuestion):
            return NotImplemented
        return self.to_dict() == other.to_dict()


class QuestionGroup:
    """A thematic group contributing one question to every test."""

    def __init__(self, id, topic: str, questions: List[CandidateQuestion]):
        self.id = id
        self.topic = topic
        self.questions = list(questions)

    @classmethod
    def from_dict(cls, data: dict) -> "QuestionGroup":
        return cls(
            id=data.get("id"),
            topic=data.get("topic", ""),
            questions=[CandidateQuestion.from_dict(q) for q in data.get("questions", [])],
        )

    @property
    def label(self) -> str:
        return f"{self.id} ({self.topic})" if self.topic else str(self.id)

    def validate(self):
        if not self.questions:
            raise ConfigurationError(f"Group {self.label} has no candidate questions")
        for q in self.questions:
            q.validate(self.label)


class QuestionBank:
    """Read-only adapter over the static list of question groups."""

    def __init__(self, groups: List[QuestionGroup], validate: bool = True):
        self._groups = tuple(groups)
        if validate:
            for group in self._groups:
                group.validate()

    @classmethod
    def from_list(cls, data: list, validate: bool = True) -> "QuestionBank":
        return cls([QuestionGroup.from_dict(g) for g in data], validate=validate)

    @classmethod
    def from_file(cls, path: str, validate: bool = True) -> "QuestionBank":
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, list):
            raise ConfigurationError(f"Question bank {path} must contain a list of groups")
        bank = cls.from_list(data, validate=validate)
        logger.info(f"Loaded {bank.group_count()} question groups from {path}")
        return bank

    def group_count(self) -> int:
        return len(self._groups)

    def groups(self) -> tuple:
        return self._groups

    def get_group(self, index: int) -> QuestionGroup:
        return self._groups[index]

    def pool(self, index: int) -> List[CandidateQuestion]:
        return list(self._groups[index].questions)

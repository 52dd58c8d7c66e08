"""Tests for the QuestionBank module."""
import json
import pytest
from exam_trainer.errors import ConfigurationError
from exam_trainer.question_bank import (
    Answer,
    CandidateQuestion,
    QuestionBank,
    QuestionGroup,
    SelectedQuestion,
)


SAMPLE_BANK = [
    {
        "id": 1,
        "topic": "Geography",
        "questions": [
            {
                "question": "Longest river?",
                "answers": [{"text": "A"}, {"text": "B"}, {"text": "C"}, {"text": "D"}],
                "correctAnswer": 1,
            },
            {
                "question": "Which map?",
                "questionImage": "img/map.png",
                "answers": [{"image": "a.png"}, {"image": "b.png"}, {"image": "c.png"}, {"image": "d.png"}],
                "correctAnswer": 0,
            },
        ],
    },
    {
        "id": 2,
        "topic": "History",
        "questions": [
            {
                "question": "When?",
                "answers": [{"text": "1989"}, {"text": "1991"}],
                "correctAnswer": 0,
            },
        ],
    },
]


def make_group_dict(question, group_id=9):
    return {"id": group_id, "topic": "Broken", "questions": [question]}


@pytest.fixture
def bank_file(tmp_path):
    path = tmp_path / "questions.json"
    path.write_text(json.dumps(SAMPLE_BANK), encoding="utf-8")
    return str(path)


def test_load_from_file(bank_file):
    bank = QuestionBank.from_file(bank_file)
    assert bank.group_count() == 2
    assert bank.get_group(0).topic == "Geography"
    assert len(bank.pool(0)) == 2
    assert len(bank.pool(1)) == 1


def test_question_fields_parsed(bank_file):
    bank = QuestionBank.from_file(bank_file)
    q = bank.pool(0)[1]
    assert q.question_image == "img/map.png"
    assert q.correct_answer == 0
    assert q.has_image_answers() is True
    assert bank.pool(0)[0].has_image_answers() is False


def test_file_must_hold_a_list(tmp_path):
    path = tmp_path / "bank.json"
    path.write_text(json.dumps({"id": 1}), encoding="utf-8")
    with pytest.raises(ConfigurationError):
        QuestionBank.from_file(str(path))


def test_empty_group_rejected_with_name():
    with pytest.raises(ConfigurationError, match="Empty"):
        QuestionBank.from_list([{"id": 7, "topic": "Empty", "questions": []}])


def test_correct_answer_out_of_range_rejected():
    question = {"question": "Q", "answers": [{"text": "a"}, {"text": "b"}], "correctAnswer": 2}
    with pytest.raises(ConfigurationError, match="correctAnswer"):
        QuestionBank.from_list([make_group_dict(question)])


def test_single_answer_rejected():
    question = {"question": "Q", "answers": [{"text": "a"}], "correctAnswer": 0}
    with pytest.raises(ConfigurationError):
        QuestionBank.from_list([make_group_dict(question)])


def test_answer_without_text_or_image_rejected():
    question = {"question": "Q", "answers": [{"text": "a"}, {}], "correctAnswer": 0}
    with pytest.raises(ConfigurationError, match="neither text nor image"):
        QuestionBank.from_list([make_group_dict(question)])


def test_answer_count_not_fixed_at_four():
    answers = [{"text": str(i)} for i in range(5)]
    question = {"question": "Q", "answers": answers, "correctAnswer": 4}
    bank = QuestionBank.from_list([make_group_dict(question)])
    assert len(bank.pool(0)[0].answers) == 5


def test_validation_can_be_skipped():
    bank = QuestionBank.from_list([{"id": 1, "topic": "Empty", "questions": []}], validate=False)
    assert bank.group_count() == 1


def test_is_correct_distinguishes_zero_from_missing():
    q = CandidateQuestion("Q", [Answer(text="a"), Answer(text="b")], correct_answer=0)
    assert q.is_correct(0) is True
    assert q.is_correct(None) is False
    assert q.is_correct(1) is False


def test_selected_question_copies_group_fields():
    group = QuestionGroup(3, "Civics", [CandidateQuestion("Q", [Answer(text="a"), Answer(text="b")], 1)])
    selected = SelectedQuestion.from_candidate(group, group.questions[0])
    assert selected.group_id == 3
    assert selected.topic == "Civics"
    assert selected.correct_answer == 1


def test_selected_question_dict_uses_bank_keys():
    data = {
        "groupId": 2,
        "topic": "History",
        "question": "When?",
        "questionImage": "img.png",
        "answers": [{"text": "1989"}, {"image": "b.png"}],
        "correctAnswer": 0,
    }
    selected = SelectedQuestion.from_dict(data)
    assert selected.to_dict() == data

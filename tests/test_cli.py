"""Tests for the console front end."""
import json
import pytest
from exam_trainer.app import SCREEN_EXAM, SCREEN_RESULTS, SCREEN_START, ExamApp
from exam_trainer.cli import ExamConsole, build_app, main
from exam_trainer.config import ExamConfig
from exam_trainer.exam_generator import ExamGenerator
from exam_trainer.history import HistoryStore
from exam_trainer.question_bank import QuestionBank
from exam_trainer.session import EVALUATED, ExamSession
from exam_trainer.storage import MemoryKeyValueStore


SAMPLE_BANK = [
    {
        "id": 1,
        "topic": "Geography",
        "questions": [{"question": "Longest river?",
                       "answers": [{"text": "Danube"}, {"text": "Volga"}, {"text": "Rhine"}, {"text": "Elbe"}],
                       "correctAnswer": 1}],
    },
    {
        "id": 2,
        "topic": "Flags",
        "questions": [{"question": "Which flag?",
                       "answers": [{"image": "a.png"}, {"image": "b.png"}, {"image": "c.png"}, {"image": "d.png"}],
                       "correctAnswer": 3}],
    },
]


class FakeTimer:
    def __init__(self, interval, callback):
        pass

    def start(self):
        pass

    def cancel(self):
        pass


@pytest.fixture
def output():
    return []


@pytest.fixture
def console(output):
    bank = QuestionBank.from_list(SAMPLE_BANK)
    session = ExamSession(ExamGenerator(bank), history=HistoryStore(MemoryKeyValueStore()),
                          config=ExamConfig(pass_threshold=1), timer_factory=FakeTimer)
    return ExamConsole(ExamApp(session), output=output.append)


def printed(output):
    return "\n".join(output)


def test_quit_commands(console):
    assert console.handle_command("q") == "quit"
    assert console.handle_command("EXIT") == "quit"
    assert console.handle_command("quit.") == "quit"


def test_blank_command_ignored(console):
    assert console.handle_command("   ") is None
    assert console.app.screen == SCREEN_START


def test_start_and_answer(console):
    console.handle_command("s")
    assert console.app.screen == SCREEN_EXAM
    console.handle_command("b")
    assert console.app.session.answers == {0: 1}
    assert console.app.current_index == 1


def test_answer_letters_are_case_insensitive(console):
    console.handle_command("start")
    console.handle_command("D")
    assert console.app.session.answers == {0: 3}


def test_navigation_commands(console, output):
    console.handle_command("s")
    console.handle_command("n")
    assert console.app.current_index == 1
    console.handle_command("p")
    assert console.app.current_index == 0
    console.handle_command("g 2")
    assert console.app.current_index == 1
    console.handle_command("g 9")
    assert "No question number '9'." in printed(output)


def test_evaluate_and_results(console, output):
    console.handle_command("s")
    console.handle_command("b")
    console.handle_command("e")
    assert console.app.screen == SCREEN_RESULTS
    console.render()
    text = printed(output)
    assert "You passed the test!" in text
    assert "Correct: 1 of 2 (50%)" in text


def test_answers_locked_after_evaluation(console, output):
    console.handle_command("s")
    console.handle_command("e")
    console.handle_command("v")
    assert console.app.screen == SCREEN_EXAM
    console.handle_command("a")
    assert console.app.session.answers == {}
    assert "already evaluated" in printed(output)
    console.handle_command("back")
    assert console.app.screen == SCREEN_RESULTS


def test_back_from_running_test(console):
    console.handle_command("s")
    console.handle_command("back")
    assert console.app.screen == SCREEN_START
    assert console.app.history() == []


def test_review_and_delete_history(console, output):
    console.handle_command("s")
    console.handle_command("b")
    console.handle_command("e")
    console.handle_command("back")
    console.render()
    assert " 1  " in printed(output)

    console.handle_command("r 1")
    assert console.app.screen == SCREEN_RESULTS
    assert console.app.session.phase == EVALUATED
    console.handle_command("back")

    console.handle_command("d 5")
    assert "No saved attempt number '5'." in printed(output)
    console.handle_command("d 1")
    assert console.app.history() == []


def test_render_question_shows_image_answers(console, output):
    console.handle_command("s")
    console.handle_command("g 2")
    console.render()
    text = printed(output)
    assert "Question 2 of 2 - Flags" in text
    assert "[image: a.png]" in text
    assert "Time left: " in text


def test_run_loop_stops_on_eof(console, output):
    inputs = iter(["s", "a"])

    def read_input(prompt):
        try:
            return next(inputs)
        except StopIteration:
            raise EOFError

    console._read = read_input
    console.run()
    assert output[-1] == "Goodbye!"
    assert console.app.session.timer_active is False


def test_build_app(tmp_path):
    bank_file = tmp_path / "questions.json"
    bank_file.write_text(json.dumps(SAMPLE_BANK), encoding="utf-8")
    config = ExamConfig(history_db_path=str(tmp_path / "h.db"), seed=1)
    app = build_app(config, str(bank_file))
    assert app.session.generator.bank.group_count() == 2
    assert app.history() == []


def test_main_reports_missing_question_bank(tmp_path, capsys):
    code = main(["--config", str(tmp_path / "none.yaml"), "--questions", str(tmp_path / "none.json")])
    assert code == 1
    assert "Error" in capsys.readouterr().err


def test_main_reports_bad_question_bank(tmp_path, capsys):
    bank_file = tmp_path / "questions.json"
    bank_file.write_text(json.dumps([{"id": 1, "topic": "Empty", "questions": []}]), encoding="utf-8")
    code = main(["--config", str(tmp_path / "none.yaml"), "--questions", str(bank_file)])
    assert code == 1
    assert "Empty" in capsys.readouterr().err


def test_unreplayable_history_entry_not_offered(output):
    store = MemoryKeyValueStore()
    store.set("exam-trainer-history", json.dumps([{
        "id": "bad",
        "date": "2024-03-01T09:00:00.000Z",
        "questions": [{"groupId": 1, "topic": "T", "question": "Q",
                       "answers": [{"text": "a"}, {"text": "b"}], "correctAnswer": 7}],
        "userAnswers": {"0": 1, "5": 0},
        "results": {"correct": 0, "total": 1, "passed": False, "percentage": 0},
    }]))
    session = ExamSession(ExamGenerator(QuestionBank.from_list(SAMPLE_BANK)),
                          history=HistoryStore(store), timer_factory=FakeTimer)
    console = ExamConsole(ExamApp(session), output=output.append)
    console.handle_command("r 1")
    console.render()
    assert console.app.screen == SCREEN_START
    assert "No saved attempt number '1'." in printed(output)

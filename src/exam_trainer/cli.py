"""Console front end: Plays the exam in a terminal."""

import argparse
import logging
import string
import sys
from typing import Callable, Optional

from exam_trainer.app import SCREEN_EXAM, SCREEN_RESULTS, SCREEN_START, ExamApp
from exam_trainer.config import ExamConfig, load_config
from exam_trainer.countdown import BAND_CRITICAL, BAND_WARNING
from exam_trainer.errors import ConfigurationError, InvalidArgumentError, PersistenceFailure
from exam_trainer.exam_generator import ExamGenerator
from exam_trainer.history import HistoryStore
from exam_trainer.question_bank import QuestionBank
from exam_trainer.scorer import format_elapsed
from exam_trainer.session import (
    EVALUATED,
    STATUS_ANSWERED,
    STATUS_CORRECT,
    STATUS_INCORRECT,
    ExamSession,
)
from exam_trainer.storage import MemoryKeyValueStore, SqliteKeyValueStore

logger = logging.getLogger(__name__)

LETTERS = string.ascii_uppercase

STATUS_MARKS = {
    STATUS_ANSWERED: "*",
    STATUS_CORRECT: "+",
    STATUS_INCORRECT: "x",
}

HELP = {
    SCREEN_START: "[s]tart test | [h]istory | [r]eview N | [d]elete N | [q]uit",
    SCREEN_EXAM: "A-D answer | [n]ext | [p]rev | [g]o N | [e]valuate | back | [q]uit",
    SCREEN_RESULTS: "[new] test | [v]iew answers | [b]ack to start | [q]uit",
}


class ExamConsole:
    """Text renderer and command loop for ExamApp."""

    def __init__(self, app: ExamApp, output: Callable[[str], None] = print,
                 read_input: Callable[[str], str] = input):
        self.app = app
        self._out = output
        self._read = read_input
        self.app.session.add_listener("expired", self._on_expired)

    def say(self, text: str = ""):
        self._out(text)

    def _on_expired(self):
        self.say("\n[Time is up - the test has been evaluated automatically]")

    # --- rendering ---

    def render(self):
        screen = self.app.screen
        if screen == SCREEN_START:
            self.render_start()
        elif screen == SCREEN_EXAM:
            self.render_question()
        elif screen == SCREEN_RESULTS:
            self.render_results()
        self.say(HELP[screen])

    def render_start(self):
        config = self.app.session.config
        count = self.app.session.generator.bank.group_count()
        self.say(f"\nPractice exam: {count} questions, one from each topic.")
        self.say(f"Pass mark: {config.pass_threshold} correct. "
                 f"Time limit: {format_elapsed(int(config.time_limit))}.")
        self.render_history()

    def render_history(self):
        entries = self.app.history()
        if not entries:
            self.say("No saved attempts yet.")
            return
        self.say("\n #  Date                      Score    %    Time     Result")
        for i, entry in enumerate(entries, start=1):
            r = entry.result
            self.say(
                f"{i:2d}  {entry.date[:19].replace('T', ' '):24}  {r.correct:2d}/{r.total:<3d}  "
                f"{r.percentage:3d}%  {format_elapsed(r.elapsed_seconds):>7}  "
                f"{'passed' if r.passed else 'failed'}"
            )

    def render_dots(self) -> str:
        marks = []
        for i, status in enumerate(self.app.question_statuses()):
            mark = STATUS_MARKS.get(status, ".")
            marks.append(f"[{mark}]" if i == self.app.current_index else f" {mark} ")
        return "".join(marks)

    def render_question(self):
        session = self.app.session
        question = self.app.current_question()
        if question is None:
            return
        index = self.app.current_index
        self.say(f"\nAnswered {session.answered_count()} / {session.question_count()}")
        self.say(self.render_dots())

        remaining = self.app.remaining_seconds()
        if remaining is not None:
            band = self.app.time_band()
            flag = {BAND_WARNING: " (!)", BAND_CRITICAL: " (!!!)"}.get(band, "")
            self.say(f"Time left: {format_elapsed(int(remaining))}{flag}")

        self.say(f"\nQuestion {index + 1} of {session.question_count()} - {question.topic}")
        self.say(question.question)
        if question.question_image:
            self.say(f"  [image: {question.question_image}]")

        selected = session.answers.get(index)
        for i, answer in enumerate(question.answers):
            label = answer.text if answer.text else f"[image: {answer.image}]"
            marker = ">" if i == selected else " "
            suffix = ""
            if session.phase == EVALUATED:
                if i == question.correct_answer:
                    suffix = "  <- correct"
                elif i == selected:
                    suffix = "  <- your answer"
            self.say(f" {marker} {LETTERS[i]}) {label}{suffix}")

    def render_results(self):
        session = self.app.session
        result = session.result
        if result is None:
            return
        verdict = "You passed the test!" if result.passed else "You did not pass the test."
        self.say(f"\n{verdict}")
        self.say(f"Correct: {result.correct} of {result.total} ({result.percentage}%). "
                 f"Needed: {session.config.pass_threshold}. "
                 f"Time: {format_elapsed(result.elapsed_seconds)}")
        answers = session.answers
        for i, question in enumerate(session.questions):
            chosen = answers.get(i)
            if chosen is None:
                mark = "-"
            else:
                mark = "+" if question.is_correct(chosen) else "x"
            line = f" {mark} {i + 1:2d}. {question.topic}: {question.question}"
            if chosen is not None and not question.is_correct(chosen):
                line += f"\n        your answer: {LETTERS[chosen]}"
            line += f"\n        correct answer: {LETTERS[question.correct_answer]}"
            correct_text = question.answers[question.correct_answer].text
            if correct_text:
                line += f") {correct_text}"
            self.say(line)

    # --- commands ---

    def _entry_id(self, arg: str) -> Optional[str]:
        entries = self.app.history()
        try:
            number = int(arg)
        except ValueError:
            return None
        if 1 <= number <= len(entries):
            return entries[number - 1].id
        return None

    def handle_command(self, text: str) -> Optional[str]:
        """Apply one command. Returns "quit" to stop the loop, otherwise None."""
        parts = text.strip().split()
        if not parts:
            return None
        cmd = parts[0].lower().rstrip(".!")
        arg = parts[1] if len(parts) > 1 else ""

        if cmd in ("q", "quit", "exit"):
            return "quit"

        screen = self.app.screen
        if screen == SCREEN_START:
            if cmd in ("s", "start", "new"):
                self.app.start_new_test()
            elif cmd in ("h", "history"):
                self.render_history()
            elif cmd in ("r", "review", "d", "delete"):
                entry_id = self._entry_id(arg)
                if entry_id is None:
                    self.say(f"No saved attempt number {arg!r}.")
                elif cmd in ("r", "review"):
                    self.app.load_history_entry(entry_id)
                else:
                    self.app.delete_history_entry(entry_id)
                    self.say("Attempt deleted.")
            else:
                self.say("Unknown command.")
        elif screen == SCREEN_EXAM:
            question = self.app.current_question()
            if len(cmd) == 1 and cmd.upper() in LETTERS[:len(question.answers)]:
                if not self.app.select_answer(self.app.current_index, LETTERS.index(cmd.upper())):
                    self.say("The test is already evaluated; answers can no longer change.")
                else:
                    self.app.next_question()
            elif cmd in ("n", "next"):
                self.app.next_question()
            elif cmd in ("p", "prev", "previous"):
                self.app.previous_question()
            elif cmd in ("g", "go", "goto"):
                try:
                    self.app.navigate(int(arg) - 1)
                except (ValueError, InvalidArgumentError):
                    self.say(f"No question number {arg!r}.")
            elif cmd in ("e", "evaluate", "submit"):
                self.app.evaluate()
            elif cmd == "back":
                if self.app.session.phase == EVALUATED:
                    self.app.show_results()
                else:
                    self.app.return_to_start()
            else:
                self.say("Unknown command.")
        elif screen == SCREEN_RESULTS:
            if cmd in ("new", "s", "start"):
                self.app.start_new_test()
            elif cmd in ("v", "view", "review"):
                self.app.review_answers()
            elif cmd in ("b", "back"):
                self.app.return_to_start()
            else:
                self.say("Unknown command.")
        return None

    def run(self):
        self.render()
        while True:
            try:
                text = self._read("\n> ")
            except (EOFError, KeyboardInterrupt):
                break
            if self.handle_command(text) == "quit":
                break
            self.render()
        self.app.session.close()
        self.say("Goodbye!")


def build_app(config: ExamConfig, questions_path: str, use_history: bool = True) -> ExamApp:
    bank = QuestionBank.from_file(questions_path)
    generator = ExamGenerator.seeded(bank, config.seed)
    store = MemoryKeyValueStore()
    if use_history:
        try:
            store = SqliteKeyValueStore(config.history_db_path)
        except PersistenceFailure as e:
            logger.error(f"History will not be saved: {e}")
    history = HistoryStore(store, key=config.history_key, max_entries=config.history_max_entries)
    session = ExamSession(generator, history=history, config=config)
    return ExamApp(session, history)


def main(argv=None):
    parser = argparse.ArgumentParser(description="Timed multiple-choice practice exam")
    parser.add_argument("--config", default="config.yaml", help="Config file path")
    parser.add_argument("--questions", default="data/questions.json", help="Question bank path")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for test generation")
    parser.add_argument("--no-history", action="store_true", help="Keep attempts in memory only")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")
    args = parser.parse_args(argv)

    log_level = logging.DEBUG if args.verbose else logging.WARNING
    logging.basicConfig(level=log_level, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    try:
        config = load_config(args.config)
        if args.seed is not None:
            config.seed = args.seed
        app = build_app(config, args.questions, use_history=not args.no_history)
    except (ConfigurationError, OSError, ValueError) as e:
        logger.error(f"Cannot start exam: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1

    ExamConsole(app).run()
    return 0


if __name__ == "__main__":
    sys.exit(main())

import os

import pytest

from exhaust.events import LoadCompleted
from exhaust.model import Card, Exam, Question, Selection, SelectionSet
from exhaust.persistence import save_exam
from exhaust.reducer import reduce
from exhaust.state import OpenMode, initial_state


def yes_no_question(user_selection=0):
    return Question(
        question="Game Over. Continue?",
        selections=(Selection("No", False), Selection("Yes", True)),
        answer="You should select yes",
        user_selection=SelectionSet(user_selection),
    )


def multi_question(user_selection=0):
    return Question(
        question="Which are prime?",
        selections=(
            Selection("2", True),
            Selection("4", False),
            Selection("5", True),
            Selection("9", False),
        ),
        user_selection=SelectionSet(user_selection),
    )


def three_option_question():
    return Question(
        question="Pick a colour",
        selections=(Selection("red", True), Selection("green"), Selection("blue")),
    )


@pytest.fixture
def sample_exam():
    return Exam(
        items=(
            yes_no_question(),
            multi_question(),
            Card(question="Capital of Hungary?", answer="Budapest", assets=("map.png",)),
            three_option_question(),
        )
    )


@pytest.fixture
def make_state():
    """Build an App that has just finished loading ``exam`` from ``path``."""

    def _make(exam, path="/exams/sample.json", mode=OpenMode.NO_AUTO_SAVE):
        state = initial_state("/exams", open_mode=mode)
        state, _, _ = reduce(state, LoadCompleted(path=path, exam=exam))
        return state

    return _make


@pytest.fixture
def exam_file(tmp_path, sample_exam):
    path = os.path.join(str(tmp_path), "sample.json")
    save_exam(path, sample_exam)
    return path

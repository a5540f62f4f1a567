import asyncio

from exhaust.events import ListingCompleted, OpenModal, SetJumpBuffer, ToggleAnswerReveal, ToggleSelection
from exhaust.model import SelectionSet
from exhaust.persistence import load_exam
from exhaust.reducer import reduce
from exhaust.state import BrowseEntry, ModalKind, OpenMode, Route, initial_state
from exhaust.tui import ExhaustApp, home_markup, item_markup, modal_markup, sidebar_markup, title_markup


def test_home_markup_marks_selection():
    entries = (
        BrowseEntry(path="/", name="..", is_dir=True, is_parent=True),
        BrowseEntry(path="/exams/a.json", name="a.json", is_dir=False),
    )
    state, _, _ = reduce(initial_state("/exams"), ListingCompleted("/exams", entries))
    text = home_markup(state)
    assert "[reverse]>../[/reverse]" in text
    assert " a.json" in text


def test_title_shows_unsaved_marker(sample_exam, make_state):
    state = make_state(sample_exam)
    assert "sample[+]" not in title_markup(state)
    state, _, _ = reduce(state, ToggleSelection(1))
    assert "sample[+]" in title_markup(state)


def test_item_markup_reveals_result(sample_exam, make_state):
    state, _, _ = reduce(make_state(sample_exam), ToggleSelection(1))
    assert "Question (1/4)" in item_markup(state)
    assert "CORRECT" not in item_markup(state)
    state, _, _ = reduce(state, ToggleAnswerReveal())
    assert "CORRECT" in item_markup(state)


def test_sidebar_shows_jump_and_progress(sample_exam, make_state):
    state, _, _ = reduce(make_state(sample_exam), SetJumpBuffer(2))
    text = sidebar_markup(state)
    assert "Jump to: 2" in text
    assert "0/3 answered" in text


def test_quit_modal_text(sample_exam, make_state):
    state, _, _ = reduce(make_state(sample_exam), OpenModal(ModalKind.QUIT))
    assert "sample.json" in modal_markup(state)


def test_app_feeds_keys_through_the_event_loop(tmp_path, exam_file):
    app = ExhaustApp(initial_state(str(tmp_path), open_mode=OpenMode.AUTO_SAVE))

    async def wait_for(pilot, condition):
        for _ in range(100):
            if condition():
                return True
            await pilot.pause(0.05)
        return condition()

    def answered():
        exam = app.loop.state.exam
        return (
            exam is not None
            and exam.items[0].user_selection == SelectionSet.of(1)
            and not exam.unsaved_changes
        )

    async def drive():
        async with app.run_test() as pilot:
            assert await wait_for(pilot, lambda: len(app.loop.state.home.entries) == 2)
            await pilot.press("j", "enter")
            assert await wait_for(pilot, lambda: app.loop.state.route is Route.DO_EXAM)
            assert await wait_for(pilot, lambda: app.query_one("#exam-layout").display)

            await pilot.press("b")
            assert await wait_for(pilot, answered)

            await pilot.press("Q")
            assert await wait_for(pilot, lambda: not app.loop.state.running)

    asyncio.run(drive())
    assert load_exam(exam_file).items[0].user_selection == SelectionSet.of(1)

from exhaust.events import (
    AttachmentChosen,
    CancelModal,
    ChangeRoute,
    ConfirmModal,
    IndexStep,
    JumpKey,
    KeyInput,
    OpenModal,
    Quit,
    RequestLoad,
    SetJumpBuffer,
    SetOpenMode,
    SetQuestionIndex,
    ToggleAnswerReveal,
    ToggleSelection,
)
from exhaust.keys import propagate
from exhaust.reducer import reduce
from exhaust.state import ModalKind, OpenMode, Route, initial_state


def keys(state, key):
    return propagate(state, KeyInput(key))


def test_home_keys():
    state = initial_state("/exams")
    assert keys(state, "enter") == [RequestLoad()]
    assert keys(state, "q") == [Quit()]
    assert keys(state, "a") == [SetOpenMode(OpenMode.AUTO_SAVE)]
    assert keys(state, "x") == []


def test_exam_keys(sample_exam, make_state):
    state = make_state(sample_exam)
    assert keys(state, "a") == [ToggleSelection(0)]
    assert keys(state, "B") == [ToggleSelection(1)]
    assert keys(state, "n") == [SetQuestionIndex(IndexStep.NEXT)]
    assert keys(state, "left") == [SetQuestionIndex(IndexStep.PREV)]
    assert keys(state, " ") == [ToggleAnswerReveal()]
    assert keys(state, "q") == [ChangeRoute(Route.HOME)]
    assert keys(state, "Q") == [Quit()]
    assert keys(state, "ctrl+s") == [OpenModal(ModalKind.SAVE)]
    assert keys(state, "7") == [SetJumpBuffer(7)]
    assert keys(state, "enter") == []


def test_option_keys_are_inactive_on_cards(sample_exam, make_state):
    state, _, _ = reduce(make_state(sample_exam), SetQuestionIndex(2))
    assert keys(state, "a") == []


def test_jump_keys_only_while_typing(sample_exam, make_state):
    state, _, _ = reduce(make_state(sample_exam), SetJumpBuffer(2))
    assert keys(state, "enter") == [SetJumpBuffer(JumpKey.ENTER)]
    assert keys(state, "backspace") == [SetJumpBuffer(JumpKey.BACKSPACE)]
    assert keys(state, "escape") == [SetJumpBuffer(JumpKey.ESCAPE)]


def test_modal_sees_keys_first(sample_exam, make_state):
    state, _, _ = reduce(make_state(sample_exam), ToggleSelection(1))
    state, _, _ = reduce(state, Quit())
    assert state.modal is not None
    assert keys(state, "Q") == [ConfirmModal(save=False)]
    assert keys(state, "o") == [ConfirmModal(save=True)]
    assert keys(state, "escape") == [CancelModal()]
    assert keys(state, "a") == []


def test_other_leftovers_produce_nothing():
    state = initial_state("/exams")
    assert propagate(state, AttachmentChosen(path="/x.png", launcher="xdg-open")) == []
    assert propagate(state, ToggleSelection(0)) == []

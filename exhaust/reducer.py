"""
Reducer
=======
``reduce(state, event) -> (state, unconsumed event or None, [effects])``

The reducer is a pure function over immutable state. It never touches the
filesystem and never blocks; background work is returned as Effect values
for the EffectRunner. An event no handler claims is returned as the second
element so the Presentation layer can still act on it.
"""

from __future__ import annotations

import logging
import os
from dataclasses import replace
from typing import Callable, Dict, List, Optional, Tuple

from exhaust.events import (
    MODAL_EVENTS,
    AttachmentChosen,
    BrowseStep,
    CancelModal,
    ChangeRoute,
    ConfirmModal,
    Effect,
    Event,
    IndexStep,
    InputEvent,
    JumpKey,
    KeyInput,
    ListDirectory,
    ListingCompleted,
    LoadCompleted,
    LoadEffect,
    OpenModal,
    Quit,
    RequestLoad,
    RequestSave,
    SaveCompleted,
    SaveEffect,
    ScrollQuestion,
    SetAttachmentSelection,
    SetBrowseSelection,
    SetJumpBuffer,
    SetOpenMode,
    SetQuestionIndex,
    Shutdown,
    ToggleAnswerReveal,
    ToggleSelection,
)
from exhaust.model import Exam, ItemKind
from exhaust.persistence import format_for
from exhaust.state import (
    App,
    AttachmentPicker,
    Home,
    ModalKind,
    OpenMode,
    QuitPrompt,
    Route,
    SavePrompt,
)

logger = logging.getLogger(__name__)

Result = Tuple[App, Optional[Event], List[Effect]]


def reduce(state: App, event: Event) -> Result:
    """Apply one event to ``state``."""
    if state.after_save is not None and isinstance(event, InputEvent):
        # Leaving is in progress; only the save completion can move things on.
        return state, None, []
    if state.modal is not None and isinstance(event, InputEvent) and not isinstance(event, MODAL_EVENTS):
        # Raw keys go back up so the Presentation layer can route them to the modal.
        if isinstance(event, KeyInput):
            return state, event, []
        return state, None, []

    handler = _HANDLERS.get(type(event))
    if handler is None:
        return state, event, []
    return handler(state, event)


# ── Helpers ───────────────────────────────────────────────────────────────────


def _unchanged(state: App) -> Result:
    return state, None, []


def _in_exam(state: App) -> bool:
    return state.route is Route.DO_EXAM and state.exam is not None


def _with_exam(state: App, exam: Exam) -> App:
    return replace(state, exam=exam)


def _save_effects(state: App) -> Tuple[App, List[Effect]]:
    exam = state.exam
    if exam is None:
        return state, []
    if exam.path is None or format_for(exam.path) is None:
        return replace(state, status="This exam cannot be saved: unsupported file type"), []
    return state, [SaveEffect(path=exam.path, exam=exam, pretty=state.config.pretty_printing)]


def _autosave_effects(state: App) -> Tuple[App, List[Effect]]:
    if state.home.open_mode is OpenMode.AUTO_SAVE:
        return _save_effects(state)
    return state, []


def _step(current: Optional[int], step: BrowseStep, count: int) -> int:
    if step is BrowseStep.HOME:
        return 0
    if step is BrowseStep.END:
        return count - 1
    if current is None:
        return 0 if step is BrowseStep.NEXT else count - 1
    if step is BrowseStep.NEXT:
        return (current + 1) % count
    return (current - 1) % count


def _leave_exam(state: App) -> App:
    return replace(state, route=Route.HOME, exam=None, modal=None)


def _perform(state: App, pending: Optional[Event]) -> App:
    """Carry out navigation that was deferred by a QuitPrompt."""
    if isinstance(pending, ChangeRoute) and pending.route is Route.HOME:
        return _leave_exam(state)
    return replace(state, modal=None, running=False)


def resolve_asset(exam: Exam, asset: str) -> str:
    if os.path.isabs(asset) or exam.path is None:
        return asset
    return os.path.join(os.path.dirname(exam.path), asset)


# ── Navigation ────────────────────────────────────────────────────────────────


def _change_route(state: App, event: ChangeRoute) -> Result:
    if event.route is state.route:
        return _unchanged(state)
    if event.route is Route.DO_EXAM:
        if state.exam is None:
            return _unchanged(state)
        return replace(state, route=Route.DO_EXAM, status=None), None, []
    if state.has_unsaved_changes:
        return replace(state, modal=QuitPrompt(pending=event)), None, []
    return replace(_leave_exam(state), status=None), None, []


def _quit(state: App, event: Quit) -> Result:
    if state.has_unsaved_changes:
        return replace(state, modal=QuitPrompt(pending=event)), None, []
    return replace(state, running=False), None, []


def _shutdown(state: App, event: Shutdown) -> Result:
    return replace(state, modal=None, after_save=None, running=False), None, []


def _set_browse_selection(state: App, event: SetBrowseSelection) -> Result:
    if state.route is not Route.HOME:
        return state, event, []
    count = len(state.home.entries)
    if count == 0:
        return _unchanged(state)
    selected = _step(state.home.selected, event.step, count)
    return replace(state, home=replace(state.home, selected=selected)), None, []


def _set_open_mode(state: App, event: SetOpenMode) -> Result:
    return replace(state, home=replace(state.home, open_mode=event.mode)), None, []


def _listing_completed(state: App, event: ListingCompleted) -> Result:
    if event.directory != state.home.directory:
        logger.debug("Dropping stale listing for %s", event.directory)
        return _unchanged(state)
    home = replace(state.home, entries=event.entries, selected=0 if event.entries else None)
    return replace(state, home=home), None, []


# ── Exam session ──────────────────────────────────────────────────────────────


def _toggle_selection(state: App, event: ToggleSelection) -> Result:
    if not _in_exam(state):
        return state, event, []
    exam = state.exam
    item = exam.current()
    if item is None or item.kind is not ItemKind.QUESTION:
        return _unchanged(state)
    toggled = item.toggle(event.index)
    if toggled.user_selection == item.user_selection:
        return _unchanged(state)
    state = _with_exam(state, exam.with_item(exam.question_index, toggled))
    state, effects = _autosave_effects(state)
    return state, None, effects


def _set_question_index(state: App, event: SetQuestionIndex) -> Result:
    if not _in_exam(state):
        return state, event, []
    exam = state.exam
    count = exam.num_items()
    if count == 0:
        return _unchanged(state)
    current = exam.question_index
    if event.target is IndexStep.NEXT:
        index = (current + 1) % count
    elif event.target is IndexStep.PREV:
        index = (current - 1) % count
    else:
        index = max(0, min(int(event.target), count - 1))
    if index == current:
        return _unchanged(state)
    return _with_exam(state, replace(exam, question_index=index, scroll=0)), None, []


def _scroll_question(state: App, event: ScrollQuestion) -> Result:
    if not _in_exam(state):
        return state, event, []
    exam = state.exam
    return _with_exam(state, replace(exam, scroll=max(0, exam.scroll + event.delta))), None, []


def _toggle_answer_reveal(state: App, event: ToggleAnswerReveal) -> Result:
    if not _in_exam(state):
        return state, event, []
    exam = state.exam
    return _with_exam(state, replace(exam, display_answer=not exam.display_answer)), None, []


def _set_jump_buffer(state: App, event: SetJumpBuffer) -> Result:
    if not _in_exam(state):
        return state, event, []
    exam = state.exam
    key = event.key
    if key is JumpKey.ENTER:
        if exam.jump_value == 0:
            return _unchanged(state)
        target = exam.jump_value - 1
        state = _with_exam(state, replace(exam, jump_value=0))
        return reduce(state, SetQuestionIndex(target))
    if key is JumpKey.BACKSPACE:
        value = exam.jump_value // 10
    elif key is JumpKey.ESCAPE:
        value = 0
    elif 0 <= key <= 9:
        value = min(exam.jump_value * 10 + key, exam.num_items())
    else:
        return _unchanged(state)
    return _with_exam(state, replace(exam, jump_value=value)), None, []


# ── Persistence ───────────────────────────────────────────────────────────────


def _request_load(state: App, event: RequestLoad) -> Result:
    if state.route is not Route.HOME:
        return state, event, []
    entry = state.home.selected_entry()
    if entry is None:
        return _unchanged(state)
    if entry.is_dir:
        home = Home(directory=entry.path, open_mode=state.home.open_mode)
        return replace(state, home=home, status=None), None, [ListDirectory(entry.path)]
    if format_for(entry.path) is None:
        return replace(state, status=f"Unsupported file: {entry.name}"), None, []
    return replace(state, status=f"Loading {entry.name}..."), None, [LoadEffect(entry.path)]


def _load_completed(state: App, event: LoadCompleted) -> Result:
    if event.error is not None or event.exam is None:
        message = event.error or "no exam in file"
        return replace(state, status=f"Failed to load {event.path}: {message}"), None, []
    session = state.sessions + 1
    exam = replace(
        event.exam,
        path=event.path,
        question_index=0,
        scroll=0,
        display_answer=False,
        jump_value=0,
        unsaved_changes=False,
        revision=0,
        session=session,
    )
    state = replace(state, exam=exam, sessions=session, route=Route.DO_EXAM, modal=None, status=None)
    return state, None, []


def _request_save(state: App, event: RequestSave) -> Result:
    state, effects = _save_effects(state)
    return state, None, effects


def _save_completed(state: App, event: SaveCompleted) -> Result:
    if event.error is not None:
        state = replace(state, after_save=None, status=f"Failed to save {event.path}: {event.error}")
        return state, None, []
    exam = state.exam
    current = (
        exam is not None
        and exam.path == event.path
        and exam.session == event.session
        and exam.revision == event.revision
    )
    if current:
        state = _with_exam(state, replace(exam, unsaved_changes=False))
    state = replace(state, status=f"Saved {os.path.basename(event.path)}")
    pending = state.after_save
    if current and pending is not None:
        state = _perform(replace(state, after_save=None), pending)
    return state, None, []


# ── Modal ─────────────────────────────────────────────────────────────────────


def _open_modal(state: App, event: OpenModal) -> Result:
    if state.modal is not None:
        return _unchanged(state)
    if event.kind is ModalKind.SAVE:
        if not _in_exam(state):
            return _unchanged(state)
        return replace(state, modal=SavePrompt()), None, []
    if event.kind is ModalKind.QUIT:
        return replace(state, modal=QuitPrompt(pending=Quit())), None, []
    if not _in_exam(state):
        return _unchanged(state)
    item = state.exam.current()
    if item is None or not item.assets:
        return replace(state, status="No attachments for this item"), None, []
    return replace(state, modal=AttachmentPicker(assets=tuple(item.assets))), None, []


def _confirm_modal(state: App, event: ConfirmModal) -> Result:
    modal = state.modal
    if modal is None:
        return _unchanged(state)
    closed = replace(state, modal=None)
    if modal.kind is ModalKind.SAVE:
        closed, effects = _save_effects(closed)
        return closed, None, effects
    if modal.kind is ModalKind.QUIT:
        if not event.save or not closed.has_unsaved_changes:
            return _perform(closed, modal.pending), None, []
        closed, effects = _save_effects(closed)
        if not effects:
            return closed, None, []
        name = os.path.basename(closed.exam.path)
        closed = replace(closed, after_save=modal.pending, status=f"Saving {name}...")
        return closed, None, effects
    asset = modal.assets[modal.selected]
    chosen = AttachmentChosen(path=resolve_asset(state.exam, asset), launcher=state.config.launcher)
    return closed, chosen, []


def _cancel_modal(state: App, event: CancelModal) -> Result:
    if state.modal is None:
        return _unchanged(state)
    return replace(state, modal=None), None, []


def _set_attachment_selection(state: App, event: SetAttachmentSelection) -> Result:
    modal = state.modal
    if modal is None or modal.kind is not ModalKind.ATTACHMENTS:
        return _unchanged(state)
    selected = _step(modal.selected, event.step, len(modal.assets))
    return replace(state, modal=replace(modal, selected=selected)), None, []


_HANDLERS: Dict[type, Callable[[App, Event], Result]] = {
    ChangeRoute: _change_route,
    Quit: _quit,
    Shutdown: _shutdown,
    SetBrowseSelection: _set_browse_selection,
    SetOpenMode: _set_open_mode,
    ListingCompleted: _listing_completed,
    ToggleSelection: _toggle_selection,
    SetQuestionIndex: _set_question_index,
    ScrollQuestion: _scroll_question,
    ToggleAnswerReveal: _toggle_answer_reveal,
    SetJumpBuffer: _set_jump_buffer,
    RequestLoad: _request_load,
    LoadCompleted: _load_completed,
    RequestSave: _request_save,
    SaveCompleted: _save_completed,
    OpenModal: _open_modal,
    ConfirmModal: _confirm_modal,
    CancelModal: _cancel_modal,
    SetAttachmentSelection: _set_attachment_selection,
}

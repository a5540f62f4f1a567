"""
Key translation
===============
The reducer never claims raw ``KeyInput`` events; they come back unconsumed
and ``propagate`` turns them into typed events for the bus. The open modal
sees keys first and swallows everything, then global keys, then the
active route.

Keys are Textual key names for special keys ("enter", "escape", "up",
"ctrl+s", ...) and the character itself for printable keys.
"""

from __future__ import annotations

import logging
from typing import List

from exhaust.events import (
    AttachmentChosen,
    BrowseStep,
    CancelModal,
    ChangeRoute,
    ConfirmModal,
    Event,
    IndexStep,
    JumpKey,
    KeyInput,
    OpenModal,
    Quit,
    RequestLoad,
    ScrollQuestion,
    SetAttachmentSelection,
    SetBrowseSelection,
    SetJumpBuffer,
    SetOpenMode,
    SetQuestionIndex,
    ToggleAnswerReveal,
    ToggleSelection,
)
from exhaust.model import ItemKind, SELECTION_CAPACITY
from exhaust.state import App, ModalKind, Route

logger = logging.getLogger(__name__)

OPTION_KEYS = "abcdefgh"[:SELECTION_CAPACITY]

HOME_KEYS = {
    "enter": RequestLoad(),
    "j": SetBrowseSelection(BrowseStep.NEXT),
    "down": SetBrowseSelection(BrowseStep.NEXT),
    "k": SetBrowseSelection(BrowseStep.PREV),
    "up": SetBrowseSelection(BrowseStep.PREV),
    "g": SetBrowseSelection(BrowseStep.HOME),
    "home": SetBrowseSelection(BrowseStep.HOME),
    "G": SetBrowseSelection(BrowseStep.END),
    "end": SetBrowseSelection(BrowseStep.END),
    "q": Quit(),
}

EXAM_KEYS = {
    "n": SetQuestionIndex(IndexStep.NEXT),
    ">": SetQuestionIndex(IndexStep.NEXT),
    "right": SetQuestionIndex(IndexStep.NEXT),
    "p": SetQuestionIndex(IndexStep.PREV),
    "<": SetQuestionIndex(IndexStep.PREV),
    "left": SetQuestionIndex(IndexStep.PREV),
    "j": ScrollQuestion(1),
    "down": ScrollQuestion(1),
    "k": ScrollQuestion(-1),
    "up": ScrollQuestion(-1),
    " ": ToggleAnswerReveal(),
    "ctrl+s": OpenModal(ModalKind.SAVE),
    "o": OpenModal(ModalKind.ATTACHMENTS),
    "q": ChangeRoute(Route.HOME),
}


def propagate(state: App, event: Event) -> List[Event]:
    """Translate an unconsumed event into follow-up events."""
    if isinstance(event, AttachmentChosen):
        logger.debug("Attachment chosen: %s (launcher %s)", event.path, event.launcher)
        return []
    if not isinstance(event, KeyInput):
        return []
    key = event.key

    if state.modal is not None:
        return _modal_keys(state, key)
    if key == "Q":
        return [Quit()]
    if state.route is Route.DO_EXAM and state.exam is not None:
        return _exam_keys(state, key)
    return _home_keys(state, key)


def _modal_keys(state: App, key: str) -> List[Event]:
    kind = state.modal.kind
    if key in ("c", "C", "escape"):
        return [CancelModal()]
    if kind is ModalKind.ATTACHMENTS:
        if key in ("j", "down"):
            return [SetAttachmentSelection(BrowseStep.NEXT)]
        if key in ("k", "up"):
            return [SetAttachmentSelection(BrowseStep.PREV)]
        if key in ("enter", "o", "O"):
            return [ConfirmModal()]
        return []
    if key in ("o", "O", "enter"):
        return [ConfirmModal(save=True)]
    if kind is ModalKind.QUIT and key in ("q", "Q"):
        return [ConfirmModal(save=False)]
    return []


def _home_keys(state: App, key: str) -> List[Event]:
    if key == "a":
        return [SetOpenMode(state.home.open_mode.toggled())]
    event = HOME_KEYS.get(key)
    return [event] if event is not None else []


def _exam_keys(state: App, key: str) -> List[Event]:
    exam = state.exam
    if key.isdigit() and len(key) == 1:
        return [SetJumpBuffer(int(key))]
    if exam.jump_value:
        if key == "enter":
            return [SetJumpBuffer(JumpKey.ENTER)]
        if key == "backspace":
            return [SetJumpBuffer(JumpKey.BACKSPACE)]
        if key == "escape":
            return [SetJumpBuffer(JumpKey.ESCAPE)]
    item = exam.current()
    if item is not None and item.kind is ItemKind.QUESTION and len(key) == 1 and key.lower() in OPTION_KEYS:
        return [ToggleSelection(OPTION_KEYS.index(key.lower()))]
    event = EXAM_KEYS.get(key)
    return [event] if event is not None else []

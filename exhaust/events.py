"""
Event taxonomy and effects
==========================
Events are what the main loop pulls off the bus; effects are background
work the reducer asks for (load, save, listing). The reducer only
describes effects, the EffectRunner executes them.

Input events are produced by the user. While a Modal is open, input events
that the modal does not handle are swallowed. Completion events come back
from background tasks and are always applied.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional, Tuple, Union

from exhaust.model import Exam
from exhaust.state import BrowseEntry, ModalKind, OpenMode, Route


class Event:
    """Base class of everything that travels on the bus."""


class InputEvent(Event):
    """Events caused by the user."""


class IndexStep(enum.Enum):
    NEXT = "next"
    PREV = "prev"


class BrowseStep(enum.Enum):
    NEXT = "next"
    PREV = "prev"
    HOME = "home"
    END = "end"


class JumpKey(enum.Enum):
    ENTER = "enter"
    BACKSPACE = "backspace"
    ESCAPE = "escape"


# ── Raw input ─────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class KeyInput(InputEvent):
    key: str


@dataclass(frozen=True)
class Resize(Event):
    width: int = 0
    height: int = 0


# ── Navigation ────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class ChangeRoute(InputEvent):
    route: Route


@dataclass(frozen=True)
class Quit(InputEvent):
    pass


@dataclass(frozen=True)
class Shutdown(Event):
    """The front end is going away; stop without prompting."""


@dataclass(frozen=True)
class SetBrowseSelection(InputEvent):
    step: BrowseStep


@dataclass(frozen=True)
class SetOpenMode(InputEvent):
    mode: OpenMode


# ── Exam session ──────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class ToggleSelection(InputEvent):
    index: int


@dataclass(frozen=True)
class SetQuestionIndex(InputEvent):
    """``target`` is an IndexStep or an absolute index (clamped)."""

    target: Union[IndexStep, int]


@dataclass(frozen=True)
class ScrollQuestion(InputEvent):
    delta: int


@dataclass(frozen=True)
class ToggleAnswerReveal(InputEvent):
    pass


@dataclass(frozen=True)
class SetJumpBuffer(InputEvent):
    """``key`` is a digit 0-9 or a JumpKey."""

    key: Union[int, JumpKey]


# ── Persistence ───────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class RequestLoad(InputEvent):
    pass


@dataclass(frozen=True)
class RequestSave(InputEvent):
    pass


@dataclass(frozen=True)
class LoadCompleted(Event):
    path: str
    exam: Optional[Exam] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class SaveCompleted(Event):
    path: str
    revision: int = 0
    session: int = 0
    error: Optional[str] = None


@dataclass(frozen=True)
class ListingCompleted(Event):
    directory: str
    entries: Tuple[BrowseEntry, ...] = ()


# ── Modal ─────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class OpenModal(InputEvent):
    kind: ModalKind


@dataclass(frozen=True)
class ConfirmModal(InputEvent):
    """Confirm the open modal; ``save=False`` discards unsaved changes."""

    save: bool = True


@dataclass(frozen=True)
class CancelModal(InputEvent):
    pass


@dataclass(frozen=True)
class SetAttachmentSelection(InputEvent):
    step: BrowseStep


@dataclass(frozen=True)
class AttachmentChosen(Event):
    """Left unconsumed for the Presentation layer, which owns launching."""

    path: str
    launcher: str


MODAL_EVENTS = (OpenModal, ConfirmModal, CancelModal, SetAttachmentSelection)


# ── Effects ───────────────────────────────────────────────────────────────────


class Effect:
    """Background work requested by the reducer."""


@dataclass(frozen=True)
class LoadEffect(Effect):
    path: str


@dataclass(frozen=True)
class SaveEffect(Effect):
    """``exam`` is the snapshot taken when the save was scheduled."""

    path: str
    exam: Exam
    pretty: bool = False


@dataclass(frozen=True)
class ListDirectory(Effect):
    directory: str

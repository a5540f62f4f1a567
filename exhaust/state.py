"""Application state threaded through the reducer."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Optional, Tuple, Union

from exhaust.config import Config
from exhaust.model import Exam


class Route(enum.Enum):
    HOME = "home"
    DO_EXAM = "do_exam"


class OpenMode(enum.Enum):
    NO_AUTO_SAVE = "no_auto_save"
    AUTO_SAVE = "auto_save"

    def toggled(self) -> "OpenMode":
        if self is OpenMode.AUTO_SAVE:
            return OpenMode.NO_AUTO_SAVE
        return OpenMode.AUTO_SAVE


@dataclass(frozen=True)
class BrowseEntry:
    """One row of the Home listing."""

    path: str
    name: str
    is_dir: bool
    is_parent: bool = False

    @property
    def label(self) -> str:
        if self.is_parent:
            return "../"
        return f"{self.name}/" if self.is_dir else self.name


@dataclass(frozen=True)
class Home:
    directory: str
    entries: Tuple[BrowseEntry, ...] = ()
    selected: Optional[int] = None
    open_mode: OpenMode = OpenMode.NO_AUTO_SAVE

    def selected_entry(self) -> Optional[BrowseEntry]:
        if self.selected is None or not 0 <= self.selected < len(self.entries):
            return None
        return self.entries[self.selected]


# ── Modals ────────────────────────────────────────────────────────────────────


class ModalKind(enum.Enum):
    SAVE = "save"
    QUIT = "quit"
    ATTACHMENTS = "attachments"


@dataclass(frozen=True)
class SavePrompt:
    kind = ModalKind.SAVE


@dataclass(frozen=True)
class QuitPrompt:
    """Carries the navigation that was suppressed because of unsaved changes."""

    pending: object = None

    kind = ModalKind.QUIT


@dataclass(frozen=True)
class AttachmentPicker:
    assets: Tuple[str, ...] = ()
    selected: int = 0

    kind = ModalKind.ATTACHMENTS


Modal = Union[SavePrompt, QuitPrompt, AttachmentPicker]


# ── App ───────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class App:
    home: Home
    config: Config = field(default_factory=Config)
    route: Route = Route.HOME
    exam: Optional[Exam] = None
    modal: Optional[Modal] = None
    status: Optional[str] = None
    running: bool = True
    # Navigation waiting on the save scheduled by "save and leave".
    after_save: Optional[object] = None
    # Number of exams loaded so far; each load gets its own session id.
    sessions: int = 0

    @property
    def has_unsaved_changes(self) -> bool:
        return self.exam is not None and self.exam.unsaved_changes


def initial_state(directory: str, config: Optional[Config] = None,
                  open_mode: OpenMode = OpenMode.NO_AUTO_SAVE) -> App:
    """Home route at ``directory`` with an empty listing awaiting ListingCompleted."""
    return App(
        home=Home(directory=directory, open_mode=open_mode),
        config=config if config is not None else Config(),
    )

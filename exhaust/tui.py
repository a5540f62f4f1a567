"""
EXHAUST: Textual front end
==========================
Draws the App state and feeds raw input into the event bus. The state
machine itself runs in a worker thread (EventLoop); this module only turns
state into markup and keys into KeyInput events.

Run:
    exhaust [DIRECTORY] [--autosave]
"""

from __future__ import annotations

import logging
import os
from typing import List

from rich.markup import escape
from textual import events
from textual.app import App, ComposeResult
from textual.containers import Container, Horizontal, Vertical
from textual.widgets import Static

from exhaust.bus import EffectRunner, EventBus, EventLoop
from exhaust.events import AttachmentChosen, Event, KeyInput, Resize, Shutdown
from exhaust.keys import propagate
from exhaust.model import Card, ItemKind, Question, QuestionResult
from exhaust.state import App as AppState
from exhaust.state import ModalKind, OpenMode, Route

logger = logging.getLogger(__name__)

USAGE = (
    "Usage: [q: quit][a-h: toggle answer][space: toggle view]"
    "[0-9: goto][n,p: change page][^s: save][o: attachments]"
)

RESULT_STYLE = {
    QuestionResult.PENDING: "black on grey70",
    QuestionResult.CORRECT: "white on green",
    QuestionResult.WRONG: "white on red",
}
DONE_STYLE = "white on blue"
CURRENT_STYLE = "bold grey70 on magenta"


# ── Markup builders ───────────────────────────────────────────────────────────


def home_markup(state: AppState) -> str:
    home = state.home
    lines = [
        "Welcome! Choose a file to start:",
        "",
        f"Current Path: [bold green]{escape(home.directory)}[/bold green]",
        "",
    ]
    if not home.entries:
        lines.append("[dim](nothing to open here)[/dim]")
    for index, entry in enumerate(home.entries):
        label = escape(entry.label)
        if index == home.selected:
            lines.append(f"[reverse]>{label}[/reverse]")
        else:
            lines.append(f" {label}")
    return "\n".join(lines)


def home_footer_markup(state: AppState) -> str:
    if state.home.open_mode is OpenMode.AUTO_SAVE:
        autosave = "[magenta][u]A[/u]utoSave[/magenta]"
    else:
        autosave = "[u]A[/u]utoSave"
    return f"\\[[u]q[/u]: Quit] | \\[{autosave}]"


def title_markup(state: AppState) -> str:
    exam = state.exam
    name = os.path.splitext(os.path.basename(exam.path or "exam"))[0]
    title = f"{name}[+]" if exam.unsaved_changes else name
    if state.home.open_mode is OpenMode.AUTO_SAVE:
        title += " [autosave]"
    return f"[bold reverse]{escape(title)}[/bold reverse]"


def _question_markup(question: Question, display_answer: bool) -> List[str]:
    lines = [escape(question.question), ""]
    correct = question.correct_set()
    for index, sel in enumerate(question.selections):
        mark = "x" if index in question.user_selection else " "
        row = f"\\[{mark}] {chr(ord('A') + index)}. {escape(sel.text)}"
        if display_answer and index in correct:
            row = f"[green]{row}[/green]"
        lines.append(row)
    if display_answer:
        lines.append("")
        result = question.result()
        color = {"correct": "green", "wrong": "red"}.get(result.value, "yellow")
        lines.append(f"[bold {color}]{result.value.upper()}[/bold {color}]")
        if question.answer:
            lines.append(escape(question.answer))
    return lines


def _card_markup(card: Card, display_answer: bool) -> List[str]:
    lines = [escape(card.question)]
    if display_answer:
        lines += ["", "[bold]Answer[/bold]", escape(card.answer)]
    return lines


def item_markup(state: AppState) -> str:
    exam = state.exam
    item = exam.current()
    if item is None:
        return "[dim]This exam has no items.[/dim]"
    kind = "Question" if item.kind is ItemKind.QUESTION else "Card"
    header = f"[bold]{kind} ({exam.question_index + 1}/{exam.num_items()})[/bold]"
    if item.kind is ItemKind.QUESTION:
        body = _question_markup(item, exam.display_answer)
    else:
        body = _card_markup(item, exam.display_answer)
    if item.assets:
        body += ["", f"[dim]{len(item.assets)} attachment(s), press o[/dim]"]
    return "\n".join([header, ""] + body[exam.scroll:])


def sidebar_markup(state: AppState) -> str:
    exam = state.exam
    per_line = state.config.items_per_line
    cells = []
    for index, item in enumerate(exam.items):
        if index == exam.question_index:
            style = CURRENT_STYLE
        elif item.kind is ItemKind.CARD:
            style = RESULT_STYLE[QuestionResult.PENDING]
        elif exam.display_answer:
            style = RESULT_STYLE[item.result()]
        elif item.result() is QuestionResult.PENDING:
            style = RESULT_STYLE[QuestionResult.PENDING]
        else:
            style = DONE_STYLE
        cells.append(f"[{style}]{index + 1:3}[/{style}]")
        cells.append("\n" if (index + 1) % per_line == 0 else " ")
    text = "[bold]Items[/bold]\n" + "".join(cells)
    if exam.jump_value:
        text = f"[u]Jump to: {exam.jump_value}[/u]\n\n" + text
    summary = exam.summary()
    questions = summary.answered + summary.pending
    text += f"\n\n{summary.answered}/{questions} answered"
    return text


def modal_markup(state: AppState) -> str:
    modal = state.modal
    exam = state.exam
    filename = escape(os.path.basename(exam.path)) if exam is not None and exam.path else "this exam"
    if modal.kind is ModalKind.SAVE:
        return f'Save changes to "{filename}"?\n\n  \\[[u]O[/u]K]   \\[[u]C[/u]ANCEL]'
    if modal.kind is ModalKind.QUIT:
        return (
            f'Save changes to "{filename}" before quit?\n\n'
            "  \\[[u]Q[/u]UIT]   \\[[u]O[/u]K]   \\[[u]C[/u]ANCEL]"
        )
    lines = ["[bold]Attachments[/bold]", ""]
    for index, asset in enumerate(modal.assets):
        label = escape(asset)
        lines.append(f"[reverse]>{label}[/reverse]" if index == modal.selected else f" {label}")
    return "\n".join(lines)


# ── App ───────────────────────────────────────────────────────────────────────


class ExhaustApp(App):
    TITLE = "EXHAUST"
    ENABLE_COMMAND_PALETTE = False

    CSS = """
    Screen { layers: base overlay; }

    #home-layout, #exam-layout { height: 1fr; padding: 0 1; }
    #home-list { height: 1fr; border: solid $primary-darken-2; padding: 0 1; }
    #home-footer { height: 1; }

    #exam-title { height: 1; content-align: center middle; width: 100%; }
    #exam-body { height: 1fr; }
    #item-view { width: 1fr; border: solid $primary-darken-2; padding: 0 1; }
    #sidebar { width: auto; min-width: 20; border: solid $primary-darken-2; padding: 0 1; }
    #usage { height: 1; content-align: center middle; width: 100%; }
    #status { height: 1; color: $warning; }

    #modal {
        layer: overlay;
        width: 60%;
        height: auto;
        margin: 6 10;
        padding: 1 2;
        border: thick $accent;
        background: $panel;
    }
    """

    def __init__(self, state: AppState) -> None:
        super().__init__()
        self.bus = EventBus()
        self.runner = EffectRunner(self.bus)
        self.loop = EventLoop(
            state,
            self.bus,
            self.runner,
            propagate=self._propagate,
            on_render=self._render_from_loop,
        )
        self._closing = False

    def compose(self) -> ComposeResult:
        with Vertical(id="home-layout"):
            yield Static(id="home-list")
            yield Static(id="home-footer")
        with Vertical(id="exam-layout"):
            yield Static(id="exam-title")
            with Horizontal(id="exam-body"):
                yield Static(id="item-view")
                yield Static(id="sidebar")
            yield Static(escape(USAGE), id="usage")
        yield Static(id="status")
        yield Container(Static(id="modal-text"), id="modal")

    def on_mount(self) -> None:
        self.run_worker(self._consume, thread=True, exclusive=True, name="event-loop")

    def on_unmount(self) -> None:
        self._closing = True
        if self.loop.state.running:
            self.bus.put(Shutdown())

    def _consume(self) -> None:
        self.loop.run()
        if not self._closing:
            self.call_from_thread(self.exit)

    # ── Producers ─────────────────────────────────────────────────────────────

    def on_key(self, event: events.Key) -> None:
        key = event.character if event.is_printable and event.character else event.key
        self.bus.put(KeyInput(key))
        event.stop()

    def on_resize(self, event: events.Resize) -> None:
        self.bus.put(Resize(event.size.width, event.size.height))

    def _propagate(self, state: AppState, event: Event) -> List[Event]:
        if isinstance(event, AttachmentChosen):
            self.call_from_thread(self.notify, f"{event.launcher} {event.path}", title="Attachment")
        return propagate(state, event)

    # ── Drawing ───────────────────────────────────────────────────────────────

    def _render_from_loop(self, state: AppState) -> None:
        if self._closing:
            return
        self.call_from_thread(self.render_state, state)

    def render_state(self, state: AppState) -> None:
        in_exam = state.route is Route.DO_EXAM and state.exam is not None
        self.query_one("#home-layout").display = not in_exam
        self.query_one("#exam-layout").display = in_exam

        if in_exam:
            self.query_one("#exam-title", Static).update(title_markup(state))
            self.query_one("#item-view", Static).update(item_markup(state))
            self.query_one("#sidebar", Static).update(sidebar_markup(state))
            self.query_one("#usage").display = state.config.show_usage
        else:
            self.query_one("#home-list", Static).update(home_markup(state))
            self.query_one("#home-footer", Static).update(home_footer_markup(state))

        self.query_one("#status", Static).update(escape(state.status or ""))

        modal = self.query_one("#modal")
        modal.display = state.modal is not None
        if state.modal is not None:
            self.query_one("#modal-text", Static).update(modal_markup(state))

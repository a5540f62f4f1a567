"""
Exam domain model
=================
Exams are ordered sequences of items. An item is either a multiple-choice
Question or a plain Card. A user's answer to a Question is a SelectionSet:
a bit-flag set over option indices 0..7, where bit ``i`` stands for the
``i``-th Selection of the question.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field, replace
from typing import Iterator, Optional, Tuple, Union

SELECTION_CAPACITY = 8


class QuestionResult(enum.Enum):
    PENDING = "pending"
    CORRECT = "correct"
    WRONG = "wrong"


class ItemKind(enum.Enum):
    QUESTION = "Question"
    CARD = "Card"


# ── SelectionSet ──────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class SelectionSet:
    """Fixed-capacity bit-flag set over option indices 0..SELECTION_CAPACITY-1."""

    bits: int = 0

    def __post_init__(self) -> None:
        if not 0 <= self.bits < (1 << SELECTION_CAPACITY):
            raise ValueError(f"selection bits out of range: {self.bits}")

    @classmethod
    def of(cls, *indices: int) -> "SelectionSet":
        result = cls()
        for index in indices:
            result = result.with_bit(index)
        return result

    @staticmethod
    def _check(index: int) -> int:
        if not 0 <= index < SELECTION_CAPACITY:
            raise IndexError(f"selection index {index} outside 0..{SELECTION_CAPACITY - 1}")
        return 1 << index

    def with_bit(self, index: int) -> "SelectionSet":
        return SelectionSet(self.bits | self._check(index))

    def toggled(self, index: int) -> "SelectionSet":
        """Return a copy with bit ``index`` flipped."""
        return SelectionSet(self.bits ^ self._check(index))

    def highest(self) -> Optional[int]:
        """Index of the highest set bit, or None when empty."""
        if not self.bits:
            return None
        return self.bits.bit_length() - 1

    def is_empty(self) -> bool:
        return self.bits == 0

    def __contains__(self, index: int) -> bool:
        return 0 <= index < SELECTION_CAPACITY and bool(self.bits & (1 << index))

    def __iter__(self) -> Iterator[int]:
        return (i for i in range(SELECTION_CAPACITY) if self.bits & (1 << i))

    def __len__(self) -> int:
        return bin(self.bits).count("1")


# ── Items ─────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Selection:
    text: str
    should_select: bool = False
    extras: dict = field(default_factory=dict)


@dataclass(frozen=True)
class Question:
    """A multiple-choice question. Selection order defines the bit index."""

    question: str
    selections: Tuple[Selection, ...] = ()
    answer: Optional[str] = None
    user_selection: SelectionSet = SelectionSet()
    assets: Tuple[str, ...] = ()
    extras: dict = field(default_factory=dict)

    kind = ItemKind.QUESTION

    @property
    def text(self) -> str:
        return self.question

    def num_selections(self) -> int:
        return len(self.selections)

    def num_should_selects(self) -> int:
        return sum(1 for sel in self.selections if sel.should_select)

    def is_single_select(self) -> bool:
        return self.num_should_selects() == 1

    def correct_set(self) -> SelectionSet:
        """Union of the bits whose Selection is marked correct."""
        return SelectionSet.of(*(i for i, sel in enumerate(self.selections) if sel.should_select))

    def is_within_range(self, selection: SelectionSet) -> bool:
        highest = selection.highest()
        return highest is None or highest < self.num_selections()

    def result(self) -> QuestionResult:
        if self.user_selection.is_empty():
            return QuestionResult.PENDING
        if self.user_selection == self.correct_set():
            return QuestionResult.CORRECT
        return QuestionResult.WRONG

    def toggle(self, index: int) -> "Question":
        """
        Apply a user toggle of option ``index``.

        Single-select questions have their answer overwritten with exactly
        ``{index}``; multi-select questions XOR the bit. Out-of-range indices
        leave the question unchanged.
        """
        if not 0 <= index < min(self.num_selections(), SELECTION_CAPACITY):
            return self
        if self.is_single_select():
            chosen = SelectionSet.of(index)
        else:
            chosen = self.user_selection.toggled(index)
        return replace(self, user_selection=chosen)


@dataclass(frozen=True)
class Card:
    """Prompt/answer pair without selections."""

    question: str
    answer: str = ""
    assets: Tuple[str, ...] = ()
    extras: dict = field(default_factory=dict)

    kind = ItemKind.CARD

    @property
    def text(self) -> str:
        return self.question

    def result(self) -> QuestionResult:
        return QuestionResult.PENDING


Item = Union[Question, Card]


# ── Exam ──────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class ExamSummary:
    pending: int = 0
    correct: int = 0
    wrong: int = 0
    cards: int = 0

    @property
    def answered(self) -> int:
        return self.correct + self.wrong


@dataclass(frozen=True)
class Exam:
    """
    Items plus transient session state.

    Only ``items`` and ``extras`` are persisted; the remaining fields live for
    the duration of one DoExam session. ``revision`` increases on every
    mutation of the items and ``session`` identifies the load, so that save
    completions can tell whether they still describe the in-memory exam.
    """

    items: Tuple[Item, ...] = ()
    extras: dict = field(default_factory=dict)
    path: Optional[str] = None
    question_index: int = 0
    scroll: int = 0
    display_answer: bool = False
    jump_value: int = 0
    unsaved_changes: bool = False
    revision: int = 0
    session: int = 0

    def num_items(self) -> int:
        return len(self.items)

    def is_empty(self) -> bool:
        return not self.items

    def current(self) -> Optional[Item]:
        if 0 <= self.question_index < len(self.items):
            return self.items[self.question_index]
        return None

    def with_item(self, index: int, item: Item) -> "Exam":
        items = self.items[:index] + (item,) + self.items[index + 1:]
        return replace(
            self,
            items=items,
            unsaved_changes=True,
            revision=self.revision + 1,
        )

    def summary(self) -> ExamSummary:
        pending = correct = wrong = cards = 0
        for item in self.items:
            if item.kind is ItemKind.CARD:
                cards += 1
                continue
            res = item.result()
            if res is QuestionResult.CORRECT:
                correct += 1
            elif res is QuestionResult.WRONG:
                wrong += 1
            else:
                pending += 1
        return ExamSummary(pending=pending, correct=correct, wrong=wrong, cards=cards)


def correct_set(question: Question) -> SelectionSet:
    return question.correct_set()


def is_within_range(question: Question, selection: SelectionSet) -> bool:
    return question.is_within_range(selection)


def result(item: Item) -> QuestionResult:
    return item.result()

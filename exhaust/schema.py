"""
On-disk exam format
===================
pydantic models describing the JSON document. Unknown keys are allowed at
every level and carried through ``extras`` so that a load/save round trip
keeps data written by richer tools.

    {
      "questions": [
        {"type": "Question", "question": "...",
         "selections": [{"text": "...", "should_select": true}],
         "answer": "..." | null, "user_selection": 0, "assets": []},
        {"type": "Card", "question": "...", "answer": "...", "assets": []}
      ]
    }
"""

from __future__ import annotations

from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from exhaust.model import (
    SELECTION_CAPACITY,
    Card,
    Exam,
    Item,
    ItemKind,
    Question,
    Selection,
    SelectionSet,
)


class SelectionSchema(BaseModel):
    model_config = ConfigDict(extra="allow")

    text: str
    should_select: bool = False


class QuestionSchema(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: Literal["Question"] = "Question"
    question: str
    selections: List[SelectionSchema] = Field(default_factory=list, max_length=SELECTION_CAPACITY)
    answer: Optional[str] = None
    user_selection: int = Field(default=0, ge=0)
    assets: List[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_user_selection(self) -> "QuestionSchema":
        if self.user_selection >> len(self.selections):
            raise ValueError(
                f"user_selection {self.user_selection:#b} refers to options beyond "
                f"the {len(self.selections)} declared"
            )
        return self


class CardSchema(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: Literal["Card"] = "Card"
    question: str
    answer: str = ""
    assets: List[str] = Field(default_factory=list)


ItemSchema = Annotated[Union[QuestionSchema, CardSchema], Field(discriminator="type")]


class ExamSchema(BaseModel):
    model_config = ConfigDict(extra="allow")

    questions: List[ItemSchema] = Field(default_factory=list)


# ── Conversion ────────────────────────────────────────────────────────────────


def _extras(model: BaseModel) -> dict:
    return dict(model.model_extra or {})


def _item_from_schema(raw: Union[QuestionSchema, CardSchema]) -> Item:
    if isinstance(raw, CardSchema):
        return Card(
            question=raw.question,
            answer=raw.answer,
            assets=tuple(raw.assets),
            extras=_extras(raw),
        )
    return Question(
        question=raw.question,
        selections=tuple(
            Selection(text=sel.text, should_select=sel.should_select, extras=_extras(sel))
            for sel in raw.selections
        ),
        answer=raw.answer,
        user_selection=SelectionSet(raw.user_selection),
        assets=tuple(raw.assets),
        extras=_extras(raw),
    )


def _item_to_schema(item: Item) -> Union[QuestionSchema, CardSchema]:
    if item.kind is ItemKind.CARD:
        return CardSchema(
            question=item.question,
            answer=item.answer,
            assets=list(item.assets),
            **item.extras,
        )
    return QuestionSchema(
        question=item.question,
        selections=[
            SelectionSchema(text=sel.text, should_select=sel.should_select, **sel.extras)
            for sel in item.selections
        ],
        answer=item.answer,
        user_selection=item.user_selection.bits,
        assets=list(item.assets),
        **item.extras,
    )


def exam_from_schema(doc: ExamSchema) -> Exam:
    return Exam(
        items=tuple(_item_from_schema(raw) for raw in doc.questions),
        extras=_extras(doc),
    )


def exam_to_schema(exam: Exam) -> ExamSchema:
    return ExamSchema(questions=[_item_to_schema(item) for item in exam.items], **exam.extras)

import gzip
import json
import os

import pytest

from exhaust.model import Exam, SelectionSet
from exhaust.persistence import (
    ExamDecodeError,
    FileFormat,
    UnsupportedFormatError,
    decode,
    encode,
    format_for,
    load_exam,
    run_load,
    run_save,
    save_exam,
)

from conftest import yes_no_question

GAME_OVER = {
    "questions": [
        {
            "type": "Question",
            "question": "Game Over. Continue?",
            "selections": [
                {"text": "No", "should_select": False},
                {"text": "Yes", "should_select": True},
            ],
            "answer": "You should select yes",
            "user_selection": 2,
            "assets": [],
        }
    ]
}


def test_format_for():
    assert format_for("a.json") is FileFormat.JSON
    assert format_for("a.JSON") is FileFormat.JSON
    assert format_for("a.exhaust") is FileFormat.GZIP_JSON
    assert format_for("/x/a.gz") is FileFormat.GZIP_JSON
    assert format_for("a.txt") is None
    assert format_for("json") is None


def test_decode_game_over():
    exam = decode(json.dumps(GAME_OVER).encode("utf-8"), FileFormat.JSON)
    question = exam.items[0]
    assert question.question == "Game Over. Continue?"
    assert question.user_selection == SelectionSet.of(1)
    assert question.answer == "You should select yes"


@pytest.mark.parametrize("filename", ["sample.json", "sample.exhaust", "sample.gz"])
def test_save_load_round_trip(tmp_path, sample_exam, filename):
    path = str(tmp_path / filename)
    exam = sample_exam.with_item(1, sample_exam.items[1].toggle(0).toggle(3))
    save_exam(path, exam)
    loaded = load_exam(path)
    assert loaded.items == exam.items
    assert loaded.extras == exam.extras


def test_gzip_file_is_compressed(tmp_path, sample_exam):
    path = str(tmp_path / "sample.exhaust")
    save_exam(path, sample_exam)
    with open(path, "rb") as f:
        raw = f.read()
    doc = json.loads(gzip.decompress(raw).decode("utf-8"))
    assert len(doc["questions"]) == sample_exam.num_items()


def test_pretty_printing():
    exam = Exam(items=(yes_no_question(),))
    assert b"\n" not in encode(exam, FileFormat.JSON)
    assert b"\n  " in encode(exam, FileFormat.JSON, pretty=True)


def test_unknown_fields_survive_round_trip():
    doc = json.loads(json.dumps(GAME_OVER))
    doc["author"] = "someone"
    doc["questions"][0]["difficulty"] = 3
    doc["questions"][0]["selections"][1]["hint"] = "the obvious one"
    doc["questions"].append({"type": "Card", "question": "Q", "answer": "A", "deck": "misc"})

    exam = decode(json.dumps(doc).encode("utf-8"), FileFormat.JSON)
    again = json.loads(encode(exam, FileFormat.JSON).decode("utf-8"))

    assert again["author"] == "someone"
    assert again["questions"][0]["difficulty"] == 3
    assert again["questions"][0]["selections"][1]["hint"] == "the obvious one"
    assert again["questions"][1]["deck"] == "misc"


def test_non_ascii_text_is_kept():
    doc = {"questions": [{"type": "Card", "question": "Mi Magyarország fővárosa?", "answer": "Budapest"}]}
    exam = decode(json.dumps(doc, ensure_ascii=False).encode("utf-8"), FileFormat.JSON)
    assert "fővárosa".encode("utf-8") in encode(exam, FileFormat.JSON)


@pytest.mark.parametrize(
    "data, fmt",
    [
        (b"{not json", FileFormat.JSON),
        (b"\xff\xfe\x00", FileFormat.JSON),
        (b"[]", FileFormat.JSON),
        (b"not gzip at all", FileFormat.GZIP_JSON),
        (gzip.compress(b"{broken"), FileFormat.GZIP_JSON),
        (gzip.compress(b"{\"questions\": []}")[:-6], FileFormat.GZIP_JSON),
    ],
)
def test_decode_errors(data, fmt):
    with pytest.raises(ExamDecodeError):
        decode(data, fmt)


def test_selection_bits_beyond_options_rejected():
    doc = json.loads(json.dumps(GAME_OVER))
    doc["questions"][0]["user_selection"] = 0b100
    with pytest.raises(ExamDecodeError):
        decode(json.dumps(doc).encode("utf-8"), FileFormat.JSON)


def test_too_many_options_rejected():
    doc = {
        "questions": [
            {
                "type": "Question",
                "question": "Nine?",
                "selections": [{"text": str(i)} for i in range(9)],
            }
        ]
    }
    with pytest.raises(ExamDecodeError):
        decode(json.dumps(doc).encode("utf-8"), FileFormat.JSON)


def test_unknown_item_type_rejected():
    doc = {"questions": [{"type": "Essay", "question": "Discuss."}]}
    with pytest.raises(ExamDecodeError):
        decode(json.dumps(doc).encode("utf-8"), FileFormat.JSON)


def test_unsupported_extension(tmp_path, sample_exam):
    with pytest.raises(UnsupportedFormatError):
        save_exam(str(tmp_path / "sample.txt"), sample_exam)
    with pytest.raises(UnsupportedFormatError):
        load_exam(str(tmp_path / "sample.txt"))


def test_save_replaces_existing_file(tmp_path, sample_exam):
    path = str(tmp_path / "sample.json")
    save_exam(path, sample_exam)
    changed = sample_exam.with_item(0, yes_no_question(0b10))
    save_exam(path, changed)
    assert load_exam(path).items[0].user_selection == SelectionSet.of(1)
    assert sorted(os.listdir(str(tmp_path))) == ["sample.json"]


def test_run_load_reports_errors(tmp_path):
    missing = run_load(str(tmp_path / "missing.json"))
    assert missing.exam is None
    assert missing.error

    bad = tmp_path / "bad.json"
    bad.write_text("{oops", encoding="utf-8")
    event = run_load(str(bad))
    assert event.exam is None
    assert "invalid JSON" in event.error


def test_run_load_success(exam_file, sample_exam):
    event = run_load(exam_file)
    assert event.error is None
    assert event.exam.items == sample_exam.items


def test_run_save_reports_revision(tmp_path, sample_exam):
    exam = sample_exam.with_item(0, yes_no_question(0b1))
    ok = run_save(str(tmp_path / "out.json"), exam)
    assert ok.error is None
    assert ok.revision == exam.revision

    failed = run_save(str(tmp_path / "no-such-dir" / "out.json"), exam)
    assert failed.error
    assert failed.revision == exam.revision

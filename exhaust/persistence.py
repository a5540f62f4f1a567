"""
Exam persistence
================
Encode/decode between the domain model and bytes. The format is chosen by
file extension:

    .json            plain JSON
    .exhaust, .gz    gzip-compressed JSON

``load_exam``/``save_exam`` raise; ``run_load``/``run_save`` are the
background task bodies and always return a completion event instead.
"""

from __future__ import annotations

import enum
import gzip
import json
import logging
import os
import shutil
import tempfile
import zlib
from typing import Optional

from pydantic import ValidationError

from exhaust.events import LoadCompleted, SaveCompleted
from exhaust.model import Exam
from exhaust.schema import ExamSchema, exam_from_schema, exam_to_schema

logger = logging.getLogger(__name__)


class ExamFileError(Exception):
    """Base class for problems with an exam file."""


class UnsupportedFormatError(ExamFileError):
    pass


class ExamDecodeError(ExamFileError):
    pass


class FileFormat(enum.Enum):
    JSON = "json"
    GZIP_JSON = "gzip"


EXTENSIONS = {
    ".json": FileFormat.JSON,
    ".exhaust": FileFormat.GZIP_JSON,
    ".gz": FileFormat.GZIP_JSON,
}


def format_for(path: str) -> Optional[FileFormat]:
    """Return the persistence format for ``path``, or None if not persistable."""
    return EXTENSIONS.get(os.path.splitext(path)[1].lower())


def _require_format(path: str) -> FileFormat:
    fmt = format_for(path)
    if fmt is None:
        raise UnsupportedFormatError(f"unsupported file type: {os.path.basename(path)}")
    return fmt


# ── Codec ─────────────────────────────────────────────────────────────────────


def encode(exam: Exam, fmt: FileFormat, pretty: bool = False) -> bytes:
    doc = exam_to_schema(exam).model_dump(mode="json")
    if pretty:
        text = json.dumps(doc, indent=2, ensure_ascii=False)
    else:
        text = json.dumps(doc, ensure_ascii=False, separators=(",", ":"))
    data = text.encode("utf-8")
    if fmt is FileFormat.GZIP_JSON:
        data = gzip.compress(data)
    return data


def decode(data: bytes, fmt: FileFormat) -> Exam:
    try:
        if fmt is FileFormat.GZIP_JSON:
            data = gzip.decompress(data)
        doc = json.loads(data.decode("utf-8"))
    except (OSError, EOFError, zlib.error) as exc:
        raise ExamDecodeError(f"corrupt gzip stream: {exc}") from exc
    except UnicodeDecodeError as exc:
        raise ExamDecodeError(f"not UTF-8 text: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ExamDecodeError(f"invalid JSON: {exc}") from exc

    if not isinstance(doc, dict):
        raise ExamDecodeError("exam file must contain a JSON object")
    try:
        return exam_from_schema(ExamSchema.model_validate(doc))
    except ValidationError as exc:
        raise ExamDecodeError(f"invalid exam: {exc}") from exc


# ── Files ─────────────────────────────────────────────────────────────────────


def load_exam(path: str) -> Exam:
    fmt = _require_format(path)
    with open(path, "rb") as f:
        data = f.read()
    return decode(data, fmt)


def save_exam(path: str, exam: Exam, pretty: bool = False) -> None:
    """Write ``exam`` to ``path`` through a temporary file in the same directory."""
    data = encode(exam, _require_format(path), pretty=pretty)
    dir_part = os.path.dirname(os.path.abspath(path))
    fd, tmp_path = tempfile.mkstemp(prefix=".exhaust-", dir=dir_part)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        if os.path.exists(path):
            shutil.copymode(path, tmp_path)
        os.replace(tmp_path, path)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


# ── Background task bodies ────────────────────────────────────────────────────


def run_load(path: str) -> LoadCompleted:
    """Load ``path`` and wrap the outcome in a LoadCompleted event."""
    try:
        exam = load_exam(path)
    except (OSError, ExamFileError) as exc:
        logger.warning("Failed to load %s: %s", path, exc)
        return LoadCompleted(path=path, error=str(exc))
    logger.info("Loaded %s (%d items)", path, exam.num_items())
    return LoadCompleted(path=path, exam=exam)


def run_save(path: str, exam: Exam, pretty: bool = False) -> SaveCompleted:
    """Save the ``exam`` snapshot and wrap the outcome in a SaveCompleted event."""
    try:
        save_exam(path, exam, pretty=pretty)
    except (OSError, ExamFileError) as exc:
        logger.warning("Failed to save %s: %s", path, exc)
        return SaveCompleted(path=path, revision=exam.revision, session=exam.session, error=str(exc))
    logger.info("Saved %s (revision %d)", path, exam.revision)
    return SaveCompleted(path=path, revision=exam.revision, session=exam.session)

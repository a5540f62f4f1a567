"""Home screen directory listing."""

from __future__ import annotations

import logging
import os
from typing import Tuple

from exhaust.events import ListingCompleted
from exhaust.persistence import format_for
from exhaust.state import BrowseEntry

logger = logging.getLogger(__name__)


def list_directory(directory: str) -> Tuple[BrowseEntry, ...]:
    """
    Directories and persistable exam files in ``directory``, sorted by name,
    with a "../" entry pinned first unless ``directory`` is the filesystem
    root. An unreadable directory gives an empty listing.
    """
    directory = os.path.abspath(directory)
    try:
        with os.scandir(directory) as it:
            scanned = list(it)
    except OSError as exc:
        logger.warning("Cannot list %s: %s", directory, exc)
        return ()

    entries = []
    for entry in scanned:
        try:
            is_dir = entry.is_dir()
        except OSError:
            continue
        if is_dir or format_for(entry.name) is not None:
            entries.append(BrowseEntry(path=entry.path, name=entry.name, is_dir=is_dir))
    entries.sort(key=lambda e: e.name)

    parent = os.path.dirname(directory)
    if parent != directory:
        entries.insert(0, BrowseEntry(path=parent, name="..", is_dir=True, is_parent=True))
    return tuple(entries)


def run_listing(directory: str) -> ListingCompleted:
    return ListingCompleted(directory=directory, entries=list_directory(directory))

"""Helpers for the deck directory."""

from __future__ import annotations

import logging
import re
from datetime import datetime
from pathlib import Path, PurePosixPath
from typing import Iterable, List, Optional, Tuple

from slideshow import EmptyDeckNameError, make_table

from . import schemas

LOGGER = logging.getLogger(__name__)

_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def safe_name(value: Optional[str]) -> str:
    """Reduce a client supplied deck identifier to a bare file name.

    Returns an empty string when nothing usable remains.
    """

    if not value:
        return ""
    name = PurePosixPath(value.strip().replace("\\", "/")).name
    if name in ("", ".", ".."):
        return ""
    return name


def require_name(value: Optional[str], message: str = "deck: need a deck") -> str:
    name = safe_name(value)
    if not name:
        raise EmptyDeckNameError(message)
    return name


def format_timestamp(moment: datetime) -> str:
    """Format like ``Jan 2, 2006, 3:04pm (MST)``."""

    local = moment.astimezone()
    hour = local.hour % 12 or 12
    suffix = "pm" if local.hour >= 12 else "am"
    return (
        f"{_MONTHS[local.month - 1]} {local.day}, {local.year}, "
        f"{hour}:{local.minute:02d}{suffix} ({local.tzname()})"
    )


def list_decks(deck_dir: Path, pattern: str) -> List[schemas.DeckFile]:
    matcher = re.compile(pattern)
    decks: List[schemas.DeckFile] = []
    for entry in sorted(deck_dir.iterdir(), key=lambda item: item.name):
        if not matcher.search(entry.name):
            continue
        try:
            info = entry.stat()
        except OSError as exc:
            LOGGER.warning("Skipping %s: %s", entry.name, exc)
            continue
        decks.append(
            schemas.DeckFile(
                name=entry.name,
                size=info.st_size,
                date=format_timestamp(datetime.fromtimestamp(info.st_mtime)),
            )
        )
    return decks


def deck_path(deck_dir: Path, name: str) -> Path:
    return deck_dir / require_name(name)


def write_deck(deck_dir: Path, name: str, chunks: Iterable[bytes]) -> Tuple[Path, int]:
    """Write ``chunks`` to the deck file and return its path and size."""

    target = deck_path(deck_dir, name)
    size = 0
    with target.open("wb") as handle:
        for chunk in chunks:
            handle.write(chunk)
            size += len(chunk)
    target.chmod(0o644)
    return target, size


def remove_deck(deck_dir: Path, name: str) -> Path:
    target = deck_path(deck_dir, name)
    target.unlink()
    return target


def write_table(deck_dir: Path, name: str, lines: Iterable[bytes]) -> Tuple[Path, int]:
    """Generate a table deck from ``lines``; returns its path and row count."""

    target = deck_path(deck_dir, name)
    with target.open("w", encoding="utf-8") as sink:
        rows = make_table(sink, lines)
    return target, rows

"""HTTP interface of the slide execution service."""

from __future__ import annotations

from importlib import metadata
from pathlib import Path

__all__ = ["__version__"]

DISTRIBUTION = "sex"


def _source_version() -> str:
    # Checkouts that were never installed still carry the VERSION file.
    version_file = Path(__file__).resolve().parent.parent / "VERSION"
    try:
        return version_file.read_text(encoding="utf-8").strip() or "0.0.0"
    except OSError:
        return "0.0.0"


try:
    __version__ = metadata.version(DISTRIBUTION)
except metadata.PackageNotFoundError:
    __version__ = _source_version()

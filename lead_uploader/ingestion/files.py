"""Checks applied to spreadsheets before they are sent for inspection."""
from __future__ import annotations

from pathlib import Path
from typing import Union

PathLike = Union[str, Path]

SUPPORTED_UPLOAD_SUFFIXES = (".xlsx", ".xls", ".csv")


class UnsupportedFileTypeError(ValueError):
    """Raised when a file outside the supported spreadsheet formats is used."""


def ensure_upload_file(path: PathLike) -> Path:
    """Return ``path`` as a :class:`Path` if it names an existing spreadsheet we can upload."""

    file_path = Path(path)
    if file_path.suffix.lower() not in SUPPORTED_UPLOAD_SUFFIXES:
        raise UnsupportedFileTypeError(
            f"Unsupported file extension: {file_path.suffix or '(none)'}. Use one of {', '.join(SUPPORTED_UPLOAD_SUFFIXES)}"
        )
    if not file_path.is_file():
        raise FileNotFoundError(file_path)
    return file_path


__all__ = ["SUPPORTED_UPLOAD_SUFFIXES", "UnsupportedFileTypeError", "ensure_upload_file"]

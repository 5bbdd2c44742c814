"""Export the per-row errors of a committed upload for offline correction."""
from __future__ import annotations

from pathlib import Path
from typing import List, MutableMapping, Optional, Union

import pandas as pd

from ..models import RowError, UploadResult
from .files import UnsupportedFileTypeError

PathLike = Union[str, Path]

_BASE_COLUMNS = ["sheet", "row", "error"]


def export_error_details(
    result: UploadResult,
    path: PathLike,
    *,
    include_row_data: bool = True,
    sheet_name: str = "Errors",
    exporter_kwargs: Optional[MutableMapping[str, object]] = None,
) -> Path:
    """Write the rejected rows of ``result`` to a CSV or Excel file."""

    dataframe = error_details_to_dataframe(result, include_row_data=include_row_data)
    output_path = Path(path)
    _write_dataframe(dataframe, output_path, sheet_name=sheet_name, exporter_kwargs=exporter_kwargs)
    return output_path


def error_details_to_dataframe(result: UploadResult, *, include_row_data: bool = True) -> pd.DataFrame:
    """Convert ``result.error_details`` into a :class:`pandas.DataFrame`."""

    records = [_error_to_row(detail, include_row_data=include_row_data) for detail in result.error_details]
    columns: List[str] = list(_BASE_COLUMNS)
    for record in records:
        for key in record:
            if key not in columns:
                columns.append(key)
    return pd.DataFrame(records, columns=columns)


def _error_to_row(detail: RowError, *, include_row_data: bool) -> MutableMapping[str, object]:
    row: MutableMapping[str, object] = {
        "sheet": detail.sheet or "",
        "row": detail.row,
        "error": detail.error,
    }
    if include_row_data and detail.data is not None:
        for key, value in detail.data.as_row().items():
            row.setdefault(key, value)
    return row


def _write_dataframe(
    dataframe: pd.DataFrame,
    path: Path,
    *,
    sheet_name: str,
    exporter_kwargs: Optional[MutableMapping[str, object]],
) -> None:
    exporter_kwargs = dict(exporter_kwargs or {})
    suffix = path.suffix.lower()
    path.parent.mkdir(parents=True, exist_ok=True)

    if suffix in {".csv", ".tsv"}:
        if suffix == ".tsv":
            exporter_kwargs.setdefault("sep", "\t")
        dataframe.to_csv(path, index=False, **exporter_kwargs)
        return

    if suffix in {".xlsx", ".xlsm"}:
        engine = exporter_kwargs.pop("engine", None) or "openpyxl"
        dataframe.to_excel(path, index=False, sheet_name=sheet_name, engine=engine, **exporter_kwargs)
        return

    raise UnsupportedFileTypeError(f"Unsupported export file extension: {path.suffix}")


__all__ = ["error_details_to_dataframe", "export_error_details"]

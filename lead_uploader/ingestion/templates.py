"""Blank lead templates users fill in before a bulk upload."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Union

import pandas as pd

from .files import UnsupportedFileTypeError

PathLike = Union[str, Path]

TEMPLATE_SHEET_NAME = "Leads"

# Enquiry numbers are generated by the backend, so they are not part of the template.
TEMPLATE_COLUMNS: List[str] = [
    "hallTicketNumber",
    "name",
    "phone",
    "email",
    "fatherName",
    "fatherPhone",
    "motherName",
    "gender",
    "village",
    "district",
    "courseInterested",
    "interCollege",
    "rank",
    "mandal",
    "state",
    "quota",
    "applicationStatus",
]

TEMPLATE_SAMPLE_ROW: Dict[str, Any] = {
    "hallTicketNumber": "HT123456",
    "name": "John Doe",
    "phone": "9876543210",
    "email": "john@example.com",
    "fatherName": "Father Name",
    "fatherPhone": "9876543211",
    "motherName": "Mother Name",
    "gender": "Male",
    "village": "Village Name",
    "district": "District Name",
    "courseInterested": "Engineering",
    "interCollege": "ABC Junior College",
    "rank": 125,
    "mandal": "Mandal Name",
    "state": "State Name",
    "quota": "Not Applicable",
    "applicationStatus": "Qualified",
}


def template_dataframe(*, include_sample: bool = True) -> pd.DataFrame:
    rows = [TEMPLATE_SAMPLE_ROW] if include_sample else []
    return pd.DataFrame(rows, columns=TEMPLATE_COLUMNS)


def write_template(path: PathLike, *, include_sample: bool = True) -> Path:
    """Write the upload template as CSV or Excel depending on the extension."""

    output_path = Path(path)
    suffix = output_path.suffix.lower()
    dataframe = template_dataframe(include_sample=include_sample)

    if suffix == ".csv":
        output_path.parent.mkdir(parents=True, exist_ok=True)
        dataframe.to_csv(output_path, index=False)
        return output_path

    if suffix == ".xlsx":
        output_path.parent.mkdir(parents=True, exist_ok=True)
        dataframe.to_excel(output_path, index=False, sheet_name=TEMPLATE_SHEET_NAME, engine="openpyxl")
        return output_path

    raise UnsupportedFileTypeError(f"Unsupported template file extension: {output_path.suffix}")


__all__ = ["TEMPLATE_COLUMNS", "TEMPLATE_SAMPLE_ROW", "TEMPLATE_SHEET_NAME", "template_dataframe", "write_template"]

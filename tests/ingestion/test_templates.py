from __future__ import annotations

import pandas as pd
import pytest

from lead_uploader.ingestion import TEMPLATE_COLUMNS, UnsupportedFileTypeError, write_template
from lead_uploader.ingestion.templates import TEMPLATE_SHEET_NAME


def test_csv_template_has_headers_and_sample_row(tmp_path) -> None:
    path = write_template(tmp_path / "lead_template.csv")

    frame = pd.read_csv(path, dtype=str)

    assert list(frame.columns) == TEMPLATE_COLUMNS
    assert len(frame) == 1
    assert frame.loc[0, "name"] == "John Doe"
    assert frame.loc[0, "quota"] == "Not Applicable"
    assert "enquiryNumber" not in frame.columns


def test_excel_template_uses_leads_sheet(tmp_path) -> None:
    openpyxl = pytest.importorskip("openpyxl")
    path = write_template(tmp_path / "nested" / "lead_template.xlsx", include_sample=False)

    workbook = openpyxl.load_workbook(path)

    assert workbook.sheetnames == [TEMPLATE_SHEET_NAME]
    header = [cell.value for cell in next(workbook[TEMPLATE_SHEET_NAME].iter_rows(max_row=1))]
    assert header == TEMPLATE_COLUMNS
    assert workbook[TEMPLATE_SHEET_NAME].max_row == 1


def test_unsupported_template_extension(tmp_path) -> None:
    with pytest.raises(UnsupportedFileTypeError):
        write_template(tmp_path / "lead_template.json")

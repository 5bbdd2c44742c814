from __future__ import annotations

import pytest

pytest.importorskip("tkinter")

from lead_uploader.models import LeadRow, UploadResult  # noqa: E402
from lead_uploader.ui.app import (  # noqa: E402
    error_table_rows,
    format_progress_caption,
    format_upload_button_label,
    preview_table_rows,
    summarise_result,
)
from lead_uploader.upload import ProgressPhase  # noqa: E402


def test_upload_button_label_clamps_progress() -> None:
    assert format_upload_button_label(True, 1.2, "leads.xlsx") == "Uploading… 5%"
    assert format_upload_button_label(True, 47.6, "leads.xlsx") == "Uploading… 48%"
    assert format_upload_button_label(False, 0, "leads.xlsx") == "Upload leads.xlsx"
    assert format_upload_button_label(False, 0, None) == "Upload File"


def test_progress_caption_by_phase() -> None:
    assert format_progress_caption(ProgressPhase.IDLE, 0) == ""
    assert format_progress_caption(ProgressPhase.RISING, 63.4) == "Processing file… 63%"
    assert format_progress_caption(ProgressPhase.FINALIZING, 100) == "Finalizing results… 100%"


def test_summarise_result_renders_three_tiles_and_extras() -> None:
    result = UploadResult.from_payload(
        {
            "total": 100,
            "success": 95,
            "errors": 5,
            "durationMs": 2500,
            "sheetsProcessed": ["Jan", "Feb"],
            "errorDetails": [{"sheet": "Jan", "row": row, "error": "Invalid phone"} for row in range(2, 7)],
        }
    )

    summary = dict(summarise_result(result))

    assert (summary["Total"], summary["Success"], summary["Errors"]) == ("100", "95", "5")
    assert summary["Duration"] == "2.5s"
    assert summary["Sheets processed"] == "Jan, Feb"
    rows = error_table_rows(result)
    assert len(rows) == 5
    assert rows[0] == ("Jan", "2", "Invalid phone")


def test_summary_omits_missing_optional_fields() -> None:
    result = UploadResult.from_payload({"total": 1, "success": 0, "errors": 1, "errorDetails": [{"row": 2, "error": "Bad"}]})

    assert [label for label, _ in summarise_result(result)] == ["Total", "Success", "Errors"]
    assert error_table_rows(result) == [("—", "2", "Bad")]


def test_preview_table_rows() -> None:
    rows = preview_table_rows([("Jan", LeadRow(name="Asha", phone="9000000001", mandal="Tenali", state="AP")), ("Jan", LeadRow())])

    assert rows == [("Jan", "Asha", "9000000001", "Tenali", "AP"), ("Jan", "(Unnamed Lead)", "", "", "")]

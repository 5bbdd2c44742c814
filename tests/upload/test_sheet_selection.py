from __future__ import annotations

import pytest

from lead_uploader.upload import SheetSelection


def test_all_sheets_selected_by_default() -> None:
    selection = SheetSelection(["Jan", "Feb", "Mar"])

    assert selection.selected == ["Jan", "Feb", "Mar"]
    assert not selection.is_empty


def test_double_toggle_restores_previous_state() -> None:
    selection = SheetSelection(["Jan", "Feb", "Mar"])
    before = selection.selected

    assert selection.toggle("Feb") is False
    assert selection.toggle("Feb") is True

    assert selection.selected == before


def test_selection_follows_workbook_order() -> None:
    selection = SheetSelection(["Jan", "Feb", "Mar"])
    selection.clear_all()
    selection.toggle("Mar")
    selection.toggle("Jan")

    assert selection.selected == ["Jan", "Mar"]


def test_clear_all_then_select_all() -> None:
    selection = SheetSelection(["Jan", "Feb"])

    selection.clear_all()
    assert selection.is_empty
    assert len(selection) == 0

    selection.select_all()
    assert selection.selected == ["Jan", "Feb"]


def test_toggle_unknown_sheet_raises() -> None:
    selection = SheetSelection(["Jan"])

    with pytest.raises(KeyError):
        selection.toggle("Dec")


def test_duplicate_names_collapse() -> None:
    selection = SheetSelection(["Jan", "Jan", "Feb"], selected=["Feb", "Nope"])

    assert selection.sheet_names == ["Jan", "Feb"]
    assert selection.selected == ["Feb"]

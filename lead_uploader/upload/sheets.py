"""Worksheet selection for multi-sheet Excel uploads."""
from __future__ import annotations

from typing import Iterable, List, Sequence, Set


class SheetSelection:
    """Tracks which worksheets of an inspected workbook will be committed.

    Every sheet starts selected. An empty selection is allowed here; the
    session refuses to commit it.
    """

    def __init__(self, sheet_names: Sequence[str], selected: Iterable[str] | None = None) -> None:
        self._sheet_names: List[str] = list(dict.fromkeys(sheet_names))
        if selected is None:
            self._selected: Set[str] = set(self._sheet_names)
        else:
            self._selected = {name for name in selected if name in self._sheet_names}

    @property
    def sheet_names(self) -> List[str]:
        return list(self._sheet_names)

    @property
    def selected(self) -> List[str]:
        """Selected sheets in workbook order."""
        return [name for name in self._sheet_names if name in self._selected]

    @property
    def is_empty(self) -> bool:
        return not self._selected

    def is_selected(self, name: str) -> bool:
        return name in self._selected

    def toggle(self, name: str) -> bool:
        """Flip ``name`` in or out of the selection and return its new state."""
        if name not in self._sheet_names:
            raise KeyError(name)
        if name in self._selected:
            self._selected.discard(name)
            return False
        self._selected.add(name)
        return True

    def select_all(self) -> None:
        self._selected = set(self._sheet_names)

    def clear_all(self) -> None:
        self._selected.clear()

    def __len__(self) -> int:
        return len(self._selected)

    def __repr__(self) -> str:
        return f"SheetSelection(sheet_names={self._sheet_names!r}, selected={self.selected!r})"


__all__ = ["SheetSelection"]

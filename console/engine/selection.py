from __future__ import annotations

from enum import Enum
from typing import Dict, List


class HeaderState(str, Enum):
    UNCHECKED = "unchecked"
    CHECKED = "checked"
    INDETERMINATE = "indeterminate"


class SelectionSet:
    """Row selection by position within one fetched page.

    Indices only mean something against the TableView that produced them, so
    the owning controller builds a fresh set for every page it applies.
    """

    def __init__(self, row_count: int = 0) -> None:
        self.row_count = max(0, int(row_count))
        self._selected: Dict[int, bool] = {}

    def _check(self, index: int) -> None:
        if not 0 <= index < self.row_count:
            raise IndexError(f"Row {index} is outside the current page of {self.row_count} rows")

    def is_selected(self, index: int) -> bool:
        return bool(self._selected.get(index))

    def toggle(self, index: int) -> bool:
        self._check(index)
        self._selected[index] = not self._selected.get(index, False)
        return self._selected[index]

    def select(self, indices) -> None:
        """Replace the selection with ``indices`` (as reported by the grid widget)."""
        chosen = {int(index) for index in indices or []}
        for index in chosen:
            self._check(index)
        self._selected = {index: True for index in sorted(chosen)}

    @property
    def all_selected(self) -> bool:
        return self.row_count > 0 and all(self._selected.get(idx) for idx in range(self.row_count))

    def toggle_all(self) -> None:
        if self.all_selected:
            self._selected = {}
        else:
            self._selected = {idx: True for idx in range(self.row_count)}

    def clear(self) -> None:
        self._selected = {}

    @property
    def indices(self) -> List[int]:
        return sorted(idx for idx, chosen in self._selected.items() if chosen)

    @property
    def count(self) -> int:
        return len(self.indices)

    @property
    def header_state(self) -> HeaderState:
        if self.all_selected:
            return HeaderState.CHECKED
        if self.count:
            return HeaderState.INDETERMINATE
        return HeaderState.UNCHECKED

    def summary(self) -> str:
        return f"{self.count} of {self.row_count} row(s) selected."

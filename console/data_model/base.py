from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Mapping, Sequence, Tuple, Union

import pandas as pd

CellValue = Union[str, int, float, bool, None]
Row = Tuple[CellValue, ...]

IDENTITY_FIELD = "_identity"


def _flag(payload: Mapping[str, Any], *keys: str, default: bool = False) -> bool:
    for key in keys:
        if key in payload and payload[key] is not None:
            return bool(payload[key])
    return default


@dataclass(frozen=True)
class ColumnDescriptor:
    """Server-supplied metadata for one column of the active table."""

    column_name: str
    data_type: str = ""
    nullable: bool = True
    is_primary_key: bool = False
    is_unique: bool = False
    has_auto_increment: bool = False
    has_default: bool = False

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "ColumnDescriptor":
        name = str(payload.get("columnName") or payload.get("column_name") or "").strip()
        if not name:
            raise ValueError("Column descriptor without a columnName")
        return cls(
            column_name=name,
            data_type=str(payload.get("dataType") or payload.get("data_type") or ""),
            nullable=_flag(payload, "nullable", "isNullable", default=True),
            is_primary_key=_flag(payload, "isPrimaryKey", "isPk"),
            is_unique=_flag(payload, "isUnique"),
            has_auto_increment=_flag(payload, "hasAutoIncrement"),
            has_default=_flag(payload, "hasDefault"),
        )

    @property
    def label(self) -> str:
        return self.column_name.replace("_", " ")


@dataclass(frozen=True)
class TableSummary:
    table_name: str
    table_schema: str = ""

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "TableSummary":
        return cls(
            table_name=str(payload.get("tableName") or payload.get("table_name") or ""),
            table_schema=str(payload.get("tableSchema") or payload.get("table_schema") or ""),
        )


@dataclass(frozen=True)
class TableView:
    """One fetched page of a table. Replaced wholesale on every fetch."""

    page: int
    columns: Tuple[ColumnDescriptor, ...]
    rows: Tuple[Row, ...]
    active_table: str
    has_next_page: bool = False

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "TableView":
        columns = tuple(
            ColumnDescriptor.from_payload(col)
            for col in (payload.get("cols") or payload.get("Cols") or payload.get("columns") or [])
        )
        rows = tuple(tuple(row) for row in (payload.get("rows") or payload.get("Rows") or []))
        page = int(payload.get("page") or payload.get("Page") or 1)
        has_next = payload.get("hasNextPage")
        if has_next is None:
            has_next = len(rows) > 0
        return cls(
            page=page,
            columns=columns,
            rows=rows,
            active_table=str(payload.get("activeTable") or payload.get("ActiveTable") or ""),
            has_next_page=bool(has_next),
        )

    @property
    def column_names(self) -> List[str]:
        return [col.column_name for col in self.columns]

    def identity_at(self, index: int) -> str:
        return row_identity(self.rows[index])

    def display_cells(self, row: Sequence[CellValue]) -> List[CellValue]:
        return list(row[1:])

    def to_frame(self) -> pd.DataFrame:
        """Rows as an object-dtype DataFrame keyed by column name, identity kept aside."""
        names = self.column_names
        records = []
        for row in self.rows:
            record = {IDENTITY_FIELD: row_identity(row)}
            record.update(zip(names, self.display_cells(row)))
            records.append(record)
        return pd.DataFrame(records, columns=[IDENTITY_FIELD, *names], dtype=object)


@dataclass(frozen=True)
class HistoryEntry:
    id: int
    message: str
    time: str = ""

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "HistoryEntry":
        return cls(
            id=int(payload.get("id") or 0),
            message=str(payload.get("message") or ""),
            time=str(payload.get("time") or ""),
        )


def row_identity(row: Sequence[CellValue]) -> str:
    """Opaque identity of a row: its first cell as a string, never parsed."""
    if not row or row[0] is None:
        return ""
    return str(row[0])

from .base import (
    IDENTITY_FIELD,
    CellValue,
    ColumnDescriptor,
    HistoryEntry,
    Row,
    TableSummary,
    TableView,
    row_identity,
)
from .types import DataTypeCatalog, TypeDescriptor
from .widgets import InputWidget, resolve_widget, widget_for_type

__all__ = [
    "IDENTITY_FIELD",
    "CellValue",
    "ColumnDescriptor",
    "DataTypeCatalog",
    "HistoryEntry",
    "InputWidget",
    "Row",
    "TableSummary",
    "TableView",
    "TypeDescriptor",
    "resolve_widget",
    "row_identity",
    "widget_for_type",
]

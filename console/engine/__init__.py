from .builder import ColumnDraft, TableBuilderEngine
from .form import (
    DynamicFormEngine,
    FormAction,
    FormDescriptor,
    Literal,
    Override,
    Overridden,
    ResolvedColumn,
)
from .grid import DataGridController, GridQuery, GridTicket
from .mutations import EditTarget, RowMutationCoordinator
from .selection import HeaderState, SelectionSet
from .state import TablesState, verification_phrase

__all__ = [
    "ColumnDraft",
    "DataGridController",
    "DynamicFormEngine",
    "EditTarget",
    "FormAction",
    "FormDescriptor",
    "GridQuery",
    "GridTicket",
    "HeaderState",
    "Literal",
    "Override",
    "Overridden",
    "ResolvedColumn",
    "RowMutationCoordinator",
    "SelectionSet",
    "TableBuilderEngine",
    "TablesState",
    "verification_phrase",
]

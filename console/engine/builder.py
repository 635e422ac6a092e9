from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, replace
from typing import Any, Dict, List

from ..data_model import DataTypeCatalog, TypeDescriptor
from ..errors import ValidationError

logger = logging.getLogger(__name__)

MIN_COLUMNS_MESSAGE = "At least one column is required"


@dataclass(frozen=True)
class ColumnDraft:
    data_type: TypeDescriptor
    col_name: str = ""
    is_nullable: bool = False
    is_primary_key: bool = False
    is_unique: bool = False

    def to_payload(self) -> Dict[str, Any]:
        return {
            "colName": self.col_name.strip(),
            "isNull": self.is_nullable,
            "isPk": self.is_primary_key,
            "isUnique": self.is_unique,
            "dataType": self.data_type.to_payload(),
        }


class TableBuilderEngine:
    """Editable list of column drafts for a create-table request (never empty)."""

    def __init__(self, catalog: DataTypeCatalog) -> None:
        if not catalog.types:
            raise ValueError("No data types found")
        self.catalog = catalog
        self.table_name = ""
        self.drafts: List[ColumnDraft] = [self._blank()]
        self.errors: Dict[str, str] = {}
        self.error: str | None = None
        self.submitting = False
        self._lock = threading.Lock()

    def _blank(self) -> ColumnDraft:
        return ColumnDraft(data_type=self.catalog.types[0])

    def _draft(self, index: int) -> ColumnDraft:
        if not 0 <= index < len(self.drafts):
            raise IndexError(f"No column draft at position {index}")
        return self.drafts[index]

    def add_column(self) -> int:
        self.drafts.append(self._blank())
        return len(self.drafts) - 1

    def remove_column(self, index: int) -> None:
        self._draft(index)
        if len(self.drafts) <= 1:
            raise ValidationError({"columns": MIN_COLUMNS_MESSAGE})
        del self.drafts[index]
        self.errors = {}

    def change_type(self, index: int, type_name: str) -> TypeDescriptor:
        """Swap in the catalog entry for ``type_name``; the draft's name and flags stay."""
        draft = self._draft(index)
        data_type = self.catalog.find(type_name)
        self.drafts[index] = replace(draft, data_type=data_type)
        return data_type

    def set_size(self, index: int, size: int | None) -> None:
        draft = self._draft(index)
        self.drafts[index] = replace(draft, data_type=draft.data_type.with_size(size))

    def set_auto_increment(self, index: int, enabled: bool) -> None:
        draft = self._draft(index)
        self.drafts[index] = replace(draft, data_type=draft.data_type.with_auto_increment(enabled))

    def update_draft(self, index: int, **changes: Any) -> ColumnDraft:
        allowed = {"col_name", "is_nullable", "is_primary_key", "is_unique"}
        unknown = set(changes) - allowed
        if unknown:
            raise TypeError(f"Unknown draft fields: {', '.join(sorted(unknown))}")
        draft = replace(self._draft(index), **changes)
        self.drafts[index] = draft
        if "col_name" in changes:
            self.errors.pop(f"columns.{index}.colName", None)
        return draft

    def validate(self) -> Dict[str, str]:
        errors: Dict[str, str] = {}
        if not self.table_name.strip():
            errors["tableName"] = "Table name is required"
        if not self.drafts:
            errors["columns"] = MIN_COLUMNS_MESSAGE
        for index, draft in enumerate(self.drafts):
            if not draft.col_name.strip():
                errors[f"columns.{index}.colName"] = "Column name is required"
        return errors

    def payload(self) -> Dict[str, Any]:
        return {
            "tableName": self.table_name.strip(),
            "inputs": [draft.to_payload() for draft in self.drafts],
        }

    def submit(self, tables) -> str | None:
        """Create the table through ``tables``; returns its name, or None on failure."""
        with self._lock:
            if self.submitting:
                return None
            self.submitting = True
        try:
            self.errors = self.validate()
            if self.errors:
                self.error = "Please fix the highlighted fields"
                return None
            body = self.payload()
            if not tables.create_table(body["tableName"], body["inputs"]):
                self.error = tables.error or "Failed to create table"
                return None
        finally:
            self.submitting = False
        self.error = None
        logger.info("Created table %s with %d column(s)", body["tableName"], len(body["inputs"]))
        return body["tableName"]

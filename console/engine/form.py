"""Insert/update row forms built from server-supplied column metadata.

Every field is a two-state machine:

    Literal(value)                      the user's value is active
    Overridden(remembered, overrides)   a server-side value (default and/or
                                        auto increment) replaces it

Enabling an override from ``Literal`` remembers the value and clears the field.
Enabling a second override while one is active only adds it to the set, so
the remembered value is always the literal that was present before the first
override. The literal comes back once the last active override is disabled.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, FrozenSet, Mapping, Tuple, Union

from ..data_model import CellValue, ColumnDescriptor, InputWidget, resolve_widget
from ..errors import ConsoleError
from .mutations import EditTarget

logger = logging.getLogger(__name__)


class FormAction(str, Enum):
    INSERT = "Insert"
    UPDATE = "Update"


class Override(str, Enum):
    DEFAULT = "default"
    AUTO_INCREMENT = "auto_increment"


@dataclass(frozen=True)
class Literal:
    value: Any = ""

    @property
    def overrides(self) -> FrozenSet[Override]:
        return frozenset()


@dataclass(frozen=True)
class Overridden:
    remembered: Any
    overrides: FrozenSet[Override]


FieldState = Union[Literal, Overridden]


def enable_override(state: FieldState, kind: Override) -> FieldState:
    if isinstance(state, Literal):
        return Overridden(remembered=state.value, overrides=frozenset({kind}))
    return Overridden(remembered=state.remembered, overrides=state.overrides | {kind})


def disable_override(state: FieldState, kind: Override) -> FieldState:
    if isinstance(state, Literal) or kind not in state.overrides:
        return state
    remaining = state.overrides - {kind}
    if not remaining:
        return Literal(state.remembered)
    return Overridden(remembered=state.remembered, overrides=remaining)


@dataclass(frozen=True)
class ResolvedColumn:
    descriptor: ColumnDescriptor
    input_widget: InputWidget
    current_value: CellValue = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "ResolvedColumn":
        descriptor = ColumnDescriptor.from_payload(payload)
        widget = resolve_widget(payload.get("inputType"), descriptor.data_type)
        return cls(descriptor=descriptor, input_widget=widget, current_value=payload.get("value"))

    @property
    def column_name(self) -> str:
        return self.descriptor.column_name

    def initial_value(self) -> Any:
        value = self.current_value
        if self.input_widget is InputWidget.CHECKBOX:
            if isinstance(value, str):
                return value.strip().lower() in {"1", "true", "t", "yes", "on"}
            return bool(value)
        if value is None:
            return ""
        if self.input_widget is InputWidget.NUMBER:
            return value
        return str(value)


@dataclass(frozen=True)
class FormDescriptor:
    action: FormAction
    table: str
    columns: Tuple[ResolvedColumn, ...]

    @classmethod
    def from_payload(cls, table: str, payload: Mapping[str, Any]) -> "FormDescriptor":
        raw_action = str(payload.get("Action") or payload.get("action") or FormAction.INSERT.value)
        try:
            action = FormAction(raw_action.capitalize())
        except ValueError as exc:
            raise ConsoleError(f"Unknown form action {raw_action!r}") from exc
        columns = tuple(
            ResolvedColumn.from_payload(col)
            for col in (payload.get("Cols") or payload.get("cols") or payload.get("columns") or [])
        )
        active = str(payload.get("ActiveTable") or payload.get("activeTable") or table)
        return cls(action=action, table=active, columns=columns)

    def column(self, name: str) -> ResolvedColumn:
        for col in self.columns:
            if col.column_name == name:
                return col
        raise KeyError(f"Unknown column {name!r}")


def is_empty(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class DynamicFormEngine:
    def __init__(self, client) -> None:
        self.client = client
        self.descriptor: FormDescriptor | None = None
        self.target: EditTarget | None = None
        self.fields: Dict[str, FieldState] = {}
        self.field_errors: Dict[str, str] = {}
        self.error: str | None = None
        self.message: str | None = None
        self.loading = False
        self.submitting = False
        self._lock = threading.Lock()

    def load(
        self,
        table: str,
        identity: str | None = None,
        page: int = 1,
        sort_column: str | None = None,
        sort_order: str = "asc",
    ) -> bool:
        identity = identity or None
        self.loading = True
        self.error = None
        self.message = None
        self.field_errors = {}
        self.fields = {}
        self.descriptor = None
        self.target = EditTarget(table, identity, max(1, int(page or 1)), sort_column, sort_order)
        try:
            payload = self.client.fetch_form(table, identity=identity, page=self.target.page)
            descriptor = FormDescriptor.from_payload(table, payload)
        except ConsoleError as exc:
            logger.error("Loading form for %s failed: %s", table, exc)
            self.error = str(exc)
            return False
        finally:
            self.loading = False
        self.descriptor = descriptor
        self.fields = {col.column_name: Literal(col.initial_value()) for col in descriptor.columns}
        return True

    @property
    def action(self) -> FormAction | None:
        return self.descriptor.action if self.descriptor else None

    def _column(self, name: str) -> ResolvedColumn:
        if self.descriptor is None:
            raise ValueError("No form loaded")
        return self.descriptor.column(name)

    def state(self, column: str) -> FieldState:
        self._column(column)
        return self.fields[column]

    def value(self, column: str) -> Any:
        state = self.state(column)
        return state.value if isinstance(state, Literal) else ""

    def is_disabled(self, column: str) -> bool:
        return isinstance(self.state(column), Overridden)

    def override_active(self, column: str, kind: Override) -> bool:
        return kind in self.state(column).overrides

    def set_value(self, column: str, value: Any) -> None:
        col = self._column(column)
        if self.is_disabled(column):
            raise ValueError(f"{column} uses a server-side value and cannot be edited")
        if col.input_widget is InputWidget.CHECKBOX:
            value = bool(value)
        elif value is None:
            value = ""
        self.fields[column] = Literal(value)
        self.field_errors.pop(column, None)

    def _toggle(self, column: str, kind: Override, enabled: bool) -> None:
        state = self.state(column)
        if enabled:
            self.fields[column] = enable_override(state, kind)
            self.field_errors.pop(column, None)
        else:
            self.fields[column] = disable_override(state, kind)

    def set_use_default(self, column: str, enabled: bool) -> None:
        if not self._column(column).descriptor.has_default:
            raise ValueError(f"{column} has no default value")
        self._toggle(column, Override.DEFAULT, enabled)

    def set_auto_increment(self, column: str, enabled: bool) -> None:
        if not self._column(column).descriptor.has_auto_increment:
            raise ValueError(f"{column} is not auto increment")
        self._toggle(column, Override.AUTO_INCREMENT, enabled)

    def validate(self) -> Dict[str, str]:
        if self.descriptor is None:
            raise ValueError("No form loaded")
        errors: Dict[str, str] = {}
        for col in self.descriptor.columns:
            name = col.column_name
            if col.descriptor.nullable or self.is_disabled(name):
                continue
            if is_empty(self.value(name)):
                errors[name] = f"{col.descriptor.label} is required"
        return errors

    def payload(self) -> Dict[str, Dict[str, str]]:
        if self.descriptor is None:
            raise ValueError("No form loaded")
        return {
            col.column_name: {
                "value": stringify(self.value(col.column_name)),
                "type": col.input_widget.value,
            }
            for col in self.descriptor.columns
        }

    def submit(self) -> EditTarget | None:
        """Validate and save; returns the grid view to go back to, or None on failure."""
        if self.descriptor is None or self.target is None:
            raise ValueError("No form loaded")
        with self._lock:
            if self.submitting:
                logger.info("Save of %s ignored, already submitting", self.target.table)
                return None
            self.submitting = True
        try:
            self.message = None
            self.field_errors = self.validate()
            if self.field_errors:
                self.error = "Please fill in all required fields"
                return None
            update = self.descriptor.action is FormAction.UPDATE
            self.client.save_form(
                self.target.table,
                self.payload(),
                identity=self.target.identity if update else None,
                page=self.target.page,
            )
        except ConsoleError as exc:
            logger.error("Saving row in %s failed: %s", self.target.table, exc)
            self.error = str(exc)
            return None
        finally:
            self.submitting = False
        self.error = None
        self.message = f"Row {'updated' if update else 'created'} successfully"
        return self.target

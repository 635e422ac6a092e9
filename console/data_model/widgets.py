"""Input widget kinds and the declared-type lookup that picks one per column."""
from __future__ import annotations

import logging
from enum import Enum
from typing import Dict

logger = logging.getLogger(__name__)


class InputWidget(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    CHECKBOX = "checkbox"
    TEXTAREA = "textarea"
    JSON = "json"

    @property
    def multiline(self) -> bool:
        return self in (InputWidget.TEXTAREA, InputWidget.JSON)


_NUMERIC = (
    "smallint", "integer", "bigint", "decimal", "numeric", "real", "double precision",
    "smallserial", "serial", "bigserial", "money", "tinyint", "mediumint", "float",
    "double", "year", "int", "int2", "int8", "unsigned big int",
)
_LONG_TEXT = (
    "text", "jsonb", "xml", "bytea", "tinyblob", "mediumblob", "blob", "longblob",
    "binary", "varbinary", "tinytext", "mediumtext", "longtext", "clob",
)

TYPE_WIDGETS: Dict[str, InputWidget] = {
    **{name: InputWidget.NUMBER for name in _NUMERIC},
    **{name: InputWidget.TEXTAREA for name in _LONG_TEXT},
    "boolean": InputWidget.CHECKBOX,
    "bool": InputWidget.CHECKBOX,
    "json": InputWidget.JSON,
}


def normalize_type_name(data_type: str) -> str:
    """Lowercase a declared type and drop size arguments and an unsigned suffix."""
    name = str(data_type or "").strip().lower()
    if "(" in name:
        name = name[: name.index("(")].strip()
    if name.endswith(" unsigned"):
        name = name[: -len(" unsigned")].strip()
    return name


def widget_for_type(data_type: str) -> InputWidget:
    name = normalize_type_name(data_type)
    widget = TYPE_WIDGETS.get(name)
    if widget is None:
        if name:
            logger.debug("No widget mapping for type %r, using text input", data_type)
        return InputWidget.TEXT
    return widget


def resolve_widget(input_type: str | None, data_type: str) -> InputWidget:
    """Prefer the backend's inputType, fall back to the declared type."""
    if input_type:
        try:
            return InputWidget(str(input_type).strip().lower())
        except ValueError:
            logger.warning("Unknown inputType %r for type %r", input_type, data_type)
    return widget_for_type(data_type)

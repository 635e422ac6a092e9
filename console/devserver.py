"""Development REST backend for the console.

Serves the same surface as the production backend over in-memory pandas
tables, so the console can be run and tested without a database server.
"""

from __future__ import annotations

import datetime
import hashlib
import logging
import math
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List

import pandas as pd
from flask import Flask, jsonify, request

from console.config import ConsoleConfig, configure_logging
from console.data_model import InputWidget, widget_for_type
from console.engine.state import verification_phrase

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"
TABLE_NAME_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

SQLITE_NUMERIC_TYPES: List[Dict[str, Any]] = [
    {"type": "INT", "hasSize": False, "hasDigit": False, "hasAutoIncrement": False},
    {"type": "INTEGER", "hasSize": False, "hasDigit": False, "hasAutoIncrement": True},
    {"type": "TINYINT", "hasSize": False, "hasDigit": False, "hasAutoIncrement": False},
    {"type": "SMALLINT", "hasSize": False, "hasDigit": False, "hasAutoIncrement": False},
    {"type": "BIGINT", "hasSize": False, "hasDigit": False, "hasAutoIncrement": False},
    {"type": "REAL", "hasSize": False, "hasDigit": False, "hasAutoIncrement": False},
    {"type": "DOUBLE", "hasSize": False, "hasDigit": False, "hasAutoIncrement": False},
    {"type": "FLOAT", "hasSize": False, "hasDigit": False, "hasAutoIncrement": False},
    {"type": "NUMERIC", "hasSize": True, "hasDigit": True, "hasAutoIncrement": False},
    {"type": "DECIMAL", "hasSize": True, "hasDigit": True, "hasAutoIncrement": False},
    {"type": "BOOLEAN", "hasSize": False, "hasDigit": False, "hasBool": True, "hasAutoIncrement": False},
    {"type": "DATE", "hasSize": False, "hasDigit": False, "hasAutoIncrement": False},
    {"type": "DATETIME", "hasSize": False, "hasDigit": False, "hasAutoIncrement": False},
]

SQLITE_STRING_TYPES: List[Dict[str, Any]] = [
    {"type": "TEXT", "hasSize": False, "hasValues": False},
    {"type": "CHARACTER", "hasSize": True, "hasValues": False},
    {"type": "VARCHAR", "hasSize": True, "hasValues": False, "size": 255},
    {"type": "NCHAR", "hasSize": True, "hasValues": False},
    {"type": "CLOB", "hasSize": False, "hasValues": False},
    {"type": "BLOB", "hasSize": False, "hasValues": False},
    {"type": "JSON", "hasSize": False, "hasValues": False},
]


class ApiError(Exception):
    def __init__(self, message: str, status: int = 400) -> None:
        super().__init__(message)
        self.message = message
        self.status = status


@dataclass
class ColumnMeta:
    name: str
    data_type: str
    nullable: bool = True
    primary_key: bool = False
    unique: bool = False
    auto_increment: bool = False
    default: Any = None

    @property
    def widget(self) -> InputWidget:
        return widget_for_type(self.data_type)

    def payload(self, value: Any = None) -> Dict[str, Any]:
        return {
            "columnName": self.name,
            "dataType": self.data_type,
            "inputType": self.widget.value,
            "nullable": self.nullable,
            "isPrimaryKey": self.primary_key,
            "isUnique": self.unique or self.primary_key,
            "hasAutoIncrement": self.auto_increment,
            "hasDefault": self.default is not None,
            "value": value,
        }


@dataclass
class StoredTable:
    name: str
    columns: List[ColumnMeta]
    frame: pd.DataFrame = field(default_factory=pd.DataFrame)

    @property
    def column_names(self) -> List[str]:
        return [col.name for col in self.columns]


def _is_nan(value: Any) -> bool:
    try:
        return not math.isfinite(value)
    except (TypeError, ValueError):
        return False


def _clean_cell(value: Any) -> Any:
    if value is None or _is_nan(value):
        return None
    if hasattr(value, "item"):
        return value.item()
    return value


def row_hash(values: List[Any]) -> str:
    digest = hashlib.sha256(repr([_clean_cell(v) for v in values]).encode("utf-8")).hexdigest()
    return digest[:8]


def parse_form_value(col: ColumnMeta, raw: str) -> Any:
    text = str(raw if raw is not None else "").strip()
    widget = col.widget
    if not text:
        return None
    if widget is InputWidget.CHECKBOX:
        return text.lower() in {"1", "true", "t", "yes", "on"}
    if widget is InputWidget.NUMBER:
        try:
            number = float(text)
        except ValueError as exc:
            raise ApiError(f"{col.name} expects a number") from exc
        return int(number) if number.is_integer() and "." not in text else number
    return text


class TableStore:
    """In-memory tables keyed by name, with an operation history."""

    def __init__(self, page_size: int = 10) -> None:
        self.page_size = page_size
        self.tables: Dict[str, StoredTable] = {}
        self.history: List[Dict[str, Any]] = []

    def log(self, message: str) -> None:
        entry = {
            "id": len(self.history) + 1,
            "message": message,
            "time": datetime.datetime.now(datetime.timezone.utc).isoformat(),
        }
        self.history.append(entry)
        logger.info(message)

    def get(self, name: str) -> StoredTable:
        table = self.tables.get(str(name).strip())
        if table is None:
            raise ApiError(f"table {name} not found", status=404)
        return table

    def create(self, name: str, columns: List[ColumnMeta], rows: List[Dict[str, Any]] | None = None) -> StoredTable:
        name = str(name or "").strip()
        if not name:
            raise ApiError("table name cannot be empty")
        if not TABLE_NAME_PATTERN.match(name):
            raise ApiError("invalid table name")
        if name in self.tables:
            raise ApiError(f"table {name} already exists")
        if not columns:
            raise ApiError("no values provided")
        seen: set[str] = set()
        for col in columns:
            if not col.name or not TABLE_NAME_PATTERN.match(col.name):
                raise ApiError("invalid column name")
            if col.name in seen:
                raise ApiError("duplicate column name")
            seen.add(col.name)
        names = [col.name for col in columns]
        frame = pd.DataFrame(rows or [], columns=names, dtype=object)
        table = StoredTable(name=name, columns=columns, frame=frame)
        self.tables[name] = table
        return table

    def drop(self, name: str, verification_query: str) -> None:
        table = self.get(name)
        if str(verification_query or "").strip() != verification_phrase(table.name):
            raise ApiError("verification query does not match")
        del self.tables[table.name]
        self.log(f"Dropped table {table.name}")

    def _rows(self, table: StoredTable, frame: pd.DataFrame) -> List[List[Any]]:
        rows = []
        for values in frame[table.column_names].itertuples(index=False, name=None):
            cells = [_clean_cell(v) for v in values]
            rows.append([row_hash(cells), *cells])
        return rows

    def _sorted(self, table: StoredTable, column: str | None, order: str) -> pd.DataFrame:
        frame = table.frame
        if not column:
            return frame
        if column not in table.column_names:
            raise ApiError("invalid column name")
        if order not in ("asc", "desc"):
            raise ApiError("invalid sort order")
        try:
            return frame.sort_values(column, ascending=order == "asc", kind="mergesort", na_position="first")
        except TypeError as exc:
            raise ApiError(f"cannot sort by {column}: {exc}") from exc

    def page_rows(self, table: StoredTable, page: int, column: str | None = None, order: str = "asc") -> Dict[str, Any]:
        frame = self._sorted(table, column, order)
        offset = (page - 1) * self.page_size
        window = frame.iloc[offset : offset + self.page_size]
        return {
            "page": page,
            "cols": [col.payload() for col in table.columns],
            "rows": self._rows(table, window),
            "activeTable": table.name,
            "hasNextPage": len(frame) > page * self.page_size,
        }

    def _locate(self, table: StoredTable, identity: str) -> int:
        for position, values in enumerate(table.frame[table.column_names].itertuples(index=False, name=None)):
            if row_hash(list(values)) == identity:
                return position
        raise ApiError(f"row {identity} not found", status=404)

    def find_row(self, table: StoredTable, identity: str) -> List[Any]:
        position = self._locate(table, identity)
        return [_clean_cell(v) for v in table.frame.iloc[position].tolist()]

    def delete_row(self, table: StoredTable, identity: str) -> None:
        position = self._locate(table, identity)
        table.frame = table.frame.drop(table.frame.index[position]).reset_index(drop=True)
        self.log(f"Deleted row {identity} from {table.name}")

    def _resolve_values(self, table: StoredTable, form: Dict[str, Any], skip: int | None = None) -> Dict[str, Any]:
        record: Dict[str, Any] = {}
        for col in table.columns:
            entry = form.get(col.name) or {}
            raw = entry.get("value", "") if isinstance(entry, dict) else entry
            value = parse_form_value(col, raw)
            if value is None and col.auto_increment:
                existing = pd.to_numeric(table.frame[col.name], errors="coerce").dropna()
                value = int(existing.max()) + 1 if not existing.empty else 1
            if value is None and col.default is not None:
                value = col.default
            if value is None and not col.nullable:
                raise ApiError(f"{col.name} cannot be null")
            if value is not None and (col.unique or col.primary_key):
                others = table.frame[col.name]
                if skip is not None:
                    others = others.drop(table.frame.index[skip])
                if any(_clean_cell(v) == value for v in others.tolist()):
                    raise ApiError(f"duplicate value for unique column {col.name}")
            record[col.name] = value
        return record

    def insert(self, table: StoredTable, form: Dict[str, Any]) -> None:
        record = self._resolve_values(table, form)
        addition = pd.DataFrame([record], columns=table.column_names, dtype=object)
        table.frame = pd.concat([table.frame, addition], ignore_index=True) if len(table.frame) else addition
        self.log(f"Inserted row into {table.name}")

    def update(self, table: StoredTable, identity: str, form: Dict[str, Any]) -> None:
        position = self._locate(table, identity)
        record = self._resolve_values(table, form, skip=position)
        for name, value in record.items():
            table.frame.at[table.frame.index[position], name] = value
        self.log(f"Updated row {identity} in {table.name}")


def columns_from_inputs(inputs: List[Dict[str, Any]]) -> List[ColumnMeta]:
    columns: List[ColumnMeta] = []
    for item in inputs or []:
        data_type = item.get("dataType") or {}
        type_name = str(data_type.get("type") or "").strip()
        if not type_name:
            raise ApiError("data type is required")
        size = data_type.get("size")
        declared = f"{type_name}({int(size)})" if data_type.get("hasSize") and size else type_name
        auto_increment = bool(data_type.get("hasAutoIncrement") and data_type.get("autoIncrement"))
        columns.append(
            ColumnMeta(
                name=str(item.get("colName") or "").strip(),
                data_type=declared,
                nullable=bool(item.get("isNull")),
                primary_key=bool(item.get("isPk")),
                unique=bool(item.get("isUnique")),
                auto_increment=auto_increment,
            )
        )
    return columns


def seed_store(store: TableStore) -> None:
    store.create(
        "users",
        [
            ColumnMeta("id", "INTEGER", nullable=False, primary_key=True, auto_increment=True),
            ColumnMeta("name", "VARCHAR(255)", nullable=False),
            ColumnMeta("email", "VARCHAR(255)", unique=True),
            ColumnMeta("age", "INT"),
            ColumnMeta("active", "BOOLEAN", nullable=False, default=True),
            ColumnMeta("profile", "JSON"),
        ],
        [
            {"id": 1, "name": "Ann", "email": "ann@example.com", "age": 30, "active": True, "profile": None},
            {"id": 2, "name": "Bo", "email": "bo@example.com", "age": 41, "active": False, "profile": '{"team": "ops"}'},
        ],
    )


def _ok(data: Any = None, status: int = 200):
    return jsonify({"success": True, "data": data}), status


def _page_arg() -> int:
    try:
        return max(int(request.args.get("page", 1)), 1)
    except (TypeError, ValueError):
        return 1


def create_app(store: TableStore | None = None, config: ConsoleConfig | None = None) -> Flask:
    config = config or ConsoleConfig.from_env()
    store = store or TableStore(page_size=config.page_size)
    app = Flask(__name__)
    app.config["TABLE_STORE"] = store

    @app.errorhandler(ApiError)
    def handle_api_error(exc: ApiError):
        logger.warning("%s %s -> %s", request.method, request.path, exc.message)
        return jsonify({"success": False, "error": exc.message}), exc.status

    @app.after_request
    def apply_cors_headers(response):
        response.headers["Access-Control-Allow-Origin"] = "*"
        response.headers["Access-Control-Allow-Methods"] = "GET,POST,DELETE,OPTIONS"
        response.headers["Access-Control-Allow-Headers"] = "Content-Type"
        return response

    @app.get(f"{API_PREFIX}/tables")
    def list_tables():
        return _ok([{"tableName": name, "tableSchema": "main"} for name in sorted(store.tables)])

    @app.delete(f"{API_PREFIX}/tables")
    def delete_table():
        payload = request.get_json(silent=True) or {}
        store.drop(str(payload.get("tableName", "")), str(payload.get("verificationQuery", "")))
        return "", 204

    @app.get(f"{API_PREFIX}/tables/form/new")
    def table_form_types():
        return _ok({"numericType": SQLITE_NUMERIC_TYPES, "stringType": SQLITE_STRING_TYPES})

    @app.post(f"{API_PREFIX}/tables/form/new")
    def create_table():
        payload = request.get_json(silent=True) or {}
        name = str(payload.get("tableName", "")).strip()
        store.create(name, columns_from_inputs(payload.get("inputs") or []))
        store.log(f"Created table {name}")
        return _ok(None, 201)

    @app.get(f"{API_PREFIX}/tables/<table_name>")
    def table_rows(table_name: str):
        table = store.get(table_name)
        column = request.args.get("column") or None
        order = (request.args.get("order") or "asc").lower()
        return _ok(store.page_rows(table, _page_arg(), column, order))

    @app.get(f"{API_PREFIX}/tables/<table_name>/form")
    def row_form(table_name: str):
        table = store.get(table_name)
        identity = (request.args.get("hash") or "").strip()
        values: List[Any] = [None] * len(table.columns)
        action = "Insert"
        if identity:
            action = "Update"
            values = store.find_row(table, identity)
        cols = [col.payload(value) for col, value in zip(table.columns, values)]
        return _ok({"Action": action, "Cols": cols, "ActiveTable": table.name})

    @app.post(f"{API_PREFIX}/tables/<table_name>/form")
    def save_row(table_name: str):
        table = store.get(table_name)
        form = request.get_json(silent=True)
        if not isinstance(form, dict):
            raise ApiError("invalid JSON")
        identity = (request.args.get("hash") or "").strip()
        if identity:
            store.update(table, identity, form)
            return _ok(None, 200)
        store.insert(table, form)
        return _ok(None, 201)

    @app.delete(f"{API_PREFIX}/tables/<table_name>/row/<identity>")
    def delete_row(table_name: str, identity: str):
        table = store.get(table_name)
        store.delete_row(table, identity)
        return _ok(None)

    @app.get(f"{API_PREFIX}/history")
    def list_history():
        page = _page_arg()
        newest = list(reversed(store.history))
        offset = (page - 1) * store.page_size
        return _ok(newest[offset : offset + store.page_size])

    @app.get(f"{API_PREFIX}/history/recent")
    def recent_history():
        return _ok(list(reversed(store.history))[:10])

    return app


if __name__ == "__main__":
    settings = ConsoleConfig.from_env()
    configure_logging(settings.log_level)
    dev_store = TableStore(page_size=settings.page_size)
    seed_store(dev_store)
    create_app(dev_store, settings).run(debug=False, port=8000)

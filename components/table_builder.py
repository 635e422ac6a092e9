# components/table_builder.py
from __future__ import annotations

import dash_bootstrap_components as dbc
from dash import dcc, html

from console.engine import TableBuilderEngine
from console.engine.builder import ColumnDraft

FLAG_FIELDS = {"null": "is_nullable", "pk": "is_primary_key", "unique": "is_unique"}
FLAG_LABELS = {"null": "Null", "pk": "Primary key", "unique": "Unique"}


def draft_flags(draft: ColumnDraft):
    return [flag for flag, field in FLAG_FIELDS.items() if getattr(draft, field)]


def _draft_row(builder: TableBuilderEngine, index: int, draft: ColumnDraft):
    name_error = builder.errors.get(f"columns.{index}.colName")
    data_type = draft.data_type
    extras = []
    if data_type.has_size:
        extras.append(
            dbc.Input(
                id={"type": "draft-size", "index": index},
                type="number",
                min=1,
                step=1,
                value=data_type.size,
                placeholder="Size",
            )
        )
    if data_type.has_auto_increment:
        extras.append(
            dbc.Checkbox(
                id={"type": "draft-auto", "index": index},
                label="Auto increment",
                value=data_type.auto_increment,
            )
        )
    return dbc.Row(
        [
            dbc.Col(
                [
                    dbc.Input(
                        id={"type": "draft-name", "index": index},
                        value=draft.col_name,
                        placeholder="Column name",
                        invalid=bool(name_error),
                    ),
                    dbc.FormFeedback(name_error or "", type="invalid"),
                ],
                md=3,
            ),
            dbc.Col(
                dcc.Dropdown(
                    id={"type": "draft-type", "index": index},
                    options=[{"label": name, "value": name} for name in builder.catalog.type_names],
                    value=data_type.type_name,
                    clearable=False,
                ),
                md=2,
            ),
            dbc.Col(extras, md=2),
            dbc.Col(
                dbc.Checklist(
                    id={"type": "draft-flags", "index": index},
                    options=[{"label": label, "value": flag} for flag, label in FLAG_LABELS.items()],
                    value=draft_flags(draft),
                    inline=True,
                ),
                md=4,
            ),
            dbc.Col(
                dbc.Button(
                    "Remove",
                    id={"type": "draft-remove", "index": index},
                    color="danger",
                    outline=True,
                    size="sm",
                    disabled=len(builder.drafts) <= 1,
                ),
                md=1,
            ),
        ],
        className="mb-2 align-items-start",
    )


def build_drafts(builder: TableBuilderEngine):
    rows = [_draft_row(builder, index, draft) for index, draft in enumerate(builder.drafts)]
    if builder.error:
        rows.insert(0, dbc.Alert(builder.error, color="danger"))
    return rows


def build_table_builder(builder: TableBuilderEngine | None, error: str | None = None):
    if builder is None:
        return dbc.Alert(error or "No data types found.", color="danger")
    table_error = builder.errors.get("tableName")
    return dbc.Card(
        [
            html.H2("Create Table", className="mb-3"),
            dbc.Label("Table name"),
            dbc.Input(id="builder-table-name", value=builder.table_name, invalid=bool(table_error)),
            dbc.FormFeedback(table_error or "", type="invalid"),
            html.H5("Columns", className="mt-4"),
            html.Div(build_drafts(builder), id="builder-drafts"),
            html.Div(
                [
                    dbc.Button("Add Column", id="builder-add", color="secondary", className="me-2"),
                    dbc.Button("Create Table", id="builder-submit", color="primary", disabled=builder.submitting),
                ],
                className="d-flex justify-content-end mt-3",
            ),
        ],
        body=True,
    )


__all__ = ["FLAG_FIELDS", "build_drafts", "build_table_builder", "draft_flags"]

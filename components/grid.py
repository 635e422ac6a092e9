# components/grid.py
from __future__ import annotations

from typing import Any, Dict, List

import dash_bootstrap_components as dbc
from dash import dash_table, html

from console.data_model import IDENTITY_FIELD, TableView
from console.engine import DataGridController, HeaderState, verification_phrase
from console.engine.grid import ELLIPSIS

EDIT_COLUMN = "__edit"
DELETE_COLUMN = "__delete"
PARTIAL_STYLE = {"backgroundColor": "#6c757d", "borderColor": "#6c757d", "opacity": 0.8}


def column_id(position: int) -> str:
    # positional ids: column names are arbitrary and may clash with DataTable's own "id" key
    return f"c{position}"


def column_position(col_id: str) -> int | None:
    if not col_id or not col_id.startswith("c") or not col_id[1:].isdigit():
        return None
    return int(col_id[1:])


def display_cell(value: Any) -> str:
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def grid_records(view: TableView) -> List[Dict[str, Any]]:
    frame = view.to_frame()
    records = []
    for row in frame.to_dict("records"):
        record: Dict[str, Any] = {"id": row[IDENTITY_FIELD]}
        for position, name in enumerate(view.column_names):
            record[column_id(position)] = display_cell(row.get(name))
        record[EDIT_COLUMN] = "Edit"
        record[DELETE_COLUMN] = "Delete"
        records.append(record)
    return records


def _datatable(grid: DataGridController):
    view = grid.view
    columns = [{"name": col.column_name, "id": column_id(idx)} for idx, col in enumerate(view.columns)]
    columns += [{"name": "", "id": EDIT_COLUMN}, {"name": "", "id": DELETE_COLUMN}]
    sort_by = []
    query = grid.query
    if query and query.sort_column in view.column_names:
        sort_by = [{"column_id": column_id(view.column_names.index(query.sort_column)), "direction": query.sort_order}]
    return dash_table.DataTable(
        id="grid-table",
        data=grid_records(view),
        columns=columns,
        row_selectable="multi",
        selected_rows=grid.selection.indices,
        sort_action="custom",
        sort_mode="single",
        sort_by=sort_by,
        style_table={"overflowX": "auto"},
        style_header={"backgroundColor": "#222", "color": "#eee", "fontWeight": "bold"},
        style_data={"backgroundColor": "#111", "color": "#eee"},
        style_data_conditional=[
            {"if": {"column_id": EDIT_COLUMN}, "color": "#6ea8fe", "cursor": "pointer"},
            {"if": {"column_id": DELETE_COLUMN}, "color": "#ea868f", "cursor": "pointer"},
        ],
        fill_width=True,
    )


def build_pager(grid: DataGridController):
    page = grid.page
    buttons = [
        dbc.Button(
            "Previous",
            id={"type": "page-link", "page": max(page - 1, 1), "slot": "prev"},
            disabled=not grid.has_previous_page,
            color="secondary",
            outline=True,
        )
    ]
    for item in grid.page_items():
        if item == ELLIPSIS:
            buttons.append(dbc.Button("…", disabled=True, color="secondary", outline=True))
            continue
        buttons.append(
            dbc.Button(
                str(item),
                id={"type": "page-link", "page": item, "slot": "item"},
                active=item == page,
                color="secondary",
                outline=item != page,
            )
        )
    buttons.append(
        dbc.Button(
            "Next",
            id={"type": "page-link", "page": page + 1, "slot": "next"},
            disabled=not grid.has_next_page,
            color="secondary",
            outline=True,
        )
    )
    return html.Div(
        [
            dbc.ButtonGroup(buttons, size="sm"),
            dbc.InputGroup(
                [
                    dbc.Input(id="page-input", type="number", min=1, step=1, value=page),
                    dbc.Button("Go", id="page-go", color="secondary"),
                ],
                size="sm",
                style={"maxWidth": "160px"},
            ),
        ],
        className="d-flex align-items-center justify-content-end gap-3",
    )


def selection_label(grid: DataGridController) -> str:
    text = grid.selection.summary()
    if grid.header_state is HeaderState.INDETERMINATE:
        return f"{text} (partial)"
    return text


def select_all_props(grid: DataGridController) -> Dict[str, Any]:
    """Header checkbox value, label and style; a partial selection shows as a filled grey box."""
    state = grid.header_state
    return {
        "value": state is HeaderState.CHECKED,
        "label": "Select all (some selected)" if state is HeaderState.INDETERMINATE else "Select all",
        "input_style": PARTIAL_STYLE if state is HeaderState.INDETERMINATE else {},
    }


def build_drop_modal(table_name: str):
    phrase = verification_phrase(table_name)
    return dbc.Modal(
        [
            dbc.ModalHeader(dbc.ModalTitle("Are you absolutely sure?")),
            dbc.ModalBody(
                [
                    html.P(["Enter ", html.Strong(phrase), " to confirm."]),
                    dbc.Input(id="drop-phrase", placeholder="Enter verification query", value=""),
                ]
            ),
            dbc.ModalFooter(
                [
                    dbc.Button("Cancel", id="drop-cancel", color="secondary"),
                    dbc.Button("Delete", id="drop-confirm", color="danger"),
                ]
            ),
        ],
        id="drop-modal",
        is_open=False,
    )


def build_grid(grid: DataGridController, insert_href: str):
    view = grid.view
    if view is None:
        message = grid.error or "No data found."
        return dbc.Alert(message, color="danger" if grid.error else "secondary")
    body = [
        html.Div(
            [
                html.H2(view.active_table, className="mb-0"),
                html.Div(
                    [
                        dbc.Button("Delete Table", id="drop-open", color="danger", className="me-2"),
                        dbc.Button("Insert Record", href=insert_href, color="primary"),
                    ]
                ),
            ],
            className="d-flex align-items-center justify-content-between mb-3",
        ),
        build_drop_modal(view.active_table),
    ]
    body.append(_datatable(grid))
    if not view.rows:
        body.append(html.Div("No results.", className="text-center text-muted py-4"))
    body.append(
        html.Div(
            [
                html.Div(
                    [
                        dbc.Checkbox(id="select-all", disabled=not view.rows, **select_all_props(grid)),
                        html.Small(selection_label(grid), id="selection-summary", className="text-muted"),
                    ],
                    className="d-flex align-items-center gap-3",
                ),
                build_pager(grid),
            ],
            className="d-flex align-items-center justify-content-between py-3",
        )
    )
    return html.Div(body)


__all__ = [
    "DELETE_COLUMN",
    "EDIT_COLUMN",
    "PARTIAL_STYLE",
    "build_grid",
    "build_pager",
    "column_position",
    "display_cell",
    "grid_records",
    "select_all_props",
    "selection_label",
]

"""Dash front end for the table console.

Routes:
  /                                               welcome page
  /tables/new                                     create-table builder
  /tables/<name>?page=&column=&order=             data grid
  /tables/<name>/form?hash=&page=&column=&order=  insert/update form

Every callback works against one ConsoleShell; the URL is the navigation
state and ``render-tick`` forces a re-render after in-place mutations.
"""
from __future__ import annotations

import logging
import threading
import urllib.parse
from dataclasses import dataclass
from typing import List, Tuple

import dash
import dash_bootstrap_components as dbc
from dash import ALL, MATCH, Input, Output, State, callback_context, dcc, html

from components.grid import DELETE_COLUMN, EDIT_COLUMN, build_grid, column_position, select_all_props, selection_label
from components.row_form import build_row_form, field_value
from components.sidebar import build_sidebar, table_href
from components.table_builder import FLAG_FIELDS, build_table_builder
from console.client import ConsoleClient
from console.config import ConsoleConfig, configure_logging
from console.engine import (
    DataGridController,
    DynamicFormEngine,
    GridQuery,
    HeaderState,
    Override,
    RowMutationCoordinator,
    TableBuilderEngine,
    TablesState,
)
from console.engine.grid import SORT_ORDERS
from console.errors import ConsoleError, ValidationError

logger = logging.getLogger(__name__)

SKIP = dash.no_update


@dataclass(frozen=True)
class Route:
    kind: str
    table: str | None = None
    page: int = 1
    identity: str | None = None
    sort_column: str | None = None
    sort_order: str = "asc"


def _page(raw) -> int:
    try:
        return max(1, int(raw))
    except (TypeError, ValueError):
        return 1


def parse_route(pathname: str | None, search: str | None = "") -> Route:
    params = dict(urllib.parse.parse_qsl((search or "").lstrip("?")))
    parts = [urllib.parse.unquote(part) for part in (pathname or "/").split("/") if part]
    page = _page(params.get("page"))
    if not parts:
        return Route("home")
    if parts[0] != "tables" or len(parts) < 2:
        return Route("not_found")
    if parts[1:] == ["new"]:
        return Route("new")
    column = params.get("column") or None
    order = params.get("order") if params.get("order") in SORT_ORDERS else "asc"
    if len(parts) == 2:
        return Route("grid", parts[1], page, None, column, order)
    if parts[2:] == ["form"]:
        return Route("form", parts[1], page, params.get("hash") or None, column, order)
    return Route("not_found")


def split_location(path: str) -> Tuple[str, str]:
    parts = urllib.parse.urlsplit(path)
    return parts.path, f"?{parts.query}" if parts.query else ""


def _bump(tick) -> int:
    return (tick or 0) + 1


class ConsoleShell:
    """The engines behind one console session, shared by every callback."""

    def __init__(self, client: ConsoleClient) -> None:
        self.client = client
        self.tables = TablesState(client)
        self.grid = DataGridController(client)
        self.rows = RowMutationCoordinator(client, self.grid)
        self.form = DynamicFormEngine(client)
        self.builder: TableBuilderEngine | None = None
        self.builder_error: str | None = None
        self._notices: List[Tuple[str, str]] = []
        self._lock = threading.Lock()

    def notify(self, message: str, color: str = "success") -> None:
        with self._lock:
            self._notices.append((color, message))

    def take_notices(self) -> List[Tuple[str, str]]:
        with self._lock:
            notices, self._notices = self._notices, []
        return notices

    def grid_location(self) -> Tuple[str, str]:
        return split_location(self.rows.edit_target().return_path())

    def corrected_search(self, route: Route) -> str | None:
        """The grid query string without a sort the backend rejected, if the URL still carries it."""
        rejected = self.grid.rejected_query
        if route.kind != "grid" or rejected is None or route.sort_column != rejected.sort_column:
            return None
        return self.grid_location()[1]

    def open_builder(self) -> bool:
        self.builder = None
        self.builder_error = None
        try:
            self.builder = TableBuilderEngine(self.client.fetch_data_types())
        except (ConsoleError, ValueError) as exc:
            logger.error("Loading data types failed: %s", exc)
            self.builder_error = str(exc)
            return False
        return True

    def render(self, route: Route, reload: bool = True):
        if route.kind == "grid":
            if reload:
                self.grid.navigate(
                    table=route.table,
                    page=route.page,
                    sort_column=route.sort_column,
                    sort_order=route.sort_order,
                )
            insert_href = self.rows.edit_target().form_path() if self.grid.query else table_href(route.table)
            return build_grid(self.grid, insert_href)
        if route.kind == "form":
            if reload:
                self.form.load(route.table, route.identity, route.page, route.sort_column, route.sort_order)
            target = self.form.target
            return build_row_form(self.form, target.return_path() if target else table_href(route.table))
        if route.kind == "new":
            if reload or self.builder is None:
                self.open_builder()
            return build_table_builder(self.builder, self.builder_error)
        if route.kind == "home":
            return build_home()
        return dbc.Alert("Page not found.", color="warning")


def sync_builder(builder: TableBuilderEngine, table_name, names, name_ids, flags, flag_ids, sizes, size_ids, autos, auto_ids):
    """Copy the browser's draft inputs into ``builder`` before an action runs."""
    builder.table_name = table_name or ""
    for field_id, name in zip(name_ids, names):
        builder.update_draft(field_id["index"], col_name=name or "")
    for field_id, chosen in zip(flag_ids, flags):
        chosen = set(chosen or [])
        builder.update_draft(field_id["index"], **{field: flag in chosen for flag, field in FLAG_FIELDS.items()})
    for field_id, size in zip(size_ids, sizes):
        try:
            builder.set_size(field_id["index"], None if size in (None, "") else int(size))
        except (TypeError, ValueError) as exc:
            builder.error = str(exc)
    for field_id, enabled in zip(auto_ids, autos):
        builder.set_auto_increment(field_id["index"], bool(enabled))


def build_home():
    return dbc.Card(
        [
            html.H2("Welcome"),
            html.P("Pick a table from the sidebar, or create a new one.", className="text-muted"),
            dbc.Button("New Table", href="/tables/new", color="primary"),
        ],
        body=True,
    )


def build_layout():
    return html.Div(
        [
            dcc.Location(id="url", refresh=False),
            dcc.Store(id="render-tick", data=0),
            dcc.Store(id="grid-search"),
            dbc.Container(
                dbc.Row(
                    [
                        dbc.Col(id="sidebar", md=3, className="py-3"),
                        dbc.Col([html.Div(id="notices"), html.Div(id="page-content")], md=9, className="py-3"),
                    ]
                ),
                fluid=True,
            ),
        ]
    )


def register_callbacks(app: dash.Dash, shell: ConsoleShell) -> None:
    @app.callback(
        [
            Output("page-content", "children"),
            Output("sidebar", "children"),
            Output("notices", "children"),
            Output("grid-search", "data"),
        ],
        [Input("url", "pathname"), Input("url", "search"), Input("render-tick", "data")],
    )
    def render_page(pathname, search, _tick):
        initial = callback_context.triggered_id is None
        if initial:
            shell.tables.refresh()
        moved = any(prop.startswith("url.") for prop in callback_context.triggered_prop_ids)
        route = parse_route(pathname, search)
        content = shell.render(route, reload=initial or moved)
        notices = [dbc.Alert(text, color=color, dismissable=True) for color, text in shell.take_notices()]
        if route.kind == "grid" and shell.grid.view is not None and shell.grid.error:
            notices.append(dbc.Alert(shell.grid.error, color="warning", dismissable=True))
        corrected = shell.corrected_search(route)
        return content, build_sidebar(shell.tables, route.table), notices, SKIP if corrected is None else corrected

    @app.callback(
        Output("url", "search", allow_duplicate=True),
        Input("grid-search", "data"),
        State("url", "search"),
        prevent_initial_call=True,
    )
    def strip_rejected_sort(corrected, search):
        if corrected is None or corrected == search:
            return SKIP
        return corrected

    @app.callback(
        Output("render-tick", "data", allow_duplicate=True),
        Input("refresh-tables", "n_clicks"),
        State("render-tick", "data"),
        prevent_initial_call=True,
    )
    def refresh_tables(n_clicks, tick):
        if not n_clicks:
            return SKIP
        if not shell.tables.refresh():
            shell.notify(shell.tables.error or "Failed to fetch tables", "danger")
        return _bump(tick)

    @app.callback(
        [
            Output("url", "pathname", allow_duplicate=True),
            Output("url", "search", allow_duplicate=True),
            Output("render-tick", "data", allow_duplicate=True),
        ],
        [Input({"type": "page-link", "page": ALL, "slot": ALL}, "n_clicks"), Input("page-go", "n_clicks")],
        [State("page-input", "value"), State("render-tick", "data")],
        prevent_initial_call=True,
    )
    def change_page(_links, _go, page_value, tick):
        if not callback_context.triggered or not callback_context.triggered[0]["value"]:
            return SKIP, SKIP, SKIP
        trigger = callback_context.triggered_id
        grid = shell.grid
        try:
            if trigger == "page-go":
                grid.go_to_page(page_value)
            elif trigger["slot"] == "prev":
                grid.previous_page()
            elif trigger["slot"] == "next":
                grid.next_page()
            else:
                grid.go_to_page(trigger["page"])
        except ValueError as exc:
            shell.notify(str(exc), "danger")
            return SKIP, SKIP, _bump(tick)
        return (*shell.grid_location(), _bump(tick))

    @app.callback(
        [
            Output("url", "pathname", allow_duplicate=True),
            Output("url", "search", allow_duplicate=True),
            Output("render-tick", "data", allow_duplicate=True),
        ],
        Input("grid-table", "sort_by"),
        State("render-tick", "data"),
        prevent_initial_call=True,
    )
    def sort_grid(sort_by, tick):
        view, query = shell.grid.view, shell.grid.query
        if view is None or query is None:
            return SKIP, SKIP, SKIP
        column, order = None, "asc"
        if sort_by:
            position = column_position(sort_by[0].get("column_id"))
            if position is None or position >= len(view.columns):
                return SKIP, SKIP, SKIP
            column = view.column_names[position]
            order = sort_by[0].get("direction") or "asc"
        if column == query.sort_column and (column is None or order == query.sort_order):
            return SKIP, SKIP, SKIP
        shell.grid.sort_by(column, order)
        return (*shell.grid_location(), _bump(tick))

    @app.callback(
        [
            Output("grid-table", "selected_rows"),
            Output("select-all", "value"),
            Output("select-all", "label"),
            Output("select-all", "input_style"),
            Output("selection-summary", "children"),
        ],
        [Input("grid-table", "selected_rows"), Input("select-all", "value")],
        prevent_initial_call=True,
    )
    def sync_selection(selected_rows, select_all):
        grid = shell.grid
        try:
            if callback_context.triggered_id == "select-all":
                if bool(select_all) != (grid.header_state is HeaderState.CHECKED):
                    grid.toggle_all()
            else:
                grid.set_selection(selected_rows or [])
        except IndexError as exc:
            # selection from a page that has since been replaced
            logger.debug("Ignoring stale selection: %s", exc)
            return SKIP, SKIP, SKIP, SKIP, SKIP
        header = select_all_props(grid)
        return grid.selection.indices, header["value"], header["label"], header["input_style"], selection_label(grid)

    @app.callback(
        [
            Output("url", "pathname", allow_duplicate=True),
            Output("url", "search", allow_duplicate=True),
            Output("render-tick", "data", allow_duplicate=True),
            Output("grid-table", "active_cell"),
        ],
        Input("grid-table", "active_cell"),
        State("render-tick", "data"),
        prevent_initial_call=True,
    )
    def row_action(cell, tick):
        if not cell or cell.get("column_id") not in (EDIT_COLUMN, DELETE_COLUMN):
            return SKIP, SKIP, SKIP, SKIP
        identity = cell.get("row_id")
        if identity in (None, ""):
            shell.notify("This row has no identity and cannot be changed", "warning")
            return SKIP, SKIP, _bump(tick), None
        if cell["column_id"] == EDIT_COLUMN:
            return (*split_location(shell.rows.edit_target(identity).form_path()), SKIP, None)
        if shell.rows.delete_row(identity):
            shell.notify(shell.rows.message or "Row deleted successfully")
        else:
            shell.notify(shell.rows.error or "Another change is still in progress", "danger")
        return SKIP, SKIP, _bump(tick), None

    @app.callback(
        [
            Output("drop-modal", "is_open"),
            Output("url", "pathname", allow_duplicate=True),
            Output("url", "search", allow_duplicate=True),
            Output("render-tick", "data", allow_duplicate=True),
        ],
        [Input("drop-open", "n_clicks"), Input("drop-cancel", "n_clicks"), Input("drop-confirm", "n_clicks")],
        [State("drop-phrase", "value"), State("render-tick", "data")],
        running=[(Output("drop-confirm", "disabled"), True, False)],
        prevent_initial_call=True,
    )
    def drop_table(_open, _cancel, _confirm, phrase, tick):
        if not callback_context.triggered or not callback_context.triggered[0]["value"]:
            return SKIP, SKIP, SKIP, SKIP
        trigger = callback_context.triggered_id
        if trigger == "drop-open":
            return True, SKIP, SKIP, SKIP
        query = shell.grid.query
        if trigger == "drop-cancel" or query is None:
            return False, SKIP, SKIP, SKIP
        if not shell.tables.delete_table(query.table, phrase or ""):
            shell.notify(shell.tables.error or "Failed to delete table", "danger")
            return False, SKIP, SKIP, _bump(tick)
        shell.grid.clear()
        shell.notify(f"Table {query.table} deleted")
        return False, "/", "", _bump(tick)

    @app.callback(
        [
            Output({"type": "field-input", "column": MATCH}, "value"),
            Output({"type": "field-input", "column": MATCH}, "disabled"),
        ],
        [
            Input({"type": Override.DEFAULT.value, "column": MATCH}, "value"),
            Input({"type": Override.AUTO_INCREMENT.value, "column": MATCH}, "value"),
        ],
        State({"type": "field-input", "column": MATCH}, "value"),
        prevent_initial_call=True,
    )
    def toggle_override(use_default, auto_increment, current):
        trigger = callback_context.triggered_id
        form = shell.form
        if not trigger or form.descriptor is None:
            return SKIP, SKIP
        column = trigger["column"]
        kind = Override(trigger["type"])
        enabled = bool(use_default if kind is Override.DEFAULT else auto_increment)
        try:
            if enabled == form.override_active(column, kind):
                return SKIP, SKIP
            if not form.is_disabled(column):
                form.set_value(column, current)
            if kind is Override.DEFAULT:
                form.set_use_default(column, enabled)
            else:
                form.set_auto_increment(column, enabled)
        except (KeyError, ValueError) as exc:
            logger.warning("Ignoring %s toggle on %s: %s", kind.value, column, exc)
            return SKIP, SKIP
        return field_value(form, form.descriptor.column(column)), form.is_disabled(column)

    @app.callback(
        [
            Output("url", "pathname", allow_duplicate=True),
            Output("url", "search", allow_duplicate=True),
            Output("render-tick", "data", allow_duplicate=True),
        ],
        Input("form-submit", "n_clicks"),
        [
            State({"type": "field-input", "column": ALL}, "value"),
            State({"type": "field-input", "column": ALL}, "id"),
            State("render-tick", "data"),
        ],
        running=[(Output("form-submit", "disabled"), True, False)],
        prevent_initial_call=True,
    )
    def submit_form(n_clicks, values, ids, tick):
        form = shell.form
        if not n_clicks or form.descriptor is None:
            return SKIP, SKIP, SKIP
        for field_id, value in zip(ids, values):
            if not form.is_disabled(field_id["column"]):
                form.set_value(field_id["column"], value)
        target = form.submit()
        if target is None:
            return SKIP, SKIP, _bump(tick)
        shell.notify(form.message)
        shell.grid.load(GridQuery(target.table, target.page, target.sort_column, target.sort_order))
        return (*split_location(target.return_path()), _bump(tick))

    @app.callback(
        [
            Output("url", "pathname", allow_duplicate=True),
            Output("url", "search", allow_duplicate=True),
            Output("render-tick", "data", allow_duplicate=True),
        ],
        [
            Input("builder-add", "n_clicks"),
            Input("builder-submit", "n_clicks"),
            Input({"type": "draft-remove", "index": ALL}, "n_clicks"),
            Input({"type": "draft-type", "index": ALL}, "value"),
        ],
        [
            State("builder-table-name", "value"),
            State({"type": "draft-name", "index": ALL}, "value"),
            State({"type": "draft-name", "index": ALL}, "id"),
            State({"type": "draft-flags", "index": ALL}, "value"),
            State({"type": "draft-flags", "index": ALL}, "id"),
            State({"type": "draft-size", "index": ALL}, "value"),
            State({"type": "draft-size", "index": ALL}, "id"),
            State({"type": "draft-auto", "index": ALL}, "value"),
            State({"type": "draft-auto", "index": ALL}, "id"),
            State("render-tick", "data"),
        ],
        running=[(Output("builder-submit", "disabled"), True, False)],
        prevent_initial_call=True,
    )
    def edit_builder(_add, _submit, _removes, _types, table_name, *draft_states):
        *inputs, tick = draft_states
        builder = shell.builder
        if builder is None or not callback_context.triggered:
            return SKIP, SKIP, SKIP
        trigger = callback_context.triggered_id
        value = callback_context.triggered[0]["value"]
        type_change = isinstance(trigger, dict) and trigger["type"] == "draft-type"
        if type_change:
            index = trigger["index"]
            if index >= len(builder.drafts) or builder.drafts[index].data_type.type_name == value:
                return SKIP, SKIP, SKIP
        elif not value:
            return SKIP, SKIP, SKIP

        builder.error = None
        sync_builder(builder, table_name, *inputs)
        if type_change:
            builder.change_type(trigger["index"], value)
        elif trigger == "builder-add":
            builder.add_column()
        elif trigger == "builder-submit":
            created = builder.submit(shell.tables)
            if created:
                shell.builder = None
                shell.notify(f"Table {created} created")
                return table_href(created), "", _bump(tick)
        else:
            try:
                builder.remove_column(trigger["index"])
            except ValidationError as exc:
                builder.error = str(exc)
        return SKIP, SKIP, _bump(tick)


def create_app(config: ConsoleConfig | None = None, client: ConsoleClient | None = None) -> dash.Dash:
    config = config or ConsoleConfig.from_env()
    shell = ConsoleShell(client or ConsoleClient.from_config(config))
    app = dash.Dash(
        __name__,
        external_stylesheets=[dbc.themes.DARKLY],
        suppress_callback_exceptions=True,
        title="Table Console",
    )
    app.layout = build_layout()
    register_callbacks(app, shell)
    app.server.config["CONSOLE_SHELL"] = shell
    logger.info("Console ready against %s", config.api_url)
    return app


if __name__ == "__main__":
    settings = ConsoleConfig.from_env()
    configure_logging(settings.log_level)
    create_app(settings).run(debug=settings.debug, host=settings.host, port=settings.port)

import pytest

from app import ConsoleShell, Route, create_app, parse_route, split_location, sync_builder
from components.grid import DELETE_COLUMN, EDIT_COLUMN, PARTIAL_STYLE, column_position, grid_records, select_all_props
from components.table_builder import build_table_builder
from console.config import ConsoleConfig
from console.data_model import TableView


@pytest.mark.parametrize(
    "pathname,search,route",
    [
        ("/", "", Route("home")),
        ("/history", "?page=3", Route("not_found")),
        ("/tables/new", "", Route("new")),
        ("/tables/users", "?page=2&column=age&order=desc", Route("grid", "users", 2, None, "age", "desc")),
        ("/tables/my%20table", "?page=0&order=sideways", Route("grid", "my table", 1, None, None, "asc")),
        ("/tables/users/form", "?hash=ab12&page=4", Route("form", "users", 4, "ab12", None, "asc")),
        ("/tables/users/form", "", Route("form", "users")),
        ("/elsewhere", "", Route("not_found")),
        ("/tables/users/rows/1", "", Route("not_found")),
    ],
)
def test_parse_route(pathname, search, route):
    assert parse_route(pathname, search) == route


def test_split_location():
    assert split_location("/tables/users?page=2") == ("/tables/users", "?page=2")
    assert split_location("/") == ("/", "")


def test_grid_records_use_positional_ids():
    view = TableView.from_payload(
        {
            "cols": [{"columnName": "id"}, {"columnName": "active"}],
            "rows": [["h1", 1, True], ["h2", None, False]],
            "activeTable": "t",
        }
    )

    records = grid_records(view)

    assert records[0] == {"id": "h1", "c0": "1", "c1": "true", EDIT_COLUMN: "Edit", DELETE_COLUMN: "Delete"}
    assert records[1]["c0"] == "NULL"
    assert column_position("c1") == 1
    assert column_position(EDIT_COLUMN) is None


def test_shell_renders_grid_route(client):
    shell = ConsoleShell(client)

    shell.render(parse_route("/tables/users", "?column=age&order=desc"))

    assert [row[2] for row in shell.grid.view.rows] == ["Bo", "Ann"]
    assert shell.grid_location() == ("/tables/users", "?page=1&column=age&order=desc")


def test_select_all_marks_partial_selection(client):
    shell = ConsoleShell(client)
    shell.render(parse_route("/tables/users", ""))

    assert select_all_props(shell.grid) == {"value": False, "label": "Select all", "input_style": {}}

    shell.grid.toggle_row(0)
    partial = select_all_props(shell.grid)
    shell.grid.toggle_all()

    assert partial["value"] is False
    assert partial["input_style"] == PARTIAL_STYLE
    assert partial["label"] == "Select all (some selected)"
    assert select_all_props(shell.grid)["value"] is True


def test_shell_rerender_does_not_refetch(counting_client):
    shell = ConsoleShell(counting_client)
    route = parse_route("/tables/users", "")

    shell.render(route)
    shell.render(route, reload=False)

    assert counting_client.calls.count("fetch_table") == 1


def test_rejected_sort_is_stripped_from_location(counting_client):
    shell = ConsoleShell(counting_client)
    route = parse_route("/tables/users", "?page=1&column=missing&order=asc")

    shell.render(route)
    shell.render(route)

    assert counting_client.calls.count("fetch_table") == 2
    assert shell.corrected_search(route) == "?page=1"
    assert shell.corrected_search(parse_route("/tables/users", "?page=1")) is None


def test_shell_renders_form_and_builder_routes(client):
    shell = ConsoleShell(client)

    shell.render(parse_route("/tables/users/form", ""))
    shell.render(parse_route("/tables/new", ""))

    assert shell.form.descriptor.table == "users"
    assert shell.builder is not None
    assert shell.builder_error is None


def test_notices_are_taken_once(client):
    shell = ConsoleShell(client)
    shell.notify("Row deleted successfully")

    assert shell.take_notices() == [("success", "Row deleted successfully")]
    assert shell.take_notices() == []


def test_sync_builder_copies_browser_inputs(client):
    shell = ConsoleShell(client)
    shell.open_builder()
    builder = shell.builder
    builder.change_type(builder.add_column(), "VARCHAR")

    sync_builder(
        builder,
        "people",
        ["id", "email"],
        [{"type": "draft-name", "index": 0}, {"type": "draft-name", "index": 1}],
        [["pk"], ["unique", "null"]],
        [{"type": "draft-flags", "index": 0}, {"type": "draft-flags", "index": 1}],
        [64],
        [{"type": "draft-size", "index": 1}],
        [],
        [],
    )

    assert builder.table_name == "people"
    assert builder.drafts[0].is_primary_key and not builder.drafts[0].is_unique
    assert builder.drafts[1].is_unique and builder.drafts[1].is_nullable
    assert builder.drafts[1].data_type.size == 64
    assert build_table_builder(builder) is not None


def test_create_app_wires_shell(client):
    app = create_app(ConsoleConfig(api_url="http://console.test/api/v1"), client=client)

    shell = app.server.config["CONSOLE_SHELL"]
    assert isinstance(shell, ConsoleShell)
    assert shell.client is client

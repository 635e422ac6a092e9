import pytest

from console.engine import DataGridController, EditTarget, RowMutationCoordinator


def test_delete_sorted_row_then_refetch(client):
    grid = DataGridController(client)
    rows = RowMutationCoordinator(client, grid)
    grid.navigate(table="users", sort_column="age", sort_order="desc")
    assert [(row[2], row[4]) for row in grid.view.rows] == [("Bo", 41), ("Ann", 30)]

    assert rows.delete_row(grid.view.identity_at(0))

    assert [(row[2], row[4]) for row in grid.view.rows] == [("Ann", 30)]
    assert rows.message == "Row deleted successfully"
    assert rows.error is None


def test_failed_delete_leaves_view_untouched(client):
    grid = DataGridController(client)
    rows = RowMutationCoordinator(client, grid)
    grid.navigate(table="users")
    before = grid.view

    assert not rows.delete_row("deadbeef")

    assert grid.view is before
    assert rows.error == "row deadbeef not found"
    assert not rows.busy


def test_delete_is_ignored_while_busy(counting_client):
    grid = DataGridController(counting_client)
    rows = RowMutationCoordinator(counting_client, grid)
    grid.navigate(table="users")
    rows.busy = True

    assert not rows.delete_row(grid.view.identity_at(0))

    assert "delete_row" not in counting_client.calls


def test_edit_target_keeps_grid_navigation(client):
    grid = DataGridController(client)
    rows = RowMutationCoordinator(client, grid)
    grid.navigate(table="users", sort_column="age", sort_order="desc")

    target = rows.edit_target("abc123")

    assert target == EditTarget("users", "abc123", 1, "age", "desc")
    assert target.form_path() == "/tables/users/form?hash=abc123&page=1&column=age&order=desc"
    assert target.return_path() == "/tables/users?page=1&column=age&order=desc"


def test_insert_target_has_no_identity():
    target = EditTarget("my table", page=3)

    assert target.form_path() == "/tables/my%20table/form?page=3"


def test_mutations_need_a_table(client):
    rows = RowMutationCoordinator(client, DataGridController(client))

    with pytest.raises(ValueError):
        rows.edit_target()
    with pytest.raises(ValueError):
        rows.delete_row("abc")

import math

import pytest

from console.devserver import API_PREFIX, ApiError, ColumnMeta, TableStore, _clean_cell, parse_form_value, row_hash


def _get(backend, path, **kwargs):
    return backend.get(f"{API_PREFIX}{path}", **kwargs)


def test_list_tables_uses_envelope(backend):
    response = _get(backend, "/tables")

    assert response.status_code == 200
    assert response.get_json() == {"success": True, "data": [{"tableName": "users", "tableSchema": "main"}]}
    assert response.headers["Access-Control-Allow-Origin"] == "*"


def test_table_page_prepends_identity(backend, store):
    data = _get(backend, "/tables/users").get_json()["data"]

    assert data["activeTable"] == "users"
    assert [col["columnName"] for col in data["cols"]] == ["id", "name", "email", "age", "active", "profile"]
    first = data["rows"][0]
    assert first[1:3] == [1, "Ann"]
    assert first[0] == row_hash(first[1:])
    assert data["hasNextPage"] is False


def test_pagination_reports_next_page(backend, store):
    store.page_size = 1

    page_one = _get(backend, "/tables/users?page=1").get_json()["data"]
    page_two = _get(backend, "/tables/users?page=2").get_json()["data"]

    assert page_one["hasNextPage"] is True
    assert page_two["hasNextPage"] is False
    assert page_two["rows"][0][2] == "Bo"


def test_invalid_sort_column_is_rejected(backend):
    response = _get(backend, "/tables/users?column=nope&order=asc")

    assert response.status_code == 400
    assert response.get_json() == {"success": False, "error": "invalid column name"}


def test_unknown_table_is_not_found(backend):
    response = _get(backend, "/tables/ghosts")

    assert response.status_code == 404
    assert response.get_json()["error"] == "table ghosts not found"


def test_catalog_lists_numeric_and_string_types(backend):
    data = _get(backend, "/tables/form/new").get_json()["data"]

    assert "INTEGER" in [item["type"] for item in data["numericType"]]
    assert "VARCHAR" in [item["type"] for item in data["stringType"]]


def test_update_form_returns_current_values(backend):
    identity = _get(backend, "/tables/users").get_json()["data"]["rows"][1][0]

    data = _get(backend, f"/tables/users/form?hash={identity}").get_json()["data"]

    assert data["Action"] == "Update"
    assert {col["columnName"]: col["value"] for col in data["Cols"]}["name"] == "Bo"


def test_drop_requires_verification_phrase(backend, store):
    rejected = backend.delete(f"{API_PREFIX}/tables", json={"tableName": "users", "verificationQuery": "yes"})
    assert rejected.status_code == 400
    assert "users" in store.tables

    accepted = backend.delete(f"{API_PREFIX}/tables", json={"tableName": "users", "verificationQuery": "DROP TABLE users"})

    assert accepted.status_code == 204
    assert store.tables == {}


def test_insert_resolves_defaults_and_history(backend, store):
    form = {
        "id": {"value": "", "type": "number"},
        "name": {"value": "Cy", "type": "text"},
        "active": {"value": "", "type": "checkbox"},
    }

    response = backend.post(f"{API_PREFIX}/tables/users/form", json=form)

    assert response.status_code == 201
    frame = store.tables["users"].frame
    assert frame["id"].tolist() == [1, 2, 3]
    assert frame["active"].tolist()[-1] is True
    history = _get(backend, "/history/recent").get_json()["data"]
    assert history[0]["message"] == "Inserted row into users"


def test_not_null_violation_is_reported(backend):
    response = backend.post(f"{API_PREFIX}/tables/users/form", json={"id": {"value": "9"}, "name": {"value": ""}})

    assert response.status_code == 400
    assert response.get_json()["error"] == "name cannot be null"


def test_create_rejects_bad_names():
    store = TableStore()
    with pytest.raises(ApiError, match="invalid table name"):
        store.create("bad name", [ColumnMeta("id", "INT")])
    with pytest.raises(ApiError, match="duplicate column name"):
        store.create("t", [ColumnMeta("id", "INT"), ColumnMeta("id", "TEXT")])


def test_parse_form_value_by_widget():
    assert parse_form_value(ColumnMeta("n", "INT"), "42") == 42
    assert parse_form_value(ColumnMeta("n", "REAL"), "1.5") == 1.5
    assert parse_form_value(ColumnMeta("b", "BOOLEAN"), "true") is True
    assert parse_form_value(ColumnMeta("b", "BOOLEAN"), "false") is False
    assert parse_form_value(ColumnMeta("b", "BOOLEAN"), "") is None
    assert parse_form_value(ColumnMeta("t", "TEXT"), "  ") is None
    with pytest.raises(ApiError, match="expects a number"):
        parse_form_value(ColumnMeta("n", "INT"), "abc")


def test_clean_cell_maps_nan_to_none():
    assert _clean_cell(math.nan) is None
    assert _clean_cell("x") == "x"

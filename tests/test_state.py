from console.client import ConsoleClient
from console.engine import TablesState, verification_phrase
from console.errors import TransportError


def _unreachable(method, url, body, headers, timeout):
    raise TransportError(f"{method} {url} failed: connection refused")


def test_refresh_lists_tables(client):
    tables = TablesState(client)

    assert tables.refresh()

    assert tables.list_names() == ["users"]
    assert not tables.refreshing


def test_refresh_failure_empties_list():
    tables = TablesState(ConsoleClient("http://nowhere/api/v1", transport=_unreachable))

    assert not tables.refresh()

    assert tables.tables == []
    assert "connection refused" in tables.error


def test_delete_table_needs_matching_phrase(client):
    tables = TablesState(client)

    assert not tables.delete_table("users", "drop table users")
    assert tables.error == "verification query does not match"

    assert tables.delete_table("users", verification_phrase("users"))
    assert tables.list_names() == []
    assert tables.error is None


def test_duplicate_create_is_reported(client):
    tables = TablesState(client)
    inputs = [{"colName": "id", "isNull": False, "isPk": True, "isUnique": False, "dataType": {"type": "INT"}}]

    assert not tables.create_table("users", inputs)
    assert tables.error == "table users already exists"

    assert tables.create_table("teams", inputs)
    assert tables.list_names() == ["teams", "users"]

import pytest

from console.data_model import DataTypeCatalog
from console.devserver import SQLITE_NUMERIC_TYPES, SQLITE_STRING_TYPES
from console.engine import TableBuilderEngine, TablesState
from console.engine.builder import MIN_COLUMNS_MESSAGE
from console.errors import ValidationError


class RecordingTables:
    def __init__(self):
        self.created = []
        self.error = None

    def create_table(self, table_name, inputs):
        self.created.append((table_name, inputs))
        return True


@pytest.fixture
def catalog():
    return DataTypeCatalog.from_payload({"numericType": SQLITE_NUMERIC_TYPES, "stringType": SQLITE_STRING_TYPES})


def test_builder_starts_with_one_blank_draft(catalog):
    builder = TableBuilderEngine(catalog)

    assert len(builder.drafts) == 1
    assert builder.drafts[0].data_type.type_name == "INT"
    assert builder.drafts[0].col_name == ""


def test_removing_last_draft_is_rejected(catalog):
    builder = TableBuilderEngine(catalog)

    with pytest.raises(ValidationError) as excinfo:
        builder.remove_column(0)

    assert excinfo.value.errors == {"columns": MIN_COLUMNS_MESSAGE}
    assert len(builder.drafts) == 1


def test_remove_drops_the_chosen_draft(catalog):
    builder = TableBuilderEngine(catalog)
    builder.update_draft(0, col_name="a")
    builder.update_draft(builder.add_column(), col_name="b")

    builder.remove_column(0)

    assert [draft.col_name for draft in builder.drafts] == ["b"]


def test_empty_column_name_blocks_submission(catalog):
    tables = RecordingTables()
    builder = TableBuilderEngine(catalog)
    builder.table_name = "people"
    builder.update_draft(builder.add_column(), col_name="email")

    assert builder.submit(tables) is None

    assert builder.errors == {"columns.0.colName": "Column name is required"}
    assert builder.error == "Please fix the highlighted fields"
    assert tables.created == []


def test_missing_table_name_is_reported(catalog):
    builder = TableBuilderEngine(catalog)
    builder.update_draft(0, col_name="id")

    assert builder.validate() == {"tableName": "Table name is required"}


def test_change_type_keeps_name_and_flags(catalog):
    builder = TableBuilderEngine(catalog)
    builder.update_draft(0, col_name="email", is_unique=True)

    builder.change_type(0, "VARCHAR")

    draft = builder.drafts[0]
    assert draft.col_name == "email"
    assert draft.is_unique
    assert draft.data_type.size == 255


def test_size_only_applies_to_sized_types(catalog):
    builder = TableBuilderEngine(catalog)

    with pytest.raises(ValueError):
        builder.set_size(0, 10)

    builder.change_type(0, "VARCHAR")
    builder.set_size(0, 64)
    assert builder.drafts[0].data_type.size == 64
    with pytest.raises(ValueError):
        builder.set_size(0, 0)


def test_update_draft_rejects_unknown_fields(catalog):
    builder = TableBuilderEngine(catalog)

    with pytest.raises(TypeError):
        builder.update_draft(0, data_type="TEXT")


def test_payload_shape(catalog):
    builder = TableBuilderEngine(catalog)
    builder.table_name = " people "
    builder.change_type(0, "INTEGER")
    builder.set_auto_increment(0, True)
    builder.update_draft(0, col_name="id", is_primary_key=True)

    assert builder.payload() == {
        "tableName": "people",
        "inputs": [
            {
                "colName": "id",
                "isNull": False,
                "isPk": True,
                "isUnique": False,
                "dataType": {"type": "INTEGER", "hasSize": False, "hasAutoIncrement": True, "autoIncrement": True},
            }
        ],
    }


def test_submit_creates_table_on_backend(client, store):
    tables = TablesState(client)
    builder = TableBuilderEngine(client.fetch_data_types())
    builder.table_name = "people"
    builder.change_type(0, "INTEGER")
    builder.set_auto_increment(0, True)
    builder.update_draft(0, col_name="id", is_primary_key=True)
    builder.change_type(builder.add_column(), "VARCHAR")
    builder.update_draft(1, col_name="email", is_unique=True, is_nullable=True)

    assert builder.submit(tables) == "people"

    assert "people" in tables.list_names()
    columns = store.tables["people"].columns
    assert [col.data_type for col in columns] == ["INTEGER", "VARCHAR(255)"]
    assert columns[0].auto_increment and columns[0].primary_key
    assert columns[1].unique and columns[1].nullable


def test_backend_rejection_is_surfaced(client):
    tables = TablesState(client)
    builder = TableBuilderEngine(client.fetch_data_types())
    builder.table_name = "users"
    builder.update_draft(0, col_name="id")

    assert builder.submit(tables) is None

    assert builder.error == "table users already exists"


def test_empty_catalog_is_rejected():
    with pytest.raises(ValueError):
        TableBuilderEngine(DataTypeCatalog())

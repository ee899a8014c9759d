"""Tests for the database service, CSV decoding and inline queries."""

import pytest

from csvsql.core.csv_query import InlineTable, run_inline_query
from csvsql.core.csv_reader import read_csv_rows
from csvsql.core.database_service import DatabaseService
from csvsql.exceptions import (
    BackendNotImplementedException,
    NoActiveConnectionException,
    NotFoundException,
    TableNotFoundException,
    ValidationException,
)
from csvsql.observability.metrics import MetricsStore


@pytest.fixture
def sample_csv_content():
    return b"""Store,Date,Weekly_Sales,Holiday_Flag
1,2010-02-05,24924.50,0
1,2010-02-12,46039.49,1
2,2010-02-05,38124.52,0
"""


class TestReadCsvRows:

    def test_header_first(self, sample_csv_content):
        rows = read_csv_rows(sample_csv_content)
        assert rows[0] == ["Store", "Date", "Weekly_Sales", "Holiday_Flag"]
        assert rows[1] == ["1", "2010-02-05", "24924.50", "0"]
        assert len(rows) == 4

    def test_cells_stay_text(self):
        rows = read_csv_rows(b"code,amount\n007,1.50\nNA,\n")
        assert rows[1] == ["007", "1.50"]
        assert rows[2] == ["NA", ""]

    def test_short_rows_padded(self):
        rows = read_csv_rows(b"a,b,c\n1,2\n")
        assert rows[1] == ["1", "2", ""]

    def test_bom_is_removed(self):
        rows = read_csv_rows("\ufeffid,name\n1,x\n".encode("utf-8"))
        assert rows[0] == ["id", "name"]

    def test_latin1_fallback(self):
        rows = read_csv_rows("name\nJosé\n".encode("latin-1"), encodings=("utf-8", "latin-1"))
        assert rows[1] == ["José"]

    def test_empty_payload(self):
        assert read_csv_rows(b"") == []
        assert read_csv_rows(b"  \n") == []

    def test_long_rows_cut_to_header(self):
        rows = read_csv_rows(b"a,b\n1,2\n3,4,5\n")
        assert rows == [["a", "b"], ["1", "2"], ["3", "4"]]

    def test_long_rows_import(self):
        service = DatabaseService()
        table = service.import_csv_bytes("wide.csv", "wide", b"a,b\n1,2\n3,4,5,6\n")
        assert table.row_count == 2
        response = service.execute_query("SELECT * FROM wide")
        assert response.columns == ["a", "b"]
        assert response.rows == [["1", "2"], ["3", "4"]]

    def test_undecodable_payload(self):
        with pytest.raises(ValidationException):
            read_csv_rows("name\nJosé\n".encode("latin-1"), encodings=("utf-8",))


class TestDatabaseService:

    def test_import_activates_csv_connection(self):
        service = DatabaseService()
        assert service.get_active_connection() is None

        service.import_csv_data("people.csv", "people", [["id", "name"], ["1", "a"]])

        active = service.get_active_connection()
        assert active.type == "csv"
        assert active.connected is True
        assert service.list_tables() == ["people"]

    def test_single_csv_connection_reused(self):
        service = DatabaseService()
        service.import_csv_data("a.csv", "a", [["id"], ["1"]])
        service.import_csv_data("b.csv", "b", [["id"], ["2"]])
        assert len(service.get_all_connections()) == 1

    def test_empty_import_is_noop(self):
        service = DatabaseService()
        assert service.import_csv_data("empty.csv", "empty", []) is None
        assert service.list_tables() == []
        assert service.get_active_connection() is None

    def test_import_csv_bytes(self, sample_csv_content):
        service = DatabaseService()
        table = service.import_csv_bytes("walmart.csv", "sales", sample_csv_content)

        assert table.row_count == 3
        assert [c.type.value for c in service.describe_table("sales")] == ["INTEGER", "DATETIME", "REAL", "INTEGER"]

    def test_execute_query(self):
        service = DatabaseService()
        service.import_csv_data("t.csv", "t", [["id", "name"], ["1", "a"], ["2", "b"]])

        response = service.execute_query("SELECT name FROM t WHERE id = 2")

        assert response.columns == ["name"]
        assert response.rows == [["b"]]
        assert response.row_count == 1
        assert response.execution_time_ms >= 0

    def test_query_without_connection(self):
        with pytest.raises(NoActiveConnectionException):
            DatabaseService().execute_query("SHOW TABLES")

    def test_query_on_external_connection(self):
        service = DatabaseService()
        connection_id = service.add_connection("warehouse", "postgresql", {"host": "db"})
        service.set_active_connection(connection_id)

        with pytest.raises(BackendNotImplementedException) as exc:
            service.execute_query("SELECT * FROM t")
        assert "postgresql" in exc.value.message

    def test_activate_unknown_connection(self):
        with pytest.raises(NotFoundException):
            DatabaseService().set_active_connection("nope")

    def test_schema_empty_without_connection(self):
        assert DatabaseService().get_schema() == []

    def test_schema(self):
        service = DatabaseService()
        service.import_csv_data("t.csv", "t", [["id", "name"], ["1", "a"]])
        schema = service.get_schema()
        assert [s.name for s in schema] == ["t"]
        assert schema[0].columns[0].primary_key is True

    def test_metrics_recorded(self):
        metrics = MetricsStore()
        service = DatabaseService(metrics=metrics)
        service.import_csv_data("t.csv", "t", [["id"], ["1"], ["2"]])

        service.execute_query("SELECT * FROM t")
        with pytest.raises(TableNotFoundException):
            service.execute_query("SELECT * FROM ghost")

        summary = metrics.get_summary()
        assert summary["queries"]["select"]["call_count"] == 1
        assert summary["queries"]["select"]["errors"] == {"TABLE_NOT_FOUND": 1}
        assert summary["imports"] == {"count": 1, "rows": 2}

    def test_services_do_not_share_tables(self):
        first = DatabaseService()
        second = DatabaseService()
        first.import_csv_data("t.csv", "t", [["id"], ["1"]])
        assert second.list_tables() == []


class TestInlineQuery:

    def test_table_lookup_is_case_insensitive(self):
        tables = [InlineTable(name="Orders", columns=[("id", "INTEGER"), ("status", "TEXT")], data=[["1", "open"], ["2", "closed"]])]
        result = run_inline_query("SELECT status FROM ORDERS WHERE id = 2", tables)
        assert result.rows == [["closed"]]

    def test_unknown_table(self):
        with pytest.raises(TableNotFoundException):
            run_inline_query("SELECT * FROM missing", [])

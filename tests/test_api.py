"""
Tests for the HTTP API.
"""

import pytest
from fastapi.testclient import TestClient

from csvsql.config import get_settings
from csvsql.main import create_app
from csvsql.observability import get_metrics_store


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def client():
    get_metrics_store().reset()
    return TestClient(create_app())


@pytest.fixture
def sample_csv_content():
    return b"""id,name,city,score
1,Ana,Lima,10
2,Ben,Quito,25.5
3,Cai,Lima,40
4,Dee,Bogota,7
5,Eli,Lima,12
"""


@pytest.fixture
def loaded_client(client, sample_csv_content):
    response = client.post(
        "/api/v1/tables",
        files={"file": ("people.csv", sample_csv_content, "text/csv")},
    )
    assert response.status_code == 201
    return client


@pytest.fixture
def env_settings(monkeypatch):
    """Apply env overrides to a fresh settings instance."""

    def apply(**env):
        for key, value in env.items():
            monkeypatch.setenv(key, value)
        get_settings.cache_clear()

    yield apply
    get_settings.cache_clear()


# =============================================================================
# Health
# =============================================================================


class TestHealth:

    def test_health_check(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["table_count"] == 0
        assert data["features"]["query"] is True

    def test_request_id_echoed(self, client):
        response = client.get("/health", headers={"X-Request-ID": "abc-123"})
        assert response.headers["X-Request-ID"] == "abc-123"

    def test_openapi_available(self, client):
        assert client.get("/openapi.json").status_code == 200


# =============================================================================
# Tables
# =============================================================================


class TestTables:

    def test_upload_csv(self, client, sample_csv_content):
        response = client.post(
            "/api/v1/tables",
            files={"file": ("people.csv", sample_csv_content, "text/csv")},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["imported"] is True
        assert data["filename"] == "people.csv"
        assert data["size_bytes"] == len(sample_csv_content)

        table = data["table"]
        assert table["name"] == "people"
        assert table["row_count"] == 5
        assert [c["type"] for c in table["columns"]] == ["INTEGER", "TEXT", "TEXT", "REAL"]
        assert table["columns"][0]["primary_key"] is True

    def test_upload_with_table_name(self, client, sample_csv_content):
        response = client.post(
            "/api/v1/tables",
            files={"file": ("export (1).csv", sample_csv_content, "text/csv")},
            data={"table_name": "customers"},
        )
        assert response.json()["table"]["name"] == "customers"

    def test_derived_name_is_queryable(self, client, sample_csv_content):
        response = client.post(
            "/api/v1/tables",
            files={"file": ("Sales Data-2024.csv", sample_csv_content, "text/csv")},
        )
        assert response.json()["table"]["name"] == "sales_data_2024"

        result = client.post("/api/v1/query", json={"query": "SELECT name FROM sales_data_2024 LIMIT 1"})
        assert result.status_code == 200
        assert result.json()["rows"] == [["Ana"]]

    def test_invalid_table_name(self, client, sample_csv_content):
        response = client.post(
            "/api/v1/tables",
            files={"file": ("people.csv", sample_csv_content, "text/csv")},
            data={"table_name": "my table"},
        )
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"
        assert client.get("/api/v1/tables").json()["tables"] == []

    def test_reupload_replaces(self, loaded_client):
        loaded_client.post(
            "/api/v1/tables",
            files={"file": ("people.csv", b"code\nx\n", "text/csv")},
        )

        table = loaded_client.get("/api/v1/tables/people").json()
        assert [c["name"] for c in table["columns"]] == ["code"]
        assert table["row_count"] == 1

    def test_empty_upload_imports_nothing(self, client):
        response = client.post(
            "/api/v1/tables",
            files={"file": ("empty.csv", b"", "text/csv")},
        )
        assert response.status_code == 201
        assert response.json()["imported"] is False
        assert client.get("/api/v1/tables").json()["tables"] == []

    def test_upload_too_large(self, client, env_settings, sample_csv_content):
        env_settings(ENGINE_MAX_UPLOAD_BYTES="10")
        response = client.post(
            "/api/v1/tables",
            files={"file": ("people.csv", sample_csv_content, "text/csv")},
        )
        assert response.status_code == 413
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_long_rows_accepted(self, client):
        response = client.post(
            "/api/v1/tables",
            files={"file": ("wide.csv", b"a,b\n1,2\n3,4,5\n", "text/csv")},
        )
        assert response.status_code == 201
        assert response.json()["table"]["row_count"] == 2

        data = client.post("/api/v1/query", json={"query": "SELECT * FROM wide"}).json()
        assert data["columns"] == ["a", "b"]
        assert data["rows"] == [["1", "2"], ["3", "4"]]

    def test_list_and_drop(self, loaded_client):
        assert loaded_client.get("/api/v1/tables").json() == {"tables": ["people"]}

        assert loaded_client.delete("/api/v1/tables/people").status_code == 204
        assert loaded_client.get("/api/v1/tables").json() == {"tables": []}
        assert loaded_client.delete("/api/v1/tables/people").status_code == 404

    def test_get_missing_table(self, client):
        response = client.get("/api/v1/tables/ghost")
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"

    def test_schema(self, loaded_client):
        data = loaded_client.get("/api/v1/schema").json()
        assert [t["name"] for t in data["tables"]] == ["people"]

    def test_schema_without_connection(self, client):
        assert client.get("/api/v1/schema").json() == {"tables": []}

    def test_import_disabled(self, client, env_settings, sample_csv_content):
        env_settings(FEATURE_CSV_IMPORT="false")
        response = client.post(
            "/api/v1/tables",
            files={"file": ("people.csv", sample_csv_content, "text/csv")},
        )
        assert response.status_code == 503
        assert response.json()["error"]["code"] == "FEATURE_DISABLED"


# =============================================================================
# Query
# =============================================================================


class TestQuery:

    def test_select(self, loaded_client):
        response = loaded_client.post(
            "/api/v1/query",
            json={"query": "SELECT name, score FROM people WHERE city = 'lima' LIMIT 2"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["columns"] == ["name", "score"]
        assert data["rows"] == [["Ana", "10"], ["Cai", "40"]]
        assert data["row_count"] == 2

    def test_pragma(self, loaded_client):
        data = loaded_client.post("/api/v1/query", json={"query": "PRAGMA table_info(people)"}).json()
        assert data["columns"] == ["cid", "name", "type", "notnull", "dflt_value", "pk"]
        assert [row[5] for row in data["rows"]] == ["1", "0", "0", "0"]

    def test_show_tables(self, loaded_client):
        data = loaded_client.post("/api/v1/query", json={"query": "SHOW TABLES"}).json()
        assert data["rows"] == [["people"]]

    def test_table_not_found(self, loaded_client):
        response = loaded_client.post("/api/v1/query", json={"query": "SELECT name FROM missing_table"})

        assert response.status_code == 404
        error = response.json()["error"]
        assert error["code"] == "TABLE_NOT_FOUND"
        assert error["details"]["table"] == "missing_table"

    def test_column_not_found(self, loaded_client):
        response = loaded_client.post("/api/v1/query", json={"query": "SELECT nope FROM people"})

        assert response.status_code == 400
        assert response.json()["error"]["details"] == {"table": "people", "column": "nope"}

    def test_unsupported(self, loaded_client):
        response = loaded_client.post("/api/v1/query", json={"query": "DROP TABLE people"})
        assert response.json()["error"]["code"] == "UNSUPPORTED_STATEMENT"

    def test_no_active_connection(self, client):
        response = client.post("/api/v1/query", json={"query": "SHOW TABLES"})
        assert response.status_code == 409
        assert response.json()["error"]["code"] == "NO_ACTIVE_CONNECTION"

    def test_empty_query_rejected(self, loaded_client):
        assert loaded_client.post("/api/v1/query", json={"query": ""}).status_code == 422

    def test_inline_query(self, client):
        response = client.post(
            "/api/v1/csv-query",
            json={
                "query": "SELECT * FROM Orders WHERE amount > 15",
                "tables": [
                    {
                        "name": "orders",
                        "columns": [{"name": "id", "type": "INTEGER"}, {"name": "amount", "type": "REAL"}],
                        "data": [["1", "10"], ["2", "20"]],
                    }
                ],
            },
        )

        assert response.status_code == 200
        assert response.json()["rows"] == [["2", "20"]]


# =============================================================================
# Connections / Metrics
# =============================================================================


class TestConnections:

    def test_register_and_activate(self, client):
        created = client.post(
            "/api/v1/connections",
            json={"name": "warehouse", "type": "postgresql", "config": {"host": "db"}},
        )
        assert created.status_code == 201
        connection_id = created.json()["id"]

        activated = client.post(f"/api/v1/connections/{connection_id}/activate").json()
        assert activated["active"] is True

        response = client.post("/api/v1/query", json={"query": "SHOW TABLES"})
        assert response.status_code == 501
        assert response.json()["error"]["code"] == "BACKEND_NOT_IMPLEMENTED"

    def test_csv_connection_created_on_import(self, loaded_client):
        connections = loaded_client.get("/api/v1/connections").json()
        assert len(connections) == 1
        assert connections[0]["type"] == "csv"
        assert connections[0]["active"] is True

    def test_activate_unknown(self, client):
        assert client.post("/api/v1/connections/nope/activate").status_code == 404


class TestMetrics:

    def test_metrics_after_queries(self, loaded_client):
        loaded_client.post("/api/v1/query", json={"query": "SELECT * FROM people"})
        loaded_client.post("/api/v1/query", json={"query": "SELECT * FROM ghost"})

        data = loaded_client.get("/api/v1/metrics").json()
        assert data["queries"]["select"]["call_count"] == 1
        assert data["global_errors"]["TABLE_NOT_FOUND"] == 1
        assert data["imports"]["count"] == 1

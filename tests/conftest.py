"""
Shared test fixtures.

The mock Supabase client records inserts and can be told to fail specific
insert attempts, so commit behavior is testable without a database.
"""

import sys
from pathlib import Path

# Add project root to Python path
project_dir = Path(__file__).parent.parent
sys.path.insert(0, str(project_dir))

import pytest
from unittest.mock import patch
from datetime import datetime
from typing import Generator

# ===================
# MOCK SUPABASE CLIENT
# ===================

class MockSupabaseResponse:
    """Mock Supabase query response."""

    def __init__(self, data: list = None, count: int = None):
        self.data = data or []
        self.count = count if count is not None else len(self.data)


class MockSupabaseQuery:
    """Mock Supabase query builder with chainable methods."""

    def __init__(self, data: list = None, count: int = None, error: Exception = None):
        self._data = data or []
        self._count = count
        self._error = error

    def select(self, *args, **kwargs):
        return self

    def insert(self, data):
        # Simulate insert - add id and timestamps
        if isinstance(data, dict):
            data = [data]
        self._data = data
        return self

    def eq(self, column, value):
        self._data = [row for row in self._data if row.get(column) == value]
        return self

    def limit(self, count):
        return self

    def execute(self) -> MockSupabaseResponse:
        if self._error is not None:
            raise self._error
        return MockSupabaseResponse(
            data=self._data,
            count=self._count if self._count is not None else len(self._data)
        )


class MockSupabaseTable:
    """Mock Supabase table with configurable responses."""

    def __init__(self, client: "MockSupabaseClient", name: str):
        self._client = client
        self._name = name

    @property
    def _config(self) -> dict:
        return self._client._tables.get(self._name, {"data": [], "count": None})

    def select(self, *args, **kwargs):
        return MockSupabaseQuery(list(self._config["data"]), self._config["count"])

    def insert(self, data):
        attempt = self._client.record_insert_attempt(self._name)
        if attempt in self._client._failing_inserts.get(self._name, set()):
            return MockSupabaseQuery(error=Exception(f"insert {attempt} rejected"))

        item = {
            **data,
            "id": f"test-uuid-{attempt}",
            "created_at": datetime.utcnow().isoformat() + "Z",
        }
        self._client.inserted.setdefault(self._name, []).append(item)
        return MockSupabaseQuery().insert(item)


class MockSupabaseClient:
    """Mock Supabase client."""

    def __init__(self):
        self._tables = {}
        self._failing_inserts: dict[str, set[int]] = {}
        self._insert_attempts: dict[str, int] = {}
        self.inserted: dict[str, list[dict]] = {}

    def set_table_data(self, table_name: str, data: list, count: int = None):
        """Configure mock data for a table."""
        self._tables[table_name] = {"data": data, "count": count}

    def fail_inserts(self, table_name: str, *attempts: int):
        """Make the given 1-based insert attempts raise."""
        self._failing_inserts.setdefault(table_name, set()).update(attempts)

    def record_insert_attempt(self, table_name: str) -> int:
        self._insert_attempts[table_name] = self._insert_attempts.get(table_name, 0) + 1
        return self._insert_attempts[table_name]

    def insert_attempts(self, table_name: str) -> int:
        return self._insert_attempts.get(table_name, 0)

    def table(self, name: str) -> MockSupabaseTable:
        """Get mock table."""
        return MockSupabaseTable(self, name)


# ===================
# FIXTURES
# ===================

@pytest.fixture
def mock_supabase() -> MockSupabaseClient:
    """
    Create a mock Supabase client.

    Usage:
        def test_something(mock_supabase):
            mock_supabase.set_table_data("billboards", [
                {"id": "1", "nombre": "FR-1 - Digital", "owner_id": "owner-1"}
            ])
    """
    return MockSupabaseClient()


@pytest.fixture
def billboard_store(mock_supabase):
    """BillboardService backed by the mock client."""
    from services.billboard_service import BillboardService

    return BillboardService(client=mock_supabase)


@pytest.fixture
def mock_db(mock_supabase) -> Generator:
    """
    Patch the database client with mock.

    Usage:
        def test_something(mock_db, mock_supabase):
            mock_supabase.set_table_data("billboards", [...])
            # Now any code using get_supabase_client() gets the mock
    """
    import services.billboard_service as billboard_service

    billboard_service._billboard_service = None
    with patch("config.database.get_supabase_client", return_value=mock_supabase):
        with patch("services.billboard_service.get_supabase_client", return_value=mock_supabase):
            yield mock_supabase
    billboard_service._billboard_service = None


@pytest.fixture(autouse=True)
def clear_upload_sessions():
    """Upload sessions are module-level state; isolate every test."""
    from services.session_store_service import clear_sessions

    clear_sessions()
    yield
    clear_sessions()


@pytest.fixture
def owner_id() -> str:
    return "owner-123"


# ===================
# API TEST CLIENT
# ===================

@pytest.fixture
def test_client_with_mock_db(mock_db):
    """
    Create FastAPI test client with mocked database.

    Usage:
        def test_endpoint(test_client_with_mock_db, mock_supabase):
            mock_supabase.set_table_data("billboards", [...])
            response = test_client_with_mock_db.get("/api/billboards/bulk-upload/template")
    """
    from fastapi.testclient import TestClient
    from main import app

    return TestClient(app)

"""
Unit tests for BillboardService.
"""

import pytest

from exceptions import DatabaseError
from services.billboard_service import BillboardService, get_billboard_service
from services.grouping_service import group_rows
from services.record_builder_service import build_records
from services.validation_service import validate_groups
from tests.factories import RawRowFactory, UploadRowFactory, TEMPLATE_MAPPING


def make_record(**overrides):
    rows = RawRowFactory.from_dicts([UploadRowFactory.create(**overrides)])
    groups = group_rows(rows, TEMPLATE_MAPPING).groups
    valid = validate_groups(groups, TEMPLATE_MAPPING).valid_groups
    return build_records(valid, TEMPLATE_MAPPING, "owner-123")[0]


class TestBillboardServiceInsert:
    """Tests for BillboardService.insert()"""

    def test_insert_returns_created_id(self, mock_supabase):
        # Arrange
        service = BillboardService(client=mock_supabase)
        record = make_record(**{"Frame_ID": "FR-1"})

        # Act
        created_id = service.insert(record)

        # Assert
        assert created_id == "test-uuid-1"
        [row] = mock_supabase.inserted["billboards"]
        assert row["nombre"] == "FR-1 - Estático"
        assert row["owner_id"] == "owner-123"

    def test_insert_failure_raises_database_error(self, mock_supabase):
        mock_supabase.fail_inserts("billboards", 1)
        service = BillboardService(client=mock_supabase)

        with pytest.raises(DatabaseError) as exc_info:
            service.insert(make_record(**{"Frame_ID": "FR-1"}))

        assert exc_info.value.details["identifier"] == "FR-1"
        assert "billboards" not in mock_supabase.inserted


class TestBillboardServiceQueryExistingNames:
    """Tests for BillboardService.query_existing_names()"""

    def test_returns_owner_names(self, mock_supabase):
        mock_supabase.set_table_data("billboards", [
            {"id": "1", "nombre": "FR-1 - Digital", "owner_id": "owner-123"},
            {"id": "2", "nombre": None, "owner_id": "owner-123"},
            {"id": "3", "nombre": "X - Digital", "owner_id": "other"},
        ])
        service = BillboardService(client=mock_supabase)

        assert service.query_existing_names("owner-123") == ["FR-1 - Digital"]

    def test_singleton_uses_patched_client(self, mock_db, mock_supabase):
        service = get_billboard_service()

        assert service.db is mock_supabase
        assert get_billboard_service() is service

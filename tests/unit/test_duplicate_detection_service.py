"""
Unit tests for duplicate identifier detection.
"""

import pytest

from exceptions import DuplicateIdentifierError
from services.duplicate_detection_service import (
    DuplicateDetectionService,
    match_duplicate_identifiers,
)


class TestMatchDuplicateIdentifiers:
    """Tests for match_duplicate_identifiers()"""

    def test_identifier_inside_existing_name(self):
        assert match_duplicate_identifiers(["FR-1"], ["FR-1 - Digital"]) == ["FR-1"]

    def test_case_insensitive(self):
        assert match_duplicate_identifiers(["fr-1"], ["FR-1 - Estático"]) == ["fr-1"]

    def test_no_match(self):
        assert match_duplicate_identifiers(["FR-2"], ["FR-1 - Digital"]) == []

    def test_contains_mode_flags_longer_identifier(self):
        """Containment also matches FR-1 against FR-10."""
        assert match_duplicate_identifiers(["FR-1"], ["FR-10 - Digital"]) == ["FR-1"]

    def test_exact_mode_compares_identifier_prefix(self):
        existing = ["FR-10 - Digital", "fr-2 - Estático"]

        result = match_duplicate_identifiers(["FR-1", "FR-2", "FR-10"], existing, "exact")

        assert result == ["FR-2", "FR-10"]

    def test_each_identifier_reported_once(self):
        result = match_duplicate_identifiers(["FR-1", "FR-1"], ["FR-1 - Digital", "FR-1 - Estático"])

        assert result == ["FR-1"]

    def test_blank_names_and_identifiers_ignored(self):
        assert match_duplicate_identifiers(["", "FR-1"], ["", None]) == []

    def test_invalid_mode(self):
        with pytest.raises(ValueError):
            match_duplicate_identifiers(["FR-1"], [], "fuzzy")


class TestDuplicateDetectionService:
    """Tests for DuplicateDetectionService with the billboard store."""

    def test_find_duplicates_scoped_to_owner(self, mock_supabase, billboard_store):
        # Arrange
        mock_supabase.set_table_data("billboards", [
            {"id": "1", "nombre": "FR-1 - Digital", "owner_id": "owner-123"},
            {"id": "2", "nombre": "FR-2 - Digital", "owner_id": "someone-else"},
        ])
        service = DuplicateDetectionService(billboard_store)

        # Act
        result = service.find_duplicates("owner-123", ["FR-1", "FR-2", "FR-3"])

        # Assert
        assert result == ["FR-1"]

    def test_empty_identifiers_skip_query(self, billboard_store):
        service = DuplicateDetectionService(billboard_store)

        assert service.find_duplicates("owner-123", []) == []

    def test_exact_mode_from_constructor(self, mock_supabase, billboard_store):
        mock_supabase.set_table_data("billboards", [
            {"id": "1", "nombre": "FR-10 - Digital", "owner_id": "owner-123"},
        ])
        service = DuplicateDetectionService(billboard_store, match_mode="exact")

        assert service.find_duplicates("owner-123", ["FR-1"]) == []

    def test_ensure_no_duplicates_raises(self, mock_supabase, billboard_store):
        mock_supabase.set_table_data("billboards", [
            {"id": "1", "nombre": "FR-1 - Digital", "owner_id": "owner-123"},
        ])
        service = DuplicateDetectionService(billboard_store)

        with pytest.raises(DuplicateIdentifierError) as exc_info:
            service.ensure_no_duplicates("owner-123", ["FR-1", "FR-5"])

        assert exc_info.value.identifiers == ["FR-1"]
        assert exc_info.value.status_code == 409

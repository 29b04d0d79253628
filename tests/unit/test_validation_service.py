"""
Unit tests for group validation.
"""

from decimal import Decimal

import pytest

from models.billboard import FrameCategory
from models.bulk_upload import IssueKind
from services.grouping_service import group_rows
from services.validation_service import parse_category, validate_group, validate_groups
from tests.factories import RawRowFactory, UploadRowFactory, TEMPLATE_MAPPING


def make_groups(*rows: dict):
    return group_rows(RawRowFactory.from_dicts(list(rows)), TEMPLATE_MAPPING).groups


class TestParseCategory:
    """Tests for parse_category()"""

    @pytest.mark.parametrize("value", ["digital", "DIGITAL", " Digital ", "DOOH"])
    def test_digital(self, value):
        assert parse_category(value) == FrameCategory.DIGITAL

    @pytest.mark.parametrize("value", ["static", "Estático", "estatica", "Fijo", "tradicional"])
    def test_static(self, value):
        assert parse_category(value) == FrameCategory.STATIC

    @pytest.mark.parametrize("value", ["", "neon", None, 1])
    def test_unknown(self, value):
        assert parse_category(value) is None


class TestValidateGroup:
    """Tests for validate_group()"""

    def test_valid_group_parsed_values(self):
        [group] = make_groups(UploadRowFactory.create(**{
            "Precio Público": "$60,000.00",
            "Categoría": "Digital",
            "Ancho (m)": "12,5",
        }))

        validated, issues = validate_group(group, TEMPLATE_MAPPING)

        assert issues == []
        assert validated.category == FrameCategory.DIGITAL
        assert validated.monthly_rate == Decimal("60000.00")
        assert validated.width == Decimal("12.5")
        assert validated.latitude == Decimal("19.4326")

    def test_decimal_comma_coordinates_and_dotted_price(self):
        [group] = make_groups(UploadRowFactory.create(**{
            "Latitud": "19,432",
            "Longitud": "-99,1332",
            "Precio Público": "$60.000",
        }))

        validated, issues = validate_group(group, TEMPLATE_MAPPING)

        assert issues == []
        assert validated.latitude == Decimal("19.432")
        assert validated.longitude == Decimal("-99.1332")
        assert validated.monthly_rate == Decimal("60000")

    def test_latitude_abc(self):
        [group] = make_groups(UploadRowFactory.create(**{"Latitud": "abc"}))

        validated, issues = validate_group(group, TEMPLATE_MAPPING)

        assert validated is None
        assert len(issues) == 1
        assert issues[0].field == "latitude"
        assert issues[0].value == "abc"
        assert issues[0].kind == IssueKind.FIELD_VALIDATION
        assert issues[0].row == 2

    @pytest.mark.parametrize("field,header,value", [
        ("latitude", "Latitud", "91"),
        ("latitude", "Latitud", "-90.5"),
        ("longitude", "Longitud", "181"),
    ])
    def test_coordinates_out_of_range(self, field, header, value):
        [group] = make_groups(UploadRowFactory.create(**{header: value}))

        _, issues = validate_group(group, TEMPLATE_MAPPING)

        assert [i.field for i in issues] == [field]
        assert "between" in issues[0].message

    def test_boundary_coordinates_accepted(self):
        [group] = make_groups(UploadRowFactory.create(**{"Latitud": "-90", "Longitud": "180"}))

        validated, issues = validate_group(group, TEMPLATE_MAPPING)

        assert issues == []

    def test_unknown_category(self):
        [group] = make_groups(UploadRowFactory.create(**{"Categoría": "neon"}))

        _, issues = validate_group(group, TEMPLATE_MAPPING)

        assert [i.field for i in issues] == ["frame_category"]

    @pytest.mark.parametrize("header,field", [
        ("Precio Público", "public_price"),
        ("Ancho (m)", "width"),
        ("Alto (m)", "height"),
    ])
    def test_non_positive_numbers(self, header, field):
        [group] = make_groups(UploadRowFactory.create(**{header: "0"}))

        _, issues = validate_group(group, TEMPLATE_MAPPING)

        assert [i.field for i in issues] == [field]
        assert issues[0].message == "Must be greater than 0"

    def test_every_problem_reported(self):
        [group] = make_groups(UploadRowFactory.create(**{
            "Dirección": "",
            "Tipo de Mueble": " ",
            "Latitud": "abc",
            "Precio Público": "-5",
            "Categoría": "neon",
        }))

        _, issues = validate_group(group, TEMPLATE_MAPPING)

        fields = {i.field for i in issues}
        assert fields == {"address", "venue_type", "latitude", "public_price", "frame_category"}
        assert all(i.identifier == group.identifier for i in issues)

    def test_synthetic_group_has_no_identifier_in_issues(self):
        rows = RawRowFactory.from_dicts([UploadRowFactory.create(**{"Latitud": "abc"})])
        groups = group_rows(rows, {**TEMPLATE_MAPPING, "frame_id": None}).groups

        _, issues = validate_group(groups[0], {**TEMPLATE_MAPPING, "frame_id": None})

        assert issues[0].identifier is None

    def test_only_first_row_checked(self):
        groups = make_groups(
            UploadRowFactory.create(**{"Frame_ID": "FR-1"}),
            UploadRowFactory.create(**{"Frame_ID": "FR-1", "Latitud": "abc"}),
        )

        validated, issues = validate_group(groups[0], TEMPLATE_MAPPING)

        assert issues == []
        assert validated.group.spots_disponibles == 2


class TestValidateGroups:
    """Tests for validate_groups()"""

    def test_bad_group_excluded_others_still_validated(self):
        groups = make_groups(
            UploadRowFactory.create(**{"Frame_ID": "FR-1"}),
            UploadRowFactory.create(**{"Frame_ID": "FR-2", "Latitud": "abc"}),
            UploadRowFactory.create(**{"Frame_ID": "FR-3", "Categoría": "neon"}),
            UploadRowFactory.create(**{"Frame_ID": "FR-4"}),
        )

        outcome = validate_groups(groups, TEMPLATE_MAPPING)

        assert [v.identifier for v in outcome.valid_groups] == ["FR-1", "FR-4"]
        assert [(i.identifier, i.field) for i in outcome.issues] == [
            ("FR-2", "latitude"),
            ("FR-3", "frame_category"),
        ]
        assert outcome.invalid_count == 2

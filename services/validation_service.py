"""
Group validation.

Checks each FrameGroup's first row (the only row that supplies group-level
attributes) and accumulates every violation instead of stopping at the
first, so one upload attempt reports the complete list of problems.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Optional
import structlog

from models.billboard import FrameCategory
from models.bulk_upload import IssueKind, UploadIssue
from services.column_mapping_service import CANONICAL_FIELDS, ColumnMapping
from services.grouping_service import FrameGroup
from utils.number_utils import parse_number
from utils.text_utils import cell_to_text, normalize_for_matching

logger = structlog.get_logger(__name__)

# Normalized category spellings accepted from owners
CATEGORY_ALIASES = {
    "digital": FrameCategory.DIGITAL,
    "dooh": FrameCategory.DIGITAL,
    "static": FrameCategory.STATIC,
    "estatico": FrameCategory.STATIC,
    "estatica": FrameCategory.STATIC,
    "fijo": FrameCategory.STATIC,
    "fija": FrameCategory.STATIC,
    "tradicional": FrameCategory.STATIC,
}

COORDINATE_RANGES = {
    "latitude": (Decimal("-90"), Decimal("90")),
    "longitude": (Decimal("-180"), Decimal("180")),
}
POSITIVE_FIELDS = ("public_price", "width", "height")

MAX_VALUE_LENGTH = 100


@dataclass
class ValidatedGroup:
    """A group whose attributes passed every check, with parsed values."""
    group: FrameGroup
    category: FrameCategory
    address: str
    venue_type: str
    latitude: Decimal
    longitude: Decimal
    width: Decimal
    height: Decimal
    monthly_rate: Decimal

    @property
    def identifier(self) -> str:
        return self.group.identifier


@dataclass
class ValidationOutcome:
    """Committable groups plus every issue found."""
    valid_groups: list[ValidatedGroup] = field(default_factory=list)
    issues: list[UploadIssue] = field(default_factory=list)

    @property
    def invalid_count(self) -> int:
        return len({(i.row, i.identifier) for i in self.issues})


def parse_category(value: Any) -> Optional[FrameCategory]:
    """Map an owner-entered category to digital/static, or None."""
    return CATEGORY_ALIASES.get(normalize_for_matching(cell_to_text(value)))


def validate_group(
    group: FrameGroup,
    mapping: ColumnMapping,
) -> tuple[Optional[ValidatedGroup], list[UploadIssue]]:
    """
    Validate one group's first row.

    Returns:
        (ValidatedGroup, []) when valid, (None, issues) otherwise
    """
    issues: list[UploadIssue] = []

    def raw(key: str) -> Any:
        return group.value(mapping.get(key))

    def add_issue(key: str, message: str) -> None:
        issues.append(UploadIssue(
            row=group.source_row,
            identifier=None if group.synthetic else group.identifier,
            field=key,
            value=cell_to_text(raw(key))[:MAX_VALUE_LENGTH],
            message=message,
            kind=IssueKind.FIELD_VALIDATION,
        ))

    # Required presence
    empty = set()
    for field_spec in CANONICAL_FIELDS:
        if field_spec.required and not cell_to_text(raw(field_spec.key)):
            add_issue(field_spec.key, "Required field is empty")
            empty.add(field_spec.key)

    # Coordinates: numeric and in range
    coordinates: dict[str, Decimal] = {}
    for key, (low, high) in COORDINATE_RANGES.items():
        if key in empty:
            continue
        number = parse_number(raw(key), thousands=False)
        if number is None:
            add_issue(key, "Must be a number")
        elif not low <= number <= high:
            add_issue(key, f"Must be between {low} and {high}")
        else:
            coordinates[key] = number

    # Category
    category = None
    if "frame_category" not in empty:
        category = parse_category(raw("frame_category"))
        if category is None:
            add_issue("frame_category", "Must be digital or static")

    # Price and dimensions: positive after stripping currency formatting
    positives: dict[str, Decimal] = {}
    for key in POSITIVE_FIELDS:
        if key in empty:
            continue
        number = parse_number(raw(key))
        if number is None:
            add_issue(key, "Must be a number")
        elif number <= 0:
            add_issue(key, "Must be greater than 0")
        else:
            positives[key] = number

    if issues:
        return None, issues

    return ValidatedGroup(
        group=group,
        category=category,
        address=cell_to_text(raw("address")),
        venue_type=cell_to_text(raw("venue_type")),
        latitude=coordinates["latitude"],
        longitude=coordinates["longitude"],
        width=positives["width"],
        height=positives["height"],
        monthly_rate=positives["public_price"],
    ), []


def validate_groups(
    groups: list[FrameGroup],
    mapping: ColumnMapping,
) -> ValidationOutcome:
    """
    Validate every group, never stopping early.

    A group with any violation is left out of valid_groups; later groups
    are still checked and their issues reported.
    """
    outcome = ValidationOutcome()

    for group in groups:
        validated, issues = validate_group(group, mapping)
        if validated is None:
            outcome.issues.extend(issues)
        else:
            outcome.valid_groups.append(validated)

    logger.info(
        "groups_validated",
        groups=len(groups),
        valid=len(outcome.valid_groups),
        issues=len(outcome.issues),
    )
    return outcome

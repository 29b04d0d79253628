"""
Groups uploaded rows into physical billboards.

Rows sharing an identifier describe one physical unit; each extra row is
one more sellable slot, not a duplicate unit. Only the first row of a group
supplies descriptive fields.
"""

from dataclasses import dataclass, field
from typing import Any, Optional
import structlog

from config import settings
from models.bulk_upload import IssueKind, UploadIssue
from parsers.upload_file_parser import RawRow
from utils.text_utils import cell_to_text

logger = structlog.get_logger(__name__)

SYNTHETIC_PREFIX = "ROW-"


@dataclass
class FrameGroup:
    """All rows sharing one identifier."""
    identifier: str
    rows: list[RawRow] = field(default_factory=list)
    synthetic: bool = False  # Identifier generated because no grouping column is mapped

    @property
    def spots_disponibles(self) -> int:
        """Sellable slots: one per row."""
        return len(self.rows)

    @property
    def first_row(self) -> RawRow:
        return self.rows[0]

    @property
    def source_row(self) -> int:
        return self.rows[0].row_number

    def value(self, header: Optional[str]) -> Any:
        """Group-level attribute, read from the first row."""
        return self.first_row.get(header)


@dataclass
class GroupingResult:
    """Groups in first-seen order plus rows excluded for lacking an identifier."""
    groups: list[FrameGroup] = field(default_factory=list)
    issues: list[UploadIssue] = field(default_factory=list)

    @property
    def identifiers(self) -> list[str]:
        return [g.identifier for g in self.groups]


def group_rows(
    rows: list[RawRow],
    mapping: dict[str, Optional[str]],
    grouping_key: Optional[str] = None,
) -> GroupingResult:
    """
    Group rows by the mapped identifier column.

    Args:
        rows: Parsed rows in file order
        mapping: Field key -> header
        grouping_key: Canonical field holding the identifier
                      (defaults to settings.upload_grouping_key)

    Returns:
        GroupingResult. Rows with an empty identifier become
        row_without_identifier issues and join no group. If the grouping
        field has no mapped column at all, each row is its own group with
        a synthetic ROW-{n} identifier.
    """
    grouping_key = grouping_key or settings.upload_grouping_key
    header = mapping.get(grouping_key)
    result = GroupingResult()

    if not header:
        logger.info("grouping_column_unmapped", grouping_key=grouping_key, rows=len(rows))
        result.groups = [
            FrameGroup(identifier=f"{SYNTHETIC_PREFIX}{row.row_number}", rows=[row], synthetic=True)
            for row in rows
        ]
        return result

    by_identifier: dict[str, FrameGroup] = {}
    for row in rows:
        identifier = cell_to_text(row.get(header))
        if not identifier:
            result.issues.append(UploadIssue(
                row=row.row_number,
                identifier=None,
                field=grouping_key,
                value="",
                message="Row has no identifier and was skipped",
                kind=IssueKind.ROW_WITHOUT_IDENTIFIER,
            ))
            continue

        group = by_identifier.get(identifier)
        if group is None:
            group = FrameGroup(identifier=identifier)
            by_identifier[identifier] = group
            result.groups.append(group)
        group.rows.append(row)

    logger.info(
        "rows_grouped",
        rows=len(rows),
        groups=len(result.groups),
        rows_without_identifier=len(result.issues),
    )
    return result

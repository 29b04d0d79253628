"""
Bulk upload models.

Schema description, issue records, and API request/response models for the
spreadsheet upload workflow.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from models.billboard import InventoryRecord


class CanonicalFieldSpec(BaseModel):
    """
    One attribute of the platform schema that uploaded columns map onto.

    Fixed at build time; see services.column_mapping_service.CANONICAL_FIELDS.
    """
    model_config = ConfigDict(frozen=True)

    key: str = Field(description="Internal field key, e.g. public_price")
    label: str = Field(description="Header shown in the template")
    required: bool = False
    aliases: tuple[str, ...] = Field(default=(), description="Accepted header variants")
    example_static: str = ""
    example_digital: str = ""


class IssueKind(str, Enum):
    """Non-fatal problems reported in the error table."""
    ROW_WITHOUT_IDENTIFIER = "row_without_identifier"
    FIELD_VALIDATION = "field_validation"
    PERSISTENCE = "persistence"
    MALFORMED_ROW = "malformed_row"


class UploadIssue(BaseModel):
    """
    One line of the error report.

    row is the 1-based spreadsheet row (header is row 1).
    """

    row: int
    identifier: Optional[str] = None
    field: str
    value: Optional[str] = None
    message: str
    kind: IssueKind = IssueKind.FIELD_VALIDATION


class SessionState(str, Enum):
    """Upload session lifecycle."""
    IDLE = "idle"
    MAPPED = "mapped"
    PREVIEWED = "previewed"
    COMMITTING = "committing"
    DONE = "done"
    PARTIALLY_FAILED = "partially_failed"


class CommitReport(BaseModel):
    """Outcome of a commit: successes and per-record failures."""

    total: int = 0
    succeeded: int = 0
    created_ids: list[str] = Field(default_factory=list)
    failures: list[UploadIssue] = Field(default_factory=list)

    @property
    def failed(self) -> int:
        return len(self.failures)


# ===================
# API MODELS
# ===================

class MappingUpdateRequest(BaseModel):
    """Field key → header overrides. null or "" clears a mapping."""

    mapping: dict[str, Optional[str]] = Field(
        ...,
        examples=[{"public_price": "Tarifa mensual", "city": None}]
    )


class UploadSessionResponse(BaseModel):
    """Session summary returned after upload and after each mapping edit."""

    session_id: str
    state: SessionState
    filename: Optional[str] = None
    encoding_used: str
    headers: list[str]
    row_count: int
    rejected_row_count: int = 0
    mapping: dict[str, Optional[str]]
    missing_required: list[str]
    fields: list[CanonicalFieldSpec]


class PreviewResponse(BaseModel):
    """Preview of the first valid groups, plus every issue found."""

    session_id: str
    state: SessionState
    total_rows: int
    total_groups: int
    valid_groups: int
    records: list[InventoryRecord]
    issues: list[UploadIssue]
    duplicate_identifiers: list[str]
    commit_blocked: bool


class CommitResponse(BaseModel):
    """Commit outcome."""

    session_id: str
    state: SessionState
    total: int
    succeeded: int
    failed: int
    created_ids: list[str]
    failures: list[UploadIssue]
    message: str

"""
Bulk upload session workflow.

A session moves idle -> mapped -> previewed -> committing -> done or
partially_failed. Every step returns a new UploadSession; nothing here
mutates a session in place, so a failed step leaves the previous session
usable.

Preview never writes. Commit re-runs the whole pipeline over every row,
re-checks duplicates, then inserts one record at a time. A failed insert is
recorded and the loop moves on; records already inserted stay inserted.
"""

import uuid
from dataclasses import dataclass, field, replace
from typing import Callable, Optional
import structlog

from config import settings
from exceptions import FileTooLargeError, InvalidSessionStateError, ValidationError
from models.billboard import InventoryRecord
from models.bulk_upload import CommitReport, IssueKind, SessionState, UploadIssue
from parsers.upload_file_parser import RawRow, RejectedRow, parse_upload_file
from services.column_mapping_service import (
    ColumnMapping,
    apply_mapping_overrides,
    find_missing_required,
    require_complete_mapping,
    suggest_mapping,
)
from services.duplicate_detection_service import BillboardStore, DuplicateDetectionService
from services.grouping_service import GroupingResult, group_rows
from services.record_builder_service import build_records
from services.validation_service import ValidationOutcome, validate_groups
from utils.text_utils import cell_to_text

logger = structlog.get_logger(__name__)

ProgressCallback = Callable[[int, int, int], None]

PREVIEW_STATES = [SessionState.IDLE, SessionState.MAPPED, SessionState.PREVIEWED]
MAPPING_STATES = [SessionState.IDLE, SessionState.MAPPED, SessionState.PREVIEWED]


@dataclass(frozen=True)
class UploadSession:
    """One owner's upload, from parsed file to commit outcome."""
    session_id: str
    owner_id: str
    filename: Optional[str]
    headers: list[str]
    rows: list[RawRow]
    encoding_used: str
    mapping: ColumnMapping
    missing_required: list[str]
    state: SessionState = SessionState.IDLE
    rejected_rows: list[RejectedRow] = field(default_factory=list)

    # Filled by preview
    preview_records: list[InventoryRecord] = field(default_factory=list)
    issues: list[UploadIssue] = field(default_factory=list)
    duplicate_identifiers: list[str] = field(default_factory=list)
    total_groups: int = 0
    valid_groups: int = 0

    # Filled by commit
    commit_report: Optional[CommitReport] = None

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def commit_blocked(self) -> bool:
        """Duplicates block the whole upload."""
        return bool(self.duplicate_identifiers)


def _mapping_state(missing_required: list[str]) -> SessionState:
    return SessionState.IDLE if missing_required else SessionState.MAPPED


def _require_state(session: UploadSession, operation: str, allowed: list[SessionState]) -> None:
    if session.state not in allowed:
        raise InvalidSessionStateError(
            operation,
            session.state.value,
            [s.value for s in allowed],
        )


def _run_pipeline(session: UploadSession) -> tuple[GroupingResult, ValidationOutcome]:
    """Group and validate every row of the session."""
    require_complete_mapping(session.mapping)
    grouping = group_rows(session.rows, session.mapping)
    outcome = validate_groups(grouping.groups, session.mapping)
    return grouping, outcome


def _checkable_identifiers(grouping: GroupingResult) -> list[str]:
    """Identifiers that came from the file (synthetic ones are never stored)."""
    return [g.identifier for g in grouping.groups if not g.synthetic]


def _rejected_row_issues(session: UploadSession) -> list[UploadIssue]:
    """One issue per row the parser set aside for having extra values."""
    header = session.mapping.get(settings.upload_grouping_key)
    return [
        UploadIssue(
            row=row.row_number,
            identifier=cell_to_text(row.get(header)) or None,
            field="row",
            value=row.extra,
            message=(
                "Row has more values than the file has columns and was skipped; "
                "put values containing the separator in quotes"
            ),
            kind=IssueKind.MALFORMED_ROW,
        )
        for row in session.rejected_rows
    ]


# ===================
# SESSION STEPS
# ===================

def start_session(
    content: bytes,
    filename: Optional[str],
    owner_id: str,
    preferred_encoding: Optional[str] = None,
) -> UploadSession:
    """
    Parse an uploaded file and suggest a column mapping.

    Returns:
        Session in state mapped when every required field found a column,
        idle otherwise

    Raises:
        ValidationError: Missing owner id
        FileTooLargeError: File exceeds settings.max_upload_mb
        FileUnreadableError: No encoding or format could read the file
    """
    if not owner_id or not owner_id.strip():
        raise ValidationError(code="OWNER_REQUIRED", message="owner_id is required")
    if len(content) > settings.max_upload_bytes:
        raise FileTooLargeError(len(content), settings.max_upload_bytes)

    parsed = parse_upload_file(content, filename, preferred_encoding=preferred_encoding)
    mapping = suggest_mapping(parsed.headers)
    missing = find_missing_required(mapping)

    session = UploadSession(
        session_id=uuid.uuid4().hex,
        owner_id=owner_id.strip(),
        filename=filename,
        headers=parsed.headers,
        rows=parsed.rows,
        encoding_used=parsed.encoding_used,
        mapping=mapping,
        missing_required=missing,
        state=_mapping_state(missing),
        rejected_rows=parsed.rejected_rows,
    )

    logger.info(
        "upload_session_started",
        session_id=session.session_id,
        owner_id=session.owner_id,
        filename=filename,
        encoding=parsed.encoding_used,
        rows=session.row_count,
        rejected_rows=len(parsed.rejected_rows),
        missing_required=missing,
    )
    return session


def update_mapping(session: UploadSession, overrides: dict[str, Optional[str]]) -> UploadSession:
    """
    Apply user mapping edits.

    Any previous preview is discarded since it was built from the old
    mapping.

    Raises:
        InvalidSessionStateError: Session already committing or committed
        ValidationError: Unknown field key or header
    """
    _require_state(session, "remap", MAPPING_STATES)

    mapping = apply_mapping_overrides(session.mapping, overrides, session.headers)
    missing = find_missing_required(mapping)

    logger.info(
        "upload_mapping_updated",
        session_id=session.session_id,
        missing_required=missing,
    )
    return replace(
        session,
        mapping=mapping,
        missing_required=missing,
        state=_mapping_state(missing),
        preview_records=[],
        issues=[],
        duplicate_identifiers=[],
        total_groups=0,
        valid_groups=0,
    )


def preview(
    session: UploadSession,
    persistence: BillboardStore,
    preview_size: Optional[int] = None,
) -> UploadSession:
    """
    Validate every group and build the first few records for display.

    Issues and duplicates cover the whole file; only the records are
    truncated to preview_size (settings.upload_preview_size). Nothing is
    inserted.

    Raises:
        MissingRequiredColumnError: Mapping still incomplete
        InvalidSessionStateError: Session already committing or committed
        DatabaseError: Duplicate lookup failed
    """
    _require_state(session, "preview", PREVIEW_STATES)
    size = preview_size if preview_size is not None else settings.upload_preview_size

    grouping, outcome = _run_pipeline(session)
    records = build_records(outcome.valid_groups[:size], session.mapping, session.owner_id)
    duplicates = DuplicateDetectionService(persistence).find_duplicates(
        session.owner_id,
        _checkable_identifiers(grouping),
    )

    previewed = replace(
        session,
        state=SessionState.PREVIEWED,
        preview_records=records,
        issues=_rejected_row_issues(session) + grouping.issues + outcome.issues,
        duplicate_identifiers=duplicates,
        total_groups=len(grouping.groups),
        valid_groups=len(outcome.valid_groups),
        commit_report=None,
    )

    logger.info(
        "upload_previewed",
        session_id=session.session_id,
        groups=previewed.total_groups,
        valid=previewed.valid_groups,
        issues=len(previewed.issues),
        duplicates=len(duplicates),
    )
    return previewed


def commit(
    session: UploadSession,
    persistence: BillboardStore,
    on_progress: Optional[ProgressCallback] = None,
) -> UploadSession:
    """
    Insert every valid record, one at a time.

    Args:
        session: A previewed session
        persistence: Store receiving the inserts
        on_progress: Called as (processed, total, succeeded) after each record

    Returns:
        Session in state done, or partially_failed when any insert failed.
        Failures are appended to issues as persistence issues.

    Raises:
        InvalidSessionStateError: Session was not previewed
        DuplicateIdentifierError: Identifiers now collide with stored ones
    """
    _require_state(session, "commit", [SessionState.PREVIEWED])

    grouping, outcome = _run_pipeline(session)
    DuplicateDetectionService(persistence).ensure_no_duplicates(
        session.owner_id,
        _checkable_identifiers(grouping),
    )

    records = build_records(outcome.valid_groups, session.mapping, session.owner_id)
    session = replace(session, state=SessionState.COMMITTING)
    report = CommitReport(total=len(records))

    logger.info(
        "upload_commit_started",
        session_id=session.session_id,
        owner_id=session.owner_id,
        records=len(records),
    )

    for processed, record in enumerate(records, start=1):
        try:
            created_id = persistence.insert(record)
            report.succeeded += 1
            report.created_ids.append(created_id)
        except Exception as e:
            logger.error(
                "upload_record_failed",
                session_id=session.session_id,
                identifier=record.identifier,
                row=record.source_row,
                error=str(e),
            )
            report.failures.append(UploadIssue(
                row=record.source_row,
                identifier=record.identifier,
                field="record",
                value=record.name,
                message=getattr(e, "message", None) or str(e),
                kind=IssueKind.PERSISTENCE,
            ))

        if on_progress is not None:
            on_progress(processed, report.total, report.succeeded)

    final_state = SessionState.PARTIALLY_FAILED if report.failures else SessionState.DONE

    logger.info(
        "upload_commit_finished",
        session_id=session.session_id,
        state=final_state.value,
        total=report.total,
        succeeded=report.succeeded,
        failed=report.failed,
    )
    return replace(
        session,
        state=final_state,
        issues=_rejected_row_issues(session) + grouping.issues + outcome.issues + report.failures,
        duplicate_identifiers=[],
        total_groups=len(grouping.groups),
        valid_groups=len(outcome.valid_groups),
        commit_report=report,
    )

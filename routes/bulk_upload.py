"""
Billboard bulk upload API routes.

Two-phase workflow: upload a spreadsheet, adjust the column mapping,
preview, then commit. Sessions live in memory between calls.
"""

from typing import Optional

from fastapi import APIRouter, File, Form, Query, UploadFile
from fastapi.responses import JSONResponse, Response
import structlog

from config import settings
from exceptions import AppError, FileTooLargeError, MissingRequiredColumnError
from models.bulk_upload import (
    CommitResponse,
    MappingUpdateRequest,
    PreviewResponse,
    SessionState,
    UploadSessionResponse,
)
from services.billboard_service import get_billboard_service
from services.column_mapping_service import CANONICAL_FIELDS, field_labels
from services.report_service import get_report_service
from services import session_store_service as store
from services import upload_session_service as uploads
from services.upload_session_service import UploadSession

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/billboards/bulk-upload", tags=["Bulk Upload"])

CSV_MEDIA_TYPE = "text/csv; charset=utf-8"
XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
FORMAT_PATTERN = "^(csv|xlsx)$"


# ===================
# EXCEPTION HANDLER
# ===================

def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(
            status_code=e.status_code,
            content=e.to_dict()
        )
    # Unexpected error
    logger.error("unexpected_error", error=str(e), type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred"
            }
        }
    )


# ===================
# RESPONSE BUILDERS
# ===================

def _session_response(session: UploadSession) -> UploadSessionResponse:
    return UploadSessionResponse(
        session_id=session.session_id,
        state=session.state,
        filename=session.filename,
        encoding_used=session.encoding_used,
        headers=session.headers,
        row_count=session.row_count,
        rejected_row_count=len(session.rejected_rows),
        mapping=session.mapping,
        missing_required=session.missing_required,
        fields=CANONICAL_FIELDS,
    )


def _preview_response(session: UploadSession) -> PreviewResponse:
    return PreviewResponse(
        session_id=session.session_id,
        state=session.state,
        total_rows=session.row_count,
        total_groups=session.total_groups,
        valid_groups=session.valid_groups,
        records=session.preview_records,
        issues=session.issues,
        duplicate_identifiers=session.duplicate_identifiers,
        commit_blocked=session.commit_blocked,
    )


def _commit_response(session: UploadSession) -> CommitResponse:
    report = session.commit_report
    if session.state == SessionState.DONE:
        message = f"{report.succeeded} billboards created"
    else:
        message = f"{report.succeeded} of {report.total} billboards created, {report.failed} failed"
    return CommitResponse(
        session_id=session.session_id,
        state=session.state,
        total=report.total,
        succeeded=report.succeeded,
        failed=report.failed,
        created_ids=report.created_ids,
        failures=report.failures,
        message=message,
    )


def _attachment(content: bytes, filename: str, file_format: str) -> Response:
    media_type = XLSX_MEDIA_TYPE if file_format == "xlsx" else CSV_MEDIA_TYPE
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# ===================
# ROUTES
# ===================

@router.get("/template")
async def download_template(
    file_format: str = Query("csv", alias="format", pattern=FORMAT_PATTERN),
):
    """Download the upload template with one static and one digital example."""
    try:
        service = get_report_service()
        if file_format == "xlsx":
            output = service.generate_template_excel()
        else:
            output = service.generate_template_csv()
        return _attachment(output.getvalue(), f"plantilla_carga_masiva.{file_format}", file_format)

    except Exception as e:
        return handle_error(e)


@router.post("/sessions", response_model=UploadSessionResponse, status_code=201)
async def create_session(
    file: UploadFile = File(..., description="CSV or Excel inventory file"),
    owner_id: str = Form(..., description="Owner of the uploaded inventory"),
    encoding: Optional[str] = Form(None, description="Encoding to try first for CSV files"),
):
    """
    Start an upload session.

    Parses the file, detecting encoding for CSV, and suggests a column
    mapping. State is mapped when every required column was found.

    Raises:
        413: File too large
        422: File unreadable
    """
    logger.info(
        "bulk_upload_received",
        filename=file.filename,
        content_type=file.content_type,
        owner_id=owner_id,
    )

    try:
        content = await file.read()
        if len(content) > settings.max_upload_bytes:
            raise FileTooLargeError(len(content), settings.max_upload_bytes)

        session = uploads.start_session(content, file.filename, owner_id, preferred_encoding=encoding)
        store.save_session(session.session_id, session)
        return _session_response(session)

    except Exception as e:
        return handle_error(e)


@router.get("/sessions/{session_id}", response_model=UploadSessionResponse)
async def get_session(session_id: str):
    """Current mapping and state of a session."""
    try:
        return _session_response(store.get_session(session_id))

    except Exception as e:
        return handle_error(e)


@router.put("/sessions/{session_id}/mapping", response_model=UploadSessionResponse)
async def update_mapping(session_id: str, request: MappingUpdateRequest):
    """
    Edit the column mapping.

    The edit is kept even when required fields remain unmapped; the 422
    response lists them.
    """
    try:
        session = uploads.update_mapping(store.get_session(session_id), request.mapping)
        store.save_session(session_id, session)

        if session.missing_required:
            raise MissingRequiredColumnError(session.missing_required, field_labels())
        return _session_response(session)

    except Exception as e:
        return handle_error(e)


@router.post("/sessions/{session_id}/preview", response_model=PreviewResponse)
async def preview_session(
    session_id: str,
    size: Optional[int] = Query(None, ge=1, le=100, description="Records to preview"),
):
    """
    Validate the whole file and preview the first records.

    Nothing is saved. Issues and duplicate identifiers cover every row.
    """
    try:
        session = uploads.preview(store.get_session(session_id), get_billboard_service(), size)
        store.save_session(session_id, session)
        return _preview_response(session)

    except Exception as e:
        return handle_error(e)


@router.post("/sessions/{session_id}/commit", response_model=CommitResponse)
async def commit_session(session_id: str):
    """
    Create every valid billboard, one at a time.

    A failed insert does not stop the rest; the response lists each
    failure. Already created billboards are kept.

    Raises:
        409: Duplicate identifiers, or session not previewed
    """
    try:
        session = uploads.commit(store.get_session(session_id), get_billboard_service())

        # Failures stay downloadable from the errors endpoint
        if session.state == SessionState.DONE:
            store.discard_session(session_id)
        else:
            store.save_session(session_id, session)
        return _commit_response(session)

    except Exception as e:
        return handle_error(e)


@router.get("/sessions/{session_id}/errors")
async def download_errors(
    session_id: str,
    file_format: str = Query("csv", alias="format", pattern=FORMAT_PATTERN),
):
    """Download the issues of the last preview or commit."""
    try:
        session = store.get_session(session_id)
        service = get_report_service()
        labels = field_labels()
        if file_format == "xlsx":
            output = service.generate_error_report_excel(session.issues, labels)
        else:
            output = service.generate_error_report_csv(session.issues, labels)
        return _attachment(output.getvalue(), f"errores_{session_id}.{file_format}", file_format)

    except Exception as e:
        return handle_error(e)


@router.delete("/sessions/{session_id}", status_code=204)
async def cancel_session(session_id: str):
    """Discard a session."""
    try:
        store.get_session(session_id)
        store.discard_session(session_id)
        logger.info("upload_session_cancelled", session_id=session_id)
        return Response(status_code=204)

    except Exception as e:
        return handle_error(e)

"""
Business logic services.

Each module handles one step of the bulk upload pipeline.
"""

from services.billboard_service import BillboardService, get_billboard_service
from services.duplicate_detection_service import (
    BillboardStore,
    DuplicateDetectionService,
    match_duplicate_identifiers,
)
from services.report_service import ReportService, get_report_service
from services.upload_session_service import (
    UploadSession,
    start_session,
    update_mapping,
    preview,
    commit,
)

__all__ = [
    "BillboardService",
    "get_billboard_service",
    "BillboardStore",
    "DuplicateDetectionService",
    "match_duplicate_identifiers",
    "ReportService",
    "get_report_service",
    "UploadSession",
    "start_session",
    "update_mapping",
    "preview",
    "commit",
]

"""
Pydantic models for validation and serialization.
"""

from models.base import BaseSchema
from models.billboard import (
    FrameCategory,
    CATEGORY_LABELS,
    StaticPriceTiers,
    DigitalPriceTiers,
    PriceTiers,
    InventoryRecord,
)
from models.bulk_upload import (
    CanonicalFieldSpec,
    IssueKind,
    UploadIssue,
    SessionState,
    CommitReport,
    MappingUpdateRequest,
    UploadSessionResponse,
    PreviewResponse,
    CommitResponse,
)

__all__ = [
    # Base
    "BaseSchema",

    # Billboard
    "FrameCategory",
    "CATEGORY_LABELS",
    "StaticPriceTiers",
    "DigitalPriceTiers",
    "PriceTiers",
    "InventoryRecord",

    # Bulk upload
    "CanonicalFieldSpec",
    "IssueKind",
    "UploadIssue",
    "SessionState",
    "CommitReport",
    "MappingUpdateRequest",
    "UploadSessionResponse",
    "PreviewResponse",
    "CommitResponse",
]

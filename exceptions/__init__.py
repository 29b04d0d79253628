"""
Custom exceptions module.
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    NotFoundError,
    ValidationError,
    ConflictError,
    DatabaseError,

    # Upload file
    FileUnreadableError,
    FileTooLargeError,

    # Column mapping
    MissingRequiredColumnError,

    # Pricing
    PricingError,

    # Upload session
    DuplicateIdentifierError,
    UploadSessionNotFoundError,
    InvalidSessionStateError,
)

__all__ = [
    # Base
    "AppError",
    "NotFoundError",
    "ValidationError",
    "ConflictError",
    "DatabaseError",

    # Upload file
    "FileUnreadableError",
    "FileTooLargeError",

    # Column mapping
    "MissingRequiredColumnError",

    # Pricing
    "PricingError",

    # Upload session
    "DuplicateIdentifierError",
    "UploadSessionNotFoundError",
    "InvalidSessionStateError",
]

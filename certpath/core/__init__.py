"""
Core utilities shared by every certpath package.

- errors: exception hierarchy
- ids: identifier allocation
- auth: admin shared-secret check
"""

from .errors import (
    BusinessRuleError,
    CertpathError,
    ConfirmationRequiredError,
    DuplicateTitleError,
    EmptyFieldError,
    EmptyTopicError,
    GenerationError,
    ImportFormatError,
    NothingToExportError,
    SyncError,
    UnknownContentError,
)

__all__ = [
    "CertpathError",
    "BusinessRuleError",
    "ConfirmationRequiredError",
    "DuplicateTitleError",
    "EmptyFieldError",
    "EmptyTopicError",
    "GenerationError",
    "ImportFormatError",
    "NothingToExportError",
    "SyncError",
    "UnknownContentError",
]

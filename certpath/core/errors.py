"""
Exception hierarchy for certpath.

Business-rule violations are raised before any state is touched, so a caught
``BusinessRuleError`` always means nothing changed.
"""
from __future__ import annotations


class CertpathError(Exception):
    """Base class for all certpath errors."""


class ImportFormatError(CertpathError):
    """Raised when an imported document is malformed."""


class BusinessRuleError(CertpathError):
    """Raised when an operation would violate a content rule."""


class DuplicateTitleError(BusinessRuleError):
    """Raised when a title already exists where it must be unique."""


class ConfirmationRequiredError(BusinessRuleError):
    """Raised when a destructive operation is requested without confirmation."""


class EmptyFieldError(BusinessRuleError):
    """Raised when a required field is empty."""


class UnknownContentError(BusinessRuleError):
    """Raised when an exam, module, sub-topic or content point does not exist."""


class EmptyTopicError(BusinessRuleError):
    """Raised when a quiz is requested for a topic without questions."""


class NothingToExportError(CertpathError):
    """Raised when an export would produce no data."""


class SyncError(CertpathError):
    """Raised when the remote snapshot cannot be fetched or parsed."""


class GenerationError(CertpathError):
    """Raised when the question generation backend fails."""

class DocumentError(Exception):
    """Base exception for document collection errors."""


class NotFoundError(DocumentError):
    """Raised when a referenced document or task id does not exist."""


class FileValidationError(DocumentError):
    """Raised when an uploaded file is rejected before extraction."""

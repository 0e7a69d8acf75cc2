"""Error types shared across DevDocs Cache."""

from typing import Optional


class DevDocsError(Exception):
    """Base class for DevDocs Cache errors."""
    pass


class FetchError(DevDocsError):
    """Raised when a document cannot be fetched from the documentation API."""

    def __init__(self, path: str, message: str, status: Optional[int] = None):
        super().__init__(f"Failed to fetch documentation for {path}: {message}")
        self.path = path
        self.status = status


class DocumentValidationError(DevDocsError):
    """Raised when a payload is not a documentation document."""
    pass


class InvalidRequestError(DevDocsError):
    """Request-shape error that is reported back to the caller."""
    pass


class NoTechnologySelectedError(InvalidRequestError):
    """Raised when an operation needs an active technology and none is set."""

    def __init__(self, message: str = "No technology selected. Choose a technology first."):
        super().__init__(message)

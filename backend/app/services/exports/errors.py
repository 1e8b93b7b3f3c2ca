"""Exception types raised by the export service layer."""

from __future__ import annotations


class ExportError(Exception):
    """Base exception for form data export errors."""

    def __init__(self, message: str, *, status: int = 500, code: str = "export_error") -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.code = code


class AuthorizationError(ExportError):
    """Raised when the caller lacks an export role."""

    def __init__(self, message: str = "You do not have permission to access this page.") -> None:
        super().__init__(message, status=403, code="forbidden")


class DataAccessError(ExportError):
    """Raised when the source collection cannot be queried or iterated."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status=500, code="data_access_error")


class SinkError(ExportError, OSError):
    """Raised when the output stream cannot be written.

    Also an ``OSError``, so code that guards stream writes catches it too.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message, status=500, code="sink_error")

"""
Exception hierarchy for catalog operations.

Every error carries the HTTP status the API layer should answer with, so the
FastAPI exception handler can render them without a lookup table.
"""

from typing import Optional


class CatalogError(Exception):
    """Base class for all catalog errors."""

    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class BookValidationError(CatalogError):
    """Book fields failed validation. Nothing was written."""

    status_code = 400


class UploadRejected(CatalogError):
    """Uploaded file failed the type or size checks. Nothing was written."""

    status_code = 400


class BookNotFound(CatalogError):
    """No book exists for the requested id."""

    status_code = 404

    def __init__(self, book_id: str):
        super().__init__(f"Book with ID '{book_id}' not found")
        self.book_id = book_id


class StorageIOError(CatalogError):
    """Filesystem write or delete failed."""

    status_code = 500

"""
Unit tests for catalog errors.
"""

from catalog.errors import BookNotFound, CatalogError, StorageIOError, UploadRejected


def test_status_code_defaults_to_class_status():
    error = UploadRejected("Only image files are allowed!")
    assert error.status_code == 400
    assert error.message == "Only image files are allowed!"
    assert str(error) == "Only image files are allowed!"


def test_status_code_override():
    error = UploadRejected("File too large", status_code=413)
    assert error.status_code == 413
    assert UploadRejected.status_code == 400


def test_book_not_found():
    error = BookNotFound("abc")
    assert error.status_code == 404
    assert error.book_id == "abc"
    assert error.message == "Book with ID 'abc' not found"


def test_storage_errors_are_catalog_errors():
    assert isinstance(StorageIOError("Failed to store image"), CatalogError)
    assert StorageIOError("Failed to store image").status_code == 500

"""
Pytest configuration and shared fixtures.
"""

from typing import Any, Dict, List, Optional

import pytest
from bson import ObjectId

from catalog.assets import AssetStore
from catalog.database import to_object_id, utc_now
from catalog.manager import BookRecordManager
from catalog.models import BookChanges, BookDocument, ImageUpload

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 256
JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"\x00" * 256


class InMemoryBookStore:
    """Dict-backed stand-in for MongoBookStore with the same validation."""

    def __init__(self):
        self.books: Dict[ObjectId, Dict[str, Any]] = {}

    async def insert_book(self, document: Dict[str, Any]) -> Dict[str, Any]:
        book = BookDocument.parse(document).model_dump(by_alias=True)
        now = utc_now()
        book.update({"_id": ObjectId(), "createdAt": now, "updatedAt": now})
        self.books[book["_id"]] = book
        return dict(book)

    async def find_book(self, book_id: str) -> Optional[Dict[str, Any]]:
        book = self.books.get(to_object_id(book_id))
        return dict(book) if book else None

    async def update_book(self, book_id: str, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        update_data = BookChanges.parse(changes).model_dump(by_alias=True, exclude_unset=True)
        book = self.books.get(to_object_id(book_id))
        if book is None:
            return None
        book.update(update_data)
        book["updatedAt"] = utc_now()
        return dict(book)

    async def list_books(self) -> List[Dict[str, Any]]:
        books = sorted(self.books.values(), key=lambda b: (b["createdAt"], b["_id"]), reverse=True)
        return [dict(book) for book in books]

    async def delete_book(self, book_id: str) -> bool:
        return self.books.pop(to_object_id(book_id), None) is not None

    async def health_check(self) -> Dict[str, Any]:
        return {"status": "healthy", "books_count": len(self.books)}

    async def disconnect(self) -> None:
        pass


@pytest.fixture
def uploads_dir(tmp_path):
    """Uploads root that does not exist yet."""
    return tmp_path / "uploads"


@pytest.fixture
def asset_store(uploads_dir):
    """Asset store writing under a temporary directory."""
    return AssetStore(root=uploads_dir)


@pytest.fixture
def book_store():
    """Empty in-memory document store."""
    return InMemoryBookStore()


@pytest.fixture
def manager(book_store, asset_store):
    """Book manager over the in-memory store and temporary uploads."""
    return BookRecordManager(book_store, asset_store)


@pytest.fixture
def book_fields():
    """Valid raw fields as a form would send them."""
    return {"bookName": "The Histories", "authorName": "Herodotus", "price": "12.50"}


@pytest.fixture
def png_upload():
    """A small PNG cover upload."""
    return ImageUpload(filename="cover.png", content_type="image/png", data=PNG_BYTES)


@pytest.fixture
def jpeg_upload():
    """A small JPEG cover upload."""
    return ImageUpload(filename="cover.jpg", content_type="image/jpeg", data=JPEG_BYTES)


@pytest.fixture
def stored_files(uploads_dir):
    """Callable listing the names of files currently in the uploads directory."""
    def _stored_files() -> List[str]:
        if not uploads_dir.exists():
            return []
        return sorted(path.name for path in uploads_dir.iterdir())
    return _stored_files

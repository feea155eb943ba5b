"""
Unit tests for book models.
Tests field parsing, coercion and image URL rules.
"""

from datetime import datetime, timezone

import pytest
from bson import ObjectId

from catalog.errors import BookValidationError
from catalog.models import (
    BookChanges, BookCreate, BookDocument, BookRecord, BookUpdate, ImageUpload
)


class TestBookCreate:
    """Test cases for BookCreate parsing."""

    def test_valid_fields(self):
        """Form text is trimmed and price is coerced to float."""
        book = BookCreate.parse({"bookName": "  Histories ", "authorName": "Herodotus", "price": "12.50"})

        assert book.book_name == "Histories"
        assert book.author_name == "Herodotus"
        assert book.price == 12.5

    def test_numeric_price(self):
        """JSON numbers are accepted as they are."""
        book = BookCreate.parse({"bookName": "X", "authorName": "Y", "price": 5})
        assert book.price == 5.0

    def test_zero_price_allowed(self):
        book = BookCreate.parse({"bookName": "X", "authorName": "Y", "price": "0"})
        assert book.price == 0.0

    def test_missing_fields(self):
        """Every missing field is reported."""
        with pytest.raises(BookValidationError) as exc_info:
            BookCreate.parse({})

        assert exc_info.value.message == (
            "Book name is required; Author name is required; Price is required"
        )
        assert exc_info.value.status_code == 400

    def test_none_is_missing(self):
        with pytest.raises(BookValidationError) as exc_info:
            BookCreate.parse({"bookName": None, "authorName": "Y", "price": "1"})
        assert "Book name is required" in exc_info.value.message

    def test_blank_name(self):
        with pytest.raises(BookValidationError) as exc_info:
            BookCreate.parse({"bookName": "X", "authorName": "   ", "price": "1"})
        assert "Author name is required" in exc_info.value.message

    def test_negative_price(self):
        with pytest.raises(BookValidationError) as exc_info:
            BookCreate.parse({"bookName": "X", "authorName": "Y", "price": -1})
        assert exc_info.value.message == "Price cannot be negative"

    @pytest.mark.parametrize("price", ["abc", "12abc", "nan", "inf", True])
    def test_unparseable_price(self, price):
        with pytest.raises(BookValidationError) as exc_info:
            BookCreate.parse({"bookName": "X", "authorName": "Y", "price": price})
        assert "Price must be" in exc_info.value.message

    def test_image_url_is_not_accepted_from_input(self):
        """Clients cannot set imageUrl directly."""
        book = BookCreate.parse({
            "bookName": "X", "authorName": "Y", "price": 1, "imageUrl": "https://example.com/x.png"
        })
        assert "imageUrl" not in book.model_dump(by_alias=True)


class TestBookUpdate:
    """Test cases for partial updates."""

    def test_only_sent_fields_change(self):
        update = BookUpdate.parse({"bookName": None, "authorName": None, "price": "9.99"})
        assert update.changes() == {"price": 9.99}

    def test_empty_update(self):
        assert BookUpdate.parse({}).changes() == {}

    def test_invalid_price(self):
        with pytest.raises(BookValidationError):
            BookUpdate.parse({"price": "-3"})

    def test_blank_name(self):
        with pytest.raises(BookValidationError):
            BookUpdate.parse({"bookName": ""})


class TestImageUrl:
    """Test cases for the stored imageUrl rule."""

    @pytest.mark.parametrize("image_url", [
        "https://www.svgrepo.com/show/94674/books-stack-of-three.svg",
        "http://example.com/cover.jpg",
        "/uploads/book-1700000000000-123456.png",
    ])
    def test_accepted(self, image_url):
        document = BookDocument.parse({
            "bookName": "X", "authorName": "Y", "price": 1, "imageUrl": image_url
        })
        assert document.image_url == image_url

    @pytest.mark.parametrize("image_url", [
        "ftp://example.com/cover.jpg",
        "cover.jpg",
        "/etc/passwd",
        "/uploads/../secret.png",
        "https://example.com/has space.png",
    ])
    def test_rejected(self, image_url):
        with pytest.raises(BookValidationError) as exc_info:
            BookDocument.parse({"bookName": "X", "authorName": "Y", "price": 1, "imageUrl": image_url})
        assert "is not a valid URL!" in exc_info.value.message

    def test_document_requires_image_url(self):
        with pytest.raises(BookValidationError) as exc_info:
            BookDocument.parse({"bookName": "X", "authorName": "Y", "price": 1})
        assert "Image URL is required" in exc_info.value.message

    def test_changes_validate_image_url(self):
        with pytest.raises(BookValidationError):
            BookChanges.parse({"imageUrl": "not a url"})

        changes = BookChanges.parse({"imageUrl": "/uploads/book-1-2.gif"})
        assert changes.model_dump(by_alias=True, exclude_unset=True) == {"imageUrl": "/uploads/book-1-2.gif"}


class TestBookRecord:
    """Test cases for BookRecord."""

    def test_from_document(self):
        object_id = ObjectId()
        created = datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)
        record = BookRecord.from_document({
            "_id": object_id,
            "bookName": "X",
            "authorName": "Y",
            "price": 3.5,
            "imageUrl": "/uploads/book-1-2.png",
            "createdAt": created,
            "updatedAt": created,
        })

        assert record.id == str(object_id)
        assert record.book_name == "X"
        assert record.created_at == created

        data = record.model_dump(by_alias=True)
        assert set(data) == {"id", "bookName", "authorName", "price", "imageUrl", "createdAt", "updatedAt"}


def test_image_upload_size():
    upload = ImageUpload(filename="a.png", content_type="image/png", data=b"12345")
    assert upload.size_bytes == 5

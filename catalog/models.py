"""
Pydantic models for book records and cover image uploads.
Field names are snake_case in Python and camelCase on the wire and in MongoDB.
"""

import math
import re
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import BookValidationError

UPLOADS_URL_PREFIX = "/uploads/"
DEFAULT_IMAGE_URL = "https://www.svgrepo.com/show/94674/books-stack-of-three.svg"

EXTERNAL_URL_PATTERN = re.compile(r'^(http|https)://[^ "]+$')
UPLOAD_REFERENCE_PATTERN = re.compile(r"^/uploads/[^/\\\s]+$")

FIELD_LABELS = {
    "bookName": "Book name",
    "authorName": "Author name",
    "price": "Price",
    "imageUrl": "Image URL",
}


class MediaKind(str, Enum):
    """Image formats accepted for book covers."""
    JPEG = "jpeg"
    PNG = "png"
    GIF = "gif"


def _require_text(value: Any, label: str) -> str:
    if value is None:
        raise ValueError(f"{label} is required")
    if not isinstance(value, str):
        raise ValueError(f"{label} must be text")
    value = value.strip()
    if not value:
        raise ValueError(f"{label} is required")
    return value


def _coerce_price(value: Any) -> float:
    """Turn form text or a JSON number into a non-negative finite float."""
    if value is None:
        raise ValueError("Price is required")
    if isinstance(value, bool):
        raise ValueError("Price must be a number")
    if isinstance(value, str):
        value = value.strip()
        if not value:
            raise ValueError("Price is required")
    try:
        price = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"Price must be a number, got {value!r}")
    if not math.isfinite(price):
        raise ValueError("Price must be a finite number")
    if price < 0:
        raise ValueError("Price cannot be negative")
    return price


def _check_image_url(value: Any) -> str:
    value = _require_text(value, "Image URL")
    if EXTERNAL_URL_PATTERN.match(value) or UPLOAD_REFERENCE_PATTERN.match(value):
        return value
    raise ValueError(f"{value} is not a valid URL!")


def _describe(exc: ValidationError) -> str:
    """Flatten pydantic errors into one readable sentence list."""
    messages = []
    for error in exc.errors():
        field = str(error["loc"][0]) if error["loc"] else ""
        if error["type"] == "missing":
            messages.append(f"{FIELD_LABELS.get(field, field)} is required")
            continue
        message = error["msg"]
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        messages.append(message)
    return "; ".join(messages)


class _BookInput(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @classmethod
    def parse(cls, raw: Dict[str, Any]):
        """
        Validate raw request fields into a typed input.

        Keys whose value is None are treated as absent.

        Raises:
            BookValidationError: with every failing field described
        """
        try:
            return cls.model_validate({k: v for k, v in raw.items() if v is not None})
        except ValidationError as e:
            raise BookValidationError(_describe(e)) from e


class BookCreate(_BookInput):
    """Fields accepted when creating a book."""
    book_name: str = Field(..., alias="bookName", description="Title of the book")
    author_name: str = Field(..., alias="authorName", description="Author of the book")
    price: float = Field(..., description="Price, coerced from text when needed")

    @field_validator("book_name", "author_name", mode="before")
    @classmethod
    def validate_names(cls, v, info):
        label = "Book name" if info.field_name == "book_name" else "Author name"
        return _require_text(v, label)

    @field_validator("price", mode="before")
    @classmethod
    def validate_price(cls, v):
        return _coerce_price(v)


class BookUpdate(_BookInput):
    """Fields accepted when updating a book. Omitted fields are left as they are."""
    book_name: Optional[str] = Field(None, alias="bookName")
    author_name: Optional[str] = Field(None, alias="authorName")
    price: Optional[float] = Field(None)

    @field_validator("book_name", "author_name", mode="before")
    @classmethod
    def validate_names(cls, v, info):
        label = "Book name" if info.field_name == "book_name" else "Author name"
        return _require_text(v, label)

    @field_validator("price", mode="before")
    @classmethod
    def validate_price(cls, v):
        return _coerce_price(v)

    def changes(self) -> Dict[str, Any]:
        """Only the fields the caller actually sent, keyed by their stored names."""
        return self.model_dump(by_alias=True, exclude_unset=True)


class BookDocument(BookCreate):
    """A complete book as written to the document store."""
    image_url: str = Field(..., alias="imageUrl", description="External URL or /uploads/ reference")

    @field_validator("image_url", mode="before")
    @classmethod
    def validate_image_url(cls, v):
        return _check_image_url(v)


class BookChanges(BookUpdate):
    """A partial update as applied to the document store."""
    image_url: Optional[str] = Field(None, alias="imageUrl")

    @field_validator("image_url", mode="before")
    @classmethod
    def validate_image_url(cls, v):
        return _check_image_url(v)


class BookRecord(BaseModel):
    """Book as returned to API clients."""
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., description="Unique book identifier")
    book_name: str = Field(..., alias="bookName", description="Book title")
    author_name: str = Field(..., alias="authorName", description="Book author")
    price: float = Field(..., description="Book price")
    image_url: str = Field(..., alias="imageUrl", description="Cover image URL or /uploads/ path")
    created_at: Optional[datetime] = Field(None, alias="createdAt", description="Creation timestamp")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt", description="Last update timestamp")

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "BookRecord":
        """Build a record from a raw MongoDB document."""
        fields = {k: v for k, v in document.items() if k != "_id"}
        fields["id"] = str(document["_id"])
        return cls.model_validate(fields)


class ImageUpload(BaseModel):
    """An uploaded cover image as received from the client."""
    filename: str = Field(..., description="Original client-side filename")
    content_type: Optional[str] = Field(None, description="Declared MIME type")
    data: bytes = Field(..., description="Raw file bytes")

    @property
    def size_bytes(self) -> int:
        return len(self.data)


class StoredAsset(BaseModel):
    """An image persisted by the asset store."""
    filename: str = Field(..., description="Generated filename on disk")
    size_bytes: int = Field(..., ge=0, description="File size in bytes")
    media_kind: MediaKind = Field(..., description="Image format")
    reference: str = Field(..., description="Store-relative path used as imageUrl")

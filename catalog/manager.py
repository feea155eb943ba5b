"""
Book record lifecycle: keeps each book document and its cover image file in step.

Update protocol:
    1. store the new image (if any)
    2. commit the record update
    3. delete the previous image
The previous image is deleted if and only if step 2 has committed. A newly
stored image whose record write fails is removed again, so failed requests do
not leave orphan files behind.

File writes and deletes run in the threadpool, off the event loop.
"""

from typing import Any, Dict, List, Optional

import structlog
from fastapi.concurrency import run_in_threadpool

from .assets import AssetStore
from .errors import BookNotFound, StorageIOError
from .models import DEFAULT_IMAGE_URL, BookCreate, BookRecord, BookUpdate, ImageUpload

logger = structlog.get_logger(__name__)


class BookRecordManager:
    """Coordinates the document store and the asset store for book operations."""

    def __init__(self, store, assets: AssetStore, default_image_url: str = DEFAULT_IMAGE_URL):
        """
        Initialize the manager.

        Args:
            store: Document store (see catalog.database.MongoBookStore)
            assets: Asset store holding uploaded cover images
            default_image_url: imageUrl for books created without an upload
        """
        self.store = store
        self.assets = assets
        self.default_image_url = default_image_url
        self.logger = logger.bind(component="book_manager")

    async def create(self, fields: Dict[str, Any], upload: Optional[ImageUpload] = None) -> BookRecord:
        """
        Create a book, storing its cover image first when one is supplied.

        Raises:
            BookValidationError: invalid fields; nothing stored
            UploadRejected: invalid image; nothing stored
            StorageIOError: image could not be written
        """
        book = BookCreate.parse(fields)
        stored = await run_in_threadpool(self.assets.store, upload) if upload is not None else None

        document = book.model_dump(by_alias=True)
        document["imageUrl"] = stored.reference if stored else self.default_image_url

        try:
            saved = await self.store.insert_book(document)
        except Exception:
            if stored:
                await self._remove_image(stored.reference, reason="create failed")
            raise

        self.logger.info("Book created", book_id=str(saved["_id"]), image_url=saved["imageUrl"])
        return BookRecord.from_document(saved)

    async def list(self) -> List[BookRecord]:
        """All books, newest first."""
        documents = await self.store.list_books()
        return [BookRecord.from_document(document) for document in documents]

    async def get(self, book_id: str) -> BookRecord:
        """Get one book; raises BookNotFound for unknown or malformed ids."""
        document = await self.store.find_book(book_id)
        if document is None:
            raise BookNotFound(book_id)
        return BookRecord.from_document(document)

    async def update(
        self,
        book_id: str,
        fields: Dict[str, Any],
        upload: Optional[ImageUpload] = None
    ) -> BookRecord:
        """
        Update a book's fields and optionally swap its cover image.

        Raises:
            BookNotFound: the book does not exist; nothing stored
            BookValidationError, UploadRejected: nothing stored or changed
            StorageIOError: the new image could not be written; nothing changed
        """
        changes = BookUpdate.parse(fields).changes()
        existing = await self.store.find_book(book_id)
        if existing is None:
            raise BookNotFound(book_id)

        stored = None
        previous_reference = None
        if upload is not None:
            stored = await run_in_threadpool(self.assets.store, upload)
            previous_reference = existing.get("imageUrl")
            changes["imageUrl"] = stored.reference

        try:
            updated = await self.store.update_book(book_id, changes)
        except Exception:
            if stored:
                await self._remove_image(stored.reference, book_id=book_id, reason="update failed")
            raise

        if updated is None:
            # Deleted between the lookup and the write
            if stored:
                await self._remove_image(stored.reference, book_id=book_id, reason="book vanished")
            raise BookNotFound(book_id)

        if previous_reference and self.assets.owns(previous_reference):
            await self._remove_image(previous_reference, book_id=book_id, reason="image replaced")

        self.logger.info("Book updated", book_id=book_id, image_replaced=stored is not None)
        return BookRecord.from_document(updated)

    async def delete(self, book_id: str) -> Dict[str, str]:
        """
        Delete a book and the cover image the asset store holds for it.
        External image URLs are left alone.
        """
        existing = await self.store.find_book(book_id)
        if existing is None:
            raise BookNotFound(book_id)

        if not await self.store.delete_book(book_id):
            raise BookNotFound(book_id)

        reference = existing.get("imageUrl")
        if self.assets.owns(reference):
            await self._remove_image(reference, book_id=book_id, reason="book deleted")

        self.logger.info("Book deleted", book_id=book_id)
        return {"message": "Book deleted successfully"}

    async def _remove_image(self, reference: str, **context) -> None:
        """Delete an image whose record state is already settled."""
        try:
            await run_in_threadpool(self.assets.delete, reference)
        except StorageIOError as e:
            # Record state is already correct; the file is left as an orphan
            self.logger.error("Failed to remove image", reference=reference, error=e.message, **context)
